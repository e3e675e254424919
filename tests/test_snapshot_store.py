# tests/test_snapshot_store.py
"""Unit tests for the snapshot store."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from app.services.errors import ErrorInfo
from app.services.snapshot_store import Failed, Ok, Pending, SnapshotStore, SourceId, Stale

ERROR = ErrorInfo(kind="ServerError", message="boom", status_code=500)


class TestSnapshotStore:
    def test_initial_snapshot(self):
        snap = SnapshotStore().get(SourceId.LATEST)
        assert snap.data is None
        assert snap.error is None
        assert snap.loading is True
        assert snap.last_fetched_at is None
        assert isinstance(snap.state, Pending)

    def test_set_merges_into_new_snapshot(self):
        store = SnapshotStore()
        before = store.get(SourceId.LATEST)
        store.set(SourceId.LATEST, data={"Count": 3}, loading=False)
        after = store.set(SourceId.LATEST, error=ERROR)

        assert after.data == {"Count": 3}
        assert after.error == ERROR
        assert after.loading is False
        assert before.data is None   # earlier snapshots are never mutated

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError):
            SnapshotStore().set(SourceId.LATEST, payload=1)

    def test_state_sum_type(self):
        store = SnapshotStore()
        assert isinstance(store.set(SourceId.LATEST, error=ERROR).state, Failed)
        assert isinstance(store.set(SourceId.LATEST, data=1, error=None).state, Ok)
        stale = store.set(SourceId.LATEST, error=ERROR)
        assert isinstance(stale.state, Stale)
        assert stale.state.data == 1
        assert stale.state_name == "stale"

    def test_subscriber_called_once_per_set(self):
        store = SnapshotStore()
        callback = MagicMock()
        store.subscribe(SourceId.ALGORITHM_HEALTH, callback)

        store.set(SourceId.ALGORITHM_HEALTH, loading=False)
        store.set(SourceId.LATEST, loading=False)   # other source
        store.set(SourceId.ALGORITHM_HEALTH, data={})

        assert callback.call_count == 2
        source_id, snapshot = callback.call_args.args
        assert source_id == SourceId.ALGORITHM_HEALTH
        assert snapshot.data == {}

    def test_unsubscribe_is_idempotent(self):
        store = SnapshotStore()
        callback = MagicMock()
        unsubscribe = store.subscribe(SourceId.LATEST, callback)
        unsubscribe()
        unsubscribe()
        store.set(SourceId.LATEST, loading=False)
        callback.assert_not_called()
        assert store.subscriber_count(SourceId.LATEST) == 0

    def test_failing_subscriber_does_not_block_others(self):
        store = SnapshotStore()
        store.subscribe(SourceId.LATEST, MagicMock(side_effect=RuntimeError("renderer crashed")))
        healthy = MagicMock()
        store.subscribe(SourceId.LATEST, healthy)

        store.set(SourceId.LATEST, loading=False)
        healthy.assert_called_once()

    def test_subscribe_many(self):
        store = SnapshotStore()
        callback = MagicMock()
        unsubscribe = store.subscribe_many([SourceId.LATEST, SourceId.STREAM_HEALTH], callback)
        store.set(SourceId.LATEST, loading=False)
        store.set(SourceId.STREAM_HEALTH, loading=False)
        unsubscribe()
        store.set(SourceId.LATEST, loading=True)
        assert callback.call_count == 2

    def test_all_covers_every_source(self):
        assert set(SnapshotStore().all()) == set(SourceId)
