# tests/test_alert_coordinator.py
"""Unit tests for the alert/acknowledge coordinator."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock
from app.schemas.alert import AcknowledgeAlertsResponse, CountingAlertsResponse
from app.schemas.stream import StreamAlertsResponse
from app.services.alert_coordinator import AlertCoordinator
from app.services.errors import NetworkError, NotFoundError, ServerError
from app.services.snapshot_store import SnapshotStore, SourceId
from app.services.source_scheduler import SourceRegistry, SourceScheduler


def alerts_response(*ids, acknowledged=False):
    return CountingAlertsResponse.model_validate({
        "count": len(ids),
        "alerts": [{"id": i, "type": "auto_fallback", "message": f"alert {i}",
                    "acknowledged": acknowledged} for i in ids],
    })


def make_client(*responses):
    client = MagicMock()
    client.get_counting_alerts = AsyncMock(side_effect=list(responses))
    client.acknowledge_counting_alerts = AsyncMock(
        return_value=AcknowledgeAlertsResponse(acknowledged_count=2))
    client.get_stream_alerts = AsyncMock(return_value=StreamAlertsResponse.model_validate({
        "alerts": [{"stream_name": "camera_3", "alert_type": "disconnected"}],
    }))
    return client


def make_coordinator(client, limit=100):
    registry = SourceRegistry(SourceScheduler(SnapshotStore(), timeout_seconds=1.0))
    coordinator = AlertCoordinator(client, registry, limit=limit)
    # Long intervals: only explicit refreshes fetch
    for definition in coordinator.source_definitions(60, 60):
        registry.register(definition)
    return coordinator


def snapshot_alerts(coordinator):
    return coordinator.store.get(SourceId.COUNTING_ALERTS).data.alerts


async def wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_replaces_list(self):
        client = make_client(alerts_response("a1", "a2"), alerts_response("a3"))
        coordinator = make_coordinator(client, limit=50)

        await coordinator.refresh()
        assert [a.id for a in coordinator.alerts] == ["a1", "a2"]
        await coordinator.refresh(unacknowledged_only=True)
        assert [a.id for a in coordinator.alerts] == ["a3"]

        client.get_counting_alerts.assert_awaited_with(50, True)
        assert coordinator.unacknowledged_only is True
        assert not coordinator.registry.scheduler.is_running(SourceId.COUNTING_ALERTS)

    @pytest.mark.asyncio
    async def test_refresh_error_propagates_and_keeps_list(self):
        client = make_client(alerts_response("a1"), NetworkError("timed out"))
        coordinator = make_coordinator(client)
        await coordinator.refresh()

        with pytest.raises(NetworkError):
            await coordinator.refresh()
        assert [a.id for a in coordinator.alerts] == ["a1"]
        assert coordinator.store.get(SourceId.COUNTING_ALERTS).error.kind == "NetworkError"

    @pytest.mark.asyncio
    async def test_filter_change_waits_for_a_fresh_poll(self):
        gate = asyncio.Event()
        client = MagicMock()

        async def fetch(limit, unacknowledged_only):
            if client.get_counting_alerts.await_count == 1:
                await gate.wait()
                return alerts_response("old")
            return alerts_response("new")

        client.get_counting_alerts = AsyncMock(side_effect=fetch)
        coordinator = make_coordinator(client)
        registry = coordinator.registry

        registry.acquire(SourceId.COUNTING_ALERTS)
        await wait_until(lambda: client.get_counting_alerts.await_count == 1)
        refreshing = asyncio.create_task(coordinator.refresh(unacknowledged_only=True))
        await asyncio.sleep(0)
        gate.set()

        assert [a.id for a in await refreshing] == ["new"]
        assert [a.id for a in snapshot_alerts(coordinator)] == ["new"]
        client.get_counting_alerts.assert_awaited_with(100, True)

        registry.release(SourceId.COUNTING_ALERTS)
        await registry.aclose()

    @pytest.mark.asyncio
    async def test_stream_alerts_are_read_only_list(self):
        coordinator = make_coordinator(make_client())
        alerts = await coordinator.refresh_stream_alerts("disconnected")
        assert alerts[0].stream_name == "camera_3"
        coordinator.client.get_stream_alerts.assert_awaited_with(100, "disconnected")

        await coordinator.refresh_stream_alerts("")
        coordinator.client.get_stream_alerts.assert_awaited_with(100, None)
        assert coordinator.store.get(SourceId.STREAM_ALERTS).data.alerts[0].stream_name == "camera_3"

    @pytest.mark.asyncio
    async def test_missing_stream_alert_backend(self):
        client = make_client()
        client.get_stream_alerts = AsyncMock(side_effect=NotFoundError())
        coordinator = make_coordinator(client)

        with pytest.raises(NotFoundError):
            await coordinator.refresh_stream_alerts()
        assert coordinator.stream_alerts == []
        assert coordinator.store.get(SourceId.STREAM_ALERTS).error.message == "No alerts available"


class TestSelection:
    @pytest.mark.asyncio
    async def test_only_known_alerts_selectable(self):
        coordinator = make_coordinator(make_client(alerts_response("a1", "a2")))
        await coordinator.refresh()

        assert coordinator.select(["a1", "zz"]) == frozenset({"a1"})
        assert coordinator.toggle("a2") == frozenset({"a1", "a2"})
        assert coordinator.toggle("a1") == frozenset({"a2"})
        coordinator.clear_selection()
        assert coordinator.selected == frozenset()


class TestAcknowledge:
    @pytest.mark.asyncio
    async def test_failed_acknowledge_changes_nothing(self):
        client = make_client(alerts_response("a1", "a2"))
        client.acknowledge_counting_alerts = AsyncMock(side_effect=ServerError("HTTP 500", status_code=500))
        coordinator = make_coordinator(client)
        await coordinator.refresh()
        coordinator.select(["a1", "a2"])

        with pytest.raises(ServerError):
            await coordinator.acknowledge(["a1", "a2"])

        assert coordinator.selected == frozenset({"a1", "a2"})
        assert all(not a.acknowledged for a in coordinator.alerts)
        assert client.get_counting_alerts.await_count == 1   # no refresh

    @pytest.mark.asyncio
    async def test_successful_acknowledge_refreshes_and_clears_selection(self):
        client = make_client(alerts_response("a1", "a2"), alerts_response("a1", "a2", acknowledged=True))
        coordinator = make_coordinator(client)
        await coordinator.refresh()
        coordinator.select(["a1", "a2"])

        count = await coordinator.acknowledge(["a1", "a2"])

        assert count == 2
        client.acknowledge_counting_alerts.assert_awaited_once_with(["a1", "a2"])
        assert coordinator.selected == frozenset()
        assert all(a.acknowledged for a in coordinator.alerts)

    @pytest.mark.asyncio
    async def test_acknowledged_state_reaches_the_snapshot(self):
        client = make_client(alerts_response("a1"), alerts_response("a1", acknowledged=True))
        coordinator = make_coordinator(client)
        registry = coordinator.registry
        published = []
        coordinator.store.subscribe(SourceId.COUNTING_ALERTS, lambda sid, snap: published.append(snap))

        # A renderer keeps the source polled the whole time
        registry.acquire(SourceId.COUNTING_ALERTS)
        await wait_until(lambda: coordinator.store.get(SourceId.COUNTING_ALERTS).data is not None)

        await coordinator.acknowledge(["a1"])

        assert [a.acknowledged for a in coordinator.alerts] == [True]
        assert [a.acknowledged for a in snapshot_alerts(coordinator)] == [True]
        assert [a.acknowledged for a in published[-1].data.alerts] == [True]
        assert registry.scheduler.is_running(SourceId.COUNTING_ALERTS)

        registry.release(SourceId.COUNTING_ALERTS)
        await registry.aclose()

    @pytest.mark.asyncio
    async def test_acknowledge_all_sends_no_ids(self):
        client = make_client(alerts_response("a1"), alerts_response())
        coordinator = make_coordinator(client)
        await coordinator.refresh()

        await coordinator.acknowledge()
        client.acknowledge_counting_alerts.assert_awaited_once_with(None)
        assert coordinator.alerts == []

    @pytest.mark.asyncio
    async def test_empty_id_list_is_a_no_op(self):
        client = make_client()
        assert await make_coordinator(client).acknowledge([]) == 0
        client.acknowledge_counting_alerts.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_failure_after_acknowledge_is_not_an_acknowledge_failure(self):
        client = make_client(alerts_response("a1"), NetworkError("timed out"))
        coordinator = make_coordinator(client)
        await coordinator.refresh()
        coordinator.select(["a1"])

        assert await coordinator.acknowledge(["a1"]) == 2
        assert coordinator.selected == frozenset()
        assert [a.id for a in coordinator.alerts] == ["a1"]
