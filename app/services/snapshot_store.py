# app/services/snapshot_store.py
"""
Snapshot store — the latest known state of every polled backend source.

One Snapshot per SourceId. Snapshots are immutable; every set() builds a new
one and swaps it in, so readers always see a whole snapshot. Each source has
exactly one writer (its polling loop), any number of readers/subscribers.
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar, Union

from app.services.errors import ErrorInfo
from app.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SourceId(str, Enum):
    LATEST = "latest"
    RELIABILITY_STATUS = "reliabilityStatus"
    STREAM_HEALTH = "streamHealth"
    ALGORITHM_HEALTH = "algorithmHealth"
    COUNTING_CONFIG = "countingConfig"
    COUNTING_ALERTS = "countingAlerts"
    STREAM_ALERTS = "streamAlerts"


# ── Snapshot states ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Pending:
    """No fetch has settled yet."""


@dataclass(frozen=True)
class Ok(Generic[T]):
    data: T


@dataclass(frozen=True)
class Failed:
    """Latest fetch failed and there has never been good data."""
    error: ErrorInfo


@dataclass(frozen=True)
class Stale(Generic[T]):
    """Latest fetch failed; data is the last known good payload."""
    data: T
    error: ErrorInfo


SnapshotState = Union[Pending, Ok, Failed, Stale]


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    data: Optional[T] = None
    error: Optional[ErrorInfo] = None
    loading: bool = True
    last_fetched_at: Optional[datetime] = None   # most recent settle, success or failure
    last_success_at: Optional[datetime] = None

    @property
    def state(self) -> SnapshotState:
        if self.data is not None:
            return Stale(self.data, self.error) if self.error is not None else Ok(self.data)
        if self.error is not None:
            return Failed(self.error)
        return Pending()

    @property
    def state_name(self) -> str:
        return type(self.state).__name__.lower()

    @property
    def is_stale(self) -> bool:
        return self.data is not None and self.error is not None


INITIAL_SNAPSHOT = Snapshot()

Subscriber = Callable[[SourceId, Snapshot], Any]


class SnapshotStore:
    def __init__(self):
        self._snapshots: dict[SourceId, Snapshot] = {}
        self._subscribers: dict[SourceId, list[Subscriber]] = {}

    def get(self, source_id: SourceId) -> Snapshot:
        return self._snapshots.get(source_id, INITIAL_SNAPSHOT)

    def all(self) -> dict[SourceId, Snapshot]:
        return {source_id: self.get(source_id) for source_id in SourceId}

    def set(self, source_id: SourceId, **changes) -> Snapshot:
        """Merge changes into the current snapshot and publish the result."""
        snapshot = dataclasses.replace(self.get(source_id), **changes)
        self._snapshots[source_id] = snapshot

        # Copy so a callback that unsubscribes doesn't skip its neighbour
        for callback in list(self._subscribers.get(source_id, ())):
            try:
                callback(source_id, snapshot)
            except Exception as e:
                logger.error(f"Subscriber {callback!r} failed on {source_id.value}: {e}", exc_info=True)
        return snapshot

    def subscribe(self, source_id: SourceId, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.setdefault(source_id, []).append(callback)
        subscribed = True

        def unsubscribe():
            nonlocal subscribed
            if not subscribed:
                return
            subscribed = False
            callbacks = self._subscribers.get(source_id, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def subscribe_many(self, source_ids: Iterable[SourceId], callback: Subscriber) -> Callable[[], None]:
        unsubscribers = [self.subscribe(source_id, callback) for source_id in source_ids]

        def unsubscribe():
            for unsub in unsubscribers:
                unsub()

        return unsubscribe

    def subscriber_count(self, source_id: SourceId) -> int:
        return len(self._subscribers.get(source_id, ()))
