# app/services/health_aggregator.py
"""
Dashboard health summary built from three independently polled sources:
reliability status, algorithm health, and counting config.

Each field comes from whichever source can supply it. A source that is still
pending or failing leaves its own fields as None and never blanks the others.
Stale (last-known-good) payloads are used as-is.
"""

from typing import Callable, Optional

from app.schemas.algorithm import AlgorithmHealthResponse
from app.schemas.counting import CountingConfigResponse, CountingFrame
from app.schemas.health_summary import AlgorithmStatus, HealthSummary
from app.schemas.reliability import ReliabilityStatusResponse
from app.services.snapshot_store import Snapshot, SnapshotStore, SourceId
from app.utils.logger import get_logger

logger = get_logger(__name__)

HEALTH_SOURCES = (SourceId.RELIABILITY_STATUS, SourceId.ALGORITHM_HEALTH, SourceId.COUNTING_CONFIG)


def _algorithm_status(value: Optional[str]) -> AlgorithmStatus:
    try:
        return AlgorithmStatus(value)
    except ValueError:
        return AlgorithmStatus.UNKNOWN


def compute_health_summary(reliability: Optional[ReliabilityStatusResponse],
                           algorithm: Optional[AlgorithmHealthResponse],
                           config: Optional[CountingConfigResponse],
                           expected_services: int = 3,
                           camera_count: int = 19) -> HealthSummary:
    rel = reliability.reliability if reliability else None
    services = algorithm.services if algorithm else None
    cfg = config.config if config else None

    if services is None:
        healthy, total = 0, expected_services
    else:
        healthy = sum(1 for s in services.values() if s is not None and s.status == "healthy")
        total = len(services)

    return HealthSummary(
        system_reliable=rel.system_reliable if rel else None,
        unreliable_camera_count=rel.unreliable_camera_count if rel else None,
        camera_count=camera_count,
        overall_algorithm_status=_algorithm_status(algorithm.overall_status if algorithm else None),
        healthy_service_count=healthy,
        total_service_count=total,
        multiview_enabled=cfg.multiview_enabled if cfg else None,
        singleview_enabled=cfg.singleview_enabled if cfg else None,
    )


class HealthAggregator:
    """Keeps a HealthSummary current by recomputing on every relevant store update."""

    def __init__(self, store: SnapshotStore, expected_services: int = 3, default_camera_count: int = 19):
        self.store = store
        self.expected_services = expected_services
        self.default_camera_count = default_camera_count
        self._listeners: list[Callable[[HealthSummary], None]] = []
        self.summary = self.recompute()
        self._unsubscribe = store.subscribe_many(
            HEALTH_SOURCES + (SourceId.LATEST,), self._on_snapshot,
        )

    def _camera_count(self) -> int:
        latest: Optional[CountingFrame] = self.store.get(SourceId.LATEST).data
        if latest is not None and latest.camera_count:
            return latest.camera_count
        return self.default_camera_count

    def recompute(self) -> HealthSummary:
        return compute_health_summary(
            self.store.get(SourceId.RELIABILITY_STATUS).data,
            self.store.get(SourceId.ALGORITHM_HEALTH).data,
            self.store.get(SourceId.COUNTING_CONFIG).data,
            expected_services=self.expected_services,
            camera_count=self._camera_count(),
        )

    def _on_snapshot(self, source_id: SourceId, snapshot: Snapshot):
        summary = self.recompute()
        if summary == self.summary:
            return
        self.summary = summary
        for listener in list(self._listeners):
            try:
                listener(summary)
            except Exception as e:
                logger.error(f"Health summary listener failed: {e}", exc_info=True)

    def subscribe(self, listener: Callable[[HealthSummary], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self):
        self._unsubscribe()
        self._listeners.clear()
