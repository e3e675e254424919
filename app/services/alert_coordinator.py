# app/services/alert_coordinator.py
"""
Counting and stream alerts for the dashboard, plus the operator's selection
and the acknowledge round-trip.

- The countingAlerts and streamAlerts snapshots are the only copy of the
  lists. Explicit refreshes go through the polling loop, so every surface
  watching those snapshots sees the same list.
- Lists are replaced wholesale on every fetch, never merged.
- acknowledged is never flipped locally. After a successful acknowledge the
  list is re-fetched so it reflects what the backend actually stored.
- Stream alerts are read-only.
"""

from typing import Iterable, Optional

from app.schemas.alert import CountingAlert, CountingAlertsResponse
from app.schemas.stream import StreamAlert, StreamAlertsResponse
from app.services.backend_client import BackendClient
from app.services.errors import DashboardError
from app.services.snapshot_store import SourceId
from app.services.source_scheduler import SourceDefinition, SourceRegistry
from app.utils.logger import get_logger

logger = get_logger(__name__)


class AlertCoordinator:
    def __init__(self, client: BackendClient, registry: SourceRegistry, limit: int = 100):
        self.client = client
        self.registry = registry
        self.store = registry.scheduler.store
        self.limit = limit
        self.unacknowledged_only = False
        self.stream_alert_type: Optional[str] = None
        self._selected: set[str] = set()

    def source_definitions(self, counting_interval: float, stream_interval: float) -> list[SourceDefinition]:
        return [
            SourceDefinition(SourceId.COUNTING_ALERTS, counting_interval, self.poll_counting_alerts,
                             "Failed to fetch counting alerts", "No alerts available"),
            SourceDefinition(SourceId.STREAM_ALERTS, stream_interval, self.poll_stream_alerts,
                             "Failed to fetch stream alerts", "No alerts available"),
        ]

    # ── Read-only views ──────────────────────────────────────────────────

    @property
    def alerts(self) -> list[CountingAlert]:
        response: Optional[CountingAlertsResponse] = self.store.get(SourceId.COUNTING_ALERTS).data
        return list(response.alerts) if response is not None else []

    @property
    def stream_alerts(self) -> list[StreamAlert]:
        response: Optional[StreamAlertsResponse] = self.store.get(SourceId.STREAM_ALERTS).data
        return list(response.alerts) if response is not None else []

    @property
    def selected(self) -> frozenset:
        return frozenset(self._selected)

    @property
    def unacknowledged_count(self) -> int:
        return sum(1 for a in self.alerts if not a.acknowledged)

    # ── Fetching ─────────────────────────────────────────────────────────

    # Fetch functions run by the polling loops; they read the current filters
    async def poll_counting_alerts(self) -> CountingAlertsResponse:
        return await self.client.get_counting_alerts(self.limit, self.unacknowledged_only)

    async def poll_stream_alerts(self) -> StreamAlertsResponse:
        return await self.client.get_stream_alerts(self.limit, self.stream_alert_type)

    async def refresh(self, unacknowledged_only: Optional[bool] = None) -> list[CountingAlert]:
        """Re-fetch counting alerts. Errors propagate to the caller."""
        if unacknowledged_only is not None:
            self.unacknowledged_only = unacknowledged_only
        await self.registry.fetch_now(SourceId.COUNTING_ALERTS)
        return self.alerts

    async def refresh_stream_alerts(self, alert_type: Optional[str] = None) -> list[StreamAlert]:
        """Re-fetch stream alerts. An empty alert_type clears the filter."""
        if alert_type is not None:
            self.stream_alert_type = alert_type or None
        await self.registry.fetch_now(SourceId.STREAM_ALERTS)
        return self.stream_alerts

    # ── Selection ────────────────────────────────────────────────────────

    def select(self, alert_ids: Iterable[str]) -> frozenset:
        known = {a.id for a in self.alerts}
        for alert_id in alert_ids:
            if alert_id in known:
                self._selected.add(alert_id)
            else:
                logger.debug(f"Ignoring selection of unknown alert {alert_id}")
        return self.selected

    def deselect(self, alert_ids: Iterable[str]) -> frozenset:
        self._selected.difference_update(alert_ids)
        return self.selected

    def toggle(self, alert_id: str) -> frozenset:
        if alert_id in self._selected:
            self._selected.discard(alert_id)
        else:
            self.select([alert_id])
        return self.selected

    def set_selection(self, alert_ids: Iterable[str]) -> frozenset:
        self._selected.clear()
        return self.select(alert_ids)

    def clear_selection(self):
        self._selected.clear()

    # ── Acknowledge ──────────────────────────────────────────────────────

    async def acknowledge(self, alert_ids: Optional[Iterable[str]] = None) -> int:
        """
        Acknowledge the given alerts, or every unacknowledged alert on the
        server when alert_ids is None. Returns the backend's acknowledged_count.

        On failure nothing changes locally and the error is raised.
        """
        ids = None if alert_ids is None else list(alert_ids)
        if ids is not None and not ids:
            return 0

        response = await self.client.acknowledge_counting_alerts(ids)
        logger.info(f"🔔 Acknowledged {response.acknowledged_count} alert(s)"
                    f"{'' if ids is None else f' of {len(ids)} requested'}")
        self._selected.clear()

        try:
            await self.refresh()
        except DashboardError as e:
            # The acknowledge itself succeeded; the next poll will catch up
            logger.warning(f"⚠️  Alert refresh after acknowledge failed: {e}")
        return response.acknowledged_count
