# app/services/dashboard.py
"""
Composition root for the telemetry core.

Owns the backend client, snapshot store, scheduler/registry, health aggregator
and alert coordinator. Built once at application startup and stored on
app.state; routers reach it through the get_dashboard dependency.
"""

from typing import Optional

from fastapi.requests import HTTPConnection

from app.config import Settings
from app.schemas.counting import CountingConfigResponse, CountingConfigUpdate, CountingFrame
from app.schemas.health_summary import HealthSummary
from app.schemas.reliability import ReliabilityConfig, ReliabilityConfigResponse
from app.services.alert_coordinator import AlertCoordinator
from app.services.backend_client import BackendClient
from app.services.camera_classifier import CameraState, classify_cameras
from app.services.health_aggregator import HealthAggregator
from app.services.snapshot_store import SnapshotStore, SourceId
from app.services.source_scheduler import SourceDefinition, SourceRegistry, SourceScheduler
from app.utils.logger import get_logger

logger = get_logger(__name__)


class Dashboard:
    def __init__(self, settings: Settings, client: Optional[BackendClient] = None):
        self.settings = settings
        self.client = client or BackendClient(
            base_url=settings.API_BASE_URL,
            stream_base_url=settings.STREAM_BASE_URL,
            timeout=settings.FETCH_TIMEOUT_SECONDS,
        )
        self.store = SnapshotStore()
        self.scheduler = SourceScheduler(self.store, timeout_seconds=settings.FETCH_TIMEOUT_SECONDS)
        self.registry = SourceRegistry(self.scheduler)
        self.alerts = AlertCoordinator(self.client, self.registry, limit=settings.ALERT_LIMIT)
        self.health = HealthAggregator(
            self.store,
            expected_services=settings.EXPECTED_SERVICE_COUNT,
            default_camera_count=settings.CAMERA_COUNT,
        )
        self._register_sources()
        self._held: list[SourceId] = []

    def _register_sources(self):
        intervals = self.settings.SOURCE_INTERVALS
        client = self.client
        definitions = [
            SourceDefinition(SourceId.LATEST, intervals["latest"], client.get_latest,
                             "Failed to fetch data", "No data available"),
            SourceDefinition(SourceId.RELIABILITY_STATUS, intervals["reliabilityStatus"],
                             client.get_reliability_status, "Failed to fetch reliability status"),
            SourceDefinition(SourceId.STREAM_HEALTH, intervals["streamHealth"],
                             client.get_stream_health, "Failed to fetch stream health"),
            SourceDefinition(SourceId.ALGORITHM_HEALTH, intervals["algorithmHealth"],
                             client.get_algorithm_health, "Failed to fetch algorithm health"),
            SourceDefinition(SourceId.COUNTING_CONFIG, intervals["countingConfig"],
                             client.get_counting_config, "Failed to fetch counting config"),
            *self.alerts.source_definitions(intervals["countingAlerts"], intervals["streamAlerts"]),
        ]
        for definition in definitions:
            self.registry.register(definition)

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self):
        """Hold the configured sources for the lifetime of the process."""
        for name in self.settings.POLL_ON_STARTUP:
            try:
                source_id = SourceId(name)
            except ValueError:
                logger.warning(f"⚠️  Unknown source in POLL_ON_STARTUP: {name}")
                continue
            self.registry.acquire(source_id)
            self._held.append(source_id)

    async def aclose(self):
        for source_id in self._held:
            self.registry.release(source_id)
        self._held.clear()
        await self.registry.aclose()
        self.health.close()
        await self.client.aclose()

    # ── Derived views ────────────────────────────────────────────────────

    @property
    def health_summary(self) -> HealthSummary:
        return self.health.summary

    def camera_states(self) -> list[CameraState]:
        return classify_cameras(
            self.store.get(SourceId.LATEST).data,
            self.store.get(SourceId.RELIABILITY_STATUS).data,
        )

    def camera_count(self) -> int:
        latest: Optional[CountingFrame] = self.store.get(SourceId.LATEST).data
        if latest is not None and latest.camera_count:
            return latest.camera_count
        return self.settings.CAMERA_COUNT

    # ── Actions (errors go to the caller) ────────────────────────────────

    async def update_counting_config(self, update: CountingConfigUpdate) -> CountingConfigResponse:
        response = await self.client.update_counting_config(update)
        logger.info(f"⚙️  Counting config updated: {update.model_dump(exclude_none=True)}")
        # The polling loop stays the only writer of the countingConfig snapshot
        self.scheduler.refresh(SourceId.COUNTING_CONFIG)
        return response

    async def get_reliability_config(self) -> ReliabilityConfigResponse:
        return await self.client.get_reliability_config()

    async def update_reliability_config(self, update: ReliabilityConfig) -> ReliabilityConfigResponse:
        response = await self.client.update_reliability_config(update)
        logger.info(f"⚙️  Reliability config updated: {update.model_dump(exclude_none=True)}")
        self.scheduler.refresh(SourceId.RELIABILITY_STATUS)
        return response


def get_dashboard(connection: HTTPConnection) -> Dashboard:
    """FastAPI dependency (HTTP and WebSocket) — the Dashboard built at startup."""
    return connection.app.state.dashboard
