# app/services/backend_client.py
"""
Async client for the counting backend REST API.

Every call returns a parsed pydantic model or raises one of the errors in
app.services.errors — never a raw httpx exception. Stream endpoints
(/stream/*) may live on a different host, so they use their own client.
"""

from typing import Optional, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.config import settings as default_settings
from app.schemas.alert import AcknowledgeAlertsResponse, CountingAlertsResponse
from app.schemas.algorithm import AlgorithmHealthResponse
from app.schemas.counting import CountingConfigResponse, CountingConfigUpdate, CountingFrame
from app.schemas.reliability import (
    ReliabilityConfig, ReliabilityConfigResponse, ReliabilityStatusResponse,
)
from app.schemas.stream import StreamAlertsResponse, StreamHealthResponse
from app.schemas.system import HistoryResponse, StreamStatsResponse, SystemStatusResponse
from app.services.errors import NetworkError, NotFoundError, ServerError, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class BackendClient:
    def __init__(self, base_url: Optional[str] = None, stream_base_url: Optional[str] = None,
                 timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        base_url = base_url or default_settings.API_BASE_URL
        stream_base_url = stream_base_url or default_settings.STREAM_BASE_URL
        timeout = timeout if timeout is not None else default_settings.FETCH_TIMEOUT_SECONDS

        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        if stream_base_url.rstrip("/") == base_url.rstrip("/"):
            self._stream_client = self._client
        else:
            self._stream_client = httpx.AsyncClient(base_url=stream_base_url, timeout=timeout,
                                                    transport=transport)

    async def aclose(self):
        await self._client.aclose()
        if self._stream_client is not self._client:
            await self._stream_client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # ── Transport ────────────────────────────────────────────────────────

    async def _request(self, client: httpx.AsyncClient, method: str, path: str,
                       model: Type[ModelT], **kwargs) -> ModelT:
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            raise NetworkError(f"{method} {path} timed out")
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {path} failed: {e}")

        if response.status_code == 404:
            raise NotFoundError(f"{method} {path} returned 404")
        if response.status_code >= 400:
            logger.debug(f"{method} {path} → HTTP {response.status_code}: {response.text[:200]}")
            raise ServerError(f"{method} {path} returned HTTP {response.status_code}",
                              status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError:
            raise ValidationError(f"{method} {path} returned a non-JSON body",
                                  status_code=response.status_code)
        try:
            return model.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(
                f"{method} {path} response does not match {model.__name__}: {e.error_count()} error(s)",
                status_code=response.status_code,
            )

    # ── Polled sources ───────────────────────────────────────────────────

    async def get_latest(self) -> CountingFrame:
        return await self._request(self._client, "GET", "/latest", CountingFrame)

    async def get_reliability_status(self) -> ReliabilityStatusResponse:
        return await self._request(self._client, "GET", "/reliability/status", ReliabilityStatusResponse)

    async def get_stream_health(self) -> StreamHealthResponse:
        return await self._request(self._stream_client, "GET", "/stream/health", StreamHealthResponse)

    async def get_algorithm_health(self) -> AlgorithmHealthResponse:
        return await self._request(self._client, "GET", "/algorithm/health", AlgorithmHealthResponse)

    async def get_counting_config(self) -> CountingConfigResponse:
        return await self._request(self._client, "GET", "/counting/config", CountingConfigResponse)

    async def get_counting_alerts(self, limit: int = 100,
                                  unacknowledged_only: bool = False) -> CountingAlertsResponse:
        params = {"limit": limit, "unacknowledged_only": "true" if unacknowledged_only else "false"}
        return await self._request(self._client, "GET", "/counting/alerts", CountingAlertsResponse,
                                   params=params)

    async def get_stream_alerts(self, limit: int = 100,
                                alert_type: Optional[str] = None) -> StreamAlertsResponse:
        params = {"limit": limit}
        if alert_type:
            params["type"] = alert_type
        return await self._request(self._stream_client, "GET", "/stream/alerts", StreamAlertsResponse,
                                   params=params)

    # ── Actions ──────────────────────────────────────────────────────────

    async def update_counting_config(self, update: CountingConfigUpdate) -> CountingConfigResponse:
        body = update.model_dump(exclude_none=True)
        return await self._request(self._client, "PUT", "/counting/config", CountingConfigResponse,
                                   json=body)

    async def acknowledge_counting_alerts(self, alert_ids: Optional[list[str]] = None) -> AcknowledgeAlertsResponse:
        body = {} if alert_ids is None else {"alert_ids": list(alert_ids)}
        return await self._request(self._client, "POST", "/counting/alerts/acknowledge",
                                   AcknowledgeAlertsResponse, json=body)

    async def get_reliability_config(self) -> ReliabilityConfigResponse:
        return await self._request(self._client, "GET", "/reliability/config", ReliabilityConfigResponse)

    async def update_reliability_config(self, update: ReliabilityConfig) -> ReliabilityConfigResponse:
        body = update.model_dump(exclude_none=True)
        return await self._request(self._client, "PUT", "/reliability/config", ReliabilityConfigResponse,
                                   json=body)

    # ── Read-through (not polled) ────────────────────────────────────────

    async def get_system_status(self) -> SystemStatusResponse:
        return await self._request(self._client, "GET", "/status", SystemStatusResponse)

    async def get_stream_stats(self) -> StreamStatsResponse:
        return await self._request(self._stream_client, "GET", "/stream/stats", StreamStatsResponse)

    async def get_history(self, limit: int = 50, start_time: Optional[str] = None,
                          end_time: Optional[str] = None) -> HistoryResponse:
        params = {"limit": limit}
        if start_time:
            params["start_time"] = start_time
        if end_time:
            params["end_time"] = end_time
        return await self._request(self._client, "GET", "/history", HistoryResponse, params=params)
