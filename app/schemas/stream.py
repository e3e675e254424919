# app/schemas/stream.py
from pydantic import Field
from typing import Any, Optional

from app.schemas.base import BackendPayload


class StreamStatus(BackendPayload):
    is_healthy: bool = False
    stream_name: Optional[str] = None
    last_frame_time: Optional[float] = None
    disconnected_at: Optional[str] = None
    reconnected_at: Optional[str] = None
    total_disconnections: int = 0
    total_frames: int = 0


class StreamSummary(BackendPayload):
    total_streams: int = 0
    active_streams: int = 0
    inactive_streams: int = 0
    total_disconnections: int = 0


class StreamHealthResponse(BackendPayload):
    status: Optional[str] = None
    timestamp: Optional[str] = None
    summary: Optional[StreamSummary] = None
    active: list[str] = Field(default_factory=list)
    inactive: list[str] = Field(default_factory=list)
    streams: dict[str, Optional[StreamStatus]] = Field(default_factory=dict)


class StreamAlert(BackendPayload):
    stream_name: str
    alert_type: str            # disconnected | reconnected | high_latency
    timestamp: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)


class StreamAlertsResponse(BackendPayload):
    status: Optional[str] = None
    count: int = 0
    alerts: list[StreamAlert] = Field(default_factory=list)
