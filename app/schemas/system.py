# app/schemas/system.py
"""Counting service status, stream recording stats and counting history."""

from pydantic import Field, model_validator
from typing import Any, Optional

from app.schemas.base import BackendPayload
from app.schemas.counting import CountingFrame


class SenderStats(BackendPayload):
    start_time: Optional[str] = None
    total_sent: int = 0
    total_success: int = 0
    total_failed: int = 0
    last_update: Optional[str] = None


class SystemStatusResponse(BackendPayload):
    status: Optional[str] = None
    timestamp: Optional[str] = None
    stats: Optional[SenderStats] = None
    has_data: bool = False
    history_count: int = 0


class StreamStats(BackendPayload):
    total_streams: int = 0
    total_frames_recorded: int = 0
    total_disconnections: int = 0

    class Config:
        extra = "allow"    # the recorder adds its own counters next to these


class StreamStatsResponse(BackendPayload):
    status: Optional[str] = None
    timestamp: Optional[str] = None
    stats: Optional[StreamStats] = None


class HistoryResponse(BackendPayload):
    data: list[CountingFrame] = Field(default_factory=list)
    count: int = 0

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, value: Any):
        # /history answers either a bare list of frames or {data, count}
        if isinstance(value, list):
            return {"data": value, "count": len(value)}
        return value
