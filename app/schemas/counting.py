# app/schemas/counting.py
"""Counting frame (/latest) and counting service config (/counting/config)."""

from pydantic import BaseModel, Field
from typing import Optional

from app.schemas.base import BackendPayload


class CountingFrame(BackendPayload):
    timestamp: Optional[str] = Field(None, alias="Timestamp")
    count: Optional[float] = Field(None, alias="Count")
    confidence: Optional[float] = Field(None, alias="Confidence")
    cam_ptz: list[Optional[bool]] = Field(default_factory=list, alias="CamPtz")        # True = PTZ offset
    cam_stream: list[Optional[bool]] = Field(default_factory=list, alias="CamStream")  # True = streaming
    image: Optional[str] = Field(None, alias="Image")                        # base64 JPEG

    class Config:
        populate_by_name = True

    @property
    def camera_count(self) -> int:
        return max(len(self.cam_ptz), len(self.cam_stream))


class CountingConfig(BackendPayload):
    multiview_enabled: Optional[bool] = None
    singleview_enabled: Optional[bool] = None
    multiview_url: Optional[str] = None
    singleview_url: Optional[str] = None


class CountingConfigUpdate(BaseModel):
    """Partial PUT body — unset fields are not sent."""
    multiview_enabled: Optional[bool] = None
    singleview_enabled: Optional[bool] = None
    multiview_url: Optional[str] = None
    singleview_url: Optional[str] = None


class CountingConfigResponse(BackendPayload):
    status: Optional[str] = None
    timestamp: Optional[str] = None
    config: Optional[CountingConfig] = None
    message: Optional[str] = None
