# app/schemas/reliability.py
from pydantic import BaseModel, Field
from typing import Optional

from app.schemas.base import BackendPayload


class CameraReliability(BackendPayload):
    reliable: Optional[bool] = None          # None = no reading for this camera
    umbrella_count: Optional[int] = None


class ReliabilityInfo(BackendPayload):
    system_reliable: Optional[bool] = None
    unreliable_camera_count: Optional[int] = None
    camera_threshold: Optional[float] = None
    system_threshold: Optional[float] = None
    cameras: dict[str, Optional[CameraReliability]] = Field(default_factory=dict)   # keyed camera_<id>

    def camera(self, camera_id: int) -> Optional[CameraReliability]:
        return self.cameras.get(f"camera_{camera_id}")


class ReliabilityStatusResponse(BackendPayload):
    status: Optional[str] = None
    timestamp: Optional[str] = None
    reliability: Optional[ReliabilityInfo] = None


class ReliabilityConfig(BaseModel):
    camera_threshold: Optional[float] = None
    system_threshold: Optional[float] = None


class ReliabilityConfigResponse(BackendPayload):
    status: Optional[str] = None
    config: Optional[ReliabilityConfig] = None
    message: Optional[str] = None
