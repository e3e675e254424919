# app/schemas/camera.py
from pydantic import BaseModel
from typing import Optional


class CameraStateOut(BaseModel):
    camera_id: int
    status: str
    ptz_offset: bool
    stream_online: bool
    umbrella_reliable: Optional[bool] = None
    umbrella_count: Optional[int] = None


class CameraListOut(BaseModel):
    camera_count: int
    counts: dict[str, int]
    cameras: list[CameraStateOut]
    latest_state: str          # state of the /latest snapshot the list was built from
