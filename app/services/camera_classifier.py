# app/services/camera_classifier.py
"""
Camera status classification.

Every view shows the same status for a camera, so it is derived in one place
from the raw signals of the /latest frame and /reliability/status.

Priority, first match wins:
  1. stream not online        → offline
  2. PTZ offset               → ptzOffset
  3. umbrella reliable False  → rainAffected
  4. anything else            → normal

An offline camera cannot report PTZ or rain state, and a misaligned camera's
frames are not trusted for rain detection.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from app.schemas.counting import CountingFrame
from app.schemas.reliability import ReliabilityInfo, ReliabilityStatusResponse


class CameraStatus(str, Enum):
    NORMAL = "normal"
    PTZ_OFFSET = "ptzOffset"
    OFFLINE = "offline"
    RAIN_AFFECTED = "rainAffected"


class CameraFilter(str, Enum):
    ALL = "all"
    ONLINE = "online"
    OFFLINE = "offline"
    PTZ_NORMAL = "ptzNormal"
    PTZ_OFFSET = "ptzOffset"


@dataclass(frozen=True)
class CameraSignals:
    camera_id: int
    ptz_offset: bool
    stream_online: bool
    umbrella_reliable: Optional[bool] = None   # None = no reading for this camera yet
    umbrella_count: Optional[int] = None


@dataclass(frozen=True)
class CameraState:
    signals: CameraSignals
    status: CameraStatus

    @property
    def camera_id(self) -> int:
        return self.signals.camera_id


def classify(signals: CameraSignals) -> CameraStatus:
    if not signals.stream_online:
        return CameraStatus.OFFLINE
    if signals.ptz_offset:
        return CameraStatus.PTZ_OFFSET
    # None means no evidence of rain, only an explicit False counts
    if signals.umbrella_reliable is False:
        return CameraStatus.RAIN_AFFECTED
    return CameraStatus.NORMAL


def _flag(values: list, index: int) -> bool:
    # Missing and null entries both read as False
    return bool(values[index]) if index < len(values) else False


def build_camera_signals(latest: Optional[CountingFrame],
                         reliability: Optional[ReliabilityStatusResponse]) -> list[CameraSignals]:
    """
    Signals for every camera reported by the latest frame.
    Returns [] until /latest has produced a frame.
    """
    if latest is None:
        return []

    info: Optional[ReliabilityInfo] = reliability.reliability if reliability else None
    signals = []
    for index in range(latest.camera_count):
        camera_id = index + 1
        cam_rel = info.camera(camera_id) if info else None
        signals.append(CameraSignals(
            camera_id=camera_id,
            ptz_offset=_flag(latest.cam_ptz, index),
            stream_online=_flag(latest.cam_stream, index),
            umbrella_reliable=cam_rel.reliable if cam_rel else None,
            umbrella_count=cam_rel.umbrella_count if cam_rel else None,
        ))
    return signals


def classify_cameras(latest: Optional[CountingFrame],
                     reliability: Optional[ReliabilityStatusResponse]) -> list[CameraState]:
    return [CameraState(s, classify(s)) for s in build_camera_signals(latest, reliability)]


def count_by_status(states: Iterable[CameraState]) -> dict[CameraStatus, int]:
    counts = {status: 0 for status in CameraStatus}
    for state in states:
        counts[state.status] += 1
    return counts


def filter_cameras(states: Iterable[CameraState], camera_filter: CameraFilter) -> list[CameraState]:
    """Raw-signal filters used by the camera monitor view."""
    if camera_filter == CameraFilter.ONLINE:
        return [s for s in states if s.signals.stream_online]
    if camera_filter == CameraFilter.OFFLINE:
        return [s for s in states if not s.signals.stream_online]
    if camera_filter == CameraFilter.PTZ_NORMAL:
        return [s for s in states if not s.signals.ptz_offset]
    if camera_filter == CameraFilter.PTZ_OFFSET:
        return [s for s in states if s.signals.ptz_offset]
    return list(states)
