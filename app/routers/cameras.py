# app/routers/cameras.py
"""Classified camera status — the one status every view shows for a camera."""

from fastapi import APIRouter, Depends, Query

from app.schemas.camera import CameraListOut, CameraStateOut
from app.services.camera_classifier import CameraFilter, count_by_status, filter_cameras
from app.services.dashboard import Dashboard, get_dashboard
from app.services.snapshot_store import SourceId

router = APIRouter()


@router.get("/cameras", response_model=CameraListOut, summary="Per-camera operational status")
def list_cameras(camera_filter: CameraFilter = Query(CameraFilter.ALL, alias="filter"),
                 dashboard: Dashboard = Depends(get_dashboard)):
    """
    Status for every camera in the latest frame, optionally filtered by raw
    stream/PTZ signal. Counts are always over all cameras.
    """
    states = dashboard.camera_states()
    counts = count_by_status(states)
    return CameraListOut(
        camera_count=dashboard.camera_count(),
        counts={status.value: n for status, n in counts.items()},
        cameras=[
            CameraStateOut(
                camera_id=s.camera_id,
                status=s.status.value,
                ptz_offset=s.signals.ptz_offset,
                stream_online=s.signals.stream_online,
                umbrella_reliable=s.signals.umbrella_reliable,
                umbrella_count=s.signals.umbrella_count,
            )
            for s in filter_cameras(states, camera_filter)
        ],
        latest_state=dashboard.store.get(SourceId.LATEST).state_name,
    )
