# app/routers/alerts.py
"""Counting alerts (selectable, acknowledgeable) and stream alerts (read-only)."""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.schemas.alert import AcknowledgeRequest, CountingAlert, SelectionUpdate
from app.schemas.stream import StreamAlert
from app.services.dashboard import Dashboard, get_dashboard

router = APIRouter()


def _selection(dashboard: Dashboard) -> dict:
    return {"selected": sorted(dashboard.alerts.selected)}


@router.get("/alerts/counting", response_model=list[CountingAlert], summary="Counting alerts as last fetched")
def get_counting_alerts(dashboard: Dashboard = Depends(get_dashboard)):
    return dashboard.alerts.alerts


@router.post("/alerts/counting/refresh", response_model=list[CountingAlert])
async def refresh_counting_alerts(unacknowledged_only: Optional[bool] = None,
                                  dashboard: Dashboard = Depends(get_dashboard)):
    """Re-fetch now. unacknowledged_only, when given, becomes the filter for later polls too."""
    return await dashboard.alerts.refresh(unacknowledged_only)


@router.post("/alerts/counting/acknowledge", summary="Acknowledge alerts on the backend")
async def acknowledge_counting_alerts(body: AcknowledgeRequest,
                                      dashboard: Dashboard = Depends(get_dashboard)):
    """Omit alert_ids to acknowledge every unacknowledged alert on the server."""
    count = await dashboard.alerts.acknowledge(body.alert_ids)
    return {"acknowledged_count": count, **_selection(dashboard)}


@router.get("/alerts/counting/selection")
def get_selection(dashboard: Dashboard = Depends(get_dashboard)):
    return _selection(dashboard)


@router.put("/alerts/counting/selection")
def set_selection(body: SelectionUpdate, dashboard: Dashboard = Depends(get_dashboard)):
    dashboard.alerts.set_selection(body.alert_ids)
    return _selection(dashboard)


@router.delete("/alerts/counting/selection")
def clear_selection(dashboard: Dashboard = Depends(get_dashboard)):
    dashboard.alerts.clear_selection()
    return _selection(dashboard)


@router.get("/alerts/stream", response_model=list[StreamAlert], summary="Stream alerts as last fetched")
async def get_stream_alerts(alert_type: Optional[str] = Query(None, alias="type"),
                            dashboard: Dashboard = Depends(get_dashboard)):
    """Passing type re-fetches with that filter (empty string clears it)."""
    if alert_type is not None:
        return await dashboard.alerts.refresh_stream_alerts(alert_type)
    return dashboard.alerts.stream_alerts
