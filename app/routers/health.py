# app/routers/health.py
"""
Health endpoints.
GET /health          — this service is up, and which sources are being polled
GET /health/summary  — dashboard health card built from reliability, algorithm and config sources
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.schemas.health_summary import HealthSummary
from app.services.dashboard import Dashboard, get_dashboard

router = APIRouter()


@router.get("/health", summary="Service health check")
def health_check(dashboard: Dashboard = Depends(get_dashboard)):
    result = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "polling": [s.value for s in dashboard.scheduler.running_sources()],
        "sources": {},
    }

    for source_id, snapshot in dashboard.store.all().items():
        result["sources"][source_id.value] = snapshot.state_name
        if snapshot.error is not None:
            result["status"] = "degraded"

    return result


@router.get("/health/summary", response_model=HealthSummary, summary="Dashboard health summary")
def health_summary(dashboard: Dashboard = Depends(get_dashboard)):
    return dashboard.health_summary


@router.get("/health/summary/display", summary="Health summary with '-' for unknown values")
def health_summary_display(dashboard: Dashboard = Depends(get_dashboard)):
    return dashboard.health_summary.display()
