# app/routers/counting_config.py
"""Counting service and reliability thresholds — read + update."""

from fastapi import APIRouter, Depends, HTTPException

from app.schemas.counting import CountingConfigResponse, CountingConfigUpdate
from app.schemas.reliability import ReliabilityConfig, ReliabilityConfigResponse
from app.services.dashboard import Dashboard, get_dashboard
from app.services.snapshot_store import SourceId

router = APIRouter()


@router.get("/counting/config", response_model=CountingConfigResponse)
def get_counting_config(dashboard: Dashboard = Depends(get_dashboard)):
    """Last polled counting config."""
    snapshot = dashboard.store.get(SourceId.COUNTING_CONFIG)
    if snapshot.data is None:
        detail = snapshot.error.message if snapshot.error else "Counting config not loaded yet"
        raise HTTPException(status_code=503, detail=detail)
    return snapshot.data


@router.put("/counting/config", response_model=CountingConfigResponse, summary="Switch counting services")
async def update_counting_config(body: CountingConfigUpdate, dashboard: Dashboard = Depends(get_dashboard)):
    return await dashboard.update_counting_config(body)


@router.get("/reliability/config", response_model=ReliabilityConfigResponse)
async def get_reliability_config(dashboard: Dashboard = Depends(get_dashboard)):
    return await dashboard.get_reliability_config()


@router.put("/reliability/config", response_model=ReliabilityConfigResponse)
async def update_reliability_config(body: ReliabilityConfig, dashboard: Dashboard = Depends(get_dashboard)):
    return await dashboard.update_reliability_config(body)
