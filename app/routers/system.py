# app/routers/system.py
"""
Backend reads that are not polled, fetched on request.
GET /system/status  counting sender status
GET /stream/stats   stream recorder counters
GET /history        recent counting frames
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.schemas.system import HistoryResponse, StreamStatsResponse, SystemStatusResponse
from app.services.dashboard import Dashboard, get_dashboard

router = APIRouter()


@router.get("/system/status", response_model=SystemStatusResponse)
async def get_system_status(dashboard: Dashboard = Depends(get_dashboard)):
    return await dashboard.client.get_system_status()


@router.get("/stream/stats", response_model=StreamStatsResponse)
async def get_stream_stats(dashboard: Dashboard = Depends(get_dashboard)):
    return await dashboard.client.get_stream_stats()


@router.get("/history", response_model=HistoryResponse, summary="Recent counting frames")
async def get_history(
    limit: int = Query(50, ge=1, le=1000),
    start_time: Optional[str] = Query(None, description="ISO timestamp"),
    end_time: Optional[str] = Query(None, description="ISO timestamp"),
    dashboard: Dashboard = Depends(get_dashboard),
):
    return await dashboard.client.get_history(limit, start_time, end_time)
