# app/routers/sources.py
"""
Per-source snapshots — the raw subscription surface for renderers.
GET  /sources                 — every snapshot
GET  /sources/{source_id}     — one snapshot
POST /sources/{source_id}/refresh — poll now instead of at the next tick
WS   /ws/sources/{source_id}  — push every snapshot update; keeps the source polled while connected
"""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from app.schemas.snapshot import ErrorInfoOut, SnapshotOut
from app.services.dashboard import Dashboard, get_dashboard
from app.services.snapshot_store import Snapshot, SourceId
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


def snapshot_out(dashboard: Dashboard, source_id: SourceId, snapshot: Snapshot) -> SnapshotOut:
    data = snapshot.data
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    error = snapshot.error
    return SnapshotOut(
        source=source_id.value,
        state=snapshot.state_name,
        loading=snapshot.loading,
        data=data,
        error=ErrorInfoOut(kind=error.kind, message=error.message, status_code=error.status_code)
        if error else None,
        last_fetched_at=snapshot.last_fetched_at,
        last_success_at=snapshot.last_success_at,
        polling=dashboard.scheduler.is_running(source_id),
        observers=dashboard.registry.observer_count(source_id),
    )


@router.get("/sources", response_model=list[SnapshotOut], summary="All source snapshots")
def list_sources(dashboard: Dashboard = Depends(get_dashboard)):
    return [snapshot_out(dashboard, sid, snap) for sid, snap in dashboard.store.all().items()]


@router.get("/sources/{source_id}", response_model=SnapshotOut)
def get_source(source_id: SourceId, dashboard: Dashboard = Depends(get_dashboard)):
    return snapshot_out(dashboard, source_id, dashboard.store.get(source_id))


@router.post("/sources/{source_id}/refresh", summary="Poll a source now")
def refresh_source(source_id: SourceId, dashboard: Dashboard = Depends(get_dashboard)):
    if not dashboard.scheduler.refresh(source_id):
        raise HTTPException(status_code=409, detail=f"Source '{source_id.value}' is not being polled")
    return {"source": source_id.value, "status": "refresh_requested"}


def keep_newest(queue: asyncio.Queue, item):
    """Put item on a bounded queue, dropping the oldest entry when it is full."""
    if queue.full():
        queue.get_nowait()
    queue.put_nowait(item)


@router.websocket("/ws/sources/{source_id}")
async def watch_source(websocket: WebSocket, source_id: SourceId,
                       dashboard: Dashboard = Depends(get_dashboard)):
    await websocket.accept()
    # Only the newest snapshot is worth sending to a client that fell behind
    queue: asyncio.Queue = asyncio.Queue(maxsize=1)

    def push(sid: SourceId, snapshot: Snapshot):
        keep_newest(queue, snapshot)

    async def send_updates():
        snapshot = dashboard.store.get(source_id)
        while True:
            out = snapshot_out(dashboard, source_id, snapshot)
            await websocket.send_json(out.model_dump(mode="json"))
            snapshot = await queue.get()

    async def wait_for_disconnect():
        # Renderers send nothing; reading only notices the close
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

    unsubscribe = dashboard.store.subscribe(source_id, push)
    logger.info(f"🔌 Renderer watching {source_id.value}")
    try:
        async with dashboard.registry.observe(source_id):
            sender = asyncio.create_task(send_updates())
            receiver = asyncio.create_task(wait_for_disconnect())
            try:
                done, _ = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                sender.cancel()
                receiver.cancel()
            for task in done:
                task.result()
        logger.info(f"🔌 Renderer stopped watching {source_id.value}")
    except WebSocketDisconnect:
        logger.info(f"🔌 Renderer stopped watching {source_id.value}")
    finally:
        unsubscribe()
