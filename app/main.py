# app/main.py
"""
FastAPI application entry point.
Starts the telemetry core (one polling task per backend source) on startup and
exposes snapshots, camera status, health summary and alerts to renderers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from app.routers import sources, cameras, health, alerts, counting_config, system
from app.config import settings
from app.services.dashboard import Dashboard
from app.services.errors import DashboardError, NetworkError, NotFoundError
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Crowd Monitor Dashboard API",
    description="Live people-counting telemetry — per-source snapshots, camera status, health, alerts.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (the dashboard UI is served from another origin) ───────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Backend Errors from Actions ──────────────────────────────────────────────
@app.exception_handler(DashboardError)
async def backend_error_handler(request: Request, exc: DashboardError):
    if isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, NetworkError):
        code = status.HTTP_504_GATEWAY_TIMEOUT
    else:
        code = status.HTTP_502_BAD_GATEWAY
    logger.warning(f"Backend error on {request.url.path}: {type(exc).__name__}: {exc.message}")
    return JSONResponse(
        status_code=code,
        content={"detail": exc.message, "kind": type(exc).__name__, "backend_status": exc.status_code},
    )


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(sources.router,         prefix="/api/v1", tags=["📡 Sources"])
app.include_router(cameras.router,         prefix="/api/v1", tags=["📷 Cameras"])
app.include_router(health.router,          prefix="/api/v1", tags=["💚 Health"])
app.include_router(alerts.router,          prefix="/api/v1", tags=["🔔 Alerts"])
app.include_router(counting_config.router, prefix="/api/v1", tags=["⚙️  Config"])
app.include_router(system.router,          prefix="/api/v1", tags=["📊 Backend"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Crowd Monitor Dashboard starting up...")
    logger.info(f"🌐 Counting backend: {settings.API_BASE_URL} (streams: {settings.STREAM_BASE_URL})")
    dashboard = Dashboard(settings)
    app.state.dashboard = dashboard
    dashboard.start()
    logger.info(f"📡 Polling started for: {[s.value for s in dashboard.scheduler.running_sources()]}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Crowd Monitor Dashboard shutting down...")
    dashboard = getattr(app.state, "dashboard", None)
    if dashboard is not None:
        await dashboard.aclose()
