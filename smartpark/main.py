# smartpark/main.py
"""
FastAPI application entry point.
Owns the store lifecycle: the engine and session factory are built here and
handed to request handlers through app.state. Includes security middleware,
error handlers, and all routers.
"""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from starlette.middleware.base import BaseHTTPMiddleware
from smartpark.routers import alerts, bookings, health, locations, occupancy, slots, stats
from smartpark.database import build_engine, create_tables, make_session_factory
from smartpark.errors import register_error_handlers
from smartpark.config import settings
from smartpark.services.maintenance_worker import start_maintenance_worker, stop_maintenance_worker
from smartpark.utils.logger import get_logger
import time

logger = get_logger(__name__)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key check in front of the auth gateway headers.
    Set API_KEY in .env. Leave empty to disable.
    """
    open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the API. Pass an engine to inject a store (tests, scripts);
    otherwise one is built from DATABASE_URL at startup and disposed at shutdown.
    """
    app = FastAPI(
        title="SmartPark Booking API",
        description="Slot reservations, booking lifecycle and location occupancy.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine) if engine is not None else None
    app.state.owns_engine = engine is None
    app.state.maintenance_task = None

    # ── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],   # Restrict to dashboard origin in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.API_KEY:
        app.add_middleware(APIKeyMiddleware)

    # ── Request Timing Middleware ────────────────────────────────────────────
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration = round((time.time() - start) * 1000, 2)
        logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
        return response

    # ── Error Handlers ───────────────────────────────────────────────────────
    register_error_handlers(app)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(bookings.router,  prefix="/api/v1", tags=["🎫 Bookings"])
    app.include_router(locations.router, prefix="/api/v1", tags=["📍 Locations"])
    app.include_router(slots.router,     prefix="/api/v1", tags=["🅿️  Slots"])
    app.include_router(occupancy.router, prefix="/api/v1", tags=["📊 Occupancy"])
    app.include_router(alerts.router,    prefix="/api/v1", tags=["🔔 Alerts"])
    app.include_router(stats.router,     prefix="/api/v1", tags=["📈 Stats"])
    app.include_router(health.router,    prefix="/api/v1", tags=["💚 Health"])

    # ── Startup / Shutdown ───────────────────────────────────────────────────
    @app.on_event("startup")
    async def startup():
        logger.info("🚀 SmartPark Backend starting up...")
        if app.state.engine is None:
            app.state.engine = build_engine()
            app.state.session_factory = make_session_factory(app.state.engine)
        create_tables(app.state.engine)
        logger.info("✅ Database tables ready")
        app.state.maintenance_task = start_maintenance_worker(app.state.session_factory)
        logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
        logger.info("📖 API docs at /docs")

    @app.on_event("shutdown")
    async def shutdown():
        logger.info("🛑 SmartPark Backend shutting down...")
        await stop_maintenance_worker(app.state.maintenance_task)
        app.state.maintenance_task = None
        if app.state.owns_engine and app.state.engine is not None:
            app.state.engine.dispose()

    return app


app = create_app()
