"""
MCN Admin Dashboard
===================
Internal admin API for a YouTube multi-channel network: channels, teams,
networks, projects, staff, and revenue/view dashboards over the daily
metrics synced from YouTube Analytics.

    Built with: FastAPI + SQLAlchemy (async) + PostgreSQL
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from mcn_admin.api.envelope import error_envelope
from mcn_admin.api.routes.auth import router as auth_router
from mcn_admin.api.routes.catalog import networks_router, projects_router, teams_router
from mcn_admin.api.routes.channels import router as channels_router
from mcn_admin.api.routes.dashboard import router as dashboard_router
from mcn_admin.api.routes.staff import router as staff_router
from mcn_admin.api.routes.tasks import router as tasks_router
from mcn_admin.core.config import get_settings
from mcn_admin.core.database import Database
from mcn_admin.core.logging import get_logger, setup_logging
from mcn_admin.core.request_context import get_request_id, new_request_id, set_request_id
from mcn_admin.schemas import HealthResponse
from mcn_admin.services.cache_service import cache_service

VERSION = "1.0.0"
logger = get_logger("main")

_QUIET_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


def create_app(database: Optional[Database] = None) -> FastAPI:
    settings = get_settings()
    db = database or Database.from_settings(settings)
    started_at = time.time()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # ── Startup ──
        setup_logging(debug=settings.app_debug)
        logger.info("app_starting", app=settings.app_name, env=settings.app_env)
        db.connect()
        app.state.database = db
        if settings.dashboard_cache_ttl_seconds > 0:
            await cache_service.connect(settings.redis_url)
        logger.info("app_ready", port=settings.app_port)

        yield

        # ── Shutdown ──
        await cache_service.disconnect()
        await db.dispose()
        logger.info("app_shutdown")

    app = FastAPI(
        title=settings.app_name,
        description="Internal admin API for the MCN dashboard.",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Request Logging Middleware ──

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or new_request_id()
        set_request_id(request_id)
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.time()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            elapsed = round((time.time() - start) * 1000, 2)
            if response is not None:
                response.headers["x-request-id"] = request_id
                status_code = response.status_code
            else:
                status_code = 500

            if request.url.path not in _QUIET_PATHS:
                logger.info(
                    "http_request",
                    method=request.method,
                    path=request.url.path,
                    status=status_code,
                    elapsed_ms=elapsed,
                    request_id=get_request_id(),
                )

            structlog.contextvars.clear_contextvars()
            set_request_id("")

    # ── Exception Handlers ──

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning(
            "http_exception",
            path=request.url.path,
            status_code=exc.status_code,
            detail=str(exc.detail),
        )
        if exc.status_code >= 500:
            code, message = "internal_error", "Internal server error"
        else:
            code, message = "http_error", "Request failed"
        return error_envelope(
            code=code,
            message=message,
            status_code=exc.status_code,
            details=exc.detail,
            meta={"path": request.url.path},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("validation_error", path=request.url.path, errors=exc.errors())
        return error_envelope(
            code="validation_error",
            message="Validation failed",
            status_code=422,
            details=exc.errors(),
            meta={"path": request.url.path},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return error_envelope(
            code="internal_error",
            message="Internal server error",
            status_code=500,
            meta={"path": request.url.path},
        )

    # ── Routers ──

    for router in (
        auth_router,
        dashboard_router,
        channels_router,
        teams_router,
        networks_router,
        projects_router,
        staff_router,
        tasks_router,
    ):
        app.include_router(router, prefix="/api/v1")

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check():
        return HealthResponse(
            status="ok",
            version=VERSION,
            database="connected" if getattr(app.state, "database", None) else "disconnected",
            redis="connected" if cache_service.connected else "disconnected",
            uptime_seconds=round(time.time() - started_at, 2),
        )

    return app


app = create_app()
