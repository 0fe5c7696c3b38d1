from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from colmenas import router as colmenas_router
from core.config import Settings, load_settings
from core.db import CONNECT_ERRORS, Database, ensure_database, init_database_state
from core.errors import PersistenceError, Unreachable, register_error_handlers
from core.logging_config import configure_logging
from dashboard import router as dashboard_router
from diagnostics import router as diagnostics_router
from mensajes import router as mensajes_router
from nodos import router as nodos_router
from usuarios import router as usuarios_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    # One pool per process. If the database is down we still serve, degraded:
    # routes that need it answer 503 until a later request reconnects.
    try:
        app.state.db = await Database.connect(settings)
        logger.info("database_connected pool_max=%s", settings.db_pool_max)
    except CONNECT_ERRORS as exc:
        app.state.db = None
        app.state.db_retry_at = time.monotonic() + settings.db_retry_interval
        logger.error("database_unreachable error=%s (serving degraded, retrying on demand)", exc)
    try:
        yield
    finally:
        db: Database | None = getattr(app.state, "db", None)
        if db is not None:
            await db.close()
            app.state.db = None
            logger.info("database_pool_closed")


def create_app(settings: Settings) -> FastAPI:
    app = FastAPI(title="SmartBee API", lifespan=lifespan)
    app.state.settings = settings
    init_database_state(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s %s %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    register_error_handlers(app)

    app.include_router(usuarios_router.router, prefix=API_PREFIX, tags=["usuarios"])
    app.include_router(colmenas_router.router, prefix=API_PREFIX, tags=["colmenas"])
    app.include_router(nodos_router.router, prefix=API_PREFIX, tags=["nodos"])
    app.include_router(mensajes_router.router, prefix=API_PREFIX, tags=["mensajes"])
    app.include_router(dashboard_router.router, prefix=API_PREFIX, tags=["dashboard"])
    if settings.enable_debug_routes:
        logger.warning("debug_routes_enabled")
        app.include_router(diagnostics_router.router, prefix=API_PREFIX, tags=["debug"])

    @app.get(API_PREFIX + "/health")
    def health() -> dict:
        return {
            "message": "SmartBee API funcionando correctamente",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "PostgreSQL" if app.state.db is not None else "sin conexión",
        }

    @app.get(API_PREFIX + "/test-db")
    async def test_db(request: Request) -> JSONResponse:
        try:
            db = await ensure_database(request.app)
        except Unreachable as exc:
            return JSONResponse(status_code=500, content={"connected": False, "error": exc.message})
        try:
            row = await db.fetch_one("SELECT 1 AS test, now() AS timestamp")
        except PersistenceError as exc:
            logger.error("test_db_failed details=%s", exc.details)
            body = {"connected": False, "error": exc.message}
            if settings.is_development and exc.details:
                body["details"] = exc.details
            return JSONResponse(status_code=500, content=body)
        return JSONResponse(
            content={
                "connected": True,
                "test": row["test"],
                "timestamp": row["timestamp"].isoformat(),
            }
        )

    return app


settings = load_settings()
configure_logging(settings.log_level)
app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
