"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads surveys and builds the shared collaborators
  - CORS middleware
  - Global exception handlers (ValueError → 404/409/400, KeyError → 404,
    database errors → 503)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness checks

The ``cli()`` function is the ``surveyflow-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from surveyflow.graph import SurveyStore
from surveyflow.players import TimedTransitionPlayer
from surveyflow.sinks import HttpSnapshotSink, LoggingSnapshotSink
from surveyflow_db.engine import dispose_engine, get_engine
from surveyflow_db.repository import SnapshotRepository

from surveyflow_server.config import ServerSettings, load_settings
from surveyflow_server.errors import (
    generic_error_handler,
    key_error_handler,
    snapshot_store_error_handler,
    value_error_handler,
)
from surveyflow_server.registry import SessionRegistry
from surveyflow_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load YAML surveys into a ``SurveyStore``
      2. Build the transition player, snapshot sink and session registry
      3. Stash them on ``app.state`` for dependency injection

    Shutdown:
      1. Close every live session (cancels timers, flushes snapshots)
      2. Close the sink and dispose the database engine
    """
    settings: ServerSettings = app.state.settings

    store = SurveyStore(survey_dir=settings.survey_dir)
    store.load()

    if settings.sink_url:
        sink = HttpSnapshotSink(settings.sink_url)
        logger.info("Snapshots will be posted to %s", settings.sink_url)
    else:
        sink = LoggingSnapshotSink()
        logger.info("No SNAPSHOT_SINK_URL set; snapshots are logged only")

    app.state.store = store
    app.state.player = TimedTransitionPlayer(scale=settings.animation_scale)
    app.state.sink = sink
    app.state.registry = SessionRegistry(capacity=settings.session_limit)
    app.state.repository = SnapshotRepository()

    yield

    # --- Shutdown ---
    await app.state.registry.close_all()
    if isinstance(sink, HttpSnapshotSink):
        await sink.aclose()
    await dispose_engine()


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Survey Flow API Server",
        description="REST API for branching survey sessions and snapshot collection",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(SQLAlchemyError, snapshot_store_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness check: verifies DB connectivity."""
        try:
            engine = get_engine()
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok", "sessions": len(app.state.registry)}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": str(exc)}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn surveyflow_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``surveyflow-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "surveyflow_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
