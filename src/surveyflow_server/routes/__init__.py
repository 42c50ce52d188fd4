"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from surveyflow_server.routes.sessions import router as sessions_router
from surveyflow_server.routes.snapshots import router as snapshots_router
from surveyflow_server.routes.surveys import router as surveys_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(surveys_router, prefix=API_PREFIX)
    app.include_router(sessions_router, prefix=API_PREFIX)
    app.include_router(snapshots_router, prefix=API_PREFIX)
