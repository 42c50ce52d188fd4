"""FastAPI dependency injection — provides DB sessions, the survey store,
the live session registry and the snapshot repository.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on error;
the repository calls ``flush()`` but never ``commit()``.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from surveyflow.graph import SurveyStore
from surveyflow.interfaces import SnapshotSink, TransitionPlayer
from surveyflow_db.engine import get_session_factory
from surveyflow_db.repository import SnapshotRepository

from surveyflow_server.registry import SessionRegistry


# ------------------------------------------------------------------
# Database session: transaction boundary lives here
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ------------------------------------------------------------------
# Shared objects: stashed on app.state during lifespan
# ------------------------------------------------------------------

def get_store(request: Request) -> SurveyStore:
    return request.app.state.store


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_player(request: Request) -> TransitionPlayer:
    return request.app.state.player


def get_sink(request: Request) -> SnapshotSink:
    return request.app.state.sink


def get_repository(request: Request) -> SnapshotRepository:
    return request.app.state.repository
