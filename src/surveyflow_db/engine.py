"""Async engine and session factory for the snapshot collector.

Collector traffic is one short upsert or lookup per request.  Pooled
connections are pinged before use and recycled after
``PoolSettings.recycle`` seconds.  Every connection carries the collector's
``application_name`` and a server-side ``statement_timeout``, so a stalled
upsert fails with a database error (HTTP 503) instead of holding a pool
slot.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from surveyflow_db.config import PoolSettings, get_async_url, load_pool_settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def engine_options(settings: PoolSettings) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine``."""
    return {
        "pool_size": settings.size,
        "max_overflow": settings.max_overflow,
        "pool_recycle": settings.recycle,
        "pool_pre_ping": True,
        "connect_args": {
            "server_settings": {
                "application_name": settings.application_name,
                "statement_timeout": str(settings.statement_timeout_ms),
            },
        },
    }


def get_engine(settings: PoolSettings | None = None) -> AsyncEngine:
    """Return the collector's engine, creating it on first use.

    ``settings`` only applies to that first call.
    """
    global _engine
    if _engine is None:
        settings = settings or load_pool_settings()
        _engine = create_async_engine(get_async_url(), **engine_options(settings))
        logger.info(
            "Snapshot store engine created (pool_size=%d, max_overflow=%d, timeout=%dms)",
            settings.size, settings.max_overflow, settings.statement_timeout_ms,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def dispose_engine() -> None:
    """Close the pool; the next ``get_engine()`` builds a new one."""
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Snapshot store engine disposed")
