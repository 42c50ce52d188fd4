"""Database configuration — reads connection parameters from environment.

Supports two modes:
1. A single ``DATABASE_URL`` env var (takes precedence).
2. Individual ``PG_HOST``, ``PG_PORT``, ``PG_USER``, ``PG_PASSWORD``,
   ``PG_DATABASE`` env vars (convenient for docker-compose).

Both ``sync_url`` (used by Alembic migrations) and ``async_url`` (used by
the async SQLAlchemy engine at runtime) are exposed, along with the
collector's pool settings.
"""

import os
from dataclasses import dataclass

_ASYNC_PREFIX = "postgresql+asyncpg://"
_SYNC_PREFIX = "postgresql://"


def _build_url_from_parts() -> str:
    host = os.getenv("PG_HOST", "localhost")
    port = os.getenv("PG_PORT", "5432")
    user = os.getenv("PG_USER", "surveyflow")
    password = os.getenv("PG_PASSWORD", "surveyflow")
    database = os.getenv("PG_DATABASE", "surveyflow")
    return f"{_SYNC_PREFIX}{user}:{password}@{host}:{port}/{database}"


def get_sync_url() -> str:
    """Return a synchronous connection URL for Alembic."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url.replace(_ASYNC_PREFIX, _SYNC_PREFIX)
    return _build_url_from_parts()


def get_async_url() -> str:
    """Return an asyncpg connection URL for the runtime engine."""
    url = os.getenv("DATABASE_URL") or _build_url_from_parts()
    if url.startswith(_SYNC_PREFIX):
        return url.replace(_SYNC_PREFIX, _ASYNC_PREFIX, 1)
    return url


@dataclass(frozen=True)
class PoolSettings:
    """Connection pool of the snapshot collector, from ``SNAPSHOT_DB_*`` vars."""

    size: int = 5
    max_overflow: int = 10
    # Seconds before a pooled connection is replaced
    recycle: int = 1800
    # Per-statement limit applied server-side to every upsert and lookup
    statement_timeout_ms: int = 5000
    application_name: str = "surveyflow-collector"


def load_pool_settings() -> PoolSettings:
    return PoolSettings(
        size=int(os.getenv("SNAPSHOT_DB_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("SNAPSHOT_DB_MAX_OVERFLOW", "10")),
        recycle=int(os.getenv("SNAPSHOT_DB_POOL_RECYCLE", "1800")),
        statement_timeout_ms=int(os.getenv("SNAPSHOT_DB_STATEMENT_TIMEOUT_MS", "5000")),
        application_name=os.getenv("SNAPSHOT_DB_APP_NAME", "surveyflow-collector"),
    )
