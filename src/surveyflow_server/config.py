"""Server configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  In production
the values are typically overridden via env vars or a ``.env`` file.
"""

import os
from dataclasses import dataclass, field

# Module-level constants read at import time so FastAPI Query() defaults
# can reference them.
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "20"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Survey directory (None → bundled surveys shipped with the SDK)
    survey_dir: str | None = None

    # Logging
    log_level: str = "INFO"

    # Where live sessions send their snapshots (None → log them)
    sink_url: str | None = None

    # Maximum number of live sessions; the oldest is closed when exceeded
    session_limit: int = 1000

    # Multiplier for transition timings of hosted sessions (0 → instant)
    animation_scale: float = 0.0


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        survey_dir=os.getenv("SERVER_SURVEY_DIR") or None,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        sink_url=os.getenv("SNAPSHOT_SINK_URL") or None,
        session_limit=int(os.getenv("SERVER_SESSION_LIMIT", "1000")),
        animation_scale=float(os.getenv("SERVER_ANIMATION_SCALE", "0")),
    )
