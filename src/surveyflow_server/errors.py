"""Exception handlers for live sessions and the snapshot collector.

Routes let exceptions from the SDK and the repository propagate:

  - ``ValueError`` from the session registry ("Session not found",
    "Session already exists"), the collector ("Snapshot not found",
    "requires a sessionId") and ``answer_for`` (a value the question on
    screen cannot take)
  - ``KeyError`` from ``SurveyStore.get`` or ``QuestionGraph.get``
  - ``SQLAlchemyError`` when the ``survey_snapshots`` table is unreachable

Each handler logs the raw message and replies with a fixed detail naming
the resource that failed.  Session ids, identities and answers never
appear in a response body.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# (message fragment, status, client detail); first match wins.
_VALUE_ERROR_RULES: list[tuple[str, int, str]] = [
    ("session already exists", 409, "Session already exists"),
    ("session not found", 404, "Session not found"),
    ("snapshot not found", 404, "Snapshot not found"),
    ("requires a sessionid", 400, "Snapshot payload requires a sessionId"),
    ("question ", 400, "Answer not accepted for this question"),
]

_DEFAULT_VALUE_ERROR = (400, "Invalid request")


def classify_value_error(message: str) -> tuple[int, str]:
    """Return (status, client detail) for a ``ValueError`` message."""
    lowered = message.lower()
    for fragment, status, detail in _VALUE_ERROR_RULES:
        if fragment in lowered:
            return status, detail
    return _DEFAULT_VALUE_ERROR


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    status, detail = classify_value_error(str(exc))
    logger.warning("ValueError [%d] at %s: %s", status, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": detail})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Unknown survey name or question id."""
    logger.warning("KeyError at %s: %s", request.url.path, exc)
    return JSONResponse(status_code=404, content={"detail": "Survey or question not found"})


async def snapshot_store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """The snapshot table could not be read or written; sessions keep working."""
    logger.error("Snapshot store error at %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Snapshot store unavailable"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception at %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
