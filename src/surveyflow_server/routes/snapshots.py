"""Snapshot collector endpoints — the upsert-by-session sink.

Point ``SNAPSHOT_SINK_URL`` at ``/api/v1/snapshots`` to have hosted
sessions persist their own snapshots, or post from any other client that
speaks the same payload::

    {"type": "nps", "sessionId": "…", "email": "…", "nps": "9", "response": "…"}
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from surveyflow_db.repository import SnapshotRepository

from surveyflow_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from surveyflow_server.dependencies import get_db, get_repository

router = APIRouter(tags=["snapshots"])


class SnapshotOut(BaseModel):
    session_id: str
    survey_type: str | None = None
    fields: dict[str, Any]
    updated_at: datetime | None = None


def _out(row) -> SnapshotOut:
    return SnapshotOut(
        session_id=row.session_id,
        survey_type=row.survey_type,
        fields=row.fields,
        updated_at=row.updated_at,
    )


@router.post("/snapshots")
async def upsert_snapshot(
    payload: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    repo: SnapshotRepository = Depends(get_repository),
) -> SnapshotOut:
    """Insert or overwrite the snapshot for ``payload["sessionId"]``."""
    session_id = payload.get("sessionId")
    if not isinstance(session_id, str) or not session_id:
        raise ValueError("Snapshot payload requires a sessionId")
    survey_type = payload.get("type")
    fields = {
        k: v for k, v in payload.items()
        if k not in ("sessionId", "type")
    }
    row = await repo.upsert(
        db,
        session_id=session_id,
        survey_type=survey_type if isinstance(survey_type, str) else None,
        fields=fields,
    )
    return _out(row)


@router.get("/snapshots/{session_id}")
async def get_snapshot(
    session_id: str,
    db: AsyncSession = Depends(get_db),
    repo: SnapshotRepository = Depends(get_repository),
) -> SnapshotOut:
    row = await repo.get(db, session_id)
    if row is None:
        raise ValueError(f"Snapshot not found: session_id={session_id}")
    return _out(row)


@router.get("/snapshots")
async def list_snapshots(
    survey_type: str = Query(..., alias="type"),
    db: AsyncSession = Depends(get_db),
    repo: SnapshotRepository = Depends(get_repository),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
) -> list[SnapshotOut]:
    """Snapshots of one survey type, most recently updated first."""
    rows = await repo.list_by_type(db, survey_type, limit=limit, offset=offset)
    return [_out(r) for r in rows]
