"""Async repository for SurveySnapshot.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries; methods ``flush()`` but never ``commit()``.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from surveyflow_db.models.base import utcnow
from surveyflow_db.models.snapshot import SurveySnapshot


class SnapshotRepository:
    """Read/write operations on the ``survey_snapshots`` table."""

    async def upsert(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        fields: dict[str, Any],
        survey_type: str | None = None,
    ) -> SurveySnapshot:
        """Insert the snapshot, or overwrite the row for ``session_id``.

        The stored ``fields`` are replaced wholesale, never merged: each
        snapshot already carries every field of the visit.
        """
        now = utcnow()
        stmt = insert(SurveySnapshot).values(
            session_id=session_id,
            survey_type=survey_type,
            fields=fields,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[SurveySnapshot.session_id],
            set_={
                "survey_type": stmt.excluded.survey_type,
                "fields": stmt.excluded.fields,
                "updated_at": now,
            },
        ).returning(SurveySnapshot)
        result = await db.scalars(
            stmt, execution_options={"populate_existing": True},
        )
        row = result.one()
        await db.flush()
        return row

    async def get(self, db: AsyncSession, session_id: str) -> SurveySnapshot | None:
        """Fetch the snapshot for one visit."""
        stmt = select(SurveySnapshot).where(SurveySnapshot.session_id == session_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_type(
        self,
        db: AsyncSession,
        survey_type: str,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> list[SurveySnapshot]:
        """Snapshots tagged with ``survey_type``, most recently updated first."""
        stmt = (
            select(SurveySnapshot)
            .where(SurveySnapshot.survey_type == survey_type)
            .order_by(SurveySnapshot.updated_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())
