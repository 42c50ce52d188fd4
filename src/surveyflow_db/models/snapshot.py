"""SurveySnapshot ORM model — one row per visit, upserted by session id.

The recorder sends the full answer snapshot on every trigger, so the row
always holds the latest value of every field and older snapshots are simply
overwritten.
"""

import uuid

from sqlalchemy import Index, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from surveyflow_db.models.base import Base, Timestamped


class SurveySnapshot(Timestamped, Base):
    """Latest answer snapshot of one survey visit."""

    __tablename__ = "survey_snapshots"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Correlation id generated once per visit
    session_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    # Optional survey tag sent as ``type`` (e.g. "nps")
    survey_type: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Every other payload key: identity plus one entry per fixed field name
    fields: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_survey_snapshots_type", "survey_type"),
    )

    def __repr__(self) -> str:
        return (
            f"<SurveySnapshot(session={self.session_id!r}, "
            f"type={self.survey_type!r}, fields={len(self.fields or {})})>"
        )
