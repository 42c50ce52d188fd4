"""Create the survey_snapshots table.

Revision ID: 20261019_snapshots
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261019_snapshots"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "survey_snapshots",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("session_id", sa.Text, nullable=False),
        sa.Column("survey_type", sa.Text, nullable=True),
        sa.Column(
            "fields",
            JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint("session_id", name="survey_snapshots_session_id_key"),
    )
    op.create_index("ix_survey_snapshots_type", "survey_snapshots", ["survey_type"])


def downgrade() -> None:
    op.drop_index("ix_survey_snapshots_type", table_name="survey_snapshots")
    op.drop_table("survey_snapshots")
