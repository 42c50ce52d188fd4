"""surveyflow_db — PostgreSQL persistence for survey answer snapshots.

Provides the ORM model, async engine factory and repository used by the
snapshot collector endpoints of ``surveyflow_server``.
"""

from surveyflow_db.engine import get_engine, get_session_factory
from surveyflow_db.models.snapshot import SurveySnapshot
from surveyflow_db.repository import SnapshotRepository

__all__ = [
    "SurveySnapshot",
    "get_engine",
    "get_session_factory",
    "SnapshotRepository",
]
