"""ORM models for surveyflow_db."""

from surveyflow_db.models.base import Base
from surveyflow_db.models.snapshot import SurveySnapshot

__all__ = ["Base", "SurveySnapshot"]
