"""Survey catalogue endpoints — list and inspect loaded surveys."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from surveyflow.graph import SurveyStore

from surveyflow_server.dependencies import get_store

router = APIRouter(tags=["surveys"])


class SurveySummary(BaseModel):
    name: str
    title: str | None = None
    questions: int


@router.get("/surveys")
async def list_surveys(store: SurveyStore = Depends(get_store)) -> list[SurveySummary]:
    """List every loaded survey with its number of answerable questions."""
    return [
        SurveySummary(
            name=graph.name,
            title=graph.title,
            questions=len(graph.answerable),
        )
        for graph in store.surveys.values()
    ]


@router.get("/surveys/{name}")
async def get_survey(name: str, store: SurveyStore = Depends(get_store)) -> dict:
    """Full survey definition, including visibility predicates.

    Raises 404 (via KeyError) for an unknown survey.
    """
    return store.get(name).model_dump(mode="json")
