"""Survey session endpoints — start a visit and drive it step by step.

Every action returns the step the respondent sees afterwards plus the
shareable query string, so a browser client can mirror it in its address
bar.  Actions that arrive while a transition is in flight are dropped and
report ``rejected_busy``; they are never queued.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from surveyflow.graph import SurveyStore
from surveyflow.interfaces import SnapshotSink, TransitionPlayer
from surveyflow.models.session import SessionInfo, StepView
from surveyflow.orchestrator import SurveyOrchestrator
from surveyflow.prefill import parse_resume_link

from surveyflow_server.dependencies import get_player, get_registry, get_sink, get_store
from surveyflow_server.registry import SessionRegistry

router = APIRouter(tags=["sessions"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class CreateSessionRequest(BaseModel):
    """Body for POST /surveys/{name}/sessions.

    ``query`` is the raw query string of the link the respondent opened
    (``email=…&nps=8``, ``question=2&answer=1`` or ``q1=…&q2=…``).
    """
    query: str = ""


class AnswerRequest(BaseModel):
    """Body for POST /sessions/{id}/answer."""
    value: Any


class StepResponse(BaseModel):
    session_id: str
    step: StepView
    address: str


class AnswerResponse(StepResponse):
    accepted: bool


class MoveResponse(StepResponse):
    outcome: str


def _step(orch: SurveyOrchestrator) -> dict:
    return {
        "session_id": orch.correlation_id,
        "step": orch.current_step(),
        "address": orch.address,
    }


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/surveys/{name}/sessions", status_code=201)
async def create_session(
    name: str,
    body: CreateSessionRequest,
    store: SurveyStore = Depends(get_store),
    registry: SessionRegistry = Depends(get_registry),
    player: TransitionPlayer = Depends(get_player),
    sink: SnapshotSink = Depends(get_sink),
) -> StepResponse:
    """Start a visit, resuming from the link's query string when given."""
    graph = store.get(name)
    orch = SurveyOrchestrator(
        graph,
        player=player,
        sink=sink,
        prefill=parse_resume_link(graph, body.query),
    )
    await registry.add(orch)
    await orch.start()
    return StepResponse(**_step(orch))


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> SessionInfo:
    return registry.get(session_id).session


@router.get("/sessions/{session_id}/step")
async def get_step(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> StepResponse:
    """The screen as it is now (auto-advance may have moved it)."""
    return StepResponse(**_step(registry.get(session_id)))


@router.post("/sessions/{session_id}/answer")
async def answer(
    session_id: str,
    body: AnswerRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> AnswerResponse:
    """Record an answer for the question on screen.

    Scale and single-choice answers schedule an automatic move forward.
    A value of the wrong shape for the question is a 400.
    """
    orch = registry.get(session_id)
    accepted = await orch.answer(body.value)
    return AnswerResponse(accepted=accepted, **_step(orch))


@router.post("/sessions/{session_id}/submit")
async def submit(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> MoveResponse:
    """Move forward; ``blocked`` when the question has no answer yet."""
    orch = registry.get(session_id)
    outcome = await orch.submit()
    return MoveResponse(outcome=outcome.value, **_step(orch))


@router.post("/sessions/{session_id}/back")
async def back(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> MoveResponse:
    orch = registry.get(session_id)
    outcome = await orch.back()
    return MoveResponse(outcome=outcome.value, **_step(orch))


@router.delete("/sessions/{session_id}", status_code=204)
async def close_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    """Close the visit: cancels auto-advance and flushes pending snapshots."""
    await registry.remove(session_id)
