"""Session and step models — the contract between the orchestrator and callers.

These models define what the orchestrator returns after every action.
They are intentionally decoupled from the ORM models in ``surveyflow_db``
so that callers never see database internals.

  - QuestionPayload: flattened question for rendering
  - Progress: "n of m" indicator recomputed on every answer mutation
  - StepView: everything a UI needs to draw the current screen
  - SessionInfo: public identity of the visit
  - PrefillRecord: normalised resume-from-link input
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class QuestionPayload(BaseModel):
    """Flattened question for API consumers.

    Strips visibility predicates and sink routing and presents only what
    the UI needs to render the question.
    """

    id: int
    kind: str
    question: str
    subtitle: str | None = None
    description: str | None = None
    placeholder: str | None = None
    # Labels for single_choice/multi_choice
    options: list[str] | None = None
    # {min, max, min_label, max_label} for scale
    scale: dict | None = None


class TerminalContent(BaseModel):
    """Heading/body of the closing screen."""

    id: int
    heading: str
    body: str
    image: str | None = None


class Progress(BaseModel):
    """Progress through the currently visible questions."""

    number: int
    count: int
    percent: float
    label: str


class StepView(BaseModel):
    """Orchestrator step: what is on screen right now.

    ``question`` is the content to display.  During and after the terminal
    crossfade it stays on the last answerable question so the outgoing
    screen never flashes empty; ``terminal`` then carries the closing
    screen's heading and body.
    """

    type: Literal["question", "terminal"]
    state: str
    index: int
    question: QuestionPayload | None
    answer: Any = None
    has_answer: bool = False
    can_go_back: bool = False
    show_submit: bool = False
    error: str = ""
    progress: Progress
    terminal: TerminalContent | None = None
    visible_ids: list[int] = Field(default_factory=list)


class SessionInfo(BaseModel):
    """Public view of a visit session."""

    correlation_id: str
    identity: str | None = None
    survey: str


class PrefillRecord(BaseModel):
    """Resume-from-link input, already validated and clamped.

    The orchestrator trusts this record as-is.  Raw link parsing lives in
    :mod:`surveyflow.prefill`, which falls back to the empty record on any
    malformed value.
    """

    identity: str | None = None
    seeded_answers: dict[int, Any] = Field(default_factory=dict)
    start_index: int = 0
