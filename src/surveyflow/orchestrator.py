"""SurveyOrchestrator — one respondent's pass through one survey.

The orchestrator owns a fresh instance of every component for its session
(answer store, step cursor, transition controller, session recorder) and
exposes the respondent's actions as async methods.  Nothing is shared
between orchestrators, so any number of sessions can run on one loop.

Typical flow::

    store = SurveyStore()
    store.load()
    graph = store.get("nps")
    orch = SurveyOrchestrator(
        graph,
        player=InstantTransitionPlayer(),
        sink=HttpSnapshotSink(url),
        prefill=parse_resume_link(graph, "email=a@b.c"),
    )
    await orch.start()
    await orch.answer(9)           # arms auto-advance
    await orch.submit()            # cancels it and moves once
    view = orch.current_step()
    await orch.close()

Every action cancels a pending auto-advance *before* it takes effect, and
every action is dropped while a transition is in flight.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from surveyflow.answers import AnswerStore
from surveyflow.constants import AUTO_ADVANCE_DELAYS, VALIDATION_MESSAGE
from surveyflow.controller import TransitionController, TransitionOutcome
from surveyflow.cursor import StepCursor, clamp, compute_progress, has_answer
from surveyflow.evaluator import VisibilityEvaluator
from surveyflow.interfaces import AddressBar, SnapshotSink, TransitionFrame, TransitionPlayer
from surveyflow.models.answer import answer_for, to_plain
from surveyflow.models.question import (
    MultiChoiceQuestion,
    Question,
    ScaleQuestion,
    SingleChoiceQuestion,
    TerminalQuestion,
    TextQuestion,
)
from surveyflow.models.session import (
    PrefillRecord,
    QuestionPayload,
    SessionInfo,
    StepView,
    TerminalContent,
)
from surveyflow.recorder import SessionRecorder

logger = logging.getLogger(__name__)


def to_payload(question: Question) -> QuestionPayload:
    """Flatten a question into the shape a UI renders."""
    extra: dict[str, Any] = {}
    if isinstance(question, (SingleChoiceQuestion, MultiChoiceQuestion)):
        extra["options"] = list(question.options)
    elif isinstance(question, ScaleQuestion):
        extra["scale"] = {
            "min": question.min,
            "max": question.max,
            "min_label": question.min_label,
            "max_label": question.max_label,
        }
    elif isinstance(question, TextQuestion):
        extra["placeholder"] = question.placeholder
    return QuestionPayload(
        id=question.id,
        kind=question.kind,
        question=question.question,
        subtitle=question.subtitle,
        description=question.description,
        **extra,
    )


class SurveyOrchestrator:
    """Drives one visit through a :class:`~surveyflow.graph.QuestionGraph`.

    Args:
        graph: the survey to present
        player: transition player awaited on every move
        sink: snapshot sink; None keeps snapshots local (address bar only)
        address_bar: shareable-link state; None disables it
        prefill: validated resume-from-link record
        delays: per-kind auto-advance delays in seconds; defaults to
            :data:`~surveyflow.constants.AUTO_ADVANCE_DELAYS`
        evaluator: visibility evaluator shared by all components
        correlation_id: fixed session id (tests, replays)
        animate_enter: background ``play_enter`` after each move and at
            start; see :class:`~surveyflow.interfaces.TransitionPlayer`
    """

    def __init__(
        self,
        graph,
        *,
        player: TransitionPlayer,
        sink: SnapshotSink | None = None,
        address_bar: AddressBar | None = None,
        prefill: PrefillRecord | None = None,
        delays: Mapping[str, float] | None = None,
        evaluator: VisibilityEvaluator | None = None,
        correlation_id: str | None = None,
        animate_enter: bool = True,
    ) -> None:
        prefill = prefill or PrefillRecord()
        self.graph = graph
        self._player = player
        self._evaluator = evaluator or VisibilityEvaluator()
        self._delays = dict(AUTO_ADVANCE_DELAYS if delays is None else delays)

        self.answers = AnswerStore(self._seed(prefill.seeded_answers))
        self.cursor = StepCursor()
        self.recorder = SessionRecorder(
            graph,
            identity=prefill.identity,
            sink=sink,
            address_bar=address_bar,
            correlation_id=correlation_id,
            evaluator=self._evaluator,
        )
        self.controller = TransitionController(
            graph,
            self.answers,
            self.cursor,
            player,
            evaluator=self._evaluator,
            on_commit=self._on_commit,
            animate_enter=animate_enter,
        )
        self.error = ""
        self._started = False
        self._closed = False

        visible = self.controller.visible()
        answerable = [p for p, q in enumerate(visible) if not isinstance(q, TerminalQuestion)]
        start = clamp(prefill.start_index, len(visible))
        if answerable:
            start = min(start, answerable[-1])
        self.cursor.commit(start, visible)
        self.controller.remember_shown(visible[self.cursor.index])

    def _seed(self, seeded: Mapping[int, Any]) -> dict:
        answers = {}
        for qid, raw in seeded.items():
            try:
                answers[qid] = answer_for(self.graph.get(qid), raw)
            except (KeyError, ValueError) as exc:
                logger.debug("Discarding seeded answer for question %s: %s", qid, exc)
        return answers

    # ==================================================================
    # Session
    # ==================================================================

    @property
    def session(self) -> SessionInfo:
        return self.recorder.session

    @property
    def correlation_id(self) -> str:
        return self.recorder.correlation_id

    @property
    def address(self) -> str:
        """The current shareable query string."""
        return self.recorder.query(self.answers)

    async def start(self) -> StepView:
        """Publish the resumed state and reveal the first screen.

        Safe to call more than once; only the first call has an effect.
        """
        if not self._started:
            self._started = True
            if self.recorder.identity:
                self.recorder.record(self.answers)
            else:
                self.recorder.sync_address(self.answers)
            self.controller.reveal(
                TransitionFrame(direction="enter", entering=self.cursor.question_id)
            )
            logger.info(
                "Session %s started on survey '%s' at question %s",
                self.correlation_id, self.graph.name, self.cursor.question_id,
            )
        return self.current_step()

    async def settle(self) -> None:
        """Wait for background animations and snapshot deliveries."""
        await self.controller.drain()
        await self.recorder.flush()

    async def close(self) -> None:
        """Cancel the pending auto-advance and finish outstanding work."""
        if self._closed:
            return
        self._closed = True
        await self.controller.shutdown()
        await self.recorder.flush()
        logger.info("Session %s closed", self.correlation_id)

    # ==================================================================
    # Current screen
    # ==================================================================

    def _on_screen(self) -> tuple[Question, list[Question], int]:
        """(question on screen, visible sequence, resolved position).

        The question on screen is the one the cursor is anchored to, even
        if an answer has just hidden it; the respondent is still looking
        at it until the next move.
        """
        visible, pos = self.controller.locate()
        qid = self.cursor.question_id
        if qid is not None:
            try:
                return self.graph.get(qid), visible, pos
            except KeyError:
                pass
        return visible[pos], visible, pos

    def current_step(self) -> StepView:
        """Everything a UI needs to draw the current screen."""
        question, visible, pos = self._on_screen()
        visible_ids = [q.id for q in visible]

        if self.cursor.terminal:
            shown = None
            if self.controller.last_shown_id is not None:
                shown = self.graph.get(self.controller.last_shown_id)
            terminal = self.graph.terminal
            return StepView(
                type="terminal",
                state=self.controller.state.value,
                index=pos,
                question=to_payload(shown) if shown is not None else None,
                progress=compute_progress(visible, pos, terminal=True),
                terminal=TerminalContent(
                    id=terminal.id,
                    heading=terminal.heading,
                    body=terminal.body,
                    image=terminal.image,
                ),
                visible_ids=visible_ids,
            )

        answer = self.answers.get(question.id)
        prev, _ = self.cursor.neighbours(visible, self.graph)
        return StepView(
            type="question",
            state=self.controller.state.value,
            index=pos,
            question=to_payload(question),
            answer=to_plain(answer) if answer is not None else None,
            has_answer=has_answer(question, answer),
            can_go_back=prev is not None,
            show_submit=question.kind not in self._delays,
            error=self.error,
            progress=compute_progress(visible, self.cursor.slot(visible, self.graph), terminal=False),
            visible_ids=visible_ids,
        )

    # ==================================================================
    # Respondent actions
    # ==================================================================

    async def answer(self, value: Any) -> bool:
        """Record an answer for the question on screen.

        Scale and single-choice answers arm the auto-advance timer.

        Returns:
            True if the answer was accepted, False if it was dropped
            because a transition is in flight or the flow has finished.

        Raises:
            ValueError: if ``value`` has the wrong shape for the question.
        """
        self.controller.cancel_auto_advance()
        if not self.controller.is_idle:
            logger.debug("answer() dropped: transition %s in flight", self.controller.state.value)
            return False
        if self.cursor.terminal:
            return False

        question, _, _ = self._on_screen()
        self.answers.set(question.id, answer_for(question, value))
        self.error = ""
        self.recorder.record(self.answers)

        delay = self._delays.get(question.kind)
        if delay is not None:
            self.controller.arm_auto_advance(delay)
        return True

    async def submit(self) -> TransitionOutcome:
        """Move forward if the question on screen has an answer."""
        self.controller.cancel_auto_advance()
        if not self.controller.is_idle:
            logger.debug("submit() dropped: transition %s in flight", self.controller.state.value)
            return TransitionOutcome.REJECTED_BUSY
        if self.cursor.terminal:
            return TransitionOutcome.NOOP

        question, _, _ = self._on_screen()
        if not has_answer(question, self.answers.get(question.id)):
            self.error = VALIDATION_MESSAGE
            return TransitionOutcome.BLOCKED
        self.error = ""
        self.recorder.record(self.answers)
        return await self.controller.advance()

    async def back(self) -> TransitionOutcome:
        """Return to the previous visible question."""
        return await self.controller.back()

    def _on_commit(self, frame: TransitionFrame) -> None:
        self.error = ""
        if frame.direction == "terminal":
            logger.info("Session %s reached the closing screen", self.correlation_id)
