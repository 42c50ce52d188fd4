"""TransitionController — serialises every move of the step cursor.

Three triggers compete for the cursor: an explicit submit, a timed
auto-advance after a quick pick, and back navigation.  The controller
arbitrates between them with a small state machine:

    IDLE ──advance/back──► IN_FLIGHT ──player done──► IDLE
      │
      └──advance to terminal──► SETTLING_TERMINAL ──crossfade done──► IDLE

Guarantees:
  - at most one transition is in flight; a request while not IDLE is
    dropped, not queued
  - the auto-advance timer is an explicit handle; cancelling it before a
    manual action takes effect means a stale timer can never fire into the
    same slot
  - every decision recomputes the visible sequence from the live answer
    store, never from values captured when a timer was armed
  - the terminal flag is one-way
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable

from surveyflow.answers import AnswerStore
from surveyflow.cursor import StepCursor
from surveyflow.evaluator import VisibilityEvaluator
from surveyflow.interfaces import TransitionFrame, TransitionPlayer
from surveyflow.models.question import Question, TerminalQuestion

logger = logging.getLogger(__name__)


class TransitionState(str, enum.Enum):
    """Lifecycle of a single cursor move."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SETTLING_TERMINAL = "settling_terminal"


class TransitionOutcome(str, enum.Enum):
    """What happened to a move request."""

    MOVED = "moved"
    TERMINAL = "terminal"
    # Another transition was in flight; the request was dropped
    REJECTED_BUSY = "rejected_busy"
    # Submit without a required answer (set by the orchestrator)
    BLOCKED = "blocked"
    # Nothing to do: first question, already terminal, or a stale timer
    NOOP = "noop"


class TransitionController:
    """Owns the step cursor's moves for one session.

    Args:
        graph: the survey's :class:`~surveyflow.graph.QuestionGraph`
        answers: the session's live :class:`AnswerStore`
        cursor: the session's :class:`StepCursor`
        player: the external :class:`TransitionPlayer`
        evaluator: visibility evaluator (a fresh one if omitted)
        on_commit: called with the frame after every committed move
        animate_enter: fire ``play_enter`` in the background after each
            commit; False leaves one player call per transition
    """

    def __init__(
        self,
        graph,
        answers: AnswerStore,
        cursor: StepCursor,
        player: TransitionPlayer,
        *,
        evaluator: VisibilityEvaluator | None = None,
        on_commit: Callable[[TransitionFrame], None] | None = None,
        animate_enter: bool = True,
    ) -> None:
        self._graph = graph
        self._animate_enter = animate_enter
        self._answers = answers
        self._cursor = cursor
        self._player = player
        self._evaluator = evaluator or VisibilityEvaluator()
        self._on_commit = on_commit

        self.state = TransitionState.IDLE
        self.moves = 0
        self.last_shown_id: int | None = None

        self._auto_advance: asyncio.TimerHandle | None = None
        self._armed_at: int | None = None
        self._tasks: set[asyncio.Task] = set()

    # ==================================================================
    # Read helpers
    # ==================================================================

    @property
    def is_idle(self) -> bool:
        return self.state is TransitionState.IDLE

    def visible(self) -> list[Question]:
        """Visible sequence recomputed from the latest answers."""
        return self._evaluator.visible_questions(self._graph, self._answers)

    def locate(self) -> tuple[list[Question], int]:
        """Return (visible sequence, resolved cursor position)."""
        visible = self.visible()
        pos, _ = self._cursor.resolve(visible, self._graph)
        return visible, pos

    def remember_shown(self, question: Question | None) -> None:
        """Track the last answerable question that was on screen."""
        if question is not None and not isinstance(question, TerminalQuestion):
            self.last_shown_id = question.id

    # ==================================================================
    # Auto-advance
    # ==================================================================

    @property
    def auto_advance_pending(self) -> bool:
        return self._auto_advance is not None

    def arm_auto_advance(self, delay: float) -> None:
        """Schedule a forward move after ``delay`` seconds.

        Re-arming replaces any pending timer.  The timer remembers which
        question it was armed on and does nothing if the cursor has moved
        by the time it fires.
        """
        self.cancel_auto_advance()
        loop = asyncio.get_running_loop()
        self._armed_at = self._cursor.question_id
        self._auto_advance = loop.call_later(delay, self._fire_auto_advance)

    def cancel_auto_advance(self) -> bool:
        """Cancel the pending auto-advance.  Returns True if one was pending."""
        if self._auto_advance is None:
            return False
        self._auto_advance.cancel()
        self._auto_advance = None
        self._armed_at = None
        return True

    def _fire_auto_advance(self) -> None:
        armed_at = self._armed_at
        self._auto_advance = None
        self._armed_at = None
        if self._cursor.terminal or self._cursor.question_id != armed_at:
            logger.debug("Stale auto-advance armed on question %s dropped", armed_at)
            return
        self.spawn(self.advance())

    # ==================================================================
    # Background work
    # ==================================================================

    def spawn(self, coro: Awaitable) -> asyncio.Task:
        """Run ``coro`` in the background, keeping a reference until done."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every background task (including ones they spawn)."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel the pending timer and any background work."""
        self.cancel_auto_advance()
        for task in list(self._tasks):
            task.cancel()
        await self.drain()

    # ==================================================================
    # Moves
    # ==================================================================

    async def advance(self) -> TransitionOutcome:
        """Move forward one question, or into the terminal screen."""
        if not self.is_idle:
            logger.debug("advance() dropped: transition %s in flight", self.state.value)
            return TransitionOutcome.REJECTED_BUSY
        if self._cursor.terminal:
            return TransitionOutcome.NOOP

        visible = self.visible()
        pos, _ = self._cursor.resolve(visible, self._graph)
        if isinstance(visible[pos], TerminalQuestion):
            return await self._settle_terminal(visible, pos)

        _, nxt = self._cursor.neighbours(visible, self._graph)
        if nxt is None:
            return TransitionOutcome.NOOP
        if isinstance(visible[nxt], TerminalQuestion):
            return await self._settle_terminal(visible, nxt)
        return await self._move(visible, nxt, "forward")

    async def back(self) -> TransitionOutcome:
        """Move back to the previous visible question."""
        self.cancel_auto_advance()
        if not self.is_idle:
            logger.debug("back() dropped: transition %s in flight", self.state.value)
            return TransitionOutcome.REJECTED_BUSY
        if self._cursor.terminal:
            return TransitionOutcome.NOOP

        visible = self.visible()
        prev, _ = self._cursor.neighbours(visible, self._graph)
        if prev is None:
            return TransitionOutcome.NOOP
        return await self._move(visible, prev, "backward")

    async def _move(self, visible: list[Question], target: int, direction: str) -> TransitionOutcome:
        """Play the exit animation, then commit the cursor to ``target``."""
        entering = visible[target].id
        frame = TransitionFrame(
            direction=direction,
            leaving=self._cursor.question_id,
            entering=entering,
        )
        self.state = TransitionState.IN_FLIGHT
        try:
            await self._play(self._player.play_exit, frame)
            # Answers may have changed while the exit played; commit by id
            # against a fresh sequence.
            fresh = self.visible()
            pos = next((i for i, q in enumerate(fresh) if q.id == entering), None)
            if pos is None:
                logger.debug("Question %s hidden during transition; staying put", entering)
                pos, _ = self._cursor.resolve(fresh, self._graph)
            self._cursor.commit(pos, fresh)
            self.remember_shown(fresh[self._cursor.index])
        finally:
            self.state = TransitionState.IDLE
        self.reveal(frame)
        self._committed(frame)
        return TransitionOutcome.MOVED

    async def _settle_terminal(self, visible: list[Question], target: int) -> TransitionOutcome:
        """Set the one-way terminal flag and crossfade into the closing screen."""
        frame = TransitionFrame(
            direction="terminal",
            leaving=self._cursor.question_id,
            entering=visible[target].id,
        )
        self.state = TransitionState.SETTLING_TERMINAL
        self._cursor.terminal = True
        self._cursor.commit(target, visible)
        try:
            await self._play(self._player.play_terminal_crossfade, frame)
        finally:
            self.state = TransitionState.IDLE
        self._committed(frame)
        return TransitionOutcome.TERMINAL

    def reveal(self, frame: TransitionFrame) -> asyncio.Task | None:
        """Play the entrance animation in the background; never gates a move."""
        if not self._animate_enter:
            return None
        return self.spawn(self._play(self._player.play_enter, frame))

    async def _play(self, fn: Callable[[TransitionFrame], Awaitable[None]], frame: TransitionFrame) -> None:
        """Await the player; a failing animation must not trap the respondent."""
        try:
            await fn(frame)
        except Exception:
            logger.exception("Transition player failed during %s move; committing anyway", frame.direction)

    def _committed(self, frame: TransitionFrame) -> None:
        self.moves += 1
        if self._on_commit is not None:
            self._on_commit(frame)
