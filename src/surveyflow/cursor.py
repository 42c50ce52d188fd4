"""StepCursor and progress — "what is on screen now".

The cursor is a position in the *current* visible sequence plus a one-way
terminal flag.  Because answers can add or remove conditional questions at
any time, the raw index is never used directly: :meth:`StepCursor.resolve`
re-maps it onto the freshly computed sequence first.

Re-mapping rules:
  - if the question the cursor is anchored to is still visible, use its
    current position
  - if it became hidden, fall back to the last visible question declared
    before it
  - otherwise clamp the raw index into range
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from surveyflow.constants import COMPLETE_LABEL
from surveyflow.models.answer import ChoiceSetAnswer, ScalarAnswer, TextAnswer
from surveyflow.models.question import (
    MultiChoiceQuestion,
    Question,
    ScaleQuestion,
    TerminalQuestion,
)
from surveyflow.models.session import Progress


@dataclass
class StepCursor:
    """Position in the visible sequence.

    Attributes:
        index: raw position; only meaningful after :meth:`resolve`
        terminal: set once the closing screen is reached, never cleared
        question_id: id of the question the index pointed at when committed
    """

    index: int = 0
    terminal: bool = False
    question_id: int | None = None

    def resolve(self, visible: Sequence[Question], graph) -> tuple[int, bool]:
        """Map the cursor onto ``visible``.

        Returns:
            (position, anchored) — ``anchored`` is False when the question
            the cursor pointed at is no longer visible.
        """
        if not visible:
            return 0, False
        if self.question_id is not None:
            for pos, q in enumerate(visible):
                if q.id == self.question_id:
                    return pos, True
            try:
                declared_at = graph.position(self.question_id)
            except KeyError:
                declared_at = None
            if declared_at is not None:
                earlier = [
                    pos for pos, q in enumerate(visible)
                    if graph.position(q.id) < declared_at
                ]
                if earlier:
                    return earlier[-1], False
        return clamp(self.index, len(visible)), False

    def neighbours(self, visible: Sequence[Question], graph) -> tuple[int | None, int | None]:
        """Positions of the previous and next question around the cursor.

        When the anchored question is hidden, "previous" is the last visible
        question declared before it and "next" the first declared after it.
        """
        pos, anchored = self.resolve(visible, graph)
        declared_at = None
        if not anchored and self.question_id is not None:
            try:
                declared_at = graph.position(self.question_id)
            except KeyError:
                declared_at = None
        if declared_at is None:
            prev = pos - 1 if pos > 0 else None
            nxt = pos + 1 if pos + 1 < len(visible) else None
            return prev, nxt
        before = [p for p, q in enumerate(visible) if graph.position(q.id) < declared_at]
        after = [p for p, q in enumerate(visible) if graph.position(q.id) > declared_at]
        return (before[-1] if before else None), (after[0] if after else None)

    def slot(self, visible: Sequence[Question], graph) -> int:
        """Position the question on screen occupies in ``visible``.

        A question hidden by its own answer stays on screen until the next
        move; its slot is the number of visible questions declared before
        it, which is where it would sit if it were still visible.
        """
        pos, anchored = self.resolve(visible, graph)
        if anchored or self.question_id is None:
            return pos
        try:
            declared_at = graph.position(self.question_id)
        except KeyError:
            return pos
        return sum(1 for q in visible if graph.position(q.id) < declared_at)

    def commit(self, index: int, visible: Sequence[Question]) -> None:
        """Move to ``index`` and anchor to the question found there."""
        self.index = clamp(index, len(visible))
        self.question_id = visible[self.index].id if visible else None


def clamp(index: int, length: int) -> int:
    """Clamp ``index`` into ``[0, length - 1]`` (0 for an empty sequence)."""
    if length <= 0:
        return 0
    return max(0, min(index, length - 1))


def has_answer(question: Question | None, answer: Any) -> bool:
    """Presence check appropriate to the question kind.

    - scale: any recorded value counts
    - text / single_choice: the value must be non-empty
    - multi_choice: the set must be non-empty
    """
    if question is None or answer is None:
        return False
    if isinstance(question, TerminalQuestion):
        return False
    if isinstance(question, ScaleQuestion):
        return isinstance(answer, ScalarAnswer)
    if isinstance(question, MultiChoiceQuestion):
        return isinstance(answer, ChoiceSetAnswer) and answer.is_present()
    if isinstance(answer, (ScalarAnswer, TextAnswer)):
        return answer.is_present()
    return False


def compute_progress(visible: Sequence[Question], position: int, *, terminal: bool) -> Progress:
    """Progress through the answerable part of ``visible``.

    The denominator counts visible non-terminal questions, so it changes
    when a conditional question appears or disappears.  The step number is
    clamped so the fraction never exceeds 100%.
    """
    count = sum(1 for q in visible if not isinstance(q, TerminalQuestion))
    if terminal or count == 0:
        return Progress(number=count, count=count, percent=100.0, label=COMPLETE_LABEL)
    number = min(position + 1, count)
    percent = number / count * 100
    return Progress(number=number, count=count, percent=percent, label=f"{number} of {count}")
