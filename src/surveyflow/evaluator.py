"""VisibilityEvaluator — computes the visible question sequence.

A question is visible when it has no ``visibility`` predicate, or when its
predicate holds against the current answers.  The evaluator is pure: the
same graph and answers always give the same, declaration-ordered result,
and a question is never reordered by answer content.

Predicate semantics:
  - a referenced question with no recorded answer evaluates to False
  - a referenced question that is itself hidden evaluates to False; its
    stale answer stays in the store but is not consulted
  - ``nps_score`` resolves to the graph's score question and is always
    consulted, which lets a score gate its own follow-ups
  - numeric operators only match scalar answers; choice sets only match
    ``includes_any``
"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from surveyflow.constants import SCORE_FIELD
from surveyflow.models.answer import ChoiceSetAnswer, ScalarAnswer
from surveyflow.models.question import Question, VisibilityPredicate

logger = logging.getLogger(__name__)


class VisibilityEvaluator:
    """Evaluates visibility predicates against the answer store."""

    def visible_questions(self, graph, answers: Mapping[int, Any] | Any) -> list[Question]:
        """Filter ``graph.questions`` down to the currently visible ones.

        Args:
            graph: the :class:`~surveyflow.graph.QuestionGraph`
            answers: an :class:`~surveyflow.answers.AnswerStore` or any
                mapping of question id -> typed answer

        Returns:
            Visible questions in declaration order.
        """
        shown: set[int] = set()
        visible = []
        for q in graph.questions:
            if q.visibility is None or self._eval_predicate(q, graph, answers, shown):
                shown.add(q.id)
                visible.append(q)
        return visible

    def is_visible(self, question: Question, graph, answers) -> bool:
        return any(q.id == question.id for q in self.visible_questions(graph, answers))

    # ------------------------------------------------------------------
    # Predicate evaluation
    # ------------------------------------------------------------------

    def _eval_predicate(self, question: Question, graph, answers, shown: set[int]) -> bool:
        """Evaluate ``question``'s predicate against the answers.

        If the referenced question has not been answered yet, or is hidden
        itself, the predicate evaluates to False (the gated question stays
        hidden).
        """
        pred: VisibilityPredicate = question.visibility
        qid = graph.resolve_dependency(pred.depends_on)
        if qid is None:
            return False
        if qid != question.id and pred.depends_on != SCORE_FIELD and qid not in shown:
            return False
        answer = answers.get(qid)
        if answer is None:
            return False
        return self._compare(pred.op, answer, pred.value)

    @staticmethod
    def _compare(op: str, answer: Any, value: Any) -> bool:
        """Apply an operator to a typed answer and the predicate operand."""
        if op == "includes_any":
            if isinstance(answer, ChoiceSetAnswer):
                return any(v in answer.values for v in value)
            return False

        # Every remaining operator needs a single value
        if isinstance(answer, ChoiceSetAnswer):
            return False

        if op == "equals_one_of":
            raw = answer.value
            return isinstance(raw, str) and raw in value

        # --- Numeric comparisons ---
        if op in ("between", "ge", "le"):
            if not isinstance(answer, ScalarAnswer):
                return False
            num = _as_number(answer.value)
            if num is None:
                return False
            if op == "between":
                lo, hi = float(value[0]), float(value[1])
                return lo <= num <= hi
            if op == "ge":
                return num >= float(value)
            return num <= float(value)

        logger.warning("Unknown predicate operator: %s", op)
        return False


def _as_number(raw: Any) -> float | None:
    """Return ``raw`` as a finite float, or None for labels and garbage."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        num = float(raw)
    else:
        try:
            num = float(raw)
        except (TypeError, ValueError):
            return None
    return num if math.isfinite(num) else None


_default = VisibilityEvaluator()


def visible_questions(graph, answers) -> list[Question]:
    """Module-level shortcut for :meth:`VisibilityEvaluator.visible_questions`."""
    return _default.visible_questions(graph, answers)
