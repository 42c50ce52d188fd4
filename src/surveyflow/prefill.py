"""Resume-link parsing — turn raw query parameters into a PrefillRecord.

Three link formats are understood, tried in this order:

  1. score:    ``?email=…&nps=8``          seeds the graph's score question
  2. index:    ``?email=…&question=1&answer=3``  1-based question/option
               indexes (``q``/``a`` accepted as short names)
  3. snapshot: ``?email=…&q1=…&q2=…``      the address-bar format written by
               the session recorder

Any malformed, non-numeric or out-of-range value is silently discarded and
the record falls back to no seeded answers and a start index of 0.  The
identity is kept whenever it is present, since it is valid on its own.
"""

from __future__ import annotations

import logging

from surveyflow.evaluator import VisibilityEvaluator
from surveyflow.models.answer import to_plain
from surveyflow.models.question import (
    MultiChoiceQuestion,
    ScaleQuestion,
    SingleChoiceQuestion,
    TerminalQuestion,
)
from surveyflow.models.session import PrefillRecord
from surveyflow.urlstate import decode_answers, decode_value, parse_params

logger = logging.getLogger(__name__)

_evaluator = VisibilityEvaluator()


def parse_resume_link(graph, query: str | None) -> PrefillRecord:
    """Build a trusted :class:`PrefillRecord` from a raw query string."""
    params = parse_params(query or "")
    identity = params.get(graph.identity_param, "").strip() or None

    if graph.score_param and graph.score_param in params:
        return _from_score(graph, params[graph.score_param], identity)

    question_raw = params.get("question", params.get("q"))
    answer_raw = params.get("answer", params.get("a"))
    if question_raw is not None and answer_raw is not None:
        return _from_indexes(graph, question_raw, answer_raw, identity)

    answers = decode_answers(graph, params)
    if not answers:
        return PrefillRecord(identity=identity)
    return PrefillRecord(
        identity=identity,
        seeded_answers={qid: to_plain(a) for qid, a in answers.items()},
        start_index=_first_unanswered(graph, answers),
    )


def _from_score(graph, raw: str, identity: str | None) -> PrefillRecord:
    """Seed the score question; start on the question after it."""
    score_q = graph.get(graph.score_question) if graph.score_question else None
    if not isinstance(score_q, ScaleQuestion):
        return PrefillRecord(identity=identity)
    answer = decode_value(score_q, raw)
    if answer is None:
        logger.debug("Discarding malformed score %r", raw)
        return PrefillRecord(identity=identity)
    seeded = {score_q.id: answer}
    visible = _evaluator.visible_questions(graph, seeded)
    return PrefillRecord(
        identity=identity,
        seeded_answers={score_q.id: answer.value},
        start_index=min(1, len(visible) - 1),
    )


def _from_indexes(graph, question_raw: str, answer_raw: str, identity: str | None) -> PrefillRecord:
    """Seed a choice question from 1-based question and option indexes."""
    try:
        q_index = int(question_raw) - 1
        a_index = int(answer_raw) - 1
    except ValueError:
        logger.debug("Discarding non-numeric resume indexes %r/%r", question_raw, answer_raw)
        return PrefillRecord(identity=identity)

    if q_index < 0 or q_index >= len(graph.questions):
        return PrefillRecord(identity=identity)
    question = graph.questions[q_index]
    if not isinstance(question, (SingleChoiceQuestion, MultiChoiceQuestion)):
        return PrefillRecord(identity=identity)
    if a_index < 0 or a_index >= len(question.options):
        return PrefillRecord(identity=identity)

    label = question.options[a_index]
    raw = [label] if isinstance(question, MultiChoiceQuestion) else label
    decoded = decode_value(question, label)
    seeded = {question.id: decoded}
    visible = _evaluator.visible_questions(graph, seeded)
    return PrefillRecord(
        identity=identity,
        seeded_answers={question.id: raw},
        start_index=_after(graph, visible, question.id),
    )


def _after(graph, visible, qid: int) -> int:
    """Position of the first visible question declared after ``qid``.

    Falls back to the seeded question itself when only the terminal
    screen follows, so the respondent still confirms the last answer.
    """
    declared_at = graph.position(qid)
    for pos, q in enumerate(visible):
        if graph.position(q.id) > declared_at and not isinstance(q, TerminalQuestion):
            return pos
    for pos, q in enumerate(visible):
        if q.id == qid:
            return pos
    return 0


def _first_unanswered(graph, answers) -> int:
    """Position of the first visible answerable question with no answer."""
    visible = _evaluator.visible_questions(graph, answers)
    answerable = [pos for pos, q in enumerate(visible) if not isinstance(q, TerminalQuestion)]
    for pos in answerable:
        if visible[pos].id not in answers:
            return pos
    return answerable[-1] if answerable else 0
