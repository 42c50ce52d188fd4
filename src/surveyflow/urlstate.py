"""Address-bar codec — answer snapshots as a shareable query string.

Format::

    email=a%40b.c&q1=8&q2=Too+pricey&q4=Price|Results

  - the identity parameter comes first (omitted when unknown)
  - one ``q<id>`` parameter per answered question, in declaration order
  - multi-choice answers are ``|``-delimited, in the question's option order
  - empty answers are left out

Decoding is strict per question kind and drops anything that does not fit
(out-of-range scale values, unknown labels, non-numeric input), so a hand
edited link can never seed an invalid answer.
"""

from __future__ import annotations

import logging
from typing import Mapping
from urllib.parse import parse_qsl, urlencode

from surveyflow.constants import LIST_DELIMITER, QUERY_PREFIX
from surveyflow.models.answer import ChoiceSetAnswer, ScalarAnswer, TextAnswer
from surveyflow.models.question import (
    MultiChoiceQuestion,
    Question,
    ScaleQuestion,
    SingleChoiceQuestion,
    TextQuestion,
)

logger = logging.getLogger(__name__)


def param_name(qid: int) -> str:
    return f"{QUERY_PREFIX}{qid}"


def encode_value(question: Question, answer) -> str:
    """Flatten one typed answer into its query-string text."""
    if isinstance(answer, ChoiceSetAnswer):
        options = getattr(question, "options", None) or sorted(answer.values)
        return LIST_DELIMITER.join(answer.ordered(options))
    return str(answer.value)


def encode_query(graph, answers, identity: str | None = None) -> str:
    """Serialise the identity and every answered question into a query string."""
    params: list[tuple[str, str]] = []
    if identity:
        params.append((graph.identity_param, identity))
    for q in graph.answerable:
        answer = answers.get(q.id)
        if answer is None:
            continue
        text = encode_value(q, answer)
        if text == "":
            continue
        params.append((param_name(q.id), text))
    return urlencode(params)


def decode_value(question: Question, text: str):
    """Parse one query value for ``question``; None when it does not fit."""
    if isinstance(question, ScaleQuestion):
        try:
            num = int(text.strip())
        except ValueError:
            return None
        if num < question.min or num > question.max:
            return None
        return ScalarAnswer(value=num)

    if isinstance(question, SingleChoiceQuestion):
        return ScalarAnswer(value=text) if text in question.options else None

    if isinstance(question, MultiChoiceQuestion):
        labels = [p for p in text.split(LIST_DELIMITER) if p]
        if not labels or any(p not in question.options for p in labels):
            return None
        return ChoiceSetAnswer(values=frozenset(labels))

    if isinstance(question, TextQuestion):
        return TextAnswer(value=text) if text else None

    return None


def parse_params(query: str) -> dict[str, str]:
    """Parse a query string; the first occurrence of a repeated key wins."""
    params: dict[str, str] = {}
    for key, value in parse_qsl(query.lstrip("?"), keep_blank_values=True):
        params.setdefault(key, value)
    return params


def decode_answers(graph, params: Mapping[str, str]) -> dict:
    """Rebuild the typed answer map from ``q<id>`` parameters.

    Unknown ids and values that do not fit their question are discarded.
    """
    answers = {}
    for q in graph.answerable:
        text = params.get(param_name(q.id))
        if text is None:
            continue
        answer = decode_value(q, text)
        if answer is None:
            logger.debug("Discarding malformed value for %s: %r", param_name(q.id), text)
            continue
        answers[q.id] = answer
    return answers
