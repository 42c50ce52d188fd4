"""Answer models — a tagged union keyed by answer shape.

The store never holds untyped values: every recorded answer is one of

  - ScalarAnswer: a single number or label (``scale``, ``single_choice``)
  - ChoiceSetAnswer: an order-irrelevant set of labels (``multi_choice``)
  - TextAnswer: free text (``text``)

so the visibility evaluator can dispatch on ``kind`` instead of guessing
whether a value is a list or a scalar.  :func:`answer_for` converts a raw
value into the variant appropriate for a question.
"""

from __future__ import annotations

from typing import Annotated, Any, Iterable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from surveyflow.models.question import (
    MultiChoiceQuestion,
    ScaleQuestion,
    SingleChoiceQuestion,
    TextQuestion,
)


class ScalarAnswer(BaseModel):
    """A single number (scale) or label (single choice)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["scalar"] = "scalar"
    value: Union[int, float, str]

    def is_present(self) -> bool:
        return self.value != ""

    def as_text(self) -> str:
        return str(self.value)


class ChoiceSetAnswer(BaseModel):
    """A set of labels picked on a multi-choice question."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["choice_set"] = "choice_set"
    values: frozenset[str] = frozenset()

    def is_present(self) -> bool:
        return bool(self.values)

    def ordered(self, options: Iterable[str]) -> list[str]:
        """Return the picked labels in the question's option order."""
        return [o for o in options if o in self.values]


class TextAnswer(BaseModel):
    """Free text typed by the respondent."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    value: str = ""

    def is_present(self) -> bool:
        return self.value != ""

    def as_text(self) -> str:
        return self.value


Answer = Annotated[
    Union[ScalarAnswer, ChoiceSetAnswer, TextAnswer],
    Field(discriminator="kind"),
]


def answer_for(question: Any, raw: Any) -> ScalarAnswer | ChoiceSetAnswer | TextAnswer:
    """Build the typed answer for ``question`` from a raw value.

    Only values the question can actually offer are accepted: whole numbers
    inside the scale's range and labels from its ``options``.

    Raises:
        ValueError: if the raw value has the wrong shape for the question
            kind, is not one of its values, or the question is not
            answerable (terminal).
    """
    if isinstance(question, ScaleQuestion):
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ValueError(f"Question {question.id} expects a number, got {raw!r}")
        if isinstance(raw, float):
            if not raw.is_integer():
                raise ValueError(f"Question {question.id} expects a whole number, got {raw!r}")
            raw = int(raw)
        if raw < question.min or raw > question.max:
            raise ValueError(
                f"Question {question.id} expects a value between "
                f"{question.min} and {question.max}, got {raw!r}"
            )
        return ScalarAnswer(value=raw)

    if isinstance(question, SingleChoiceQuestion):
        if not isinstance(raw, str):
            raise ValueError(f"Question {question.id} expects a label, got {raw!r}")
        if raw not in question.options:
            raise ValueError(f"Question {question.id} has no option {raw!r}")
        return ScalarAnswer(value=raw)

    if isinstance(question, MultiChoiceQuestion):
        if isinstance(raw, str) or not isinstance(raw, (list, tuple, set, frozenset)):
            raise ValueError(f"Question {question.id} expects a list of labels, got {raw!r}")
        if not all(isinstance(v, str) for v in raw):
            raise ValueError(f"Question {question.id} expects string labels, got {raw!r}")
        unknown = sorted(v for v in raw if v not in question.options)
        if unknown:
            raise ValueError(f"Question {question.id} has no options {unknown!r}")
        return ChoiceSetAnswer(values=frozenset(raw))

    if isinstance(question, TextQuestion):
        if not isinstance(raw, str):
            raise ValueError(f"Question {question.id} expects text, got {raw!r}")
        return TextAnswer(value=raw)

    raise ValueError(f"Question {question.id} ({question.kind}) does not take answers")


def to_plain(answer: ScalarAnswer | ChoiceSetAnswer | TextAnswer) -> Any:
    """Unwrap a typed answer into a JSON-friendly value."""
    if isinstance(answer, ChoiceSetAnswer):
        return sorted(answer.values)
    return answer.value
