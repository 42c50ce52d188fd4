"""Question models for survey graphs.

Each question kind maps to a specific UI component and answer shape:

  Answerable (shown to the respondent):
    - scale: numeric scale with min/max and end labels (e.g. 0-10 NPS)
    - single_choice: pick one labelled option
    - multi_choice: pick one or more labelled options
    - text: open-ended text input

  Closing screen:
    - terminal: heading/body shown once the flow is complete

Any question may carry a ``visibility`` predicate that gates it on an
earlier answer.  A question without a predicate is always visible.

The discriminated ``Question`` union uses ``kind`` as its discriminator.
The ``question_mapper`` dict maps kind strings to their Pydantic classes.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Spelled-out aliases accepted in YAML for the numeric comparison operators.
_OP_ALIASES = {">=": "ge", "<=": "le"}


# --- Visibility predicate ---

class VisibilityPredicate(BaseModel):
    """A condition that references an earlier answer.

    ``depends_on`` is a question id, or the ``nps_score`` pseudo-field which
    resolves to the graph's designated score question.

    Operators:
      - between: value is [min, max] inclusive
      - ge, le: numeric comparisons (``>=`` / ``<=`` accepted)
      - equals_one_of: exact string match against a list of labels
      - includes_any: a multi-choice answer shares at least one label
    """

    model_config = ConfigDict(frozen=True)

    depends_on: Union[int, str]
    op: Literal["between", "ge", "le", "equals_one_of", "includes_any"]
    value: Any

    @field_validator("op", mode="before")
    @classmethod
    def _normalize_op(cls, v):
        return _OP_ALIASES.get(v, v)

    @model_validator(mode="after")
    def _chk(self):
        if self.op == "between":
            if not isinstance(self.value, (list, tuple)) or len(self.value) != 2:
                raise ValueError("between expects [min, max]")
            lo, hi = self.value
            if float(lo) > float(hi):
                raise ValueError("between expects min <= max")
        elif self.op in ("ge", "le"):
            if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
                raise ValueError(f"{self.op} expects a number")
        else:
            if not isinstance(self.value, (list, tuple)) or not self.value:
                raise ValueError(f"{self.op} expects a non-empty list of labels")
            if not all(isinstance(v, str) for v in self.value):
                raise ValueError(f"{self.op} expects string labels")
        return self


# --- Base question type ---

class BaseQuestion(BaseModel):
    """Fields shared by all question kinds."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0)
    question: str = ""
    subtitle: Optional[str] = None
    description: Optional[str] = None
    visibility: Optional[VisibilityPredicate] = None
    # Fixed field name used in sink payloads; defaults to ``q<id>``.
    field: Optional[str] = None

    @property
    def sink_field(self) -> str:
        return self.field or f"q{self.id}"

    @property
    def is_terminal(self) -> bool:
        return self.kind == "terminal"


# --- Answerable kinds ---

class ScaleQuestion(BaseQuestion):
    """Numeric scale, e.g. 0-10 likelihood to recommend."""

    kind: Literal["scale"] = "scale"
    min: int = 0
    max: int = 10
    min_label: Optional[str] = None
    max_label: Optional[str] = None

    @model_validator(mode="after")
    def _chk(self):
        if self.min >= self.max:
            raise ValueError("min must be < max")
        return self

    @property
    def values(self) -> range:
        return range(self.min, self.max + 1)


class SingleChoiceQuestion(BaseQuestion):
    """Pick exactly one labelled option."""

    kind: Literal["single_choice"] = "single_choice"
    options: List[str] = Field(min_length=1)


class MultiChoiceQuestion(BaseQuestion):
    """Pick one or more labelled options."""

    kind: Literal["multi_choice"] = "multi_choice"
    options: List[str] = Field(min_length=1)


class TextQuestion(BaseQuestion):
    """Open-ended text input."""

    kind: Literal["text"] = "text"
    placeholder: Optional[str] = None


# --- Closing screen ---

class TerminalQuestion(BaseQuestion):
    """Thank-you screen shown once the flow completes; never answered."""

    kind: Literal["terminal"] = "terminal"
    heading: str = ""
    body: str = ""
    image: Optional[str] = None


# --- Discriminated union of all question kinds ---

Question = Annotated[
    Union[
        ScaleQuestion,
        SingleChoiceQuestion,
        MultiChoiceQuestion,
        TextQuestion,
        TerminalQuestion,
    ],
    Field(discriminator="kind"),
]

# Maps kind string -> Pydantic class for dynamic deserialization from YAML.
question_mapper = {
    "scale": ScaleQuestion,
    "single_choice": SingleChoiceQuestion,
    "multi_choice": MultiChoiceQuestion,
    "text": TextQuestion,
    "terminal": TerminalQuestion,
}
