"""QuestionGraph and SurveyStore — typed survey definitions loaded from YAML.

A survey is an ordered list of questions.  "Next" always means the next
question in the visibility-filtered sequence, never an arbitrary jump.
:class:`QuestionGraph` validates the structural invariants once at load
time so the evaluator and controller never have to:

  - ids are unique positive integers
  - exactly one ``terminal`` question, declared last, without a predicate
  - predicates only reference an earlier question or the question itself
    (no forward references, hence no cyclic dependencies)
  - option labels never contain the list delimiter used on the wire

Usage::

    store = SurveyStore()           # defaults to the bundled surveys/
    store.load()                    # parse every *.yaml file

    graph = store.get("nps")
    first = graph.questions[0]
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, model_validator

from surveyflow.constants import DEFAULT_IDENTITY_PARAM, LIST_DELIMITER, SCORE_FIELD
from surveyflow.models.question import (
    MultiChoiceQuestion,
    Question,
    ScaleQuestion,
    SingleChoiceQuestion,
    TerminalQuestion,
    question_mapper,
)

logger = logging.getLogger(__name__)

# Surveys shipped with the package.
BUNDLED_SURVEY_DIR = Path(__file__).resolve().parent / "surveys"


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# QuestionGraph
# ---------------------------------------------------------------------------

class QuestionGraph(BaseModel):
    """The static, ordered declaration of one survey's questions.

    Attributes:
        name: short survey key (e.g. "nps"), used in URLs and the registry
        title: page title shown by the UI
        sink_type: optional ``type`` tag sent with every snapshot
        identity_param: query/payload key carrying the respondent identity
        score_question: id the ``nps_score`` pseudo-field resolves to
        score_param: legacy resume-link parameter that seeds the score question
        record_anonymous: send snapshots even when no identity is known
        questions: declaration-ordered questions, terminal last
    """

    model_config = ConfigDict(frozen=True)

    name: str
    title: Optional[str] = None
    sink_type: Optional[str] = None
    identity_param: str = DEFAULT_IDENTITY_PARAM
    score_question: Optional[int] = None
    score_param: Optional[str] = None
    record_anonymous: bool = False
    questions: List[Question]

    @model_validator(mode="after")
    def _chk(self):
        if not self.questions:
            raise ValueError(f"Survey '{self.name}' has no questions")

        seen: dict[int, int] = {}
        for pos, q in enumerate(self.questions):
            if q.id in seen:
                raise ValueError(f"Survey '{self.name}': duplicate question id {q.id}")
            seen[q.id] = pos

        terminals = [q for q in self.questions if isinstance(q, TerminalQuestion)]
        if len(terminals) != 1:
            raise ValueError(
                f"Survey '{self.name}' must declare exactly one terminal question, "
                f"found {len(terminals)}"
            )
        if not isinstance(self.questions[-1], TerminalQuestion):
            raise ValueError(f"Survey '{self.name}': terminal question must be declared last")
        if terminals[0].visibility is not None:
            raise ValueError(f"Survey '{self.name}': terminal question cannot be conditional")
        if len(self.questions) < 2:
            raise ValueError(f"Survey '{self.name}' has no answerable questions")

        if self.score_question is not None:
            score_q = next((q for q in self.questions if q.id == self.score_question), None)
            if not isinstance(score_q, ScaleQuestion):
                raise ValueError(
                    f"Survey '{self.name}': score_question {self.score_question} "
                    f"must be a scale question"
                )

        for pos, q in enumerate(self.questions):
            if isinstance(q, (SingleChoiceQuestion, MultiChoiceQuestion)):
                bad = [o for o in q.options if LIST_DELIMITER in o]
                if bad:
                    raise ValueError(
                        f"Survey '{self.name}': option labels of question {q.id} "
                        f"cannot contain {LIST_DELIMITER!r}: {bad}"
                    )
            if q.visibility is None:
                continue
            target = q.visibility.depends_on
            if target == SCORE_FIELD:
                if self.score_question is None:
                    raise ValueError(
                        f"Survey '{self.name}': question {q.id} uses {SCORE_FIELD} "
                        f"but no score_question is declared"
                    )
                target = self.score_question
            elif not isinstance(target, int):
                raise ValueError(
                    f"Survey '{self.name}': question {q.id} depends on unknown field {target!r}"
                )
            if target not in seen:
                raise ValueError(
                    f"Survey '{self.name}': question {q.id} depends on unknown question {target}"
                )
            # Self-reference is allowed (a score gating its own follow-ups);
            # anything declared later would allow a cycle.
            if seen[target] > pos:
                raise ValueError(
                    f"Survey '{self.name}': question {q.id} depends on later question {target}"
                )
        return self

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get(self, qid: int) -> Question:
        """Return the question with id ``qid``.

        Raises:
            KeyError: if the id is not declared in this graph.
        """
        for q in self.questions:
            if q.id == qid:
                return q
        raise KeyError(f"Question {qid} not found in survey '{self.name}'")

    def position(self, qid: int) -> int:
        """Declaration position of ``qid`` (0-based)."""
        for pos, q in enumerate(self.questions):
            if q.id == qid:
                return pos
        raise KeyError(f"Question {qid} not found in survey '{self.name}'")

    @property
    def terminal(self) -> TerminalQuestion:
        return self.questions[-1]

    @property
    def answerable(self) -> list[Question]:
        """All non-terminal questions in declaration order."""
        return [q for q in self.questions if not isinstance(q, TerminalQuestion)]

    def resolve_dependency(self, depends_on: int | str) -> int | None:
        """Map a predicate's ``depends_on`` to a concrete question id."""
        if depends_on == SCORE_FIELD:
            return self.score_question
        return depends_on if isinstance(depends_on, int) else None


def parse_graph(raw: dict, *, name: str | None = None) -> QuestionGraph:
    """Build a QuestionGraph from a parsed YAML mapping.

    Each question is parsed through ``question_mapper`` so an unknown
    ``kind`` fails with a message naming the survey.
    """
    survey_name = raw.get("name") or name
    questions = []
    for q_dict in raw.get("questions") or []:
        kind = q_dict.get("kind")
        cls = question_mapper.get(kind)
        if cls is None:
            raise ValueError(f"Unknown question kind '{kind}' in survey '{survey_name}'")
        questions.append(cls(**q_dict))
    fields = {k: v for k, v in raw.items() if k not in ("questions", "name")}
    return QuestionGraph(name=survey_name, questions=questions, **fields)


# ---------------------------------------------------------------------------
# SurveyStore
# ---------------------------------------------------------------------------

class SurveyStore:
    """Loads every survey YAML in a directory and provides lookup by name.

    Attributes populated after :meth:`load`:

        surveys — dict[name, QuestionGraph] in file-name order
    """

    def __init__(self, survey_dir: str | Path | None = None) -> None:
        if survey_dir is None:
            survey_dir = BUNDLED_SURVEY_DIR
        self._base = Path(survey_dir)
        self.surveys: dict[str, QuestionGraph] = {}

    def load(self) -> None:
        """Parse all ``*.yaml`` files under the survey directory.

        Call this once at startup.  Raises ``FileNotFoundError`` if the
        directory does not exist and ``ValueError`` for invalid graphs.
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Missing survey directory: {self._base}")
        for path in sorted(self._base.glob("*.yaml")):
            graph = parse_graph(load_yaml(path), name=path.stem)
            if graph.name in self.surveys:
                raise ValueError(f"Duplicate survey name '{graph.name}' in {path}")
            self.surveys[graph.name] = graph
        logger.info("SurveyStore loaded %d surveys from %s", len(self.surveys), self._base)

    def get(self, name: str) -> QuestionGraph:
        """Look up a survey by name.

        Raises:
            KeyError: if no survey with that name was loaded.
        """
        try:
            return self.surveys[name]
        except KeyError:
            raise KeyError(f"Survey '{name}' not found") from None

    def names(self) -> list[str]:
        return list(self.surveys)
