"""Public model re-exports for surveyflow.

Consumers should import from ``surveyflow.models`` rather than reaching
into sub-modules directly.
"""

# --- Questions ---
from surveyflow.models.question import (
    BaseQuestion,
    MultiChoiceQuestion,
    Question,
    ScaleQuestion,
    SingleChoiceQuestion,
    TerminalQuestion,
    TextQuestion,
    VisibilityPredicate,
    question_mapper,
)

# --- Answers ---
from surveyflow.models.answer import (
    Answer,
    ChoiceSetAnswer,
    ScalarAnswer,
    TextAnswer,
    answer_for,
    to_plain,
)

# --- Session / step ---
from surveyflow.models.session import (
    PrefillRecord,
    Progress,
    QuestionPayload,
    SessionInfo,
    StepView,
    TerminalContent,
)

__all__ = [
    # Questions
    "BaseQuestion",
    "MultiChoiceQuestion",
    "Question",
    "ScaleQuestion",
    "SingleChoiceQuestion",
    "TerminalQuestion",
    "TextQuestion",
    "VisibilityPredicate",
    "question_mapper",
    # Answers
    "Answer",
    "ChoiceSetAnswer",
    "ScalarAnswer",
    "TextAnswer",
    "answer_for",
    "to_plain",
    # Session
    "PrefillRecord",
    "Progress",
    "QuestionPayload",
    "SessionInfo",
    "StepView",
    "TerminalContent",
]
