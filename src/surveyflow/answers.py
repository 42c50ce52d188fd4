"""AnswerStore — the respondent's current answers, keyed by question id.

The store is the only shared mutable resource of a session.  It is mutated
and read synchronously on the event loop; anything that runs later (an
auto-advance timer, the tail of an awaited transition) must read through
the store object rather than a copy taken when it was scheduled.

Writes are full overwrites of one key.  Nothing is ever deleted: an answer
whose question becomes hidden stays in the store and simply stops being
consulted.
"""

from __future__ import annotations

from typing import Iterator, Mapping

from surveyflow.models.answer import Answer, to_plain


class AnswerStore:
    """Mutable map of question id -> typed answer.

    ``version`` increases on every write so callers can tell whether the
    answers changed since they last looked.
    """

    def __init__(self, seed: Mapping[int, Answer] | None = None) -> None:
        self._answers: dict[int, Answer] = dict(seed or {})
        self.version = 0

    def get(self, qid: int) -> Answer | None:
        return self._answers.get(qid)

    def set(self, qid: int, answer: Answer) -> None:
        """Overwrite the answer for ``qid``."""
        self._answers[qid] = answer
        self.version += 1

    def snapshot(self) -> dict[int, Answer]:
        """Return a shallow copy of the current answers."""
        return dict(self._answers)

    def plain(self) -> dict[int, object]:
        """Current answers unwrapped into JSON-friendly values."""
        return {qid: to_plain(a) for qid, a in self._answers.items()}

    def __contains__(self, qid: object) -> bool:
        return qid in self._answers

    def __iter__(self) -> Iterator[int]:
        return iter(self._answers)

    def __len__(self) -> int:
        return len(self._answers)
