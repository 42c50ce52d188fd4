"""SessionRecorder — persists the full answer snapshot on every trigger.

One correlation id is generated per visit.  Every trigger (start with a
known identity, each accepted answer, each accepted forward submit) sends
the *whole* current snapshot, never a delta, so the sink can upsert by
``sessionId`` and a later snapshot always carries every field collected so
far.

Payload shape::

    {
        "type": "nps",              # only when the graph sets sink_type
        "sessionId": "<correlation id>",
        "email": "<identity>",      # key is graph.identity_param
        "nps": "8",                 # one key per fixed field name
        "response": "…",
    }

Field values are strings; unanswered questions send ``""``.  A question that
is hidden later keeps sending its stored answer, so no snapshot blanks a
field collected earlier.  Visibility only matters when several questions
share a field (``response`` in the NPS survey): the visible one supplies
the value.

Sink delivery is fire-and-forget: it runs as a background task, deliveries
go out in trigger order, and failures are logged and swallowed.  The
address bar is updated synchronously on every trigger.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import Counter

from surveyflow.evaluator import VisibilityEvaluator
from surveyflow.interfaces import AddressBar, SnapshotSink
from surveyflow.models.session import SessionInfo
from surveyflow.urlstate import encode_query, encode_value

logger = logging.getLogger(__name__)


def new_correlation_id() -> str:
    """Opaque token identifying one visit."""
    return uuid.uuid4().hex


class SessionRecorder:
    """Sends answer snapshots to the sink and mirrors them in the address bar.

    Args:
        graph: the survey's :class:`~surveyflow.graph.QuestionGraph`
        identity: respondent identity from the resume link, if any
        sink: snapshot sink; None disables outbound delivery
        address_bar: shareable-link state; None disables it
        correlation_id: override the generated id (tests, replays)
    """

    def __init__(
        self,
        graph,
        *,
        identity: str | None = None,
        sink: SnapshotSink | None = None,
        address_bar: AddressBar | None = None,
        correlation_id: str | None = None,
        evaluator: VisibilityEvaluator | None = None,
    ) -> None:
        self._graph = graph
        self.identity = identity
        self.correlation_id = correlation_id or new_correlation_id()
        self._sink = sink
        self._address_bar = address_bar
        self._evaluator = evaluator or VisibilityEvaluator()
        counts = Counter(q.sink_field for q in graph.answerable)
        self._shared_fields = {name for name, n in counts.items() if n > 1}
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()
        self.sent = 0
        self.failed = 0

    @property
    def session(self) -> SessionInfo:
        return SessionInfo(
            correlation_id=self.correlation_id,
            identity=self.identity,
            survey=self._graph.name,
        )

    @property
    def delivers(self) -> bool:
        """True when snapshots reach the sink for this session."""
        if self._sink is None:
            return False
        return bool(self.identity) or self._graph.record_anonymous

    # ------------------------------------------------------------------
    # Snapshot building
    # ------------------------------------------------------------------

    def build_payload(self, answers) -> dict:
        """Build the full snapshot payload from the current answers."""
        payload: dict[str, str] = {}
        if self._graph.sink_type:
            payload["type"] = self._graph.sink_type
        payload["sessionId"] = self.correlation_id
        payload[self._graph.identity_param] = self.identity or ""

        visible_ids = set()
        if self._shared_fields:
            visible_ids = {q.id for q in self._evaluator.visible_questions(self._graph, answers)}
        for q in self._graph.answerable:
            name = q.sink_field
            payload.setdefault(name, "")
            if payload[name]:
                continue
            if name in self._shared_fields and q.id not in visible_ids:
                continue
            answer = answers.get(q.id)
            if answer is not None:
                payload[name] = encode_value(q, answer)
        return payload

    def query(self, answers) -> str:
        return encode_query(self._graph, answers, self.identity)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def sync_address(self, answers) -> None:
        """Mirror the answers in the address bar without touching the sink."""
        if self._address_bar is not None:
            self._address_bar.replace(self.query(answers))

    def record(self, answers) -> asyncio.Task | None:
        """Update the address bar and fire one snapshot at the sink.

        Returns the delivery task (or None when delivery is disabled) so
        callers may await it; nothing in the flow ever does.
        """
        self.sync_address(answers)
        if not self.delivers:
            return None
        payload = self.build_payload(answers)
        task = asyncio.ensure_future(self._deliver(payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(self, payload: dict) -> None:
        # The lock is FIFO, so snapshots reach the sink in trigger order
        # and an older snapshot can never overwrite a newer one.
        async with self._lock:
            try:
                await self._sink.send(payload)
                self.sent += 1
            except Exception as exc:
                self.failed += 1
                logger.warning(
                    "Snapshot delivery failed for session %s: %s",
                    self.correlation_id, exc,
                )

    async def flush(self) -> None:
        """Wait until every pending delivery has finished."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)
