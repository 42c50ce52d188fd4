"""SessionRegistry — live orchestrators keyed by correlation id.

Sessions live only as long as the process.  When the registry is full the
oldest session is closed and dropped to make room.
"""

from __future__ import annotations

import logging
from collections import OrderedDict

from surveyflow.orchestrator import SurveyOrchestrator

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Bounded, insertion-ordered map of session id -> orchestrator."""

    def __init__(self, capacity: int = 1000) -> None:
        if capacity < 1:
            raise ValueError("Session registry capacity must be at least 1")
        self._capacity = capacity
        self._sessions: OrderedDict[str, SurveyOrchestrator] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    async def add(self, orchestrator: SurveyOrchestrator) -> None:
        """Register a session, evicting the oldest ones past capacity."""
        session_id = orchestrator.correlation_id
        if session_id in self._sessions:
            raise ValueError(f"Session already exists: {session_id}")
        self._sessions[session_id] = orchestrator
        while len(self._sessions) > self._capacity:
            old_id, old = self._sessions.popitem(last=False)
            logger.info("Evicting session %s (registry full)", old_id)
            await old.close()

    def get(self, session_id: str) -> SurveyOrchestrator:
        """Return the live session.

        Raises:
            ValueError: if no such session is registered.
        """
        try:
            return self._sessions[session_id]
        except KeyError:
            raise ValueError(f"Session not found: {session_id}") from None

    async def remove(self, session_id: str) -> None:
        """Close and drop one session."""
        orchestrator = self.get(session_id)
        del self._sessions[session_id]
        await orchestrator.close()

    async def close_all(self) -> None:
        while self._sessions:
            _, orchestrator = self._sessions.popitem(last=False)
            await orchestrator.close()
