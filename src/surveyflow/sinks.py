"""Snapshot sink implementations.

  - HttpSnapshotSink: POSTs each snapshot as JSON with httpx
  - LoggingSnapshotSink: logs snapshots (local development, no endpoint)
  - MemorySnapshotSink: keeps snapshots in memory, upserting by sessionId
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from surveyflow.constants import SINK_TIMEOUT
from surveyflow.interfaces import SnapshotSink

logger = logging.getLogger(__name__)


class HttpSnapshotSink(SnapshotSink):
    """Async HTTP sink — one POST per snapshot, no retries.

    The client is created lazily and reused; call :meth:`aclose` on
    shutdown.  Non-2xx responses raise ``httpx.HTTPStatusError``, which the
    recorder logs and swallows.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = SINK_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._client = client

    async def send(self, payload: dict) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        resp = await self._client.post(self._url, json=payload)
        resp.raise_for_status()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class LoggingSnapshotSink(SnapshotSink):
    """Logs every snapshot at INFO level instead of sending it anywhere."""

    async def send(self, payload: dict) -> None:
        logger.info("Snapshot %s: %s", payload.get("sessionId"), payload)


class MemorySnapshotSink(SnapshotSink):
    """Upserts snapshots into a dict keyed by ``sessionId``.

    ``calls`` keeps every payload in arrival order.
    """

    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}
        self.calls: list[dict] = []

    async def send(self, payload: dict) -> None:
        self.calls.append(dict(payload))
        self.rows[payload["sessionId"]] = dict(payload)
