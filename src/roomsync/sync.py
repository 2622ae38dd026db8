"""
Sync engine — the ``/sync`` request/response cycle.

One request is in flight at a time. The engine moves through
idle -> awaiting_response -> applying -> idle on every call to ``sync``;
``sync_forever`` re-enters that cycle with the since-token the previous
response returned.
"""

import asyncio
import contextlib
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional, Protocol

from roomsync.errors import SyncError, TransportError
from roomsync.models.room import Room
from roomsync.models.session import Session
from roomsync.projector import RoomStateProjector, count_events

logger = logging.getLogger(__name__)

SYNC_PATH = "/sync"
DEFAULT_SYNC_TIMEOUT_MS = 30000


class SyncTransport(Protocol):
    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any: ...


class SyncState(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    APPLYING = "applying"


class SyncEngine:
    def __init__(
        self,
        http: SyncTransport,
        projector: RoomStateProjector,
        sync_timeout_ms: int = DEFAULT_SYNC_TIMEOUT_MS,
    ):
        self._http = http
        self._projector = projector
        self._sync_timeout_ms = sync_timeout_ms
        self._state = SyncState.IDLE
        self._running = False
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    @staticmethod
    def build_request(since: Optional[str]) -> dict[str, Any]:
        """Request parameters: full state exactly when there is no since-token."""
        request: dict[str, Any] = {"full_state": since is None}
        if since is not None:
            request["since"] = since
        return request

    async def sync(self, session: Session, since: Optional[str] = None, timeout_ms: Optional[int] = None) -> dict[str, Any]:
        """Run one sync and fold its joined rooms into ``session``.

        Returns the decoded response. Transport and malformed-event errors
        propagate; ``session.next_batch`` only advances once every room has
        been folded.
        """
        if self._state is not SyncState.IDLE:
            raise SyncError(f"A sync is already in progress ({self._state.value})")

        params = self.build_request(since)
        if timeout_ms is not None:
            params["timeout"] = timeout_ms

        self._state = SyncState.AWAITING_RESPONSE
        try:
            response = await self._http.get(SYNC_PATH, params=params)
            self._state = SyncState.APPLYING
            rooms = self.apply_response(session, response)
        finally:
            self._state = SyncState.IDLE

        logger.info("Sync complete for %s: %d joined rooms updated", session.user_id, len(rooms))
        return response

    def apply_response(self, session: Session, response: Any) -> list[Room]:
        """Fold ``rooms.join`` of a decoded sync response. Other sections are ignored."""
        if not isinstance(response, Mapping):
            raise TransportError(f"Sync response must be an object, got {type(response).__name__}")

        rooms_section = response.get("rooms") or {}
        joined = (rooms_section.get("join") or {}) if isinstance(rooms_section, Mapping) else {}
        if not isinstance(joined, Mapping):
            raise TransportError(f"rooms.join must be an object, got {type(joined).__name__}")

        # One counter across every joined room of this response.
        progress = self._projector.start_progress(sum(count_events(payload) for payload in joined.values()))
        rooms = [
            self._projector.apply(session, room_id, payload, progress=progress)
            for room_id, payload in joined.items()
        ]

        next_batch = response.get("next_batch")
        if isinstance(next_batch, str) and next_batch:
            session.next_batch = next_batch
        return rooms

    async def sync_forever(self, session: Session) -> None:
        """Keep syncing with the latest since-token until ``stop`` is called.

        The bootstrap request (no since-token yet) is not long-polled.
        """
        self._running = True
        logger.info("Starting sync loop for %s", session.user_id)
        try:
            while self._running:
                timeout_ms = self._sync_timeout_ms if session.next_batch else None
                await self.sync(session, session.next_batch, timeout_ms=timeout_ms)
        finally:
            self._running = False
            logger.info("Sync loop for %s stopped", session.user_id)

    def start(self, session: Session) -> "asyncio.Task[None]":
        """Run ``sync_forever`` as a task on the running loop."""
        if self._task is not None and not self._task.done():
            raise SyncError("Sync loop is already running")
        self._task = asyncio.get_running_loop().create_task(self.sync_forever(session))
        return self._task

    async def stop(self) -> None:
        """Stop the sync loop, cancelling any in-flight request."""
        self._running = False
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
