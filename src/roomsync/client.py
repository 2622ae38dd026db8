"""
AsyncRoomSync / RoomSync — main SDK clients.
"""

import asyncio
from typing import Any, Optional, Union
from urllib.parse import quote

import httpx

from roomsync.errors import SessionError
from roomsync.models.event import EventType
from roomsync.models.room import Room
from roomsync.models.session import Server, Session, SessionRecord
from roomsync.names import resolve_name
from roomsync.normalizer import EventNormalizer
from roomsync.projector import ProgressCallback, RoomStateProjector
from roomsync.sync import DEFAULT_SYNC_TIMEOUT_MS, SyncEngine
from roomsync.transport.http import DEFAULT_HTTP_TIMEOUT_S, HttpClient
from roomsync.users import UserRegistry


class AsyncRoomSync:
    """Async roomsync client (primary).

    Holds the user registry for its whole lifetime and at most one active
    session; ``connect`` or ``restore`` replaces the session.
    """

    def __init__(
        self,
        sync_timeout_ms: int = DEFAULT_SYNC_TIMEOUT_MS,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT_S,
        on_progress: Optional[ProgressCallback] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._sync_timeout_ms = sync_timeout_ms
        self._http_timeout = http_timeout
        self._transport = transport

        self.users = UserRegistry()
        self.normalizer = EventNormalizer(self.users)
        self.projector = RoomStateProjector(self.normalizer, on_progress=on_progress)

        self.session: Optional[Session] = None
        self.http: Optional[HttpClient] = None
        self._engine: Optional[SyncEngine] = None

    @property
    def connected(self) -> bool:
        return self.session is not None

    @property
    def engine(self) -> SyncEngine:
        self._ensure_session()
        return self._engine  # type: ignore[return-value]

    async def connect(
        self,
        user_id: str,
        token: str,
        server: Optional[Union[str, Server]] = None,
        *,
        txn_id: int = 0,
        initial_sync: bool = True,
    ) -> Session:
        """Start a session for ``user_id`` and run the initial full-state sync.

        Without a server hint the homeserver is taken from the user id.
        """
        if not user_id or not token:
            raise SessionError("user_id and token required.")
        if server is None:
            server = Server.from_user_id(user_id)
        elif not isinstance(server, Server):
            server = Server.parse(server)
        return await self._activate(Session(user_id, server, token, txn_id=txn_id), initial_sync)

    async def restore(self, record: Union[SessionRecord, dict[str, Any]], initial_sync: bool = True) -> Session:
        """Resume from a saved session record without re-authenticating."""
        if not record:
            raise SessionError("No saved session. Connect with explicit credentials.", code="no_session")
        return await self._activate(Session.from_record(record), initial_sync)

    async def _activate(self, session: Session, initial_sync: bool) -> Session:
        await self._teardown()
        self.http = HttpClient(session.server, token=session.token, timeout=self._http_timeout, transport=self._transport)
        self._engine = SyncEngine(self.http, self.projector, sync_timeout_ms=self._sync_timeout_ms)
        self.session = session
        if initial_sync:
            await self._engine.sync(session)
        return session

    async def sync(self) -> dict[str, Any]:
        """Run one sync, continuing from the session's since-token if it has one."""
        session = self._ensure_session()
        return await self._engine.sync(session, session.next_batch)  # type: ignore[union-attr]

    async def sync_forever(self) -> None:
        session = self._ensure_session()
        await self._engine.sync_forever(session)  # type: ignore[union-attr]

    def start(self) -> "asyncio.Task[None]":
        """Run the sync loop in the background. Stop it with ``stop()``."""
        session = self._ensure_session()
        return self._engine.start(session)  # type: ignore[union-attr]

    async def stop(self) -> None:
        if self._engine:
            await self._engine.stop()

    def rooms(self) -> list[Room]:
        return list(self._ensure_session().rooms.values())

    def get_room(self, room_id: str) -> Room:
        room = self._ensure_session().get_room(room_id)
        if room is None:
            raise SessionError(f"Unknown room {room_id!r}", code="unknown_room", details={"room_id": room_id})
        return room

    def view_room(self, room: Union[Room, str]) -> str:
        """Resolve a fresh display name for ``room`` and cache it on the room."""
        if isinstance(room, str):
            room = self.get_room(room)
        room.display_name = resolve_name(room)
        return room.display_name

    async def send_text(self, room_id: str, body: str) -> dict[str, Any]:
        """Send an ``m.text`` message, tagged with the session's next transaction id."""
        session = self._ensure_session()
        txn_id = session.next_txn_id()
        path = f"/rooms/{quote(room_id, safe='')}/send/{EventType.ROOM_MESSAGE}/{txn_id}"
        return await self.http.put(path, {"msgtype": "m.text", "body": body})  # type: ignore[union-attr]

    async def close(self) -> None:
        await self._teardown()
        self.session = None

    async def _teardown(self) -> None:
        if self._engine:
            await self._engine.stop()
            self._engine = None
        if self.http:
            await self.http.close()
            self.http = None

    def _ensure_session(self) -> Session:
        if self.session is None or self._engine is None:
            raise SessionError("Not connected. Call connect() first.", code="no_session")
        return self.session


class RoomSync:
    """Sync wrapper around AsyncRoomSync. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._async = AsyncRoomSync(**kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def session(self) -> Optional[Session]:
        return self._async.session

    @property
    def users(self) -> UserRegistry:
        return self._async.users

    def connect(self, user_id: str, token: str, server: Optional[Union[str, Server]] = None, **kwargs: Any) -> Session:
        return self._run(self._async.connect(user_id, token, server, **kwargs))

    def restore(self, record: Union[SessionRecord, dict[str, Any]], **kwargs: Any) -> Session:
        return self._run(self._async.restore(record, **kwargs))

    def sync(self) -> dict[str, Any]:
        return self._run(self._async.sync())

    def rooms(self) -> list[Room]:
        return self._async.rooms()

    def get_room(self, room_id: str) -> Room:
        return self._async.get_room(room_id)

    def view_room(self, room: Union[Room, str]) -> str:
        return self._async.view_room(room)

    def send_text(self, room_id: str, body: str) -> dict[str, Any]:
        return self._run(self._async.send_text(room_id, body))

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
