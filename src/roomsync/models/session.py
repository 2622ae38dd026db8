"""
Session models: one authenticated connection and the rooms it has seen.
"""

from typing import Any, Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

from roomsync.errors import SessionError
from roomsync.models.room import Room


class Server(BaseModel):
    model_config = ConfigDict(frozen=True)

    hostname: str
    port: int = 443
    scheme: str = "https"

    @property
    def base_url(self) -> str:
        default_port = 443 if self.scheme == "https" else 80
        if self.port == default_port:
            return f"{self.scheme}://{self.hostname}"
        return f"{self.scheme}://{self.hostname}:{self.port}"

    @classmethod
    def parse(cls, hint: str) -> "Server":
        """Parse ``host``, ``host:port`` or ``http(s)://host[:port]``."""
        hint = hint.strip()
        if "://" in hint:
            parts = urlsplit(hint)
            scheme = parts.scheme or "https"
            if not parts.hostname:
                raise SessionError(f"Invalid server: {hint!r}")
            try:
                port = parts.port
            except ValueError:
                raise SessionError(f"Invalid server port: {hint!r}")
            return cls(hostname=parts.hostname, port=port or (443 if scheme == "https" else 80), scheme=scheme)
        host, sep, port = hint.rpartition(":")
        if sep and port.isdigit():
            if not host:
                raise SessionError(f"Invalid server: {hint!r}")
            return cls(hostname=host, port=int(port))
        if not hint:
            raise SessionError("Server hint is empty")
        return cls(hostname=hint)

    @classmethod
    def from_user_id(cls, user_id: str) -> "Server":
        """Derive the server from a ``@localpart:server`` user id."""
        _, sep, server = user_id.partition(":")
        if not user_id.startswith("@") or not sep or not server:
            raise SessionError(f"Cannot derive server from user id {user_id!r}")
        return cls.parse(server)

    def __str__(self) -> str:
        return self.base_url


class SessionRecord(BaseModel):
    """Bootstrap record kept by a persistence collaborator."""

    username: str
    server: str
    token: str
    txn_id: int = 0


class Session:
    def __init__(self, user_id: str, server: Server, token: str, txn_id: int = 0):
        self.user_id = user_id
        self.server = server
        self.token = token
        self._txn_id = txn_id
        self.next_batch: Optional[str] = None
        self.rooms: dict[str, Room] = {}

    @property
    def txn_id(self) -> int:
        return self._txn_id

    def next_txn_id(self) -> int:
        """Return a fresh transaction id for an outgoing write request."""
        txn_id = self._txn_id
        self._txn_id += 1
        return txn_id

    def get_room(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)

    def get_or_create_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            room = Room(room_id)
            self.rooms[room_id] = room
        return room

    @classmethod
    def from_record(cls, record: Union[SessionRecord, dict[str, Any]]) -> "Session":
        if not isinstance(record, SessionRecord):
            record = SessionRecord.model_validate(record)
        return cls(
            user_id=record.username,
            server=Server.parse(record.server),
            token=record.token,
            txn_id=record.txn_id,
        )

    def to_record(self) -> SessionRecord:
        return SessionRecord(
            username=self.user_id,
            server=self.server.base_url,
            token=self.token,
            txn_id=self._txn_id,
        )

    def __repr__(self) -> str:
        return f"Session(user_id={self.user_id!r}, server={self.server.base_url!r}, rooms={len(self.rooms)})"
