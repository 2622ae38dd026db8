"""
roomsync — client-side sync engine for Matrix-style chat servers.

Pulls incremental ``/sync`` snapshots and folds them into a local model of
rooms, their state and their timelines.
"""

from roomsync.client import AsyncRoomSync, RoomSync
from roomsync.errors import RoomSyncError, MalformedEventError, SessionError, SyncError, TransportError
from roomsync.models.event import Event, EventType
from roomsync.models.room import Room
from roomsync.models.session import Server, Session, SessionRecord
from roomsync.models.user import User
from roomsync.names import resolve_name
from roomsync.normalizer import EventNormalizer
from roomsync.projector import RoomStateProjector
from roomsync.sync import SyncEngine, SyncState
from roomsync.users import UserRegistry

__version__ = "0.1.0"
__all__ = [
    "AsyncRoomSync",
    "RoomSync",
    "RoomSyncError",
    "MalformedEventError",
    "SessionError",
    "SyncError",
    "TransportError",
    "Event",
    "EventType",
    "Room",
    "Server",
    "Session",
    "SessionRecord",
    "User",
    "UserRegistry",
    "EventNormalizer",
    "RoomStateProjector",
    "SyncEngine",
    "SyncState",
    "resolve_name",
]
