from roomsync.models.event import Event, EventType
from roomsync.models.room import Room
from roomsync.models.session import Server, Session, SessionRecord
from roomsync.models.user import User

__all__ = ["Event", "EventType", "Room", "Server", "Session", "SessionRecord", "User"]
