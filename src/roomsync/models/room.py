"""
Room model.
"""

from collections import deque
from typing import Optional

from roomsync.models.event import Event


class Room:
    """A joined room. Both logs are newest-first and only ever grow at the head."""

    __slots__ = ("room_id", "state", "timeline", "display_name")

    def __init__(self, room_id: str):
        self.room_id = room_id
        self.state: deque[Event] = deque()
        self.timeline: deque[Event] = deque()
        self.display_name: Optional[str] = None

    def push_state(self, event: Event) -> None:
        self.state.appendleft(event)

    def push_timeline(self, event: Event) -> None:
        self.timeline.appendleft(event)

    def __repr__(self) -> str:
        return f"Room(room_id={self.room_id!r}, state={len(self.state)}, timeline={len(self.timeline)})"
