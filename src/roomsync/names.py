"""
Room display names derived from folded state.

Supported precedence: ``m.room.name``, then ``m.room.canonical_alias``, then
the room id. The member-list ("heroes") fallbacks of the full protocol are not
implemented.
"""

from typing import Optional

from roomsync.models.event import EventType
from roomsync.models.room import Room


def _latest(room: Room, event_type: str, field: str) -> Optional[str]:
    # The newest event of a type wins even when it clears the value.
    for event in room.state:
        if event.type == event_type:
            value = event.content.get(field)
            return value if isinstance(value, str) and value else None
    return None


def resolve_name(room: Room) -> str:
    """Compute the room's display name. Scans the state log on every call."""
    return (
        _latest(room, EventType.ROOM_NAME, "name")
        or _latest(room, EventType.ROOM_CANONICAL_ALIAS, "alias")
        or room.room_id
    )
