"""
Room state projector — folds a joined room's sync payload into its logs.

Events arrive oldest-first; each folded event is pushed onto the head of its
log, so after a payload the head is the most recent event. Nothing is
deduplicated: folding the same payload twice stores every event twice.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional

from roomsync.errors import MalformedEventError
from roomsync.models.event import Event, EventType
from roomsync.models.room import Room
from roomsync.models.session import Session
from roomsync.normalizer import EventNormalizer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def count_events(payload: Any) -> int:
    """Number of state and timeline events in a room payload; malformed sections count as zero."""
    if not isinstance(payload, Mapping):
        return 0
    total = 0
    for section in ("state", "timeline"):
        body = payload.get(section)
        events = body.get("events") if isinstance(body, Mapping) else None
        if isinstance(events, list):
            total += len(events)
    return total


def _section_events(payload: Mapping[str, Any], section: str) -> list[Any]:
    body = payload.get(section) or {}
    if not isinstance(body, Mapping):
        raise MalformedEventError(f"{section} must be an object")
    events = body.get("events") or []
    if not isinstance(events, list):
        raise MalformedEventError(f"{section}.events must be a list")
    return events


class FoldProgress:
    """Counts folded events against a total fixed up front, across one or more rooms."""

    def __init__(self, total: int, callback: Optional[ProgressCallback] = None):
        self.total = total
        self.count = 0
        self._callback = callback

    def advance(self, room_id: str) -> None:
        self.count += 1
        logger.debug("%s: folded %d/%d events", room_id, self.count, self.total)
        if self._callback:
            self._callback(self.count, self.total)


class RoomStateProjector:
    def __init__(self, normalizer: EventNormalizer, on_progress: Optional[ProgressCallback] = None):
        self._normalizer = normalizer
        self.on_progress = on_progress

    def start_progress(self, total: int) -> FoldProgress:
        return FoldProgress(total, self.on_progress)

    def apply(
        self,
        session: Session,
        room_id: str,
        payload: Mapping[str, Any],
        progress: Optional[FoldProgress] = None,
    ) -> Room:
        """Fold ``payload`` (``state.events`` then ``timeline.events``) into the room.

        The room is created if unseen. Every event is normalized before any
        is folded; a MalformedEventError leaves both logs untouched. Without a
        shared ``progress``, the count runs over this payload alone.
        """
        if not isinstance(payload, Mapping):
            raise MalformedEventError("Room payload must be an object", details={"room_id": room_id})
        room = session.get_or_create_room(room_id)
        try:
            state = [self._normalizer.normalize(raw) for raw in _section_events(payload, "state")]
            timeline = [self._normalizer.normalize(raw) for raw in _section_events(payload, "timeline")]
        except MalformedEventError as e:
            e.details = {**(e.details or {}), "room_id": room_id}
            raise

        if progress is None:
            progress = self.start_progress(len(state) + len(timeline))
        for event in state:
            room.push_state(event)
            self._record_member(room, event)
            progress.advance(room_id)
        for event in timeline:
            room.push_timeline(event)
            self._record_member(room, event)
            progress.advance(room_id)
        return room

    def _record_member(self, room: Room, event: Event) -> None:
        if event.type != EventType.ROOM_MEMBER or event.state_key is None:
            return
        displayname = event.content.get("displayname")
        if not isinstance(displayname, str) or not displayname:
            return
        user = self._normalizer.users.resolve(event.state_key)
        user.room_names[room.room_id] = displayname

