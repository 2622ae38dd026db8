"""
Event normalizer — raw wire events to typed Events.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from roomsync.errors import MalformedEventError
from roomsync.models.event import Event
from roomsync.users import UserRegistry


class EventNormalizer:
    def __init__(self, users: UserRegistry):
        self.users = users

    def normalize(self, raw: Any) -> Event:
        """Build an Event from a raw ``/sync`` event record.

        The wire calls the id ``event_id``; ``id`` is accepted too. Raises
        MalformedEventError if the id, ``type`` or ``sender`` is missing, or
        if a field has the wrong shape. ``content`` is not checked against
        ``type``.
        """
        if not isinstance(raw, Mapping):
            raise MalformedEventError(f"Event must be an object, got {type(raw).__name__}")

        event_id = raw.get("event_id", raw.get("id"))
        missing = [
            name for name, value in (("event_id", event_id), ("type", raw.get("type")), ("sender", raw.get("sender")))
            if value is None
        ]
        if missing:
            raise MalformedEventError(
                f"Event is missing required fields: {', '.join(missing)}",
                details={"event_id": event_id, "missing": missing},
            )

        sender = raw["sender"]
        if not isinstance(sender, str):
            raise MalformedEventError("Event sender must be a string", details={"event_id": event_id})

        try:
            return Event(
                event_id=event_id,
                sender=self.users.resolve(sender),
                type=raw["type"],
                content=raw.get("content") or {},
                origin_server_ts=raw.get("origin_server_ts") or 0,
                unsigned=raw.get("unsigned") or {},
                state_key=raw.get("state_key"),
            )
        except ValidationError as e:
            raise MalformedEventError(f"Invalid event {event_id!r}: {e}", details={"event_id": event_id})
