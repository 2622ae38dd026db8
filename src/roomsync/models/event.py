"""
Typed event model — Matrix client-server event format.

``Event.content`` stays an open dict so unknown event types pass through
untouched; the content models below are typed views for the types this
library understands.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from roomsync.models.user import User


class EventType:
    ROOM_NAME = "m.room.name"
    ROOM_CANONICAL_ALIAS = "m.room.canonical_alias"
    ROOM_MEMBER = "m.room.member"
    ROOM_TOPIC = "m.room.topic"
    ROOM_CREATE = "m.room.create"
    ROOM_MESSAGE = "m.room.message"


class RoomNameContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""


class CanonicalAliasContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    alias: Optional[str] = None
    alt_aliases: list[str] = Field(default_factory=list)


class TopicContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    topic: str = ""


class MemberContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    membership: str
    displayname: Optional[str] = None
    avatar_url: Optional[str] = None
    reason: Optional[str] = None


class MessageContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    body: str = ""
    msgtype: str = "m.text"
    format: Optional[str] = None
    formatted_body: Optional[str] = None


CONTENT_MODELS: dict[str, type[BaseModel]] = {
    EventType.ROOM_NAME: RoomNameContent,
    EventType.ROOM_CANONICAL_ALIAS: CanonicalAliasContent,
    EventType.ROOM_TOPIC: TopicContent,
    EventType.ROOM_MEMBER: MemberContent,
    EventType.ROOM_MESSAGE: MessageContent,
}


class Event(BaseModel):
    """A normalized room event. Immutable once built."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    event_id: str
    sender: User
    type: str
    content: dict[str, Any] = Field(default_factory=dict)
    origin_server_ts: int = 0
    unsigned: dict[str, Any] = Field(default_factory=dict)
    state_key: Optional[str] = None  # carried for callers; folding ignores it

    @property
    def is_state(self) -> bool:
        return self.state_key is not None

    def typed_content(self) -> Optional[BaseModel]:
        """Parse ``content`` with the model registered for this event type.

        Returns None for types without a model. Raises pydantic's
        ValidationError if a known type carries content of the wrong shape.
        """
        model = CONTENT_MODELS.get(self.type)
        if model is None:
            return None
        return model.model_validate(self.content)

    def __repr__(self) -> str:
        return f"Event(event_id={self.event_id!r}, type={self.type!r}, sender={self.sender.user_id!r})"
