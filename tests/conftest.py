"""Shared fixtures: a registry, normalizer, projector and an empty session."""

from typing import Any, Optional

import pytest

from roomsync.models.session import Server, Session
from roomsync.normalizer import EventNormalizer
from roomsync.projector import RoomStateProjector
from roomsync.users import UserRegistry


def raw_event(
    event_id: str,
    type: str = "m.room.message",
    content: Optional[dict[str, Any]] = None,
    sender: str = "@alice:example.org",
    ts: int = 1,
    **extra: Any,
) -> dict[str, Any]:
    event = {
        "event_id": event_id,
        "type": type,
        "content": content if content is not None else {"msgtype": "m.text", "body": event_id},
        "sender": sender,
        "origin_server_ts": ts,
        "unsigned": {},
    }
    event.update(extra)
    return event


def room_payload(state: Optional[list] = None, timeline: Optional[list] = None) -> dict[str, Any]:
    return {"state": {"events": state or []}, "timeline": {"events": timeline or []}}


@pytest.fixture
def make_event():
    return raw_event


@pytest.fixture
def make_payload():
    return room_payload


@pytest.fixture
def users() -> UserRegistry:
    return UserRegistry()


@pytest.fixture
def normalizer(users: UserRegistry) -> EventNormalizer:
    return EventNormalizer(users)


@pytest.fixture
def projector(normalizer: EventNormalizer) -> RoomStateProjector:
    return RoomStateProjector(normalizer)


@pytest.fixture
def session() -> Session:
    return Session("@alice:example.org", Server(hostname="example.org"), "token-abc")
