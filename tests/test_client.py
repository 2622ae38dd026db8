import json

import httpx
import pytest

from roomsync import AsyncRoomSync, RoomSync
from roomsync.errors import SessionError, TransportError
from roomsync.models.session import Server, SessionRecord


def sync_body(next_batch, rooms=None):
    return {"next_batch": next_batch, "rooms": {"join": rooms or {}}}


class FakeHomeserver:
    """httpx MockTransport handler serving /sync and /send."""

    def __init__(self, *sync_responses):
        self.sync_responses = list(sync_responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("Authorization") != "Bearer token-abc":
            return httpx.Response(401, json={"errcode": "M_UNKNOWN_TOKEN", "error": "Invalid access token"})
        if request.url.path == "/_matrix/client/v3/sync":
            return httpx.Response(200, json=self.sync_responses.pop(0))
        if "/send/m.room.message/" in request.url.path:
            return httpx.Response(200, json={"event_id": "$sent"})
        return httpx.Response(404, json={"errcode": "M_UNRECOGNIZED", "error": "Unrecognized request"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def lobby_room(make_event):
    return {
        "state": {"events": [
            make_event("$alias", type="m.room.canonical_alias", content={"alias": "#lobby:example.org"}, state_key=""),
            make_event("$name", type="m.room.name", content={"name": "Lobby"}, state_key=""),
        ]},
        "timeline": {"events": [make_event("$t1"), make_event("$t2", sender="@bob:example.org")]},
    }


@pytest.mark.asyncio
async def test_connect_runs_full_state_sync(make_event):
    server = FakeHomeserver(sync_body("b1", {"!lobby:example.org": lobby_room(make_event)}))
    client = AsyncRoomSync(transport=server.transport)
    session = await client.connect("@alice:example.org", "token-abc")

    assert session.server == Server(hostname="example.org")
    request = server.requests[0]
    assert str(request.url).startswith("https://example.org/_matrix/client/v3/sync")
    assert request.url.params["full_state"] == "true"
    assert "since" not in request.url.params
    assert session.next_batch == "b1"
    assert client.view_room("!lobby:example.org") == "Lobby"
    assert client.get_room("!lobby:example.org").display_name == "Lobby"
    await client.close()


@pytest.mark.asyncio
async def test_follow_up_sync_uses_since_token(make_event):
    server = FakeHomeserver(
        sync_body("b1", {"!lobby:example.org": lobby_room(make_event)}),
        sync_body("b2", {"!lobby:example.org": {"timeline": {"events": [make_event("$t3")]}}}),
    )
    client = AsyncRoomSync(transport=server.transport)
    await client.connect("@alice:example.org", "token-abc", "example.org:8448")
    await client.sync()

    params = server.requests[1].url.params
    assert params["since"] == "b1"
    assert params["full_state"] == "false"
    assert str(server.requests[1].url).startswith("https://example.org:8448/")
    room = client.get_room("!lobby:example.org")
    assert [e.event_id for e in room.timeline] == ["$t3", "$t2", "$t1"]
    await client.close()


@pytest.mark.asyncio
async def test_senders_shared_across_rooms(make_event):
    server = FakeHomeserver(sync_body("b1", {
        "!a:example.org": {"timeline": {"events": [make_event("$a1")]}},
        "!b:example.org": {"timeline": {"events": [make_event("$b1")]}},
    }))
    client = AsyncRoomSync(transport=server.transport)
    await client.connect("@alice:example.org", "token-abc")
    a, b = client.get_room("!a:example.org"), client.get_room("!b:example.org")
    assert a.timeline[0].sender is b.timeline[0].sender
    assert a.timeline[0].sender is client.users.resolve("@alice:example.org")
    await client.close()


@pytest.mark.asyncio
async def test_connect_replaces_session(make_event):
    server = FakeHomeserver(sync_body("b1", {"!a:example.org": {}}), sync_body("c1"))
    client = AsyncRoomSync(transport=server.transport)
    first = await client.connect("@alice:example.org", "token-abc")
    second = await client.connect("@alice:example.org", "token-abc")
    assert client.session is second
    assert second is not first
    assert second.rooms == {}
    assert server.requests[1].url.params["full_state"] == "true"
    await client.close()


@pytest.mark.asyncio
async def test_restore_from_record():
    server = FakeHomeserver(sync_body("b1"))
    client = AsyncRoomSync(transport=server.transport)
    record = {"username": "@alice:example.org", "server": "https://example.org", "token": "token-abc", "txn_id": 7}
    session = await client.restore(record)
    assert session.user_id == "@alice:example.org"
    assert session.txn_id == 7
    assert session.to_record() == SessionRecord(**record)
    await client.close()


@pytest.mark.asyncio
async def test_restore_without_record():
    client = AsyncRoomSync()
    with pytest.raises(SessionError) as exc:
        await client.restore({})
    assert exc.value.code == "no_session"


@pytest.mark.asyncio
async def test_rejected_token_raises_transport_error():
    server = FakeHomeserver()
    client = AsyncRoomSync(transport=server.transport)
    with pytest.raises(TransportError) as exc:
        await client.connect("@alice:example.org", "wrong")
    assert exc.value.status_code == 401
    assert exc.value.errcode == "M_UNKNOWN_TOKEN"
    await client.close()


@pytest.mark.asyncio
async def test_send_text_uses_transaction_ids():
    server = FakeHomeserver(sync_body("b1"))
    client = AsyncRoomSync(transport=server.transport)
    await client.connect("@alice:example.org", "token-abc")
    result = await client.send_text("!lobby:example.org", "hello")
    await client.send_text("!lobby:example.org", "again")

    assert result == {"event_id": "$sent"}
    first, second = server.requests[1], server.requests[2]
    assert first.method == "PUT"
    assert first.url.raw_path.decode().endswith("/rooms/%21lobby%3Aexample.org/send/m.room.message/0")
    assert second.url.raw_path.decode().endswith("/send/m.room.message/1")
    assert json.loads(first.content) == {"msgtype": "m.text", "body": "hello"}
    assert client.session.txn_id == 2
    await client.close()


@pytest.mark.asyncio
async def test_requires_session():
    client = AsyncRoomSync()
    assert not client.connected
    with pytest.raises(SessionError):
        await client.sync()
    with pytest.raises(SessionError):
        client.rooms()


@pytest.mark.asyncio
async def test_view_unknown_room():
    server = FakeHomeserver(sync_body("b1"))
    client = AsyncRoomSync(transport=server.transport)
    await client.connect("@alice:example.org", "token-abc")
    with pytest.raises(SessionError) as exc:
        client.view_room("!missing:example.org")
    assert exc.value.code == "unknown_room"
    await client.close()


def test_blocking_wrapper(make_event):
    server = FakeHomeserver(sync_body("b1", {"!lobby:example.org": lobby_room(make_event)}))
    client = RoomSync(transport=server.transport)
    try:
        client.connect("@alice:example.org", "token-abc")
        assert [room.room_id for room in client.rooms()] == ["!lobby:example.org"]
        assert client.view_room("!lobby:example.org") == "Lobby"
    finally:
        client.close()
