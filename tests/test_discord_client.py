import json

import httpx
import pytest

from clocktower.application.errors import PlatformError
from clocktower.domain.models import RoomKind
from clocktower.infrastructure.discord_client import DiscordRestClient
from clocktower.infrastructure.voice_state_cache import VoiceStateCache


pytestmark = pytest.mark.anyio


def make_client(handler, voice_states=None) -> DiscordRestClient:
    return DiscordRestClient(
        "secret",
        voice_states or VoiceStateCache(),
        base_url="https://discord.test/api",
        transport=httpx.MockTransport(handler),
    )


async def test_list_rooms_maps_channel_types():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/guilds/g1/channels"
        assert request.headers["Authorization"] == "Bot secret"
        return httpx.Response(
            200,
            json=[
                {"id": "1", "name": "Night Phase", "type": 4, "position": 2},
                {"id": "2", "name": "Cottage", "type": 2, "parent_id": "1", "position": 7},
                {"id": "3", "name": "Stage", "type": 13, "parent_id": "1"},
                {"id": "4", "name": "chat", "type": 0, "parent_id": None},
            ],
        )

    client = make_client(handler)
    rooms = await client.list_rooms("g1")
    await client.aclose()

    assert [room.kind for room in rooms] == [
        RoomKind.CATEGORY,
        RoomKind.VOICE,
        RoomKind.OTHER,
        RoomKind.OTHER,
    ]
    assert rooms[0].parent_id is None
    assert rooms[1].parent_id == "1"
    assert rooms[1].position == 7
    assert rooms[2].position == 0


async def test_list_roles_and_members():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/roles"):
            return httpx.Response(200, json=[{"id": 10, "name": "Storyteller"}])
        assert request.url.params["limit"] == "2"
        assert request.url.params["after"] == "5"
        return httpx.Response(
            200,
            json=[
                {"user": {"id": "6", "username": "six"}, "roles": ["10"], "nick": "Six"},
                {"user": {"id": "7", "username": "seven"}, "roles": []},
            ],
        )

    client = make_client(handler)
    roles = await client.list_roles("g1")
    members = await client.list_members("g1", after="5", limit=2)
    await client.aclose()

    assert roles[0].role_id == "10"
    assert roles[0].name == "Storyteller"
    assert members[0].participant_id == "6"
    assert members[0].name == "Six"
    assert members[0].role_ids == frozenset({"10"})
    assert members[1].name == "seven"
    assert members[1].room_id is None


async def test_get_member_missing_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/members/404"):
            return httpx.Response(404, json={"message": "Unknown Member"})
        return httpx.Response(200, json={"user": {"id": "1", "username": "one"}, "roles": []})

    client = make_client(handler)

    assert await client.get_member("g1", "404") is None
    member = await client.get_member("g1", "1")
    assert member is not None and member.participant_id == "1"
    await client.aclose()


async def test_move_member_patches_channel():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    client = make_client(handler)
    await client.move_member("g1", "u1", "c9", timeout=1.5)
    await client.aclose()

    assert len(seen) == 1
    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/api/guilds/g1/members/u1"
    assert json.loads(seen[0].content) == {"channel_id": "c9"}


async def test_error_status_raises_platform_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"message": "You are being rate limited."})

    client = make_client(handler)

    with pytest.raises(PlatformError) as excinfo:
        await client.move_member("g1", "u1", "c9")
    await client.aclose()

    assert excinfo.value.status_code == 429


async def test_transport_error_raises_platform_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(PlatformError) as excinfo:
        await client.list_rooms("g1")
    await client.aclose()

    assert excinfo.value.status_code is None


async def test_occupancy_comes_from_voice_state_cache():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    voice_states = VoiceStateCache()
    voice_states.update("g1", "u1", "c1")
    client = make_client(handler, voice_states)

    assert await client.get_occupancy("g1") == {"u1": "c1"}
    await client.aclose()
