import pytest

from clocktower.application.errors import PlatformError, TopologyError
from clocktower.application.topology import TopologyService
from clocktower.domain.models import Participant, Room, RoomKind
from fakes import FakePlatform, default_rooms


pytestmark = pytest.mark.anyio


async def test_build_snapshot_finds_phase_rooms(config):
    service = TopologyService(FakePlatform(), config)

    snap = await service.build_snapshot("guild")

    assert snap.group_id == "guild"
    assert snap.day_category.room_id == "day phase"
    assert snap.night_category.room_id == "night phase"
    assert snap.shared_room.room_id == "townsquare"


async def test_private_rooms_are_night_voice_rooms_by_position(config):
    service = TopologyService(FakePlatform(), config)

    snap = await service.build_snapshot("guild")

    assert snap.private_room_ids == (
        "cottage1",
        "cottage2",
        "cottage3",
        "cottage4",
        "cottage5",
    )


async def test_equal_positions_keep_platform_order(config):
    rooms = [r for r in default_rooms() if not r.room_id.startswith("cottage")]
    rooms += [
        Room("z", "z", RoomKind.VOICE, "night phase", 1),
        Room("a", "a", RoomKind.VOICE, "night phase", 1),
        Room("first", "first", RoomKind.VOICE, "night phase", 0),
    ]
    service = TopologyService(FakePlatform(rooms=rooms), config)

    snap = await service.build_snapshot("guild")

    assert snap.private_room_ids == ("first", "z", "a")


async def test_participants_carry_occupancy_and_facilitator_flag(config):
    service = TopologyService(FakePlatform(), config)

    snap = await service.build_snapshot("guild")

    by_id = {p.participant_id: p for p in snap.participants}
    assert by_id["user2"].room_id == "inn"
    assert by_id["lurker"].room_id is None
    assert not by_id["lurker"].connected
    assert by_id["storyteller"].is_facilitator
    assert not by_id["user1"].is_facilitator
    assert snap.occupancy["user3"] == "barber"


@pytest.mark.parametrize(
    "missing,message",
    [
        ("day phase", "day category"),
        ("night phase", "night category"),
        ("townsquare", "shared room"),
    ],
)
async def test_missing_phase_room_is_topology_error(config, missing, message):
    rooms = [r for r in default_rooms() if r.room_id != missing]
    service = TopologyService(FakePlatform(rooms=rooms), config)

    with pytest.raises(TopologyError, match=message):
        await service.build_snapshot("guild")


async def test_shared_room_outside_day_category_is_rejected(config):
    rooms = [r for r in default_rooms() if r.room_id != "townsquare"]
    rooms.append(Room("townsquare", "townsquare", RoomKind.VOICE, "night phase", 9))
    platform = FakePlatform(rooms=rooms)
    service = TopologyService(platform, config)

    with pytest.raises(TopologyError, match="not under day category"):
        await service.build_snapshot("guild")

    assert platform.member_calls == []


async def test_missing_facilitator_role_is_topology_error(config):
    service = TopologyService(FakePlatform(roles=[]), config)

    with pytest.raises(TopologyError, match="facilitator role"):
        await service.build_snapshot("guild")


async def test_platform_errors_propagate(config):
    service = TopologyService(FakePlatform(group_id="other"), config)

    with pytest.raises(PlatformError):
        await service.build_snapshot("guild")


async def test_roster_is_paged_and_capped(config, mocker):
    mocker.patch("clocktower.application.topology.MEMBER_PAGE_SIZE", 2)
    mocker.patch("clocktower.application.topology.MAX_MEMBERS", 5)
    members = [Participant(f"m{i}") for i in range(8)]
    platform = FakePlatform(members=members)
    service = TopologyService(platform, config)

    snap = await service.build_snapshot("guild")

    assert [p.participant_id for p in snap.participants] == ["m0", "m1", "m2", "m3", "m4"]
    assert platform.member_calls == [(None, 2), ("m1", 2), ("m3", 1)]


async def test_duplicate_roster_entries_are_dropped(config, mocker):
    platform = FakePlatform()
    dup = Participant("user1", "User One")
    mocker.patch.object(
        platform,
        "list_members",
        new=mocker.AsyncMock(return_value=[dup, dup, Participant("user2")]),
    )
    service = TopologyService(platform, config)

    snap = await service.build_snapshot("guild")

    assert [p.participant_id for p in snap.participants] == ["user1", "user2"]


async def test_is_facilitator(config):
    service = TopologyService(FakePlatform(), config)

    assert await service.is_facilitator("guild", "storyteller") is True
    assert await service.is_facilitator("guild", "user1") is False
    assert await service.is_facilitator("guild", "nobody") is False


async def test_shared_room_ignores_same_named_text_room(config):
    rooms = default_rooms() + [
        Room("ts-text", "townsquare", RoomKind.OTHER, "day phase", 9)
    ]
    service = TopologyService(FakePlatform(rooms=rooms), config)

    snap = await service.build_snapshot("guild")

    assert snap.shared_room.room_id == "townsquare"
    assert snap.shared_room.kind is RoomKind.VOICE


async def test_text_room_alone_is_not_a_shared_room(config):
    rooms = [r for r in default_rooms() if r.room_id != "townsquare"]
    rooms.append(Room("ts-text", "townsquare", RoomKind.OTHER, "day phase", 0))
    service = TopologyService(FakePlatform(rooms=rooms), config)

    with pytest.raises(TopologyError, match="cannot find shared room"):
        await service.build_snapshot("guild")
