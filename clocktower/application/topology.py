import logging
from dataclasses import replace

from clocktower.application.errors import TopologyError
from clocktower.application.ports import PlatformClient
from clocktower.config import Config
from clocktower.domain.models import Participant, Room, RoomKind, TopologySnapshot

log = logging.getLogger(__name__)

MEMBER_PAGE_SIZE = 1000
MAX_MEMBERS = 1000


class TopologyService:
    def __init__(self, platform: PlatformClient, config: Config):
        self._platform = platform
        self._config = config

    async def build_snapshot(self, group_id: str) -> TopologySnapshot:
        rooms = await self._platform.list_rooms(group_id)
        day_category, night_category, shared_room = self._find_phase_rooms(rooms)
        if shared_room.parent_id != day_category.room_id:
            raise TopologyError(
                f"shared room {shared_room.name!r} is not under "
                f"day category {day_category.name!r}"
            )

        # sorted() is stable, so equal positions keep the platform's order.
        private_rooms = sorted(
            (
                room
                for room in rooms
                if room.kind is RoomKind.VOICE
                and room.parent_id == night_category.room_id
            ),
            key=lambda room: room.position,
        )

        facilitator_role_id = await self._facilitator_role_id(group_id)
        occupancy = await self._platform.get_occupancy(group_id)
        members = await self._list_all_members(group_id)
        participants = tuple(
            replace(
                member,
                room_id=occupancy.get(member.participant_id) or None,
                is_facilitator=facilitator_role_id in member.role_ids,
            )
            for member in members
        )

        log.info(
            "Found all phase rooms in group %s: %d private rooms, %d members, "
            "%d connected.",
            group_id,
            len(private_rooms),
            len(participants),
            sum(1 for p in participants if p.connected),
        )
        return TopologySnapshot(
            group_id=group_id,
            day_category=day_category,
            night_category=night_category,
            shared_room=shared_room,
            private_rooms=tuple(private_rooms),
            occupancy=occupancy,
            participants=participants,
        )

    async def is_facilitator(self, group_id: str, participant_id: str) -> bool:
        facilitator_role_id = await self._facilitator_role_id(group_id)
        member = await self._platform.get_member(group_id, participant_id)
        if member is None:
            return False
        return facilitator_role_id in member.role_ids

    def _find_phase_rooms(self, rooms: list[Room]) -> tuple[Room, Room, Room]:
        day_category = night_category = shared_room = None
        for room in rooms:
            if room.kind is RoomKind.CATEGORY:
                if room.name == self._config.day_category:
                    day_category = room
                elif room.name == self._config.night_category:
                    night_category = room
            elif room.kind is RoomKind.VOICE and room.name == self._config.shared_room:
                shared_room = room

        if day_category is None:
            raise TopologyError(f"cannot find day category {self._config.day_category!r}")
        if night_category is None:
            raise TopologyError(
                f"cannot find night category {self._config.night_category!r}"
            )
        if shared_room is None:
            raise TopologyError(f"cannot find shared room {self._config.shared_room!r}")
        return day_category, night_category, shared_room

    async def _facilitator_role_id(self, group_id: str) -> str:
        for role in await self._platform.list_roles(group_id):
            if role.name == self._config.facilitator_role:
                return role.role_id
        raise TopologyError(
            f"cannot find facilitator role {self._config.facilitator_role!r}"
        )

    async def _list_all_members(self, group_id: str) -> list[Participant]:
        members: list[Participant] = []
        seen: set[str] = set()
        after: str | None = None
        while len(members) < MAX_MEMBERS:
            limit = min(MEMBER_PAGE_SIZE, MAX_MEMBERS - len(members))
            page = await self._platform.list_members(group_id, after=after, limit=limit)
            added = 0
            for member in page:
                if member.participant_id in seen:
                    continue
                seen.add(member.participant_id)
                members.append(member)
                added += 1
            if len(page) < limit or not added:
                break
            after = page[-1].participant_id
        return members[:MAX_MEMBERS]
