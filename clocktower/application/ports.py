from typing import Protocol

from clocktower.domain.models import Participant, Role, Room


class PlatformClient(Protocol):
    async def list_rooms(self, group_id: str) -> list[Room]: ...

    async def list_roles(self, group_id: str) -> list[Role]: ...

    async def list_members(
        self, group_id: str, after: str | None = None, limit: int = 1000
    ) -> list[Participant]: ...

    async def get_member(
        self, group_id: str, participant_id: str
    ) -> Participant | None: ...

    async def get_occupancy(self, group_id: str) -> dict[str, str]: ...

    async def move_member(
        self,
        group_id: str,
        participant_id: str,
        room_id: str,
        *,
        timeout: float | None = None,
    ) -> None: ...

    async def aclose(self) -> None: ...
