import logging
from typing import Any

import httpx

from clocktower.application.errors import PlatformError
from clocktower.domain.models import Participant, Role, Room, RoomKind
from clocktower.infrastructure.voice_state_cache import VoiceStateCache

log = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://discord.com/api/v10"

_CHANNEL_KINDS = {
    2: RoomKind.VOICE,
    4: RoomKind.CATEGORY,
}


def _room_from_channel(data: dict[str, Any]) -> Room:
    return Room(
        room_id=str(data["id"]),
        name=data.get("name") or "",
        kind=_CHANNEL_KINDS.get(data.get("type"), RoomKind.OTHER),
        parent_id=str(data["parent_id"]) if data.get("parent_id") else None,
        position=int(data.get("position") or 0),
    )


def _participant_from_member(data: dict[str, Any]) -> Participant:
    user = data.get("user") or {}
    return Participant(
        participant_id=str(user["id"]),
        name=data.get("nick") or user.get("global_name") or user.get("username") or "",
        role_ids=frozenset(str(role) for role in data.get("roles", [])),
    )


class DiscordRestClient:
    """Guild REST calls made with one bot token."""

    def __init__(
        self,
        token: str,
        voice_states: VoiceStateCache,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = 5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._voice_states = voice_states
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bot {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        allow_missing: bool = False,
        **kwargs: Any,
    ) -> Any:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise PlatformError(f"{method} {path} failed: {exc!r}") from exc
        if allow_missing and resp.status_code == 404:
            return None
        if resp.is_error:
            raise PlatformError(
                f"{method} {path} returned {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    async def list_rooms(self, group_id: str) -> list[Room]:
        data = await self._request("GET", f"/guilds/{group_id}/channels")
        return [_room_from_channel(channel) for channel in data]

    async def list_roles(self, group_id: str) -> list[Role]:
        data = await self._request("GET", f"/guilds/{group_id}/roles")
        return [Role(role_id=str(role["id"]), name=role["name"]) for role in data]

    async def list_members(
        self, group_id: str, after: str | None = None, limit: int = 1000
    ) -> list[Participant]:
        params: dict[str, Any] = {"limit": limit}
        if after:
            params["after"] = after
        data = await self._request("GET", f"/guilds/{group_id}/members", params=params)
        return [_participant_from_member(member) for member in data]

    async def get_member(self, group_id: str, participant_id: str) -> Participant | None:
        data = await self._request(
            "GET", f"/guilds/{group_id}/members/{participant_id}", allow_missing=True
        )
        if data is None:
            return None
        return _participant_from_member(data)

    async def get_occupancy(self, group_id: str) -> dict[str, str]:
        return self._voice_states.occupancy(group_id)

    async def move_member(
        self,
        group_id: str,
        participant_id: str,
        room_id: str,
        *,
        timeout: float | None = None,
    ) -> None:
        kwargs: dict[str, Any] = {"json": {"channel_id": room_id}}
        if timeout is not None:
            kwargs["timeout"] = timeout
        await self._request(
            "PATCH", f"/guilds/{group_id}/members/{participant_id}", **kwargs
        )
        log.debug("Moved %s to %s in group %s.", participant_id, room_id, group_id)

    async def aclose(self) -> None:
        await self._http.aclose()
