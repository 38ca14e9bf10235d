from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from clocktower.application.errors import TopologyError
from clocktower.domain.phase import MoveOutcome, Phase


class RoomKind(str, Enum):
    CATEGORY = "category"
    VOICE = "voice"
    OTHER = "other"


@dataclass(frozen=True)
class Room:
    room_id: str
    name: str
    kind: RoomKind = RoomKind.VOICE
    parent_id: str | None = None
    position: int = 0


@dataclass(frozen=True)
class Role:
    role_id: str
    name: str


@dataclass(frozen=True)
class Participant:
    participant_id: str
    name: str = ""
    role_ids: frozenset[str] = frozenset()
    room_id: str | None = None
    is_facilitator: bool = False

    @property
    def connected(self) -> bool:
        return bool(self.room_id)


def _freeze(mapping: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class TopologySnapshot:
    """Point-in-time view of one group's phase rooms and who sits where.

    Built fresh for every planning request. Private rooms are kept in
    ascending position order; planners assign from the front.
    """

    group_id: str
    day_category: Room
    night_category: Room
    shared_room: Room
    private_rooms: tuple[Room, ...]
    occupancy: Mapping[str, str]
    participants: tuple[Participant, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "occupancy", _freeze(self.occupancy))
        object.__setattr__(self, "private_rooms", tuple(self.private_rooms))
        object.__setattr__(self, "participants", tuple(self.participants))

        if self.shared_room.parent_id != self.day_category.room_id:
            raise TopologyError(
                f"shared room {self.shared_room.name!r} is not under "
                f"day category {self.day_category.name!r}"
            )
        for room in self.private_rooms:
            if room.parent_id != self.night_category.room_id:
                raise TopologyError(
                    f"private room {room.name!r} is not under "
                    f"night category {self.night_category.name!r}"
                )
        seen: set[str] = set()
        for participant in self.participants:
            if participant.participant_id in seen:
                raise TopologyError(
                    f"duplicate participant {participant.participant_id}"
                )
            seen.add(participant.participant_id)

    @property
    def private_room_ids(self) -> tuple[str, ...]:
        return tuple(room.room_id for room in self.private_rooms)

    def connected_participants(self) -> list[Participant]:
        return [p for p in self.participants if p.connected]


@dataclass(frozen=True)
class RelocationPlan:
    group_id: str
    phase: Phase
    moves: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "moves", _freeze(self.moves))

    def __len__(self) -> int:
        return len(self.moves)

    def __str__(self) -> str:
        if not self.moves:
            return f"No movements required for group {self.group_id}"
        parts = [
            f"[Move participant {participant} to room {room}]"
            for participant, room in self.moves.items()
        ]
        return f"Moving members of group {self.group_id}: {', '.join(parts)}"


@dataclass(frozen=True)
class BatchResult:
    group_id: str
    phase: Phase
    outcomes: Mapping[str, MoveOutcome]
    elapsed_seconds: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "outcomes", MappingProxyType(dict(self.outcomes)))

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def count(self, outcome: MoveOutcome) -> int:
        return sum(1 for value in self.outcomes.values() if value is outcome)

    @property
    def moved(self) -> int:
        return self.count(MoveOutcome.MOVED)

    @property
    def failed(self) -> int:
        return self.count(MoveOutcome.FAILED)

    @property
    def cancelled(self) -> int:
        return self.count(MoveOutcome.CANCELLED)

    @property
    def ok(self) -> bool:
        return self.moved == self.total

    def unmoved(self) -> list[str]:
        return sorted(
            participant
            for participant, outcome in self.outcomes.items()
            if outcome is not MoveOutcome.MOVED
        )

    def summary(self) -> str:
        return (
            f"moved {self.moved} of {self.total} "
            f"({self.failed} failed, {self.cancelled} cancelled by deadline)"
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "group_id": self.group_id,
            "phase": self.phase.value,
            "ok": self.ok,
            "total": self.total,
            "moved": self.moved,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "unmoved": self.unmoved(),
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }
