"""Pure planning over a topology snapshot.

Neither planner performs I/O; both return a RelocationPlan or raise a
typed MoverError.
"""

from clocktower.application.errors import CapacityError, PlanConsistencyError
from clocktower.domain.models import Participant, RelocationPlan, TopologySnapshot
from clocktower.domain.phase import Phase


def plan_day(snapshot: TopologySnapshot) -> RelocationPlan:
    shared_room_id = snapshot.shared_room.room_id
    moves = {
        participant.participant_id: shared_room_id
        for participant in snapshot.connected_participants()
        if participant.room_id != shared_room_id
    }
    return RelocationPlan(group_id=snapshot.group_id, phase=Phase.DAY, moves=moves)


def plan_night(snapshot: TopologySnapshot, requester_id: str | None = None) -> RelocationPlan:
    """Give every connected participant outside the night rooms a room of their own.

    Facilitators share a single room. That room is the one the requester
    already sits in, else the one any facilitator already sits in, else the
    first room handed to a facilitator during this pass.
    """
    private_room_ids = snapshot.private_room_ids
    private_set = set(private_room_ids)

    occupied: set[str] = set()
    facilitator_room: str | None = None
    fallback_facilitator_room: str | None = None
    needs_move: list[Participant] = []
    for participant in snapshot.connected_participants():
        if participant.room_id in private_set:
            # Someone who joined mid-night already sits in a private room.
            occupied.add(participant.room_id)
            if participant.participant_id == requester_id:
                facilitator_room = participant.room_id
            elif participant.is_facilitator and fallback_facilitator_room is None:
                fallback_facilitator_room = participant.room_id
        else:
            needs_move.append(participant)
    if facilitator_room is None:
        facilitator_room = fallback_facilitator_room

    available = len(private_room_ids) - len(occupied)
    if len(needs_move) > available:
        raise CapacityError(needed=len(needs_move), available=available)

    moves: dict[str, str] = {}
    for participant in needs_move:
        if participant.is_facilitator and facilitator_room is not None:
            moves[participant.participant_id] = facilitator_room
            continue
        for room_id in private_room_ids:
            if room_id in occupied:
                continue
            moves[participant.participant_id] = room_id
            occupied.add(room_id)
            if participant.is_facilitator:
                facilitator_room = room_id
            break

    if len(moves) != len(needs_move):
        raise PlanConsistencyError(
            f"could not find a move for every participant, "
            f"plan {len(moves)} vs needed moves {len(needs_move)}"
        )
    return RelocationPlan(group_id=snapshot.group_id, phase=Phase.NIGHT, moves=moves)
