from typing import Any

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from clocktower.api.deps import MoverServiceDep, VoiceStatesDep
from clocktower.application.errors import (
    CapacityError,
    GateBusyError,
    MoverError,
    PlatformError,
    TopologyError,
)
from clocktower.domain.models import RelocationPlan

groups_router = APIRouter(prefix="/groups")


class PhaseIn(BaseModel):
    requester_id: str


class PhaseOut(BaseModel):
    status: str
    phase: str
    moves: int


class VoiceStateIn(BaseModel):
    room_id: str | None = None


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, PermissionError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, TopologyError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, CapacityError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, GateBusyError):
        return HTTPException(
            status_code=429, detail=str(exc), headers={"Retry-After": "1"}
        )
    if isinstance(exc, PlatformError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def _accepted(plan: RelocationPlan) -> PhaseOut:
    return PhaseOut(status="accepted", phase=plan.phase.value, moves=len(plan))


@groups_router.post(
    "/{group_id}/day", response_model=PhaseOut, status_code=status.HTTP_202_ACCEPTED
)
async def start_day(group_id: str, phase_in: PhaseIn, mover_service: MoverServiceDep):
    try:
        plan = await mover_service.start_day(group_id, phase_in.requester_id)
    except (PermissionError, MoverError) as exc:
        raise _http_error(exc) from exc
    return _accepted(plan)


@groups_router.post(
    "/{group_id}/night", response_model=PhaseOut, status_code=status.HTTP_202_ACCEPTED
)
async def start_night(group_id: str, phase_in: PhaseIn, mover_service: MoverServiceDep):
    try:
        plan = await mover_service.start_night(group_id, phase_in.requester_id)
    except (PermissionError, MoverError) as exc:
        raise _http_error(exc) from exc
    return _accepted(plan)


@groups_router.get("/{group_id}/batches/last")
async def last_batch(group_id: str, mover_service: MoverServiceDep) -> dict[str, Any]:
    result = mover_service.last_result(group_id)
    if result is None:
        raise HTTPException(status_code=404, detail="no batch has run for this group")
    return result.as_dict()


@groups_router.put(
    "/{group_id}/voice-states/{participant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def update_voice_state(
    group_id: str,
    participant_id: str,
    state_in: VoiceStateIn,
    voice_states: VoiceStatesDep,
) -> None:
    voice_states.update(group_id, participant_id, state_in.room_id)
