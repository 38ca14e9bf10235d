from typing import Annotated

from fastapi import Depends
from fastapi.requests import HTTPConnection

from clocktower.application.mover_service import MoverService
from clocktower.infrastructure.voice_state_cache import VoiceStateCache


def get_mover_service(conn: HTTPConnection) -> MoverService:
    return conn.app.state.mover_service


def get_voice_states(conn: HTTPConnection) -> VoiceStateCache:
    return conn.app.state.voice_states


MoverServiceDep = Annotated[MoverService, Depends(get_mover_service)]
VoiceStatesDep = Annotated[VoiceStateCache, Depends(get_voice_states)]
