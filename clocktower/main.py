import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Callable

from fastapi import FastAPI

from clocktower.api.routes.groups import groups_router
from clocktower.application.executor import PlanExecutor
from clocktower.application.mover_service import MoverService
from clocktower.application.ports import PlatformClient
from clocktower.application.rotator import ResourceRotator
from clocktower.application.topology import TopologyService
from clocktower.config import Config
from clocktower.infrastructure.discord_client import DiscordRestClient
from clocktower.infrastructure.voice_state_cache import VoiceStateCache
from clocktower.log import configure_logging

log = logging.getLogger(__name__)

ClientFactory = Callable[[str, VoiceStateCache], PlatformClient]


def _discord_client_factory(config: Config) -> ClientFactory:
    def make_client(token: str, voice_states: VoiceStateCache) -> PlatformClient:
        return DiscordRestClient(
            token,
            voice_states,
            base_url=config.discord.api_base_url,
            timeout=config.request_timeout_seconds,
        )

    return make_client


def app_factory(config: Config, client_factory: ClientFactory | None = None):
    make_client = client_factory or _discord_client_factory(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(config.log_level)
        config.validate()
        app.state.voice_states = VoiceStateCache()
        rotator = ResourceRotator(
            [make_client(token, app.state.voice_states) for token in config.tokens]
        )
        log.info("Loaded %d platform client(s).", len(rotator))
        app.state.mover_service = MoverService(
            TopologyService(rotator.primary, config),
            PlanExecutor(
                concurrency=config.max_concurrent_requests,
                request_timeout=config.request_timeout_seconds,
            ),
            rotator,
            config,
        )
        consumer = asyncio.create_task(app.state.mover_service.gate.run_forever())
        try:
            yield
        finally:
            consumer.cancel()
            with suppress(asyncio.CancelledError):
                await consumer
            for client in rotator.resources:
                await client.aclose()

    app = FastAPI(lifespan=lifespan)
    app.include_router(groups_router)

    return app


app = app_factory(Config.load())
