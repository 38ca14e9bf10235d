import pytest
from fastapi.testclient import TestClient

from clocktower.config import Config
from clocktower.main import app_factory
from fakes import FakePlatform


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config():
    return Config(
        tokens=("a", "b", "c"),
        night_category="night phase",
        day_category="day phase",
        shared_room="townsquare",
        facilitator_role="storyteller",
        deadline_seconds=15,
        request_timeout_seconds=5,
        max_concurrent_requests=3,
    )


@pytest.fixture
def platforms():
    return []


@pytest.fixture
def app(config, platforms):
    def make_client(token, voice_states):
        platform = FakePlatform(voice_states=voice_states)
        platforms.append(platform)
        return platform

    return app_factory(config, client_factory=make_client)


@pytest.fixture
def client(app):
    with TestClient(app) as tc:
        yield tc
