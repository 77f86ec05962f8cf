# tests/conftest.py
import httpx
import pytest
from asgi_lifespan import LifespanManager

from app.core.config import Settings as BackendSettings
from app.main import create_app
from fakes import Recorder
from tigermood import ApiClient, MemoryTokenStore

BASE_URL = "http://test/api"


@pytest.fixture(scope="session")
def anyio_backend():
    # keep AnyIO on asyncio for the whole test session
    return "asyncio"


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def tokens():
    return MemoryTokenStore()


@pytest.fixture
async def api(recorder, tokens):
    async with ApiClient(BASE_URL, token_store=tokens, transport=httpx.MockTransport(recorder)) as client:
        yield client


@pytest.fixture
async def backend_app():
    app = create_app(BackendSettings(jwt_secret="test-secret", admin_password="admin-pass"))
    async with LifespanManager(app):
        yield app


@pytest.fixture
async def live_api(backend_app):
    transport = httpx.ASGITransport(app=backend_app)
    async with ApiClient(BASE_URL, token_store=MemoryTokenStore(), transport=transport) as client:
        yield client
