# tests/conftest.py
import pytest
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

from app.core.config import Settings
from app.main import create_app

@pytest.fixture(scope="session")
def anyio_backend():
    # keep AnyIO on asyncio for the whole test session
    return "asyncio"

@pytest.fixture
def settings():
    return Settings(jwt_secret="backend-test", admin_email="root@tigermood.com", admin_password="rootpass")

@pytest.fixture
async def test_client(settings):
    # fresh app (and in-memory repo) per test, lifespan seeds the admin
    app = create_app(settings)
    async with LifespanManager(app):
        transport = ASGITransport(app=app, raise_app_exceptions=True)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
