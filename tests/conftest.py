"""
Shared fixtures: an app wired to an in-memory SQLite database and an
``httpx.AsyncClient`` that talks to it without a network.
"""

from typing import Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config.settings import Settings
from database.session import init_models
from main import create_app

ACCESS_SECRET = "test-access-secret-0123456789abcdef"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        create_tables_on_startup=False,
        access_secret_key=ACCESS_SECRET,
        refresh_secret_key=REFRESH_SECRET,
        access_token_expiry_seconds=60,
        refresh_token_expiry_seconds=300,
        bcrypt_rounds=4,
        cors_origins=["http://localhost:3000"],
    )


@pytest_asyncio.fixture
async def app(settings):
    app = create_app(settings)
    await init_models(app.state.engine)
    yield app
    await app.state.engine.dispose()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def register(client):
    """Register a user and return the token pair from the response."""

    async def _register(email: str = "a@b.com", password: str = "pw", name: str = "A") -> Dict[str, str]:
        resp = await client.post(
            "/api/user/registration",
            json={"email": email, "password": password, "name": name},
        )
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _register
