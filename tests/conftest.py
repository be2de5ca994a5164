"""Pytest configuration and fixtures."""
import os

# Set test env BEFORE any imports that use config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DISCORD_TOKEN"] = "test-token"
os.environ["GEMINI_API_KEY"] = ""
os.environ["WEBHOOK_LOGS_URL"] = ""
os.environ["GUILD_ID"] = ""

import pytest
from httpx import ASGITransport, AsyncClient

from bot.models import Base
from bot.models.base import async_session_factory, engine
from web.api.main import app


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
async def _init_db():
    """Fresh tables for every test (ASGI lifespan doesn't run with httpx)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def session_factory():
    return async_session_factory


@pytest.fixture
async def client():
    """Async HTTP client for testing the API."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
