"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-specific fixtures are in tests/integration/conftest.py.
"""

import os

# Set APP_ENV to testing before any app imports
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("STORAGE_ADAPTER", "local")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator

import pytest
from fakeredis import aioredis as fakeredis_aio
from redis.asyncio import Redis

from src.strategist.adapters.local import LocalStorageAdapter
from src.strategist.core import redis as redis_core
from src.strategist.core.config import get_settings
from src.strategist.core.logging import clear_log_context
from src.strategist.services.project_repository import ProjectRepository

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Context bound by one test (user, project) must not leak into the next."""
    clear_log_context()
    yield
    clear_log_context()


# --- Redis Test Fixtures (shared) ---


@pytest.fixture
async def fake_redis() -> AsyncGenerator[Redis]:
    """Provides a fakeredis client for testing.

    Returns an in-memory Redis implementation that behaves like
    a real Redis server but doesn't require external dependencies.
    """
    client = fakeredis_aio.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
async def mock_redis(fake_redis: Redis, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[Redis]:
    """Patches get_redis() to return fakeredis client.

    Patches both src.strategist.core.redis and src.strategist.adapters.local
    to ensure the fake redis is used everywhere.
    """
    redis_core.reset_redis_state()

    async def _get_fake_redis() -> Redis:
        return fake_redis

    # Patch in both modules that import get_redis
    monkeypatch.setattr("src.strategist.core.redis.get_redis", _get_fake_redis)
    monkeypatch.setattr("src.strategist.adapters.local.get_redis", _get_fake_redis)
    yield fake_redis
    redis_core.reset_redis_state()


@pytest.fixture
async def mock_redis_unavailable(monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[None]:
    """Patches get_redis() to return None (simulates Redis unavailable)."""
    redis_core.reset_redis_state()

    async def _get_none() -> None:
        return None

    monkeypatch.setattr("src.strategist.core.redis.get_redis", _get_none)
    monkeypatch.setattr("src.strategist.adapters.local.get_redis", _get_none)
    yield
    redis_core.reset_redis_state()


# --- Storage Fixtures ---


@pytest.fixture
def local_adapter(mock_redis: Redis) -> LocalStorageAdapter:
    """Local adapter writing to fakeredis under the default keys."""
    return LocalStorageAdapter()


@pytest.fixture
def repository(local_adapter: LocalStorageAdapter) -> ProjectRepository:
    return ProjectRepository(local_adapter)
