"""Tests for the local store connection (src/strategist/core/redis.py)."""

from unittest.mock import AsyncMock

import pytest

from src.strategist.core import redis as redis_module
from src.strategist.core.config import Settings
from src.strategist.core.redis import close_redis, get_redis, reset_redis_state

pytestmark = pytest.mark.unit


@pytest.fixture
def use_settings(monkeypatch: pytest.MonkeyPatch):
    """Point the module at explicit settings instead of the cached environment ones."""

    def _use(**overrides) -> None:
        settings = Settings(_env_file=None, **overrides)
        monkeypatch.setattr(redis_module, "get_settings", lambda: settings)

    reset_redis_state()
    yield _use
    reset_redis_state()


def connection() -> redis_module.LocalStoreConnection:
    return redis_module._connection


class TestGetRedis:
    """Tests for get_redis()."""

    async def test_none_when_not_configured(self, use_settings) -> None:
        use_settings(redis_url=None)

        assert await get_redis() is None
        assert connection().attempted is True

    async def test_none_when_unreachable(self, use_settings) -> None:
        use_settings(redis_url="redis://127.0.0.1:1/0")

        assert await get_redis() is None
        assert connection().client is None
        assert connection().pool is None

    async def test_failed_attempt_is_not_retried(self, use_settings, monkeypatch) -> None:
        use_settings(redis_url=None)
        await get_redis()
        opener = AsyncMock()
        monkeypatch.setattr(connection(), "open", opener)

        assert await get_redis() is None
        opener.assert_not_awaited()

    async def test_connected_client_is_reused(self, use_settings, fake_redis) -> None:
        connection().client = fake_redis

        assert await get_redis() is fake_redis
        assert await get_redis() is fake_redis


class TestCloseRedis:
    """Tests for close_redis() and reset_redis_state()."""

    async def test_close_without_connection(self, use_settings) -> None:
        await close_redis()

        assert connection().client is None
        assert connection().attempted is False

    async def test_close_allows_another_attempt(self, use_settings) -> None:
        use_settings(redis_url=None)
        await get_redis()

        await close_redis()

        assert connection().attempted is False

    async def test_close_shuts_the_client(self, use_settings) -> None:
        client = AsyncMock()
        connection().client = client

        await close_redis()

        client.aclose.assert_awaited_once()
        assert connection().client is None

    def test_reset_clears_state(self) -> None:
        connection().attempted = True
        connection().client = "dummy"  # type: ignore[assignment]

        reset_redis_state()

        assert connection().attempted is False
        assert connection().client is None
