"""Connection to the key-value store behind the local adapter.

Local storage is scratch space, so the store is optional: with no
``REDIS_URL`` or an unreachable server, ``get_redis`` returns None and the
local adapter reads no projects and refuses writes. A failed connection is
not retried until ``close_redis`` (or ``reset_redis_state`` in tests).
"""

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from src.strategist.core.config import get_settings
from src.strategist.core.logging import get_logger

logger = get_logger(__name__)

CONNECT_TIMEOUT_SECONDS = 2.0


class LocalStoreConnection:
    """Holds the one client the process shares, opened on first use."""

    def __init__(self) -> None:
        self.client: Redis | None = None
        self.pool: ConnectionPool | None = None
        self.attempted = False

    async def open(self, url: str | None, pool_size: int) -> Redis | None:
        self.attempted = True
        if not url:
            logger.info("Local store not configured, local projects unavailable")
            return None

        pool = ConnectionPool.from_url(
            url,
            max_connections=pool_size,
            decode_responses=True,
            socket_connect_timeout=CONNECT_TIMEOUT_SECONDS,
        )
        client = Redis(connection_pool=pool)
        try:
            await client.ping()  # type: ignore[misc]
        except (RedisError, OSError) as e:
            logger.warning(
                "Local store unreachable", host=pool.connection_kwargs.get("host"), error=str(e)
            )
            await client.aclose()
            await pool.disconnect()
            return None

        self.client, self.pool = client, pool
        logger.info("Local store connected")
        return client

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            logger.info("Local store connection closed")
        if self.pool is not None:
            await self.pool.disconnect()
        self.reset()

    def reset(self) -> None:
        self.client = None
        self.pool = None
        self.attempted = False


_connection = LocalStoreConnection()


async def get_redis() -> Redis | None:
    """The shared client, or None when the store is unavailable."""
    if _connection.client is not None:
        return _connection.client
    if _connection.attempted:
        return None

    settings = get_settings()
    return await _connection.open(settings.redis_url, settings.redis_pool_size)


async def close_redis() -> None:
    """Close the shared client and allow the next call to connect again."""
    await _connection.close()


def reset_redis_state() -> None:
    """Forget the shared client without closing it (tests swap in fakes)."""
    _connection.reset()
