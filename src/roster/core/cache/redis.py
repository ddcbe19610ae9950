"""Shared Redis connection pool.

Only the redis rate limit store talks to Redis, so the pool is opened
lazily on its first counter operation and never when the in-memory
backend is configured.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from roster.config import settings


# Counter operations are short; a small pool with tight timeouts suffices
MAX_CONNECTIONS = 20
SOCKET_TIMEOUT_SECONDS = 2.0

_pool: ConnectionPool | None = None


def _get_pool() -> ConnectionPool:
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            str(settings.redis_url),
            max_connections=MAX_CONNECTIONS,
            socket_timeout=SOCKET_TIMEOUT_SECONDS,
            socket_connect_timeout=SOCKET_TIMEOUT_SECONDS,
            decode_responses=True,
        )
    return _pool


@asynccontextmanager
async def redis_client() -> AsyncGenerator[redis.Redis, None]:  # type: ignore[type-arg]
    """Borrow a client backed by the shared pool.

    Usage:
        async with redis_client() as client, client.pipeline() as pipe:
            pipe.incr("rate_limit:203.0.113.7")
            await pipe.execute()
    """
    client = redis.Redis(connection_pool=_get_pool())
    try:
        yield client
    finally:
        await client.aclose()


async def close_redis_pool() -> None:
    """Disconnect the pool if it was ever opened. Called on shutdown."""
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None
