"""Counter stores for the fixed window rate limiter.

The limiter only talks to the :class:`RateLimitStore` protocol, so the
process-local store and the Redis-backed store are interchangeable.
"""

import asyncio
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Protocol

import structlog
from redis.exceptions import RedisError

from roster.core.cache.redis import redis_client
from roster.core.errors import ServiceUnavailableError


logger = structlog.get_logger()


@dataclass
class WindowState:
    """Request count for one client within the current window.

    Attributes:
        count: Requests seen in the window, including the current one
        reset_at: Unix time at which the window closes
    """

    count: int
    reset_at: float


class RateLimitStore(Protocol):
    """Storage interface for per-client window counters."""

    async def get(self, key: str) -> WindowState | None:
        """Return the live window for a key, or None if there is none."""
        ...

    async def increment(self, key: str, window: int) -> WindowState:
        """Count one request, opening a new window if none is live."""
        ...

    async def reset(self, key: str) -> None:
        """Forget the window for a key."""
        ...


class InMemoryRateLimitStore:
    """Process-local store.

    Counters live in a dict and are lost on restart. Expired windows are
    replaced lazily when their key is touched again. An ``asyncio.Lock``
    makes each increment atomic with respect to other requests on the
    same event loop.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._windows: dict[str, WindowState] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def get(self, key: str) -> WindowState | None:
        state = self._windows.get(key)
        if state is None or state.reset_at <= self._clock():
            return None
        return WindowState(state.count, state.reset_at)

    async def increment(self, key: str, window: int) -> WindowState:
        async with self._lock:
            now = self._clock()
            state = self._windows.get(key)
            if state is None or state.reset_at <= now:
                state = WindowState(count=1, reset_at=now + window)
                self._windows[key] = state
            else:
                state.count += 1
            return WindowState(state.count, state.reset_at)

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._windows.pop(key, None)

    def __len__(self) -> int:
        return len(self._windows)


class RedisRateLimitStore:
    """Redis-backed store shared by every process.

    Uses INCR with an EXPIRE set only when the key is created, so the
    window is fixed from the first request.
    A Redis outage fails closed with a 503 rather than letting requests
    through unlimited.
    """

    def __init__(
        self,
        prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the store.

        Args:
            prefix: Key prefix for Redis keys
            clock: Time source, injectable for tests
        """
        self.prefix = prefix
        self._clock = clock

    def _build_key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    @staticmethod
    @contextmanager
    def _unavailable_on_error() -> Iterator[None]:
        try:
            yield
        except RedisError as err:
            logger.error("rate_limit_store_unavailable", error=str(err))
            raise ServiceUnavailableError(
                "Rate limiter unavailable",
                error_code="rate_limiter_unavailable",
            ) from err

    async def get(self, key: str) -> WindowState | None:
        redis_key = self._build_key(key)
        with self._unavailable_on_error():
            async with redis_client() as client, client.pipeline(transaction=True) as pipe:
                pipe.get(redis_key)
                pipe.pttl(redis_key)
                count, ttl_ms = await pipe.execute()

        if count is None or ttl_ms is None or ttl_ms < 0:
            return None
        return WindowState(int(count), self._clock() + ttl_ms / 1000)

    async def increment(self, key: str, window: int) -> WindowState:
        redis_key = self._build_key(key)
        with self._unavailable_on_error():
            async with redis_client() as client, client.pipeline(transaction=True) as pipe:
                pipe.incr(redis_key)
                # Only the first request of a window sets the expiry
                pipe.expire(redis_key, window, nx=True)
                pipe.pttl(redis_key)
                count, _, ttl_ms = await pipe.execute()

        ttl = ttl_ms / 1000 if ttl_ms and ttl_ms > 0 else window
        return WindowState(int(count), self._clock() + ttl)

    async def reset(self, key: str) -> None:
        with self._unavailable_on_error():
            async with redis_client() as client:
                await client.delete(self._build_key(key))
