"""Fixed window rate limiter.

Each client gets a window that opens on its first request and lasts
``window`` seconds. Requests 1..limit inside the window are allowed; later
ones are rejected until the window closes. Counters live in an injected
:class:`~roster.core.rate_limit.stores.RateLimitStore`.
"""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from roster.config import settings
from roster.core.rate_limit.stores import (
    InMemoryRateLimitStore,
    RateLimitStore,
    RedisRateLimitStore,
)


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_time: float
    retry_after: int | None = None


class FixedWindowRateLimiter:
    """Fixed window counter over a pluggable store."""

    def __init__(
        self,
        store: RateLimitStore,
        limit: int = 100,
        window: int = 900,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            store: Where window counters are kept
            limit: Maximum requests allowed per window
            window: Window length in seconds
            clock: Time source, injectable for tests
        """
        self.store = store
        self.limit = limit
        self.window = window
        self._clock = clock

    async def check(self, identifier: str) -> RateLimitResult:
        """Count a request from ``identifier`` and decide whether to allow it.

        Args:
            identifier: Client identifier (usually the forwarded IP)

        Returns:
            RateLimitResult with allowed status and header metadata
        """
        state = await self.store.increment(identifier, self.window)
        allowed = state.count <= self.limit
        retry_after = None
        if not allowed:
            retry_after = max(1, math.ceil(state.reset_at - self._clock()))

        return RateLimitResult(
            allowed=allowed,
            limit=self.limit,
            remaining=max(0, self.limit - state.count),
            reset_time=state.reset_at,
            retry_after=retry_after,
        )

    async def reset(self, identifier: str) -> None:
        """Clear the window for an identifier."""
        await self.store.reset(identifier)


def build_rate_limiter() -> FixedWindowRateLimiter:
    """Create the limiter configured by RATE_LIMIT_BACKEND."""
    store: RateLimitStore
    if settings.rate_limit_backend == "redis":
        store = RedisRateLimitStore()
    else:
        store = InMemoryRateLimitStore()
    return FixedWindowRateLimiter(
        store,
        limit=settings.rate_limit_requests,
        window=settings.rate_limit_window,
    )
