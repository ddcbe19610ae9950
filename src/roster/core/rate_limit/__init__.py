"""Fixed window rate limiting with pluggable counter stores."""

from roster.core.rate_limit.backend import (
    FixedWindowRateLimiter,
    RateLimitResult,
    build_rate_limiter,
)
from roster.core.rate_limit.stores import (
    InMemoryRateLimitStore,
    RateLimitStore,
    RedisRateLimitStore,
    WindowState,
)


__all__ = [
    "FixedWindowRateLimiter",
    "InMemoryRateLimitStore",
    "RateLimitResult",
    "RateLimitStore",
    "RedisRateLimitStore",
    "WindowState",
    "build_rate_limiter",
]
