"""Redis connection management."""

from roster.core.cache.redis import close_redis_pool, redis_client


__all__ = [
    "close_redis_pool",
    "redis_client",
]
