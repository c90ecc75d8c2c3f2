"""Redis connection management."""

from orgtree.core.cache.redis import close_redis_pool, redis_client


__all__ = [
    "close_redis_pool",
    "redis_client",
]
