"""
Redis Client

Shared Redis connection backing the session store (session identity and
pending ceremony challenges).
"""

import redis.asyncio as redis

from passkey_auth.config import get_settings

_redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """
    Get the shared Redis client instance.

    Creates a new connection pool on first call and reuses it afterwards.

    Returns:
        Async Redis client instance with string responses
    """
    global _redis_client

    if _redis_client is None:
        settings = get_settings()
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )

    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection. Called on application shutdown."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
