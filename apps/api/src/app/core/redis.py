"""
Redis Configuration

Async Redis client shared by the verification code store and the
rate limiter. Codes must survive restarts and be visible to every API
instance, so there is no in-process fallback for them.
"""

from redis.asyncio import Redis, from_url

from app.core.config import settings

# Redis client instance
redis_client: Redis | None = None


class RedisUnavailableError(RuntimeError):
    """Raised when a Redis-backed feature is used before init_redis()."""


async def init_redis() -> Redis:
    """
    Initialize Redis connection.

    Call this on application startup.
    """
    global redis_client
    redis_client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await redis_client.ping()
    return redis_client


async def get_redis() -> Redis | None:
    """
    Get Redis client instance.

    Returns None if Redis has not been initialized.
    """
    return redis_client


async def require_redis() -> Redis:
    """
    FastAPI dependency for endpoints that cannot work without Redis.

    Raises:
        RedisUnavailableError: If Redis was never initialized
    """
    if redis_client is None:
        raise RedisUnavailableError("Redis is not initialized")
    return redis_client


def is_redis_available() -> bool:
    """Check if Redis client is initialized and available."""
    return redis_client is not None


async def close_redis() -> None:
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
