"""Redis client lifecycle and the refresh-token store built on it."""

import logging

import redis.asyncio as redis

from barberbook import config

logger = logging.getLogger(__name__)

# Global Redis client (initialized in application startup)
_redis_client: redis.Redis | None = None


def initialize_cache(redis_url: str | None = None) -> redis.Redis:
    """Create the global Redis client.

    Args:
        redis_url: Redis connection URL (defaults to REDIS_URL setting)

    Returns:
        Redis client instance
    """
    global _redis_client

    _redis_client = redis.from_url(
        redis_url or config.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    return _redis_client


def get_cache() -> redis.Redis:
    """FastAPI dependency returning the Redis client.

    Raises:
        RuntimeError: If the client has not been initialized
    """
    if _redis_client is None:
        raise RuntimeError("Cache not initialized. Call initialize_cache() first.")
    return _redis_client


async def cache_health_check() -> bool:
    """Return True if Redis answers PING."""
    if _redis_client is None:
        return False
    try:
        return bool(await _redis_client.ping())
    except redis.RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return False


async def shutdown_cache() -> None:
    """Close the Redis connection pool."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class RefreshTokenStore:
    """Keeps the single valid refresh token per user, with a TTL.

    Storing the token lets refresh rotate it and logout revoke it.
    """

    KEY_PREFIX = "refresh_token"

    def __init__(self, client: redis.Redis, ttl_seconds: int | None = None):
        self.client = client
        self.ttl_seconds = ttl_seconds or config.REFRESH_TOKEN_TTL_DAYS * 24 * 60 * 60

    def _key(self, user_id: str) -> str:
        return f"{self.KEY_PREFIX}:{user_id}"

    async def save(self, user_id: str, token: str) -> None:
        await self.client.set(self._key(user_id), token, ex=self.ttl_seconds)

    async def consume(self, user_id: str, token: str) -> bool:
        """Atomically take the stored refresh token if it equals ``token``.

        The key is removed by the same GETDEL that reads it, so of several
        concurrent callers presenting the same token at most one gets True.
        """
        stored = await self.client.getdel(self._key(user_id))
        return stored is not None and stored == token

    async def revoke(self, user_id: str) -> None:
        await self.client.delete(self._key(user_id))
