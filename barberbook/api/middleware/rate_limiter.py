"""Redis-backed rate limiting for abuse-prone endpoints."""

import logging

import redis.asyncio as redis
from fastapi import Depends, Request

from barberbook import config
from barberbook.exceptions import RateLimitExceeded
from barberbook.services.cache import get_cache

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window request counter kept in Redis.

    The first hit in a window creates the counter with a TTL of one window;
    the counter disappears when the window ends. A counter found over the
    limit without a TTL gets one, so a failed EXPIRE cannot lock a client
    out for good.
    """

    def __init__(self, scope: str, requests_per_window: int, window_seconds: int = 60):
        """Initialize rate limiter.

        Args:
            scope: Name separating counters of different endpoints
            requests_per_window: Maximum requests per client per window
            window_seconds: Window length in seconds
        """
        self.scope = scope
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    def _key(self, client_id: str) -> str:
        return f"rate_limit:{self.scope}:{client_id}"

    async def hit(self, client: redis.Redis, client_id: str) -> int:
        """Count one request for ``client_id``.

        Returns:
            Requests counted in the current window, including this one

        Raises:
            RateLimitExceeded: If the client is over the limit
        """
        key = self._key(client_id)
        count = await client.incr(key)
        if count == 1:
            await client.expire(key, self.window_seconds)

        if count > self.requests_per_window:
            ttl = await client.ttl(key)
            if ttl == -1:
                # Counter lost its TTL (EXPIRE failed after INCR) and would never reset
                await client.expire(key, self.window_seconds)
            retry_after = ttl if ttl and ttl > 0 else self.window_seconds
            raise RateLimitExceeded(
                f"Maximum {self.requests_per_window} requests per {self.window_seconds} seconds allowed",
                retry_after=retry_after,
            )
        return count


auth_rate_limiter = RateLimiter("auth", config.AUTH_RATE_LIMIT_PER_MINUTE)


async def check_auth_rate_limit(request: Request, cache: redis.Redis = Depends(get_cache)) -> None:
    """FastAPI dependency limiting login/registration attempts per client IP.

    Example:
        @router.post("/login", dependencies=[Depends(check_auth_rate_limit)])
        async def login(...):
            ...
    """
    client_id = request.client.host if request.client else "unknown"
    try:
        await auth_rate_limiter.hit(cache, client_id)
    except redis.RedisError as e:
        # Redis outage must not lock every user out of login
        logger.warning(f"Rate limiter unavailable, allowing request: {e}")
