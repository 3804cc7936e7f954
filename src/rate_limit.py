import logging
from typing import Optional

from fastapi import Depends, Request
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from src.auth.dependencies import get_optional_claims
from src.auth.schemas import TokenClaims
from src.cache import get_redis, rate_limit_key
from src.config import settings
from src.exceptions import RateLimitException, ServiceException

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window limiter keyed by (request path, user id or client IP).

    The first request of a window sets the TTL; later requests increment
    the counter and are rejected once it passes `limit`.

    Usage: `dependencies=[Depends(RateLimiter(limit=200))]`
    """

    def __init__(self, limit: Optional[int] = None, window_seconds: Optional[int] = None):
        self.limit = limit
        self.window_seconds = window_seconds

    async def __call__(
        self,
        request: Request,
        claims: Optional[TokenClaims] = Depends(get_optional_claims),
        redis: aioredis.Redis = Depends(get_redis),
    ) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return

        limit = self.limit or settings.RATE_LIMIT_DEFAULT
        window = self.window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS
        if claims is not None:
            principal = claims.user_id
        else:
            principal = request.client.host if request.client else "unknown"
        key = rate_limit_key(request.url.path, principal)

        try:
            # The window TTL is set in the same transaction as the first increment
            async with redis.pipeline(transaction=True) as pipe:
                pipe.set(key, 0, ex=window, nx=True)
                pipe.incr(key)
                _, count = await pipe.execute()
        except RedisError as e:
            logger.error("Rate limit check failed for %s: %s", key, e)
            raise ServiceException("Rate limit check failed")

        if count > limit:
            raise RateLimitException(retry_after=window)


default_rate_limit = RateLimiter()
feed_rate_limit = RateLimiter(limit=settings.RATE_LIMIT_FEED)
