"""
Key-value cache adapter (Redis).

All cache keys used by the application are built here so the layout stays in
one place:

    post:{id}                               post metadata hash (24h)
    feed:global / feed:global:{category}    recent post ids (7d, 10 000 max)
    feed:user:{user}                        memoized personalized feed (10 min)
    post:likes:{id} / post:views:{id}       counters (no TTL)
    post_viewed:{post}:{user}               view de-dup marker (365d)
    rate_limit:{path}:{principal}           fixed-window counter
    notifications:{user}                    inbox list (30d, 100 max) and pub/sub channel
    notification_settings:{user}:{creator}  per-creator opt-in flag (30d)
"""
import logging
from datetime import timedelta
from typing import Optional

from redis import asyncio as aioredis

from src.config import get_redis_url

logger = logging.getLogger(__name__)

POST_CACHE_TTL = timedelta(hours=24)
FEED_GLOBAL_TTL = timedelta(days=7)
FEED_GLOBAL_MAX = 10000
FEED_USER_TTL = timedelta(minutes=10)
VIEW_MARKER_TTL = timedelta(days=365)
NOTIFICATION_LIST_TTL = timedelta(days=30)
NOTIFICATION_LIST_MAX = 100
NOTIFICATION_SETTINGS_TTL = timedelta(days=30)


def post_key(post_id: str) -> str:
    return f"post:{post_id}"


def global_feed_key(category: Optional[str] = None) -> str:
    if category:
        return f"feed:global:{category}"
    return "feed:global"


def user_feed_key(user_id: str) -> str:
    return f"feed:user:{user_id}"


def post_likes_key(post_id: str) -> str:
    return f"post:likes:{post_id}"


def post_views_key(post_id: str) -> str:
    return f"post:views:{post_id}"


def post_viewed_key(post_id: str, user_id: str) -> str:
    return f"post_viewed:{post_id}:{user_id}"


def rate_limit_key(path: str, principal: str) -> str:
    return f"rate_limit:{path}:{principal}"


def notifications_key(user_id: str) -> str:
    """Inbox list key; also the name of the user's pub/sub channel."""
    return f"notifications:{user_id}"


def notification_settings_key(user_id: str, creator_id: str) -> str:
    return f"notification_settings:{user_id}:{creator_id}"


_redis: Optional[aioredis.Redis] = None


def get_redis() -> aioredis.Redis:
    """Process-wide client; the connection pool is created lazily."""
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(get_redis_url(), decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
        logger.info("Redis connection pool closed")
