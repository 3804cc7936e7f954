from fastapi import Depends
from redis import asyncio as aioredis

from src.cache import get_redis
from src.feed.client import AuthServiceClient, get_auth_service_client
from src.feed.service import FeedService


def get_feed_service(
    redis: aioredis.Redis = Depends(get_redis),
    client: AuthServiceClient = Depends(get_auth_service_client),
) -> FeedService:
    return FeedService(redis, client)
