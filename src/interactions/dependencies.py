from fastapi import Depends
from redis import asyncio as aioredis

from src.cache import get_redis
from src.interactions.service import InteractionService
from src.notifications.publisher import NotificationPublisher, get_notification_publisher


def get_interaction_service(
    redis: aioredis.Redis = Depends(get_redis),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
) -> InteractionService:
    return InteractionService(redis, publisher)
