from fastapi import Depends
from redis import asyncio as aioredis

from src.cache import get_redis
from src.interactions.dependencies import get_interaction_service
from src.interactions.service import InteractionService
from src.notifications.publisher import NotificationPublisher, get_notification_publisher
from src.posts.service import PostService
from src.storage import S3StorageService, get_storage_service


def get_post_service(
    storage: S3StorageService = Depends(get_storage_service),
    redis: aioredis.Redis = Depends(get_redis),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
    interactions: InteractionService = Depends(get_interaction_service),
) -> PostService:
    return PostService(storage, redis, publisher, interactions)
