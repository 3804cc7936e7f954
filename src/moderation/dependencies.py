from fastapi import Depends
from redis import asyncio as aioredis

from src.cache import get_redis
from src.interactions.dependencies import get_interaction_service
from src.interactions.service import InteractionService
from src.moderation.service import ModerationService


def get_moderation_service(
    redis: aioredis.Redis = Depends(get_redis),
    interactions: InteractionService = Depends(get_interaction_service),
) -> ModerationService:
    return ModerationService(redis, interactions)
