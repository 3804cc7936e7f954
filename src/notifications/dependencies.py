from fastapi import Depends
from redis import asyncio as aioredis

from src.cache import get_redis
from src.notifications.connection_manager import ConnectionManager
from src.notifications.service import NotificationService

# Global connection manager instance
_connection_manager = None


def get_connection_manager() -> ConnectionManager:
    """Get the global connection manager instance"""
    global _connection_manager
    if _connection_manager is None:
        _connection_manager = ConnectionManager()
    return _connection_manager


def get_notification_service(redis: aioredis.Redis = Depends(get_redis)) -> NotificationService:
    return NotificationService(redis)
