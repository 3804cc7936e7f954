"""
Notification inbox, delivery and per-creator opt-out settings (Redis).
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from src.cache import (
    NOTIFICATION_LIST_MAX,
    NOTIFICATION_LIST_TTL,
    NOTIFICATION_SETTINGS_TTL,
    notification_settings_key,
    notifications_key,
)
from src.notifications.constants import SETTING_DISABLED, SETTING_ENABLED
from src.notifications.exceptions import (
    NotificationDeliveryException,
    NotificationException,
    NotificationSettingsException,
)
from src.notifications.schemas import Notification

logger = logging.getLogger(__name__)


def rfc3339_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class NotificationService:
    def __init__(self, redis: aioredis.Redis):
        self.redis = redis

    @staticmethod
    def build(
        user_id: str,
        title: str,
        message: str,
        notification_type: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        return Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=notification_type,
            data=data,
            created_at=rfc3339_now(),
        )

    async def deliver(self, notification: Notification) -> None:
        """
        Push onto the user's inbox (newest first, capped, 30 day TTL) and
        publish the same JSON on the user's pub/sub channel.

        Redis errors propagate so queue handlers can requeue.
        """
        key = notifications_key(notification.user_id)
        payload = notification.model_dump_json(exclude_none=True)
        await self.redis.lpush(key, payload)
        await self.redis.ltrim(key, 0, NOTIFICATION_LIST_MAX - 1)
        await self.redis.expire(key, NOTIFICATION_LIST_TTL)
        await self.redis.publish(key, payload)

    async def send(
        self,
        user_id: str,
        title: str,
        message: str,
        notification_type: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        notification = self.build(user_id, title, message, notification_type, data)
        try:
            await self.deliver(notification)
        except RedisError as e:
            logger.error("Failed to send notification to user %s: %s", user_id, e)
            raise NotificationDeliveryException()
        logger.info("Notification sent to user %s: %s", user_id, title)
        return notification

    async def broadcast(
        self,
        user_ids: Iterable[str],
        title: str,
        message: str,
        notification_type: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Deliver to each user independently; returns how many succeeded."""
        sent = 0
        for user_id in user_ids:
            try:
                await self.deliver(self.build(user_id, title, message, notification_type, data))
            except RedisError as e:
                logger.error("Failed to send notification to user %s: %s", user_id, e)
                continue
            sent += 1
        logger.info("Broadcast notification sent to %d users: %s", sent, title)
        return sent

    async def get_notifications(self, user_id: str, limit: int, offset: int) -> Tuple[List[Notification], int]:
        key = notifications_key(user_id)
        try:
            raw_items = await self.redis.lrange(key, offset, offset + limit - 1)
            total = await self.redis.llen(key)
        except RedisError as e:
            logger.error("Failed to get notifications for %s: %s", user_id, e)
            raise NotificationException("Failed to get notifications")

        notifications = []
        for raw in raw_items:
            try:
                notifications.append(Notification.model_validate_json(raw))
            except ValueError:
                logger.warning("Skipping malformed notification for %s", user_id)
        return notifications, total

    async def delete_by_post_id(self, user_id: str, post_id: str) -> int:
        """
        Rewrite the inbox without entries whose `data.post_id` matches.

        Not atomic: a notification delivered during the rewrite can be lost.
        """
        key = notifications_key(user_id)
        try:
            raw_items = await self.redis.lrange(key, 0, -1)
        except RedisError as e:
            logger.error("Failed to read notifications for %s: %s", user_id, e)
            raise NotificationException("Failed to delete notification")

        remaining = []
        deleted = 0
        for raw in raw_items:
            try:
                data = json.loads(raw).get("data") or {}
            except (ValueError, AttributeError):
                remaining.append(raw)
                continue
            if data.get("post_id") == post_id:
                deleted += 1
            else:
                remaining.append(raw)

        if deleted:
            try:
                await self.redis.delete(key)
                if remaining:
                    await self.redis.rpush(key, *remaining)
                    await self.redis.expire(key, NOTIFICATION_LIST_TTL)
            except RedisError as e:
                logger.error("Failed to rewrite notifications for %s: %s", user_id, e)
                raise NotificationException("Failed to delete notification")
        return deleted

    async def is_enabled(self, user_id: str, creator_id: str) -> bool:
        """True only when the user explicitly opted in for this creator."""
        try:
            value = await self.redis.get(notification_settings_key(user_id, creator_id))
        except RedisError as e:
            logger.error("Failed to get notification settings: %s", e)
            raise NotificationSettingsException("Failed to get settings")
        return value == SETTING_ENABLED

    async def enable(self, user_id: str, creator_id: str) -> None:
        try:
            await self.redis.set(
                notification_settings_key(user_id, creator_id), SETTING_ENABLED, ex=NOTIFICATION_SETTINGS_TTL
            )
        except RedisError as e:
            logger.error("Failed to enable notifications: %s", e)
            raise NotificationSettingsException("Failed to enable notifications")
        logger.info("Enabled notifications for user %s, creator %s", user_id, creator_id)

    async def disable(self, user_id: str, creator_id: str) -> None:
        """
        Opt out of new-post notifications from a creator. The explicit "false"
        marker is what the fan-out checks, so it is stored without expiry.
        """
        try:
            await self.redis.set(notification_settings_key(user_id, creator_id), SETTING_DISABLED)
        except RedisError as e:
            logger.error("Failed to disable notifications: %s", e)
            raise NotificationSettingsException("Failed to disable notifications")
        logger.info("Disabled notifications for user %s, creator %s", user_id, creator_id)

    async def should_notify(self, user_id: str, creator_id: str) -> bool:
        """Fan-out check: only an explicit "false" suppresses delivery."""
        try:
            value = await self.redis.get(notification_settings_key(user_id, creator_id))
        except RedisError as e:
            logger.warning(
                "Failed to check notification settings for user %s, creator %s: %s (assuming enabled)",
                user_id, creator_id, e,
            )
            return True
        return value != SETTING_DISABLED
