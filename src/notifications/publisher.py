import logging
from typing import Any, Dict

from fastapi import Depends

from src.broker import QueueBroker, get_queue_broker
from src.notifications.constants import (
    LIKE_PRIORITY,
    NEW_POST_PRIORITY,
    SUBSCRIPTION_PRIORITY,
    TaskType,
)

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """
    Producer side of the notification queue.

    Publishing is awaited by the caller but never fails the originating
    request: broker errors are logged and reported as False.
    """

    def __init__(self, broker: QueueBroker):
        self.broker = broker

    async def _publish(self, task: Dict[str, Any]) -> bool:
        try:
            await self.broker.publish(task, priority=task.get("priority"))
            return True
        except Exception as e:
            logger.error("Failed to publish %s task: %s", task.get("type"), e)
            return False

    async def publish_new_post(self, post_id: str, creator_id: str, category: str) -> bool:
        return await self._publish({
            "type": TaskType.NEW_POST.value,
            "post_id": post_id,
            "creator_id": creator_id,
            "category": category or "",
            "priority": NEW_POST_PRIORITY,
        })

    async def publish_like(self, creator_id: str, liker_id: str, post_id: str) -> bool:
        return await self._publish({
            "type": TaskType.LIKE.value,
            "user_id": creator_id,
            "liker_id": liker_id,
            "post_id": post_id,
            "priority": LIKE_PRIORITY,
        })

    async def publish_subscription(self, creator_id: str, subscriber_id: str) -> bool:
        return await self._publish({
            "type": TaskType.SUBSCRIPTION.value,
            "user_id": creator_id,
            "subscriber_id": subscriber_id,
            "priority": SUBSCRIPTION_PRIORITY,
        })


def get_notification_publisher(broker: QueueBroker = Depends(get_queue_broker)) -> NotificationPublisher:
    return NotificationPublisher(broker)
