"""
Queue consumer for notification tasks.

Tasks arrive as JSON objects on `notification_queue` and are dispatched on
their `type` field. Delivery is at-least-once: handler failures requeue the
message, so handlers only perform idempotent or duplicate-tolerant writes.
"""
import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional

from aio_pika.abc import AbstractIncomingMessage
from redis import asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from src.broker import QueueBroker
from src.cache import get_redis
from src.config import settings
from src.database import AsyncSessionLocal
from src.notifications import constants
from src.notifications.constants import TaskType
from src.notifications.exceptions import InvalidTaskError
from src.notifications.service import NotificationService
from src.subscriptions.service import SubscriptionService
from src.users.service import UsersService

logger = logging.getLogger(__name__)


def _require(task: Dict[str, Any], *fields: str) -> None:
    missing = [f for f in fields if not task.get(f)]
    if missing:
        raise InvalidTaskError(f"{task.get('type')} task missing {', '.join(missing)}")


class NotificationConsumer:
    def __init__(
        self,
        broker: QueueBroker,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        redis: Optional[aioredis.Redis] = None,
        users_service: Optional[UsersService] = None,
        subscription_service: Optional[SubscriptionService] = None,
    ):
        self.broker = broker
        self.session_factory = session_factory
        self._redis = redis
        self.users_service = users_service or UsersService()
        self.subscription_service = subscription_service or SubscriptionService(self.users_service)

    @property
    def notifications(self) -> NotificationService:
        return NotificationService(self._redis or get_redis())

    async def start(self, prefetch_count: Optional[int] = None) -> None:
        await self.broker.consume(self.on_message, prefetch_count or settings.NOTIFICATION_PREFETCH)

    async def run(self, retry_delay: Optional[float] = None, max_delay: Optional[float] = None) -> None:
        """Start consuming, retrying with exponential backoff until the broker is reachable."""
        delay = retry_delay or settings.NOTIFICATION_CONSUMER_RETRY_SECONDS
        max_delay = max_delay or settings.NOTIFICATION_CONSUMER_RETRY_MAX_SECONDS
        while True:
            try:
                await self.start()
            except Exception as e:
                logger.warning("Notification consumer failed to start, retrying in %.1fs: %s", delay, e)
                await asyncio.sleep(delay)
                delay = min(delay * 2, max_delay)
                continue
            logger.info("Notification consumer started")
            return

    async def stop(self) -> None:
        await self.broker.stop_consuming()

    async def on_message(self, message: AbstractIncomingMessage) -> None:
        try:
            task = json.loads(message.body)
            if not isinstance(task, dict):
                raise ValueError("task body is not a JSON object")
        except (ValueError, UnicodeDecodeError) as e:
            logger.error("Dropping malformed notification task: %s", e)
            await message.nack(requeue=False)
            return

        try:
            await self.handle_task(task)
        except InvalidTaskError as e:
            logger.error("Dropping invalid notification task: %s", e)
            await message.nack(requeue=False)
            return
        except Exception as e:
            logger.error("Notification task %s failed, requeueing: %s", task.get("type"), e)
            await message.nack(requeue=True)
            return

        await message.ack()

    async def handle_task(self, task: Dict[str, Any]) -> None:
        task_type = task.get("type")
        async with self.session_factory() as db:
            if task_type == TaskType.NEW_POST.value:
                await self.handle_new_post(task, db)
            elif task_type == TaskType.LIKE.value:
                await self.handle_like(task, db)
            elif task_type == TaskType.SUBSCRIPTION.value:
                await self.handle_subscription(task, db)
            else:
                logger.warning("Unknown notification task type %r, acknowledging", task_type)

    async def handle_new_post(self, task: Dict[str, Any], db: AsyncSession) -> int:
        """Fan a new post out to the creator's subscribers. Returns how many were notified."""
        _require(task, "post_id", "creator_id")
        post_id, creator_id = task["post_id"], task["creator_id"]

        username = await self.users_service.get_username(creator_id, db)
        if not username:
            logger.warning("Creator %s not found, using id as display name", creator_id)
            username = creator_id

        subscriber_ids = await self.subscription_service.get_subscriber_ids(creator_id, db)
        if not subscriber_ids:
            logger.info("No subscribers for creator %s, nothing to send for post %s", creator_id, post_id)
            return 0

        service = self.notifications
        sent = skipped = 0
        for subscriber_id in subscriber_ids:
            if not await service.should_notify(subscriber_id, creator_id):
                skipped += 1
                continue
            await service.deliver(service.build(
                subscriber_id,
                constants.NEW_POST_TITLE,
                constants.NEW_POST_MESSAGE.format(username=username),
                TaskType.NEW_POST.value,
                {"post_id": post_id, "creator_id": creator_id},
            ))
            sent += 1

        logger.info(
            "Processed new_post %s: sent=%d skipped=%d subscribers=%d",
            post_id, sent, skipped, len(subscriber_ids),
        )
        return sent

    async def handle_like(self, task: Dict[str, Any], db: AsyncSession) -> None:
        _require(task, "user_id", "liker_id", "post_id")
        username = await self.users_service.get_username(task["liker_id"], db) or constants.UNKNOWN_ACTOR
        service = self.notifications
        await service.deliver(service.build(
            task["user_id"],
            constants.LIKE_TITLE,
            constants.LIKE_MESSAGE.format(username=username),
            TaskType.LIKE.value,
            {"post_id": task["post_id"], "liker_id": task["liker_id"]},
        ))

    async def handle_subscription(self, task: Dict[str, Any], db: AsyncSession) -> None:
        _require(task, "user_id", "subscriber_id")
        username = await self.users_service.get_username(task["subscriber_id"], db) or constants.UNKNOWN_ACTOR
        service = self.notifications
        await service.deliver(service.build(
            task["user_id"],
            constants.SUBSCRIPTION_TITLE,
            constants.SUBSCRIPTION_MESSAGE.format(username=username),
            TaskType.SUBSCRIPTION.value,
            {"subscriber_id": task["subscriber_id"]},
        ))
