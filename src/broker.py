"""
Priority queue adapter (RabbitMQ via aio-pika).

Topology: a durable direct exchange `notifications` bound to the durable
priority queue `notification_queue` (x-max-priority=10) with routing key
`new_post`. Every task type travels on that one route; consumers dispatch on
the JSON body's `type` field.
"""
import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import aio_pika
from aio_pika import DeliveryMode, ExchangeType, Message
from aio_pika.abc import (
    AbstractChannel,
    AbstractExchange,
    AbstractIncomingMessage,
    AbstractQueue,
    AbstractRobustConnection,
)

from src.config import get_rabbitmq_url

logger = logging.getLogger(__name__)

NOTIFICATION_EXCHANGE = "notifications"
NOTIFICATION_QUEUE = "notification_queue"
NOTIFICATION_ROUTING_KEY = "new_post"
MAX_PRIORITY = 10
DEFAULT_PRIORITY = 1

MessageHandler = Callable[[AbstractIncomingMessage], Awaitable[None]]


def clamp_priority(priority: Optional[int]) -> int:
    if priority is None:
        return DEFAULT_PRIORITY
    return max(0, min(MAX_PRIORITY, int(priority)))


def build_message(task: Dict[str, Any], priority: Optional[int] = None) -> Message:
    return Message(
        body=json.dumps(task).encode("utf-8"),
        content_type="application/json",
        delivery_mode=DeliveryMode.PERSISTENT,
        priority=clamp_priority(priority),
        timestamp=datetime.now(timezone.utc),
    )


class QueueBroker:
    def __init__(self, url: Optional[str] = None):
        self.url = url or get_rabbitmq_url()
        self._connection: Optional[AbstractRobustConnection] = None
        self._channel: Optional[AbstractChannel] = None
        self._exchange: Optional[AbstractExchange] = None
        self._consumer: Optional[Tuple[AbstractQueue, str]] = None
        self._lock = asyncio.Lock()

    @staticmethod
    async def declare_topology(channel: AbstractChannel) -> Tuple[AbstractExchange, AbstractQueue]:
        exchange = await channel.declare_exchange(
            NOTIFICATION_EXCHANGE, ExchangeType.DIRECT, durable=True
        )
        queue = await channel.declare_queue(
            NOTIFICATION_QUEUE, durable=True, arguments={"x-max-priority": MAX_PRIORITY}
        )
        await queue.bind(exchange, routing_key=NOTIFICATION_ROUTING_KEY)
        return exchange, queue

    async def connect(self) -> None:
        async with self._lock:
            if self._connection is not None and not self._connection.is_closed:
                return
            self._connection = await aio_pika.connect_robust(self.url)
            self._channel = await self._connection.channel()
            self._exchange, _ = await self.declare_topology(self._channel)
            logger.info("Connected to RabbitMQ, exchange=%s queue=%s", NOTIFICATION_EXCHANGE, NOTIFICATION_QUEUE)

    async def publish(self, task: Dict[str, Any], priority: Optional[int] = None) -> None:
        """Publish a JSON task as a persistent message. Errors propagate."""
        await self.connect()
        await self._exchange.publish(build_message(task, priority), routing_key=NOTIFICATION_ROUTING_KEY)

    async def queue_length(self) -> int:
        await self.connect()
        queue = await self._channel.declare_queue(NOTIFICATION_QUEUE, passive=True)
        return queue.declaration_result.message_count or 0

    async def consume(self, handler: MessageHandler, prefetch_count: int = 10) -> None:
        """Start a manual-ack consumer on its own channel."""
        await self.connect()
        channel = await self._connection.channel()
        await channel.set_qos(prefetch_count=prefetch_count)
        _, queue = await self.declare_topology(channel)
        consumer_tag = await queue.consume(handler, no_ack=False)
        self._consumer = (queue, consumer_tag)
        logger.info("Consuming from %s (prefetch=%d)", NOTIFICATION_QUEUE, prefetch_count)

    async def stop_consuming(self) -> None:
        if self._consumer is None:
            return
        queue, consumer_tag = self._consumer
        self._consumer = None
        await queue.cancel(consumer_tag)
        logger.info("Notification consumer cancelled")

    async def close(self) -> None:
        await self.stop_consuming()
        if self._connection is not None and not self._connection.is_closed:
            await self._connection.close()
            logger.info("RabbitMQ connection closed")
        self._connection = None
        self._channel = None
        self._exchange = None


_broker: Optional[QueueBroker] = None


def get_queue_broker() -> QueueBroker:
    global _broker
    if _broker is None:
        _broker = QueueBroker()
    return _broker
