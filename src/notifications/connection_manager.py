import asyncio
import logging
from typing import Callable, Dict, Optional, Set

from fastapi import WebSocket
from redis import asyncio as aioredis
from redis.asyncio.client import PubSub

from src.cache import get_redis

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "notifications:"
CHANNEL_PATTERN = CHANNEL_PREFIX + "*"


class ConnectionManager:
    """
    Websocket registry plus a single pub/sub listener per process.

    One pattern subscription on `notifications:*` receives every user's
    notifications; each message is routed to the sockets registered for the
    user named by its channel.
    """

    def __init__(
        self,
        redis_factory: Callable[[], aioredis.Redis] = get_redis,
        retry_delay: float = 1.0,
        max_retry_delay: float = 30.0,
    ):
        self.redis_factory = redis_factory
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay
        self.user_connections: Dict[str, Set[WebSocket]] = {}
        self._pubsub: Optional[PubSub] = None
        self._listener: Optional[asyncio.Task] = None
        self._restarter: Optional[asyncio.Task] = None
        self._closing = False
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: str) -> None:
        await websocket.accept()
        self.user_connections.setdefault(user_id, set()).add(websocket)
        await self.start()

    def disconnect(self, websocket: WebSocket, user_id: str) -> None:
        sockets = self.user_connections.get(user_id)
        if sockets is None:
            return
        sockets.discard(websocket)
        if not sockets:
            self.user_connections.pop(user_id, None)

    async def start(self) -> None:
        """Start the shared listener if it is not already running."""
        async with self._lock:
            if self._listener is not None and not self._listener.done():
                return
            await self._drop_pubsub()
            self._closing = False
            self._pubsub = self.redis_factory().pubsub()
            await self._pubsub.psubscribe(CHANNEL_PATTERN)
            self._listener = asyncio.create_task(self._listen(self._pubsub))
            logger.info("Subscribed to %s", CHANNEL_PATTERN)

    async def _listen(self, pubsub: PubSub) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "pmessage":
                    continue
                channel = message["channel"]
                if not channel.startswith(CHANNEL_PREFIX):
                    continue
                await self.send_to_user(channel[len(CHANNEL_PREFIX):], message["data"])
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Notification listener stopped: %s", e)
        if not self._closing:
            self._schedule_restart()

    def _schedule_restart(self) -> None:
        if self._restarter is not None and not self._restarter.done():
            return
        self._restarter = asyncio.create_task(self._restart())

    async def _restart(self) -> None:
        delay = self.retry_delay
        while not self._closing:
            await asyncio.sleep(delay)
            try:
                await self.start()
                return
            except Exception as e:
                logger.warning("Notification listener restart failed, retrying in %.1fs: %s", delay, e)
                delay = min(delay * 2, self.max_retry_delay)

    async def send_to_user(self, user_id: str, payload: str) -> int:
        """Write the raw payload to every socket of the user; returns how many received it."""
        delivered = 0
        for websocket in list(self.user_connections.get(user_id, ())):
            try:
                await websocket.send_text(payload)
                delivered += 1
            except Exception as e:
                logger.info("Dropping broken websocket for user %s: %s", user_id, e)
                self.disconnect(websocket, user_id)
        return delivered

    async def _drop_pubsub(self) -> None:
        if self._pubsub is None:
            return
        try:
            await self._pubsub.punsubscribe(CHANNEL_PATTERN)
            await self._pubsub.aclose()
        except Exception as e:
            logger.warning("Error closing notification pub/sub: %s", e)
        self._pubsub = None

    async def close(self) -> None:
        self._closing = True
        for task in (self._restarter, self._listener):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._restarter = None
        self._listener = None
        await self._drop_pubsub()
