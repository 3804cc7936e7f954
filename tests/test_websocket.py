import asyncio
import json

import fakeredis
import pytest
from fakeredis import aioredis as fake_aioredis
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

import src.main
from src.auth.utils import create_access_token
from src.notifications.connection_manager import ConnectionManager
from src.notifications.dependencies import get_connection_manager
from tests.utils import API, auth_headers

WS_PATH = f"{API}/notifications/ws"


@pytest.fixture
def server():
    return fakeredis.FakeServer()


@pytest.fixture
def manager(server):
    return ConnectionManager(
        redis_factory=lambda: fake_aioredis.FakeRedis(server=server, decode_responses=True),
        retry_delay=0.01,
        max_retry_delay=0.05,
    )


@pytest.fixture
def ws_client(manager, monkeypatch):
    # The lifespan starts and closes the manager on the TestClient's own loop
    monkeypatch.setattr(src.main, "get_connection_manager", lambda: manager)
    src.main.app.dependency_overrides[get_connection_manager] = lambda: manager
    with TestClient(src.main.app) as client:
        yield client
    src.main.app.dependency_overrides.clear()


def publish(client, server, user_id, payload):
    async def _publish():
        redis = fake_aioredis.FakeRedis(server=server, decode_responses=True)
        await redis.publish(f"notifications:{user_id}", json.dumps(payload))
        await redis.aclose()

    client.portal.call(_publish)


def test_push_reaches_socket_authenticated_by_query_token(ws_client, server):
    token = create_access_token("u1", "viewer")
    with ws_client.websocket_connect(f"{WS_PATH}?token={token}") as ws:
        ws.send_text("ping")
        assert ws.receive_text() == "pong"

        publish(ws_client, server, "u1", {"type": "like", "data": {"post_id": "p1"}})
        assert json.loads(ws.receive_text()) == {"type": "like", "data": {"post_id": "p1"}}


def test_push_accepts_bearer_header(ws_client, server):
    token = create_access_token("u2", "creator")
    with ws_client.websocket_connect(WS_PATH, headers=auth_headers(token)) as ws:
        ws.send_text("ping")
        assert ws.receive_text() == "pong"

        publish(ws_client, server, "someone-else", {"type": "like"})
        publish(ws_client, server, "u2", {"type": "subscription"})
        assert json.loads(ws.receive_text()) == {"type": "subscription"}


@pytest.mark.parametrize("query", ["", "?token=not-a-jwt"])
def test_bad_token_is_closed_with_policy_violation(ws_client, query):
    with pytest.raises(WebSocketDisconnect) as exc:
        with ws_client.websocket_connect(f"{WS_PATH}{query}"):
            pass
    assert exc.value.code == 1008


class RecordingSocket:
    def __init__(self):
        self.messages = []

    async def send_text(self, payload):
        self.messages.append(payload)


class DroppingPubSub:
    """Subscribes fine, then loses its connection as soon as it is read."""

    def __init__(self, inner):
        self.inner = inner

    async def psubscribe(self, *patterns):
        await self.inner.psubscribe(*patterns)

    async def listen(self):
        raise ConnectionError("connection reset by peer")
        yield

    async def punsubscribe(self, *patterns):
        await self.inner.punsubscribe(*patterns)

    async def aclose(self):
        await self.inner.aclose()


async def test_listener_restarts_after_losing_its_connection(server):
    calls = []

    def redis_factory():
        calls.append(1)
        redis = fake_aioredis.FakeRedis(server=server, decode_responses=True)
        if len(calls) == 1:
            pubsub = DroppingPubSub(redis.pubsub())
            redis.pubsub = lambda: pubsub
        return redis

    manager = ConnectionManager(redis_factory=redis_factory, retry_delay=0.01, max_retry_delay=0.05)
    socket = RecordingSocket()
    manager.user_connections["u1"] = {socket}
    await manager.start()

    for _ in range(100):
        if len(calls) >= 2 and manager._listener is not None and not manager._listener.done():
            break
        await asyncio.sleep(0.01)
    assert len(calls) >= 2

    publisher = fake_aioredis.FakeRedis(server=server, decode_responses=True)
    for _ in range(100):
        await publisher.publish("notifications:u1", json.dumps({"type": "new_post"}))
        await asyncio.sleep(0.01)
        if socket.messages:
            break
    assert json.loads(socket.messages[0]) == {"type": "new_post"}

    await publisher.aclose()
    await manager.close()
