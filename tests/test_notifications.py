import json

import pytest

from src.notifications.consumer import NotificationConsumer
from src.notifications.exceptions import InvalidTaskError
from src.notifications.service import NotificationService
from src.users.models import UserRole
from tests.utils import API, create_post, create_user, register


class FakeMessage:
    def __init__(self, body):
        self.body = body if isinstance(body, bytes) else json.dumps(body).encode()
        self.acked = False
        self.nacked = None

    async def ack(self):
        self.acked = True

    async def nack(self, requeue=True):
        self.nacked = requeue


@pytest.fixture
def consumer(broker, session_factory, redis):
    return NotificationConsumer(broker, session_factory=session_factory, redis=redis)


async def drain(consumer, broker, task_type="new_post"):
    for task in broker.tasks_of_type(task_type):
        await consumer.handle_task(task)
    broker.published.clear()


async def test_new_post_reaches_subscriber_inbox(client, broker, consumer):
    u2 = await register(client, "u2")
    u4 = await register(client, "u4")
    response = await client.post(f"{API}/users/{u4['id']}/subscriptions/{u2['id']}", headers=u4["headers"])
    assert response.status_code == 201

    p5 = await create_post(client, u2["headers"])
    await drain(consumer, broker)

    response = await client.get(f"{API}/notifications", headers=u4["headers"])
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    entry = body["notifications"][0]
    assert entry["type"] == "new_post"
    assert entry["data"]["post_id"] == p5["id"]
    assert entry["message"] == "Creator u2 just posted new content!"
    assert entry["created_at"].endswith("Z")


async def test_disabled_creator_sends_nothing(client, broker, consumer):
    u2 = await register(client, "u2")
    u4 = await register(client, "u4")
    await client.post(f"{API}/users/{u4['id']}/subscriptions/{u2['id']}", headers=u4["headers"])

    response = await client.delete(f"{API}/notifications/settings/{u2['id']}", headers=u4["headers"])
    assert response.json()["enabled"] is False

    await create_post(client, u2["headers"])
    await drain(consumer, broker)

    response = await client.get(f"{API}/notifications", headers=u4["headers"])
    assert response.json()["notifications"] == []

    # Re-enabling resumes delivery
    await client.post(f"{API}/notifications/settings/{u2['id']}", headers=u4["headers"])
    response = await client.get(f"{API}/notifications/settings/{u2['id']}", headers=u4["headers"])
    assert response.json() == {"enabled": True}
    await create_post(client, u2["headers"])
    await drain(consumer, broker)
    response = await client.get(f"{API}/notifications", headers=u4["headers"])
    assert response.json()["total"] == 1


async def test_like_and_subscription_notify_creator(client, broker, consumer):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    post = await create_post(client, u2["headers"])
    broker.published.clear()

    await client.post(f"{API}/users/{u1['id']}/subscriptions/{u2['id']}", headers=u1["headers"])
    await client.post(f"{API}/posts/{post['id']}/like", headers=u1["headers"])
    for task in list(broker.published):
        await consumer.handle_task(task)

    response = await client.get(f"{API}/notifications", headers=u2["headers"])
    types = sorted(n["type"] for n in response.json()["notifications"])
    assert types == ["like", "subscription"]


async def test_delete_notifications_for_post(client, redis):
    service = NotificationService(redis)
    u1 = await register(client, "u1")
    await service.send(u1["id"], "t", "m", "new_post", {"post_id": "p1"})
    await service.send(u1["id"], "t", "m", "new_post", {"post_id": "p2"})

    response = await client.delete(f"{API}/notifications/p1", headers=u1["headers"])
    assert response.json() == {"message": "Notification deleted", "deleted": 1}

    notifications, total = await service.get_notifications(u1["id"], 10, 0)
    assert total == 1
    assert notifications[0].data == {"post_id": "p2"}


async def test_inbox_is_capped(redis):
    service = NotificationService(redis)
    for i in range(105):
        await service.deliver(service.build("u1", "t", str(i), "new_post"))
    notifications, total = await service.get_notifications("u1", 5, 0)
    assert total == 100
    assert notifications[0].message == "104"


async def test_operator_endpoints_require_moderator(client, session_factory, broker):
    viewer = await register(client, "viewer")
    moderator = await create_user(session_factory, "mod", UserRole.MODERATOR)

    payload = {"user_id": viewer["id"], "title": "hello", "message": "hi", "type": "system"}
    response = await client.post(f"{API}/notifications/send", json=payload, headers=viewer["headers"])
    assert response.status_code == 403

    response = await client.post(f"{API}/notifications/send", json=payload, headers=moderator["headers"])
    assert response.status_code == 200
    assert response.json()["notification"]["title"] == "hello"

    response = await client.post(
        f"{API}/notifications/broadcast",
        json={"user_ids": [viewer["id"], "someone"], "title": "x", "message": "y", "type": "system"},
        headers=moderator["headers"],
    )
    assert response.json()["sent_count"] == 2

    response = await client.get(f"{API}/notifications/queue", headers=moderator["headers"])
    assert response.status_code == 200
    assert response.json()["queue_length"] == len(broker.published)


async def test_consumer_acks_and_nacks(consumer):
    message = FakeMessage(b"not json")
    await consumer.on_message(message)
    assert message.nacked is False

    message = FakeMessage({"type": "like", "post_id": "p1"})
    await consumer.on_message(message)
    assert message.nacked is False

    message = FakeMessage({"type": "unknown"})
    await consumer.on_message(message)
    assert message.acked is True


async def test_new_post_task_requires_ids(consumer, db):
    with pytest.raises(InvalidTaskError):
        await consumer.handle_new_post({"type": "new_post", "post_id": "p1"}, db)
