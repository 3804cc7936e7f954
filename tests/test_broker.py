import json

from aio_pika import DeliveryMode

from src.broker import DEFAULT_PRIORITY, MAX_PRIORITY, build_message, clamp_priority
from src.notifications.publisher import NotificationPublisher
from tests.utils import FakeBroker


def test_clamp_priority():
    assert clamp_priority(None) == DEFAULT_PRIORITY
    assert clamp_priority(-3) == 0
    assert clamp_priority(42) == MAX_PRIORITY
    assert clamp_priority(5) == 5


def test_build_message_is_persistent_json():
    message = build_message({"type": "new_post", "post_id": "p1"}, priority=5)
    assert json.loads(message.body) == {"type": "new_post", "post_id": "p1"}
    assert message.content_type == "application/json"
    assert message.delivery_mode == DeliveryMode.PERSISTENT
    assert message.priority == 5


class FailingBroker:
    async def publish(self, task, priority=None):
        raise ConnectionError("broker down")


async def test_publisher_reports_failures_without_raising():
    publisher = NotificationPublisher(FailingBroker())
    assert await publisher.publish_new_post("p1", "c1", "music") is False


async def test_publisher_task_shapes():
    broker = FakeBroker()
    publisher = NotificationPublisher(broker)
    assert await publisher.publish_new_post("p1", "c1", "") is True
    await publisher.publish_subscription(creator_id="c1", subscriber_id="v1")

    new_post, subscription = broker.published
    assert new_post["type"] == "new_post"
    assert new_post["priority"] > subscription["priority"]
    assert subscription == {
        "type": "subscription",
        "user_id": "c1",
        "subscriber_id": "v1",
        "priority": subscription["priority"],
    }
