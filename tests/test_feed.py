import httpx
import pytest

from src.cache import user_feed_key
from src.feed.client import AuthServiceClient, SubscriptionLookupError
from tests.utils import API, create_post, register


async def subscribe(client, viewer, creator_id):
    response = await client.post(
        f"{API}/users/{viewer['id']}/subscriptions/{creator_id}", headers=viewer["headers"]
    )
    assert response.status_code == 201, response.text


async def test_feed_puts_subscribed_creators_first(client):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    u3 = await register(client, "u3")
    await subscribe(client, u1, u2["id"])

    p2 = await create_post(client, u2["headers"], title="from u2")
    p3 = await create_post(client, u3["headers"], title="from u3")
    own = await create_post(client, u1["headers"], title="mine")

    response = await client.get(f"{API}/feed", headers=u1["headers"])
    assert response.status_code == 200
    body = response.json()
    ids = [p["id"] for p in body["posts"]]
    assert ids[:2] == [p2["id"], p3["id"]]
    assert own["id"] not in ids
    assert body["offset"] == 0
    assert body["posts"][0]["creator_username"] == "u2"


async def test_feed_is_memoized_per_user(client, redis):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    first = await create_post(client, u2["headers"])

    await client.get(f"{API}/feed", headers=u1["headers"])
    assert await redis.exists(user_feed_key(u1["id"]))

    await create_post(client, u2["headers"])
    response = await client.get(f"{API}/feed", params={"limit": 1}, headers=u1["headers"])
    assert [p["id"] for p in response.json()["posts"]] == [first["id"]]


async def test_feed_pages_keep_subscribed_posts_ahead_after_memo(client):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    u3 = await register(client, "u3")
    await subscribe(client, u1, u2["id"])

    subscribed = [await create_post(client, u2["headers"], title=f"s{i}") for i in range(4)]
    others = [await create_post(client, u3["headers"], title=f"o{i}") for i in range(2)]

    pages = []
    for offset in (0, 2, 4):
        response = await client.get(f"{API}/feed", params={"limit": 2, "offset": offset}, headers=u1["headers"])
        assert response.status_code == 200
        pages.append([p["id"] for p in response.json()["posts"]])

    assert pages[0] == [subscribed[3]["id"], subscribed[2]["id"]]
    assert pages[1] == [subscribed[1]["id"], subscribed[0]["id"]]
    assert pages[2] == [others[1]["id"], others[0]["id"]]


async def test_feed_skips_rejected_posts(client, session_factory):
    from sqlalchemy import update

    from src.posts.models import Post, PostStatus

    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    post = await create_post(client, u2["headers"])
    async with session_factory() as session:
        await session.execute(update(Post).where(Post.id == post["id"]).values(status=PostStatus.REJECTED))
        await session.commit()

    response = await client.get(f"{API}/feed", headers=u1["headers"])
    assert response.json()["posts"] == []


async def test_category_feed_reads_global_list(client):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    music = await create_post(client, u2["headers"], title="song", category="music")
    await create_post(client, u2["headers"], title="walk", category="travel")
    await create_post(client, u1["headers"], title="own song", category="music")

    response = await client.get(f"{API}/feed/category/music", headers=u1["headers"])
    assert response.status_code == 200
    body = response.json()
    assert body["category"] == "music"
    assert [p["id"] for p in body["posts"]] == [music["id"]]
    assert body["posts"][0]["images"][0]["order"] == 0


async def test_client_reads_creator_ids():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/users/u1/subscriptions"
        assert request.headers["Authorization"] == "Bearer t"
        return httpx.Response(200, json={"subscriptions": [{"creator_id": "c1"}, {"creator_id": "c2"}], "count": 2})

    client = AuthServiceClient(base_url="http://auth", transport=httpx.MockTransport(handler))
    assert await client.get_subscribed_creator_ids("u1", "Bearer t") == ["c1", "c2"]


async def test_client_raises_on_error_status():
    client = AuthServiceClient(
        base_url="http://auth", transport=httpx.MockTransport(lambda request: httpx.Response(403, json={}))
    )
    with pytest.raises(SubscriptionLookupError):
        await client.get_subscribed_creator_ids("u1", None)
