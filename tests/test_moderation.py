from src.cache import post_key
from src.users.models import UserRole
from tests.utils import API, create_post, create_user, register


async def test_pending_queue_oldest_first(client, session_factory):
    moderator = await create_user(session_factory, "mod", UserRole.MODERATOR)
    creator = await register(client, "creator")
    first = await create_post(client, creator["headers"], title="first")
    second = await create_post(client, creator["headers"], title="second")

    response = await client.get(f"{API}/moderation/pending", headers=moderator["headers"])
    assert response.status_code == 200
    body = response.json()
    assert [p["id"] for p in body["posts"]] == [first["id"], second["id"]]
    assert body["count"] == 2


async def test_review_updates_status_and_cache(client, session_factory, redis):
    moderator = await create_user(session_factory, "mod", UserRole.MODERATOR)
    creator = await register(client, "creator")
    post = await create_post(client, creator["headers"])

    response = await client.post(
        f"{API}/moderation/review/{post['id']}",
        json={"status": "approved", "comment": "looks fine"},
        headers=moderator["headers"],
    )
    assert response.status_code == 200
    assert response.json() == {"message": "Post reviewed successfully", "post_id": post["id"], "status": "approved"}
    assert await redis.hget(post_key(post["id"]), "status") == "approved"

    response = await client.post(f"{API}/moderation/reject/{post['id']}", headers=moderator["headers"])
    assert response.json()["status"] == "rejected"
    assert await redis.hget(post_key(post["id"]), "status") == "rejected"

    response = await client.get(f"{API}/moderation/pending", headers=moderator["headers"])
    assert response.json()["posts"] == []


async def test_review_rejects_pending_status(client, session_factory):
    moderator = await create_user(session_factory, "mod", UserRole.MODERATOR)
    creator = await register(client, "creator")
    post = await create_post(client, creator["headers"])

    response = await client.post(
        f"{API}/moderation/review/{post['id']}", json={"status": "pending"}, headers=moderator["headers"]
    )
    assert response.status_code == 400


async def test_moderation_requires_role_and_known_post(client, session_factory):
    moderator = await create_user(session_factory, "mod", UserRole.MODERATOR)
    viewer = await register(client, "viewer")

    response = await client.get(f"{API}/moderation/pending", headers=viewer["headers"])
    assert response.status_code == 403

    response = await client.post(f"{API}/moderation/approve/missing", headers=moderator["headers"])
    assert response.status_code == 404
