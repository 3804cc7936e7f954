from src.cache import global_feed_key, post_key
from tests.utils import API, create_post, register


async def test_create_photo_post(client, storage, redis, broker):
    u1 = await register(client, "u1")
    post = await create_post(client, u1["headers"], title="  hi   there ", category="music")

    assert post["title"] == "hi there"
    assert post["status"] == "pending"
    assert post["creator_id"] == u1["id"]
    assert len(post["images"]) == 1
    assert post["images"][0]["order"] == 0
    assert "media_url" not in post
    assert len(storage.objects) == 1

    cached = await redis.hgetall(post_key(post["id"]))
    assert cached["creator_id"] == u1["id"]
    assert cached["status"] == "pending"
    assert await redis.lrange(global_feed_key(), 0, -1) == [post["id"]]
    assert await redis.lrange(global_feed_key("music"), 0, -1) == [post["id"]]

    tasks = broker.tasks_of_type("new_post")
    assert len(tasks) == 1
    assert tasks[0]["post_id"] == post["id"]
    assert tasks[0]["creator_id"] == u1["id"]


async def test_images_keep_upload_order(client):
    u1 = await register(client, "u1")
    post = await create_post(client, u1["headers"], images=3)
    assert [image["order"] for image in post["images"]] == [0, 1, 2]


async def test_create_video_post(client):
    u1 = await register(client, "u1")
    response = await client.post(
        f"{API}/posts",
        data={"title": "clip", "type": "video"},
        files={"media": ("clip.mp4", b"\x00\x00\x00\x18ftyp", "video/mp4")},
        headers=u1["headers"],
    )
    assert response.status_code == 201
    body = response.json()
    assert body["type"] == "video"
    assert body["media_url"].endswith(".mp4")
    assert body["images"] == []


async def test_create_post_validation(client, storage):
    u1 = await register(client, "u1")
    jpeg = ("images", ("a.jpg", b"\xff\xd8", "image/jpeg"))

    response = await client.post(f"{API}/posts", data={"title": " ", "type": "photo"}, files=[jpeg], headers=u1["headers"])
    assert response.status_code == 400

    response = await client.post(f"{API}/posts", data={"title": "x", "type": "audio"}, files=[jpeg], headers=u1["headers"])
    assert response.status_code == 400

    gif = ("images", ("a.gif", b"GIF89a", "image/gif"))
    response = await client.post(f"{API}/posts", data={"title": "x", "type": "photo"}, files=[gif], headers=u1["headers"])
    assert response.status_code == 400

    too_many = [("images", (f"{i}.jpg", b"\xff\xd8", "image/jpeg")) for i in range(11)]
    response = await client.post(f"{API}/posts", data={"title": "x", "type": "photo"}, files=too_many, headers=u1["headers"])
    assert response.status_code == 400

    response = await client.post(
        f"{API}/posts",
        data={"title": "x", "type": "video"},
        files={"media": ("clip.mkv", b"\x00", "video/x-matroska")},
        headers=u1["headers"],
    )
    assert response.status_code == 400

    assert storage.objects == {}


async def test_create_post_requires_auth(client):
    response = await client.post(f"{API}/posts", data={"title": "x", "type": "photo"})
    assert response.status_code == 401


async def test_get_post_counts_one_view_per_user(client):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    u3 = await register(client, "u3")
    post = await create_post(client, u1["headers"])

    first = await client.get(f"{API}/posts/{post['id']}", headers=u2["headers"])
    assert first.status_code == 200
    views = first.json()["views"]
    assert views == 1

    again = await client.get(f"{API}/posts/{post['id']}", headers=u2["headers"])
    assert again.json()["views"] == views

    other = await client.get(f"{API}/posts/{post['id']}", headers=u3["headers"])
    assert other.json()["views"] == views + 1


async def test_get_unknown_post(client):
    u1 = await register(client, "u1")
    response = await client.get(f"{API}/posts/missing", headers=u1["headers"])
    assert response.status_code == 404


async def test_update_post_owner_only(client, redis):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    post = await create_post(client, u1["headers"])

    response = await client.put(f"{API}/posts/{post['id']}", json={"title": "new"}, headers=u2["headers"])
    assert response.status_code == 403

    response = await client.put(
        f"{API}/posts/{post['id']}", json={"title": "new", "category": "dance"}, headers=u1["headers"]
    )
    assert response.status_code == 200
    assert response.json()["title"] == "new"
    assert response.json()["category"] == "dance"
    assert await redis.hget(post_key(post["id"]), "title") == "new"


async def test_delete_post_soft_deletes(client, redis):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    post = await create_post(client, u1["headers"])

    response = await client.delete(f"{API}/posts/{post['id']}", headers=u2["headers"])
    assert response.status_code == 403

    response = await client.delete(f"{API}/posts/{post['id']}", headers=u1["headers"])
    assert response.status_code == 200
    assert not await redis.exists(post_key(post["id"]))

    response = await client.get(f"{API}/posts/{post['id']}", headers=u1["headers"])
    assert response.status_code == 404


async def test_list_and_creator_posts(client):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    first = await create_post(client, u1["headers"], title="first")
    second = await create_post(client, u1["headers"], title="second")
    await create_post(client, u2["headers"], title="other")

    response = await client.get(f"{API}/posts/creator/{u1['id']}", headers=u2["headers"])
    assert response.status_code == 200
    assert [p["id"] for p in response.json()["posts"]] == [second["id"], first["id"]]

    response = await client.get(f"{API}/posts", params={"limit": 2}, headers=u2["headers"])
    assert response.json()["count"] == 2


async def test_media_url_is_presigned(client):
    u1 = await register(client, "u1")
    post = await create_post(client, u1["headers"])

    response = await client.get(f"{API}/posts/{post['id']}/media-url", params={"expires": 60}, headers=u1["headers"])
    assert response.status_code == 200
    body = response.json()
    assert body["expires_in"] == 60
    assert "X-Amz-Expires=60" in body["url"]


async def test_unexpected_upload_error_is_not_echoed(client, storage, monkeypatch):
    u1 = await register(client, "u1")

    async def exploding_upload(fileobj, key, content_type):
        raise RuntimeError("endpoint s3.internal:9000 rejected access key AKIA123")

    monkeypatch.setattr(storage, "upload_fileobj", exploding_upload)
    response = await client.post(
        f"{API}/posts",
        data={"title": "hi", "type": "photo"},
        files=[("images", ("a.jpg", b"\xff\xd8\xff", "image/jpeg"))],
        headers=u1["headers"],
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to create post"
