import pytest
from redis.exceptions import RedisError

from src.cache import rate_limit_key
from src.config import settings
from tests.utils import API, register


async def test_requests_over_limit_are_rejected(client, monkeypatch):
    u1 = await register(client, "u1")
    monkeypatch.setattr(settings, "RATE_LIMIT_DEFAULT", 2)

    assert (await client.get(f"{API}/wallet", headers=u1["headers"])).status_code == 200
    assert (await client.get(f"{API}/wallet", headers=u1["headers"])).status_code == 200
    response = await client.get(f"{API}/wallet", headers=u1["headers"])
    assert response.status_code == 429
    assert response.headers["Retry-After"] == str(settings.RATE_LIMIT_WINDOW_SECONDS)


async def test_window_is_per_user_and_path(client, redis, monkeypatch):
    u1 = await register(client, "u1")
    u2 = await register(client, "u2")
    monkeypatch.setattr(settings, "RATE_LIMIT_DEFAULT", 1)

    assert (await client.get(f"{API}/wallet", headers=u1["headers"])).status_code == 200
    assert (await client.get(f"{API}/wallet", headers=u2["headers"])).status_code == 200
    assert (await client.get(f"{API}/wallet/transactions", headers=u1["headers"])).status_code == 200

    key = rate_limit_key(f"{API}/wallet", u1["id"])
    assert await redis.get(key) == "1"
    assert 0 < await redis.ttl(key) <= settings.RATE_LIMIT_WINDOW_SECONDS


async def test_disabled_limiter_lets_everything_through(client, monkeypatch):
    u1 = await register(client, "u1")
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
    monkeypatch.setattr(settings, "RATE_LIMIT_DEFAULT", 1)

    for _ in range(3):
        assert (await client.get(f"{API}/wallet", headers=u1["headers"])).status_code == 200


@pytest.mark.parametrize("path", ["/me", "/notifications", "/notifications/settings/c1"])
async def test_profile_and_notification_routes_are_limited(client, monkeypatch, path):
    u1 = await register(client, "u1")
    monkeypatch.setattr(settings, "RATE_LIMIT_DEFAULT", 1)

    assert (await client.get(f"{API}{path}", headers=u1["headers"])).status_code == 200
    assert (await client.get(f"{API}{path}", headers=u1["headers"])).status_code == 429


async def test_window_ttl_does_not_depend_on_expire(client, redis, monkeypatch):
    u1 = await register(client, "u1")

    async def broken_expire(*args, **kwargs):
        raise RedisError("expire failed")

    monkeypatch.setattr(redis, "expire", broken_expire)
    assert (await client.get(f"{API}/wallet", headers=u1["headers"])).status_code == 200
    assert 0 < await redis.ttl(rate_limit_key(f"{API}/wallet", u1["id"])) <= settings.RATE_LIMIT_WINDOW_SECONDS
