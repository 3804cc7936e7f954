from datetime import timedelta

import pytest

from src.auth import constants
from src.auth.exceptions import TokenNotValidException
from src.auth.utils import create_access_token, decode_access_token, extract_bearer_token
from src.users.models import User
from tests.utils import API, auth_headers, create_user, register


async def test_register_login_and_me(client):
    response = await client.post(
        f"{API}/register", json={"email": "a@x", "username": "a", "password": "secret1"}
    )
    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    user_id = body["user"]["id"]
    assert user_id

    response = await client.post(f"{API}/login", json={"email": "a@x", "password": "secret1"})
    assert response.status_code == 200
    token = response.json()["token"]

    response = await client.get(f"{API}/me", headers=auth_headers(token))
    assert response.status_code == 200
    me = response.json()
    assert me["id"] == user_id
    assert "password" not in me
    assert "password_hash" not in me

    response = await client.post(f"{API}/login", json={"email": "a@x", "password": "wrong"})
    assert response.status_code == 401


async def test_login_of_inactive_account_is_forbidden(client, session_factory):
    from sqlalchemy import update

    await create_user(session_factory, "sleepy")
    async with session_factory() as session:
        await session.execute(update(User).where(User.username == "sleepy").values(is_active=False))
        await session.commit()

    response = await client.post(f"{API}/login", json={"email": "sleepy@example.com", "password": "secret1"})
    assert response.status_code == 403
    assert response.json()["detail"] == constants.ACCOUNT_INACTIVE

    response = await client.post(f"{API}/login", json={"email": "sleepy@example.com", "password": "nope123"})
    assert response.status_code == 401


async def test_register_duplicate_email_conflicts(client):
    await register(client, "dup")
    response = await client.post(
        f"{API}/register", json={"email": "dup@example.com", "username": "other", "password": "secret1"}
    )
    assert response.status_code == 409


async def test_register_rejects_short_password(client):
    response = await client.post(
        f"{API}/register", json={"email": "b@x", "username": "b", "password": "123"}
    )
    assert response.status_code == 422


@pytest.mark.parametrize("header", [None, "Token abc", "Bearer", "Bearer not-a-jwt"])
async def test_protected_route_requires_valid_bearer(client, header):
    headers = {"Authorization": header} if header else {}
    response = await client.get(f"{API}/me", headers=headers)
    assert response.status_code == 401


def test_token_round_trip_keeps_claims():
    token = create_access_token("user-1", "creator")
    claims = decode_access_token(token)
    assert claims.user_id == "user-1"
    assert claims.role == "creator"


def test_expired_token_is_rejected():
    token = create_access_token("user-1", "viewer", expires_delta=timedelta(seconds=-10))
    with pytest.raises(TokenNotValidException):
        decode_access_token(token)


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc") == "abc"
    assert extract_bearer_token("bearer abc") is None
    assert extract_bearer_token("Bearer a b") is None
    assert extract_bearer_token(None) is None
