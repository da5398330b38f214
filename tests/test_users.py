"""
User and token endpoint tests — sign-up, duplicate handling, login and
identity resolution from bearer tokens.
"""
import pytest
from httpx import AsyncClient

from app.security import create_access_token


@pytest.mark.asyncio
async def test_sign_up(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/users", json={
        "username": "newcomer",
        "password": "long-enough-password",
        "display_name": "New Comer",
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["username"] == "newcomer"
    assert data["display_name"] == "New Comer"
    assert "password" not in data
    assert "password_hash" not in data


@pytest.mark.asyncio
async def test_duplicate_username_returns_409(async_client: AsyncClient):
    payload = {"username": "dup_user", "password": "long-enough-password"}
    assert (await async_client.post("/api/v1/users", json=payload)).status_code == 201
    resp = await async_client.post("/api/v1/users", json=payload)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_short_password_is_rejected(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/users", json={"username": "shorty", "password": "123"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_token_with_wrong_password(async_client: AsyncClient):
    await async_client.post("/api/v1/users", json={
        "username": "locked", "password": "long-enough-password",
    })
    resp = await async_client.post("/api/v1/auth/token", json={
        "username": "locked", "password": "wrong-password",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_for_unknown_user(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/auth/token", json={
        "username": "nobody", "password": "whatever-password",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_returns_current_user(async_client: AsyncClient, auth_headers):
    headers = await auth_headers("me_user")
    resp = await async_client.get("/api/v1/users/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["username"] == "me_user"


@pytest.mark.asyncio
async def test_me_requires_authentication(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/users/me")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_token_for_deleted_user_is_rejected(async_client: AsyncClient):
    """A well-formed token for a user id that does not exist resolves to no identity."""
    headers = {"Authorization": f"Bearer {create_access_token(424242)}"}
    resp = await async_client.get("/api/v1/users/me", headers=headers)
    assert resp.status_code == 401
