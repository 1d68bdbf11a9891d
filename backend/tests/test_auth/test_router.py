import pytest
from httpx import AsyncClient

from finediet.auth.jwt import create_refresh_token
from finediet.config import settings


@pytest.mark.asyncio
async def test_register_success(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "Reader@MyFineDiet.com", "password": "password123", "full_name": "Rea Der"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "reader@myfinediet.com"
    assert data["user"]["role"] == "user"
    assert "access_token" in data
    assert "refresh_token" in data


@pytest.mark.asyncio
async def test_register_admin_email_gets_admin_role(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAILS", "owner@myfinediet.com, other@myfinediet.com")
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "owner@myfinediet.com", "password": "password123"},
    )
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "admin"


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient):
    payload = {"email": "dup@myfinediet.com", "password": "password123"}
    await client.post("/api/v1/auth/register", json=payload)
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_register_invalid_password_too_short(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": "short@myfinediet.com", "password": "abc"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, member):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "member@myfinediet.com", "password": "securepass123"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["id"] == str(member.id)
    assert "access_token" in data


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, member):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "member@myfinediet.com", "password": "wrongpass"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_login_nonexistent_email(client: AsyncClient):
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": "nobody@myfinediet.com", "password": "password123"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token(client: AsyncClient, member):
    response = await client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": create_refresh_token(str(member.id))},
    )
    assert response.status_code == 200
    assert "access_token" in response.json()


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client: AsyncClient, auth_headers: dict):
    access_token = auth_headers["Authorization"].removeprefix("Bearer ")
    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": access_token})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "member@myfinediet.com"


@pytest.mark.asyncio
async def test_me_unauthenticated(client: AsyncClient):
    response = await client.get("/api/v1/auth/me")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_invalid_token(client: AsyncClient):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_request_id_header_is_echoed(client: AsyncClient):
    response = await client.get("/api/v1/auth/me", headers={"X-Request-ID": "req-123"})
    assert response.status_code == 401
    assert response.headers["X-Request-ID"] == "req-123"

    response = await client.get("/api/v1/config/feature-flags:global")
    assert len(response.headers["X-Request-ID"]) == 32
