"""Tests for the users API endpoints."""

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.conftest import create_user


async def test_register_user(client: AsyncClient):
    """POST /api/users should create a voter with a stable id."""
    resp = await client.post("/api/users", json={"name": "yash", "display_name": "Yash"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "yash"
    assert data["display_name"] == "Yash"
    assert data["id"]


async def test_register_user_minimal(client: AsyncClient):
    resp = await client.post("/api/users", json={"name": "alice"})
    assert resp.status_code == 201
    assert resp.json()["display_name"] is None


async def test_register_user_blank_name(client: AsyncClient):
    resp = await client.post("/api/users", json={"name": "  "})
    assert resp.status_code == 400


async def test_registered_user_can_sign_in(client: AsyncClient):
    """The returned id works as the identity header straight away."""
    user_id = (await client.post("/api/users", json={"name": "alice"})).json()["id"]

    resp = await client.get("/api/users/me", headers={"X-User-Id": user_id})
    assert resp.status_code == 200
    assert resp.json()["name"] == "alice"


async def test_get_current_user(client: AsyncClient, db: AsyncSession):
    """GET /api/users/me should return the caller."""
    user = await create_user(db, name="yash", display_name="Yash")
    await db.commit()

    resp = await client.get("/api/users/me", headers={"X-User-Id": user.id})
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "yash"
    assert data["display_name"] == "Yash"


async def test_get_current_user_anonymous(client: AsyncClient):
    """GET /api/users/me should 401 without a known identity."""
    resp = await client.get("/api/users/me")
    assert resp.status_code == 401

    resp = await client.get("/api/users/me", headers={"X-User-Id": "unknown"})
    assert resp.status_code == 401


async def test_update_profile(client: AsyncClient, db: AsyncSession):
    """PATCH /api/users/me should update the caller's profile."""
    user = await create_user(db, name="yash")
    await db.commit()

    resp = await client.patch(
        "/api/users/me",
        json={"name": "yash", "display_name": "Yash K"},
        headers={"X-User-Id": user.id},
    )
    assert resp.status_code == 200
    assert resp.json()["display_name"] == "Yash K"
