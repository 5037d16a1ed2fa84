"""
User endpoint tests: public profile reads and self-only name updates.
"""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_get_user_is_public(async_client: AsyncClient, signup):
    user_id = await signup("alice")
    await async_client.post("/logout")

    resp = await async_client.get(f"/user/{user_id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == user_id
    assert data["username"] == "alice"
    assert data["name"] is None
    assert "password_hash" not in data


@pytest.mark.asyncio
async def test_get_missing_user_is_404(async_client: AsyncClient):
    resp = await async_client.get("/user/404")
    assert resp.status_code == 404
    assert resp.json() == {"error": "not_found", "message": "User not found"}


@pytest.mark.asyncio
async def test_update_own_name(async_client: AsyncClient, signup):
    user_id = await signup("alice")
    resp = await async_client.put("/user", json={"id": user_id, "name": "Alice Liddell"})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Alice Liddell"

    resp = await async_client.get(f"/user/{user_id}")
    assert resp.json()["name"] == "Alice Liddell"


@pytest.mark.asyncio
async def test_update_with_empty_name_keeps_existing(async_client: AsyncClient, signup):
    user_id = await signup("alice")
    await async_client.put("/user", json={"id": user_id, "name": "Alice"})

    resp = await async_client.put("/user", json={"id": user_id, "name": ""})
    assert resp.status_code == 200
    assert resp.json()["name"] == "Alice"


@pytest.mark.asyncio
async def test_cannot_update_another_user(async_client: AsyncClient, signup):
    alice_id = await signup("alice")
    await signup("bob")

    resp = await async_client.put("/user", json={"id": alice_id, "name": "Mallory"})
    assert resp.status_code == 403
    assert resp.json()["error"] == "forbidden"
    assert (await async_client.get(f"/user/{alice_id}")).json()["name"] is None


@pytest.mark.asyncio
async def test_update_missing_user_is_404(async_client: AsyncClient, signup):
    await signup("alice")
    resp = await async_client.put("/user", json={"id": 9999, "name": "Ghost"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_with_malformed_id_is_400(async_client: AsyncClient, signup):
    await signup("alice")
    resp = await async_client.put("/user", json={"id": "not-an-id", "name": "x"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_update_requires_session(async_client: AsyncClient, signup):
    user_id = await signup("alice")
    await async_client.post("/logout")
    resp = await async_client.put("/user", json={"id": user_id, "name": "x"})
    assert resp.status_code == 401
