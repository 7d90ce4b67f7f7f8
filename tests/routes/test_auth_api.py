import pytest

pytestmark = pytest.mark.asyncio


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register(client, username: str, password: str = "secret123"):
    resp = await client.post("/api/auth/register", json={
        "username": username,
        "password": password,
        "real_name": "Tester",
        "date_of_birth": "1990-05-01",
    })
    return resp


async def test_register_login_and_me(client):
    resp = await register(client, "alice_01")
    assert resp.status_code == 201
    body = resp.json()
    assert body["code"] == 0
    assert body["data"]["user"]["role"] == "admin"
    assert body["data"]["token_type"] == "bearer"

    resp = await client.post("/api/auth/login", json={"username": "alice_01", "password": "secret123"})
    assert resp.status_code == 200
    token = resp.json()["data"]["access_token"]

    me = await client.get("/api/auth/me", headers=bearer(token))
    assert me.status_code == 200
    assert me.json()["data"]["username"] == "alice_01"

    refreshed = await client.post("/api/auth/refresh-token", headers=bearer(token))
    assert refreshed.status_code == 200
    assert refreshed.json()["data"]["access_token"]


async def test_duplicate_username_conflicts(client):
    assert (await register(client, "alice_01")).status_code == 201
    resp = await register(client, "alice_01")
    assert resp.status_code == 409
    assert resp.json()["data"] is None


async def test_invalid_registration_rejected(client):
    assert (await register(client, "abc")).status_code == 400
    assert (await register(client, "valid_name", password="short")).status_code == 400


async def test_wrong_password_is_unauthorized(client):
    await register(client, "alice_01")
    resp = await client.post("/api/auth/login", json={"username": "alice_01", "password": "wrong1234"})
    assert resp.status_code == 401


async def test_missing_or_bad_token(client):
    assert (await client.get("/api/auth/me")).status_code == 401
    assert (await client.get("/api/auth/me", headers=bearer("garbage"))).status_code == 401


async def test_check_username(client):
    await register(client, "alice_01")
    taken = (await client.get("/api/auth/check-username/alice_01")).json()["data"]
    free = (await client.get("/api/auth/check-username/bob_0001")).json()["data"]
    invalid = (await client.get("/api/auth/check-username/ab")).json()["data"]
    assert taken == {"username": "alice_01", "available": False, "valid": True}
    assert free["available"] is True
    assert invalid["valid"] is False


async def test_health_endpoint(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")
