"""User and session routes: register, login, profile, logout.

Invariants:
    - Login sets an HttpOnly session cookie and never returns the token in the body
    - Failed logins are indistinguishable
    - A missing or tampered session is a 401 JSON error, never a 500
"""


async def test_register_returns_user_without_password(client):
    res = await client.post("/api/v1/register", json={"username": "alice", "password": "wonderland"})

    assert res.status_code == 201
    body = res.json()
    assert body["username"] == "alice"
    assert isinstance(body["id"], int)
    assert "password" not in body


async def test_register_duplicate_username(client):
    payload = {"username": "alice", "password": "wonderland"}
    await client.post("/api/v1/register", json=payload)

    res = await client.post("/api/v1/register", json=payload)

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "DUPLICATE_USERNAME"


async def test_register_short_username(client):
    res = await client.post("/api/v1/register", json={"username": "abc", "password": "pw"})

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_login_sets_session_cookie(client):
    await client.post("/api/v1/register", json={"username": "alice", "password": "wonderland"})

    res = await client.post("/api/v1/login", json={"username": "alice", "password": "wonderland"})

    assert res.status_code == 200
    assert res.json()["username"] == "alice"
    assert "token" not in res.json()
    set_cookie = res.headers["set-cookie"].lower()
    assert set_cookie.startswith("token=")
    assert "httponly" in set_cookie


async def test_profile_reads_cookie_session(client):
    created = (
        await client.post("/api/v1/register", json={"username": "alice", "password": "wonderland"})
    ).json()
    await client.post("/api/v1/login", json={"username": "alice", "password": "wonderland"})

    res = await client.get("/api/v1/profile")

    assert res.status_code == 200
    assert res.json() == {"username": "alice", "user_id": created["id"]}


async def test_profile_accepts_bearer_token(client, login):
    headers = await login("alice")

    res = await client.get("/api/v1/profile", headers=headers)

    assert res.status_code == 200
    assert res.json()["username"] == "alice"


async def test_failed_logins_are_indistinguishable(client):
    await client.post("/api/v1/register", json={"username": "alice", "password": "wonderland"})

    wrong_password = await client.post("/api/v1/login", json={"username": "alice", "password": "nope"})
    unknown_user = await client.post("/api/v1/login", json={"username": "nobody", "password": "nope"})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()
    assert "set-cookie" not in wrong_password.headers


async def test_profile_without_session(client):
    res = await client.get("/api/v1/profile")

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "INVALID_TOKEN"


async def test_profile_with_tampered_token(client, login):
    headers = await login("alice")
    headers["Authorization"] = headers["Authorization"][:-3] + "xyz"

    res = await client.get("/api/v1/profile", headers=headers)

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "INVALID_TOKEN"


async def test_logout_clears_cookie(client, login):
    await login("alice")

    res = await client.post("/api/v1/logout")

    assert res.status_code == 200
    assert res.json() == "ok"
    set_cookie = res.headers["set-cookie"].lower()
    assert set_cookie.startswith("token=")
    assert "max-age=0" in set_cookie
