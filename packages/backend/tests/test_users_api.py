"""User & session API tests.

Learn: Tests cover:
1. Registration validation + duplicate prevention
2. Login by username or email → token pair in body and cookies
3. Token refresh via cookie or body, rotation, replay rejection
4. Logout revokes the refresh token and clears cookies
5. Protected /me endpoint with cookie or Bearer header
"""

import uuid

import pytest

from conftest import PASSWORD
from vidshare.config import settings
from vidshare.services.user_service import UserService

AVATAR = "https://cdn.example.com/avatar.png"


def _register_body(name: str, **overrides) -> dict:
    """Valid registration body for `name`; overrides replace any field."""
    body = {
        "fullname": "Test User",
        "email": f"{name}@example.com",
        "username": name,
        "password": PASSWORD,
        "avatar": AVATAR,
    }
    body.update(overrides)
    return body


def _name(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:8]}"


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_user(client):
    username = _name("Reg")
    r = await client.post(
        "/api/v1/users/register",
        json=_register_body(username, coverImage="https://cdn.example.com/cover.png"),
    )
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["statusCode"] == 201
    user = body["data"]
    assert user["username"] == username.lower()
    assert user["email"] == f"{username}@example.com"
    assert user["coverImage"] == "https://cdn.example.com/cover.png"
    assert "password_hash" not in user
    assert "refresh_token" not in user


@pytest.mark.asyncio
async def test_register_duplicate_username_or_email(client):
    username = _name("dup")
    r1 = await client.post("/api/v1/users/register", json=_register_body(username))
    assert r1.status_code == 201

    # Same email, different username
    r2 = await client.post(
        "/api/v1/users/register",
        json=_register_body(_name("other"), email=f"{username}@example.com"),
    )
    assert r2.status_code == 409
    assert r2.json()["success"] is False

    # Same username in different case
    r3 = await client.post(
        "/api/v1/users/register",
        json=_register_body(username.upper(), email=f"{_name('x')}@example.com"),
    )
    assert r3.status_code == 409


@pytest.mark.asyncio
async def test_register_conflict_from_unique_constraint(client, monkeypatch):
    """Two registrations racing past the existence check: the unique
    constraint decides, and the loser still gets 409."""
    username = _name("race")
    r1 = await client.post("/api/v1/users/register", json=_register_body(username))
    assert r1.status_code == 201

    async def nothing_found(self, username, email):
        return None

    monkeypatch.setattr(UserService, "_find_existing", nothing_found)

    r2 = await client.post("/api/v1/users/register", json=_register_body(username))
    assert r2.status_code == 409
    body = r2.json()
    assert body["success"] is False
    assert body["message"] == "User with this email or username already exist"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"fullname": "   "}, "Fullname is required"),
        ({"email": ""}, "Email is required"),
        ({"email": "not-an-email"}, "Invalid email format"),
        ({"username": None}, "Username is required"),
        ({"password": " "}, "Password is required"),
        ({"avatar": None}, "Avatar file is required"),
    ],
)
async def test_register_validation(client, overrides, message):
    r = await client.post(
        "/api/v1/users/register", json=_register_body(_name("val"), **overrides)
    )
    assert r.status_code == 400
    assert r.json()["message"] == message


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_sets_tokens_in_body_and_cookies(client):
    username = _name("login")
    await client.post("/api/v1/users/register", json=_register_body(username))

    r = await client.post(
        "/api/v1/users/login", json={"username": username, "password": PASSWORD}
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["user"]["username"] == username
    assert data["accessToken"]
    assert data["refreshToken"]

    assert r.cookies.get("accessToken") == data["accessToken"]
    assert r.cookies.get("refreshToken") == data["refreshToken"]
    set_cookie = ",".join(r.headers.get_list("set-cookie")).lower()
    assert "httponly" in set_cookie
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_login_by_email(client):
    username = _name("mail")
    await client.post("/api/v1/users/register", json=_register_body(username))

    r = await client.post(
        "/api/v1/users/login",
        json={"email": f"{username}@example.com", "password": PASSWORD},
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    username = _name("wrong")
    await client.post("/api/v1/users/register", json=_register_body(username))

    r = await client.post(
        "/api/v1/users/login", json={"username": username, "password": "nope_nope"}
    )
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid user credentials"


@pytest.mark.asyncio
async def test_login_unknown_user(client):
    r = await client.post(
        "/api/v1/users/login", json={"username": "nobody", "password": PASSWORD}
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_login_requires_identifier(client):
    r = await client.post("/api/v1/users/login", json={"password": PASSWORD})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_login_malformed_body(client):
    r = await client.post(
        "/api/v1/users/login", json={"username": "someone", "password": 12345}
    )
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["errors"]


# ═══════════════════════════════════════════════════════════
# Token Refresh
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_refresh_via_body_rotates(client, signup):
    session = await signup()
    r1 = session["refreshToken"]

    r = await client.post("/api/v1/users/refresh-token", json={"refreshToken": r1})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["refreshToken"] != r1
    assert r.cookies.get("refreshToken") == data["refreshToken"]
    client.cookies.clear()

    # Replay of the rotated token fails
    r = await client.post("/api/v1/users/refresh-token", json={"refreshToken": r1})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid refresh token"

    # The new one works
    r = await client.post(
        "/api/v1/users/refresh-token", json={"refreshToken": data["refreshToken"]}
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_refresh_via_cookie(client, signup):
    session = await signup()

    r = await client.post(
        "/api/v1/users/refresh-token",
        headers={"Cookie": f"refreshToken={session['refreshToken']}"},
    )
    assert r.status_code == 200
    assert r.json()["data"]["refreshToken"] != session["refreshToken"]


@pytest.mark.asyncio
async def test_refresh_without_token(client):
    r = await client.post("/api/v1/users/refresh-token")
    assert r.status_code == 401
    assert r.json()["message"] == "Unauthorized request"


@pytest.mark.asyncio
async def test_refresh_with_access_token_fails(client, signup):
    session = await signup()
    r = await client.post(
        "/api/v1/users/refresh-token", json={"refreshToken": session["accessToken"]}
    )
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid refresh token"


@pytest.mark.asyncio
async def test_refresh_failures_share_one_response(client, signup):
    """Expired, tampered and replayed tokens are indistinguishable."""
    session = await signup()
    tokens = [
        "garbage",
        session["accessToken"],
        session["refreshToken"][:-4] + "AAAA",
    ]
    bodies = []
    for token in tokens:
        r = await client.post("/api/v1/users/refresh-token", json={"refreshToken": token})
        assert r.status_code == 401
        bodies.append(r.json())
    assert all(b == bodies[0] for b in bodies)


# ═══════════════════════════════════════════════════════════
# Logout
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_logout_revokes_refresh_token(client, signup):
    session = await signup()
    auth = {"Authorization": f"Bearer {session['accessToken']}"}

    r = await client.post("/api/v1/users/logout", headers=auth)
    assert r.status_code == 200
    cleared = ",".join(r.headers.get_list("set-cookie"))
    assert "accessToken=" in cleared
    assert "refreshToken=" in cleared

    r = await client.post(
        "/api/v1/users/refresh-token", json={"refreshToken": session["refreshToken"]}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_logout_clears_cookies_with_session_attributes(client, signup, monkeypatch):
    """The clearing Set-Cookie headers carry the same attributes as login."""
    monkeypatch.setattr(settings, "cookie_secure", True)
    session = await signup()
    auth = {"Authorization": f"Bearer {session['accessToken']}"}

    r = await client.post("/api/v1/users/logout", headers=auth)
    assert r.status_code == 200
    cleared = {
        header.split("=", 1)[0]: header.lower()
        for header in r.headers.get_list("set-cookie")
    }
    assert set(cleared) == {"accessToken", "refreshToken"}
    for header in cleared.values():
        assert "max-age=0" in header
        assert "httponly" in header
        assert "secure" in header
        assert "samesite=lax" in header
        assert "path=/" in header


@pytest.mark.asyncio
async def test_logout_requires_auth(client):
    r = await client.post("/api/v1/users/logout")
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Protected Endpoint (/me)
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_with_bearer_token(client, signup):
    session = await signup()
    r = await client.get(
        "/api/v1/users/me",
        headers={"Authorization": f"Bearer {session['accessToken']}"},
    )
    assert r.status_code == 200
    assert r.json()["data"]["id"] == session["user"]["id"]


@pytest.mark.asyncio
async def test_me_with_cookie(client, signup):
    session = await signup()
    r = await client.get(
        "/api/v1/users/me",
        headers={"Cookie": f"accessToken={session['accessToken']}"},
    )
    assert r.status_code == 200
    assert r.json()["data"]["username"] == session["user"]["username"]


@pytest.mark.asyncio
async def test_me_after_refresh_uses_new_access_token(client, signup):
    session = await signup()
    r = await client.post(
        "/api/v1/users/refresh-token", json={"refreshToken": session["refreshToken"]}
    )
    client.cookies.clear()
    new_access = r.json()["data"]["accessToken"]

    r = await client.get(
        "/api/v1/users/me", headers={"Authorization": f"Bearer {new_access}"}
    )
    assert r.status_code == 200
    assert r.json()["data"]["id"] == session["user"]["id"]


@pytest.mark.asyncio
async def test_me_without_token(client):
    r = await client.get("/api/v1/users/me")
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_me_with_invalid_token(client):
    r = await client.get(
        "/api/v1/users/me", headers={"Authorization": "Bearer invalid_token_here"}
    )
    assert r.status_code == 401
