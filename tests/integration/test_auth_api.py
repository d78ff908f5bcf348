from datetime import timedelta

from sqlalchemy import select, update

from drama_api.core import security
from drama_api.core.config import settings
from drama_api.db.base import utcnow
from drama_api.db.models import User, UserSession


def _login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_register_then_me(client):
    response = client.post("/api/auth/register", json={"email": "a@x.com", "password": "longpass1"})
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["token"]
    assert body["data"]["expires_at"]
    assert "password_hash" not in body["data"]["user"]

    headers = {"Authorization": f"Bearer {body['data']['token']}"}
    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["data"]["email"] == "a@x.com"
    assert "password_hash" not in me.json()["data"]


def test_register_lowercases_email_and_stores_no_plaintext(client, run_db):
    response = client.post(
        "/api/auth/register",
        json={"email": "Mixed.Case@Example.com", "password": "longpass1", "username": "mixer"},
    )
    assert response.status_code == 201
    assert response.json()["data"]["user"]["email"] == "mixed.case@example.com"
    assert response.json()["data"]["user"]["username"] == "mixer"

    async def load(db):
        return (await db.execute(select(User))).scalar_one()

    user = run_db(load)
    assert user.password_hash != "longpass1"
    assert "longpass1" not in user.password_hash


def test_register_rejects_duplicate_email_case_insensitively(client, register_user):
    register_user(email="dup@example.com")
    response = client.post("/api/auth/register", json={"email": "DUP@example.com", "password": "longpass1"})
    assert response.status_code == 409
    assert response.json() == {"success": False, "error": "User with this email already exists"}


def test_register_validates_input(client):
    short = client.post("/api/auth/register", json={"email": "a@x.com", "password": "short"})
    assert short.status_code == 400
    assert short.json()["success"] is False
    assert "password" in short.json()["error"]

    bad_email = client.post("/api/auth/register", json={"email": "not-an-email", "password": "longpass1"})
    assert bad_email.status_code == 400


def test_register_disabled(client, monkeypatch):
    monkeypatch.setattr(settings, "ENABLE_REGISTRATION", False)
    response = client.post("/api/auth/register", json={"email": "a@x.com", "password": "longpass1"})
    assert response.status_code == 400
    assert response.json()["error"] == "Registration is currently disabled"


def test_register_rolls_back_when_session_insert_fails(client, run_db, monkeypatch):
    async def fail(*args, **kwargs):
        raise RuntimeError("session table unavailable")

    monkeypatch.setattr("drama_api.api.endpoints.auth.crud_session.create_session", fail)
    with_errors = client.__class__(client.app, raise_server_exceptions=False)
    response = with_errors.post("/api/auth/register", json={"email": "a@x.com", "password": "longpass1"})
    assert response.status_code == 500

    async def count(db):
        return len((await db.execute(select(User))).scalars().all())

    assert run_db(count) == 0


def test_login_with_original_password_only(client, register_user):
    register_user(email="login@example.com")

    ok = _login(client, "LOGIN@example.com", "longpass1")
    assert ok.status_code == 200
    assert ok.json()["data"]["user"]["email"] == "login@example.com"
    assert ok.json()["data"]["user"]["last_login"] is not None

    wrong = _login(client, "login@example.com", "longpass2")
    assert wrong.status_code == 401
    assert wrong.json()["error"] == "Invalid email or password"

    missing = _login(client, "nobody@example.com", "longpass1")
    assert missing.status_code == 401
    assert missing.json()["error"] == "Invalid email or password"


def test_login_removes_expired_sessions(client, register_user, run_db):
    user = register_user(email="sweep@example.com")

    async def expire_all(db):
        await db.execute(update(UserSession).values(expires_at=utcnow() - timedelta(minutes=1)))

    run_db(expire_all)
    assert _login(client, "sweep@example.com", "longpass1").status_code == 200

    async def tokens(db):
        return [s.token for s in (await db.execute(select(UserSession))).scalars().all()]

    remaining = run_db(tokens)
    assert len(remaining) == 1
    assert user["token"] not in remaining


def test_inactive_account(client, register_user, run_db):
    user = register_user(email="inactive@example.com")

    async def deactivate(db):
        await db.execute(update(User).values(is_active=False))

    run_db(deactivate)

    assert client.get("/api/auth/me", headers=user["headers"]).status_code == 403
    login = _login(client, "inactive@example.com", "longpass1")
    assert login.status_code == 401
    assert login.json()["error"] == "Account is inactive"


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "No token provided"}

    malformed = client.get("/api/auth/me", headers={"Authorization": "Token abc"})
    assert malformed.status_code == 401

    garbage = client.get("/api/auth/me", headers={"Authorization": "Bearer abc"})
    assert garbage.status_code == 401
    assert garbage.json()["error"] == "Invalid or expired token"


def test_signed_token_without_session_is_rejected(client, auth):
    token = security.generate_token({"userId": auth["user"]["id"], "email": auth["user"]["email"]})
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["error"] == "Session expired or invalid"


def test_expired_session_is_rejected(client, auth, run_db):
    async def expire(db):
        await db.execute(update(UserSession).values(expires_at=utcnow() - timedelta(seconds=1)))

    run_db(expire)
    response = client.get("/api/auth/me", headers=auth["headers"])
    assert response.status_code == 401
    assert response.json()["error"] == "Session expired or invalid"


def test_authenticated_request_updates_last_activity(client, auth, run_db):
    async def backdate(db):
        await db.execute(update(UserSession).values(last_activity=utcnow() - timedelta(hours=1)))

    run_db(backdate)
    client.get("/api/auth/me", headers=auth["headers"])

    async def last_activity(db):
        return (await db.execute(select(UserSession.last_activity))).scalar_one()

    assert run_db(last_activity) > utcnow() - timedelta(minutes=5)


def test_logout_revokes_token_and_is_idempotent(client, auth):
    response = client.post("/api/auth/logout", headers=auth["headers"])
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Logout successful"}

    assert client.get("/api/auth/me", headers=auth["headers"]).status_code == 401
    assert client.post("/api/auth/logout", headers=auth["headers"]).status_code == 401


def test_update_profile(client, auth, register_user):
    other = register_user(email="taken@example.com")

    renamed = client.put("/api/auth/me", json={"username": "newname"}, headers=auth["headers"])
    assert renamed.status_code == 200
    assert renamed.json()["data"]["username"] == "newname"

    same_email = client.put("/api/auth/me", json={"email": auth["user"]["email"].upper()}, headers=auth["headers"])
    assert same_email.status_code == 200

    conflict = client.put("/api/auth/me", json={"email": other["user"]["email"]}, headers=auth["headers"])
    assert conflict.status_code == 409
    assert conflict.json()["error"] == "Email already in use"

    empty = client.put("/api/auth/me", json={}, headers=auth["headers"])
    assert empty.status_code == 400
    assert empty.json()["error"] == "No fields to update"


def test_change_password_keeps_only_current_session(client, register_user):
    first = register_user(email="pw@example.com")
    second = _login(client, "pw@example.com", "longpass1").json()["data"]
    second_headers = {"Authorization": f"Bearer {second['token']}"}

    wrong = client.put(
        "/api/auth/password",
        json={"currentPassword": "nope-nope", "newPassword": "brandnew1"},
        headers=first["headers"],
    )
    assert wrong.status_code == 401
    assert wrong.json()["error"] == "Current password is incorrect"

    changed = client.put(
        "/api/auth/password",
        json={"currentPassword": "longpass1", "newPassword": "brandnew1"},
        headers=first["headers"],
    )
    assert changed.status_code == 200

    assert client.get("/api/auth/me", headers=first["headers"]).status_code == 200
    assert client.get("/api/auth/me", headers=second_headers).status_code == 401
    assert _login(client, "pw@example.com", "longpass1").status_code == 401
    assert _login(client, "pw@example.com", "brandnew1").status_code == 200


def test_list_and_delete_sessions(client, register_user):
    first = register_user(email="s@example.com")
    second = _login(client, "s@example.com", "longpass1").json()["data"]
    intruder = register_user(email="intruder@example.com")

    listed = client.get("/api/auth/sessions", headers=first["headers"])
    assert listed.status_code == 200
    sessions = listed.json()["data"]
    assert len(sessions) == 2
    assert all("token" not in s for s in sessions)
    assert sum(s["is_current"] for s in sessions) == 1

    other = next(s for s in sessions if not s["is_current"])
    foreign = client.delete(f"/api/auth/sessions/{other['id']}", headers=intruder["headers"])
    assert foreign.status_code == 404

    deleted = client.delete(f"/api/auth/sessions/{other['id']}", headers=first["headers"])
    assert deleted.status_code == 200
    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {second['token']}"}).status_code == 401

    again = client.delete(f"/api/auth/sessions/{other['id']}", headers=first["headers"])
    assert again.status_code == 404
    assert again.json()["error"] == "Session not found"
