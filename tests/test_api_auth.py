from __future__ import annotations

from datetime import timedelta
import logging
import re

from logostudio import config
from logostudio.auth import sessions
from logostudio.models import UserSession, UserStatus, as_utc, get_session, utcnow

from conftest import signup


def test_signup_starts_a_session(client) -> None:
    user = signup(client, "Owner@Example.com")
    assert user == {
        "email": "owner@example.com",
        "status": "active",
        "logosCreated": 0,
        "logosLimit": config.DEFAULT_LOGOS_LIMIT,
        "remainingLogos": config.DEFAULT_LOGOS_LIMIT,
        "isSuperuser": False,
    }
    assert config.SESSION_COOKIE_NAME in client.cookies
    resp = client.get("/api/user")
    assert resp.status_code == 200
    assert resp.json()["email"] == "owner@example.com"


def test_signup_rejects_duplicates_and_weak_passwords(client) -> None:
    signup(client)
    resp = client.post("/api/auth/signup", json={"email": "OWNER@example.com", "password": "another-pass"})
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "conflict"

    resp = client.post("/api/auth/signup", json={"email": "new@example.com", "password": "short"})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Password must be at least 8 characters long"


def test_logout_then_login(client) -> None:
    signup(client)
    assert client.post("/api/auth/logout").json() == {"success": True}
    resp = client.get("/api/user")
    assert resp.status_code == 401
    assert resp.json()["error"] == {
        "code": "unauthorized",
        "message": "Unauthorized",
        "http_status": 401,
        "details": {},
    }

    bad = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "wrong-password"})
    unknown = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "wrong-password"})
    assert bad.status_code == unknown.status_code == 401
    assert bad.json()["error"]["message"] == unknown.json()["error"]["message"] == "Invalid credentials"

    ok = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "correct-horse"})
    assert ok.status_code == 200
    assert client.get("/api/user").status_code == 200


def test_account_status_gates_login(client) -> None:
    sessions.create_user("off@example.com", "password-123", status=UserStatus.INACTIVE)
    sessions.create_user("new@example.com", "password-123", status=UserStatus.PENDING)

    resp = client.post("/api/auth/login", json={"email": "off@example.com", "password": "password-123"})
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Account is not active"

    resp = client.post("/api/auth/login", json={"email": "new@example.com", "password": "password-123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["status"] == "pending"


def test_change_password(client) -> None:
    signup(client)
    resp = client.post("/api/auth/change-password", json={"currentPassword": "nope-nope", "newPassword": "brand-new-pass"})
    assert resp.status_code == 401

    resp = client.post(
        "/api/auth/change-password", json={"currentPassword": "correct-horse", "newPassword": "brand-new-pass"}
    )
    assert resp.status_code == 200
    client.post("/api/auth/logout")
    assert client.post("/api/auth/login", json={"email": "owner@example.com", "password": "correct-horse"}).status_code == 401
    assert client.post("/api/auth/login", json={"email": "owner@example.com", "password": "brand-new-pass"}).status_code == 200


def test_password_reset_flow(client, caplog) -> None:
    signup(client)
    caplog.set_level(logging.INFO, logger="logostudio.api.routes_auth")

    unknown = client.post("/api/auth/send-password-reset", json={"email": "ghost@example.com"})
    known = client.post("/api/auth/send-password-reset", json={"email": "owner@example.com"})
    # same answer whether or not the account exists
    assert unknown.json() == known.json()

    token = re.search(r"reset-password\?token=(\S+)", caplog.text).group(1)
    assert client.get("/api/auth/verify-reset-token", params={"token": token}).json() == {"valid": True}
    assert client.get("/api/auth/verify-reset-token", params={"token": "bogus"}).json() == {"valid": False}

    resp = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "reset-pass-1"})
    assert resp.status_code == 200
    # existing sessions end with the reset
    assert client.get("/api/user").status_code == 401
    # tokens are single use
    resp = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "reset-pass-2"})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Invalid or expired token"

    assert client.post("/api/auth/login", json={"email": "owner@example.com", "password": "reset-pass-1"}).status_code == 200


def test_expired_session_is_dropped(client) -> None:
    user = sessions.create_user("old@example.com", "password-123")
    record = sessions.start_session(user)
    with get_session() as session:
        row = session.get(UserSession, record.token)
        row.expires_at = utcnow() - timedelta(minutes=1)
        session.add(row)
        session.commit()

    assert sessions.get_session_user(record.token) is None
    with get_session() as session:
        assert session.get(UserSession, record.token) is None


def test_timestamps_are_utc_aware(client) -> None:
    user = sessions.create_user("fresh@example.com", "password-123")
    record = sessions.start_session(user)
    assert record.expires_at.tzinfo is not None
    assert utcnow().utcoffset() == timedelta(0)
    # read back from SQLite, compared against an aware clock
    assert sessions.get_session_user(record.token).id == user.id
    with get_session() as session:
        stored = session.get(UserSession, record.token)
        assert as_utc(stored.expires_at) > utcnow()


def test_update_limit_and_delete_account(client) -> None:
    signup(client)
    resp = client.patch("/api/user", json={"logosLimit": 12})
    assert resp.status_code == 200
    assert resp.json()["logosLimit"] == 12
    assert resp.json()["remainingLogos"] == 12

    resp = client.patch("/api/user", json={"logosLimit": -1})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Invalid logos limit"

    resp = client.patch("/api/user", json={})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"

    assert client.delete("/api/user").json() == {"success": True}
    assert client.get("/api/user").status_code == 401
    assert client.post("/api/auth/login", json={"email": "owner@example.com", "password": "correct-horse"}).status_code == 401


def test_superuser_flag(client, monkeypatch) -> None:
    monkeypatch.setattr(config, "SUPERUSER_EMAILS", ["admin@example.com"])
    assert signup(client, "admin@example.com")["isSuperuser"] is True


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}
