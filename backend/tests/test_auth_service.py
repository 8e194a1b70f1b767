"""Tests for the backend authentication service and routes."""

from __future__ import annotations

import pytest
from argon2 import PasswordHasher
from starlette.requests import Request

from backend import config
from backend.auth.models import AuthUser
from backend.auth.service import AuthService
from backend.db import session_scope
from conftest import TEST_PASSWORD


def _build_request(*, cookies: dict[str, str] | None = None, bearer: str | None = None) -> Request:
    cookie_header = "".join(
        [f"{key}={value}; " for key, value in (cookies or {}).items()]
    ).strip()
    headers = [
        (b"user-agent", b"pytest"),
        (b"x-forwarded-for", b"127.0.0.1"),
    ]
    if cookie_header:
        headers.append((b"cookie", cookie_header.encode("ascii")))
    if bearer:
        headers.append((b"authorization", f"Bearer {bearer}".encode("ascii")))
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/v1/auth/test",
        "headers": headers,
        "client": ("127.0.0.1", 12345),
    }
    return Request(scope)


def test_register_and_authenticate():
    service = AuthService()
    assert service.has_any_users() is False

    user = service.register_user(email="Grower@Example.com ", password=TEST_PASSWORD, name="Grower")

    assert user.email == "grower@example.com"
    assert service.has_any_users() is True
    assert service.authenticate(email="grower@example.com", password=TEST_PASSWORD).id == user.id
    assert service.authenticate(email="grower@example.com", password="wrong-password") is None


def test_register_rejects_duplicates_and_short_passwords():
    service = AuthService()
    service.register_user(email="grower@example.com", password=TEST_PASSWORD)

    with pytest.raises(ValueError):
        service.register_user(email="grower@example.com", password=TEST_PASSWORD)
    with pytest.raises(ValueError):
        service.register_user(email="other@example.com", password="short")


def test_login_refresh_and_logout():
    service = AuthService()
    user = service.register_user(email="test@example.com", password=TEST_PASSWORD, name="Tester")

    session, tokens = service.establish_session(user)

    assert session.user_id == user.id
    assert tokens.session_id
    assert tokens.refresh_token
    assert service.validate_request(_build_request(cookies={config.SESSION_COOKIE_NAME: tokens.session_id}))
    assert service.validate_request(_build_request(bearer=tokens.session_id))

    new_session, new_tokens = service.refresh_session(
        session_id=tokens.session_id, refresh_token=tokens.refresh_token
    )

    assert new_session.id != session.id
    assert new_tokens.session_id != tokens.session_id
    assert service.validate_session(tokens.session_id) is None

    assert service.logout(new_tokens.session_id) is True
    assert service.validate_session(new_tokens.session_id) is None


def test_refresh_rejects_wrong_token():
    service = AuthService()
    user = service.register_user(email="test@example.com", password=TEST_PASSWORD)
    _, tokens = service.establish_session(user)

    with pytest.raises(ValueError):
        service.refresh_session(session_id=tokens.session_id, refresh_token="not-the-token")
    with pytest.raises(ValueError):
        service.refresh_session(session_id=None, refresh_token=tokens.refresh_token)


def test_auth_routes(anonymous_client):
    assert anonymous_client.get("/api/v1/auth/status").json() == {"has_users": False}
    assert anonymous_client.get("/api/v1/auth/session").status_code == 401

    registered = anonymous_client.post(
        "/api/v1/auth/register",
        json={"email": "farmer@example.com", "password": TEST_PASSWORD, "name": "Farmer"},
    )
    assert registered.status_code == 201
    assert registered.json()["user"]["email"] == "farmer@example.com"
    assert anonymous_client.get("/api/v1/auth/session").status_code == 200

    anonymous_client.post("/api/v1/auth/logout")
    assert anonymous_client.get("/api/v1/auth/session").status_code == 401

    bad_login = anonymous_client.post(
        "/api/v1/auth/login", json={"email": "farmer@example.com", "password": "wrong-password"}
    )
    assert bad_login.status_code == 401
    good_login = anonymous_client.post(
        "/api/v1/auth/login", json={"email": "farmer@example.com", "password": TEST_PASSWORD}
    )
    assert good_login.status_code == 200


def test_login_upgrades_weak_password_hash():
    service = AuthService()
    user = service.register_user(email="legacy@example.com", password=TEST_PASSWORD)
    weak_hash = PasswordHasher(time_cost=1, memory_cost=8192).hash(TEST_PASSWORD)
    with session_scope() as db:
        db.get(AuthUser, user.id).password_hash = weak_hash

    assert service.authenticate(email="legacy@example.com", password=TEST_PASSWORD) is not None

    with session_scope() as db:
        upgraded = db.get(AuthUser, user.id).password_hash
    assert upgraded != weak_hash
    assert service.authenticate(email="legacy@example.com", password=TEST_PASSWORD) is not None
