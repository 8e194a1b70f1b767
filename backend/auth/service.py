"""Authentication service coordinating accounts and sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from fastapi import Request
from sqlalchemy import func, select

from ..db import init_database, session_scope
from ..models import AuthUserPublic
from .. import config
from .crypto import (
    generate_token,
    hash_password,
    hash_token,
    password_needs_rehash,
    tokens_match,
    verify_password,
)
from .models import AuthSession, AuthUser

LOGGER = logging.getLogger(__name__)


@dataclass
class SessionTokens:
    session_id: str
    refresh_token: str
    expires_at: datetime
    refresh_expires_at: datetime


@dataclass
class AuthenticatedSession:
    user: AuthUser
    session: AuthSession


class AuthService:
    """Central authority for account and session lifecycles."""

    def __init__(self) -> None:
        init_database()
        self._access_ttl = timedelta(minutes=config.SESSION_ACCESS_TTL_MINUTES)
        self._refresh_ttl = timedelta(hours=config.SESSION_REFRESH_TTL_HOURS)
        self._idle_extension = timedelta(minutes=config.SESSION_IDLE_EXTENSION_MINUTES)

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _normalize_dt(value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @staticmethod
    def _normalize_email(email: str) -> str:
        return email.strip().lower()

    def has_any_users(self) -> bool:
        with session_scope() as db:
            count = db.execute(select(func.count()).select_from(AuthUser)).scalar() or 0
        return count > 0

    def register_user(self, *, email: str, password: str, name: Optional[str] = None) -> AuthUser:
        """Create a local account.

        Raises:
            ValueError: When the password is too short or the email is taken.
        """
        if len(password) < config.PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {config.PASSWORD_MIN_LENGTH} characters")
        normalized = self._normalize_email(email)
        display_name = (name or normalized).strip() or normalized
        with session_scope() as db:
            existing = db.execute(select(AuthUser).where(AuthUser.email == normalized)).scalar_one_or_none()
            if existing:
                raise ValueError("User already exists")
            user = AuthUser(
                email=normalized,
                display_name=display_name,
                password_hash=hash_password(password),
                preferences={},
            )
            db.add(user)
            db.flush()
            LOGGER.info("Registered user %s", user.id)
            return user

    def authenticate(self, *, email: str, password: str) -> Optional[AuthUser]:
        normalized = self._normalize_email(email)
        with session_scope() as db:
            user = db.execute(select(AuthUser).where(AuthUser.email == normalized)).scalar_one_or_none()
            if user is None or not user.is_active:
                return None
            if not verify_password(password, user.password_hash):
                return None
            if password_needs_rehash(user.password_hash):
                LOGGER.info("Upgrading password hash for user %s", user.id)
                user.password_hash = hash_password(password)
            user.last_login_at = self._now()
            db.add(user)
            return user

    def serialize_user(self, user: AuthUser) -> AuthUserPublic:
        return AuthUserPublic(
            id=user.id,
            email=user.email,
            name=user.display_name or user.email,
        )

    def establish_session(self, user: AuthUser) -> Tuple[AuthSession, SessionTokens]:
        self._enforce_device_limit(user.id)
        now = self._now()
        refresh_token = generate_token(48)
        session = AuthSession(
            id=generate_token(32),
            user_id=user.id,
            expires_at=now + self._access_ttl,
            refresh_expires_at=now + self._refresh_ttl,
            refresh_token_hash=hash_token(refresh_token),
            last_seen_at=now,
        )
        with session_scope() as db:
            db.add(session)
        tokens = SessionTokens(
            session_id=session.id,
            refresh_token=refresh_token,
            expires_at=session.expires_at,
            refresh_expires_at=session.refresh_expires_at,
        )
        return session, tokens

    def _enforce_device_limit(self, user_id: str) -> None:
        # Keep limit - 1 live sessions so the one being created fits.
        limit = config.SESSION_MAX_DEVICES
        if limit <= 0:
            return
        with session_scope() as db:
            sessions = (
                db.execute(
                    select(AuthSession)
                    .where(AuthSession.user_id == user_id, AuthSession.revoked_at.is_(None))
                    .order_by(AuthSession.created_at.desc())
                )
                .scalars()
                .all()
            )
            for stale in sessions[limit - 1:]:
                stale.revoked_at = self._now()
                db.add(stale)

    @staticmethod
    def session_id_from_request(request: Request) -> Optional[str]:
        """Read the session id from the cookie, falling back to a Bearer header."""
        session_id = request.cookies.get(config.SESSION_COOKIE_NAME)
        if session_id:
            return session_id
        authorization = request.headers.get("authorization") or ""
        if authorization.lower().startswith("bearer "):
            token = authorization.split(" ", 1)[1].strip()
            return token or None
        return None

    def validate_request(self, request: Request) -> Optional[AuthenticatedSession]:
        session_id = self.session_id_from_request(request)
        if not session_id:
            return None
        return self.validate_session(session_id)

    def validate_session(self, session_id: str) -> Optional[AuthenticatedSession]:
        now = self._now()
        with session_scope() as db:
            session = db.get(AuthSession, session_id)
            if session is None or session.revoked_at is not None:
                return None
            if self._normalize_dt(session.refresh_expires_at) <= now:
                session.revoked_at = now
                db.add(session)
                return None
            if self._normalize_dt(session.expires_at) <= now:
                return None
            user = db.get(AuthUser, session.user_id)
            if user is None or not user.is_active:
                return None
            last_seen = self._normalize_dt(session.last_seen_at)
            if now - last_seen >= self._idle_extension:
                session.last_seen_at = now
                session.expires_at = now + self._access_ttl
                db.add(session)
            return AuthenticatedSession(user=user, session=session)

    def refresh_session(self, *, session_id: Optional[str], refresh_token: Optional[str]) -> Tuple[AuthSession, SessionTokens]:
        """Rotate a session: revoke the current one and issue a fresh pair of tokens.

        Raises:
            ValueError: When the refresh context is missing, revoked, expired or mismatched.
        """
        if not session_id or not refresh_token:
            raise ValueError("Missing refresh context")
        now = self._now()
        with session_scope() as db:
            current = db.get(AuthSession, session_id)
            if current is None or current.revoked_at is not None:
                raise ValueError("Session revoked")
            if self._normalize_dt(current.refresh_expires_at) <= now:
                raise ValueError("Refresh token expired")
            if not tokens_match(current.refresh_token_hash, refresh_token):
                raise ValueError("Refresh token mismatch")
            current.revoked_at = now
            db.add(current)
            user_id = current.user_id
        user = self.get_user_by_id(user_id)
        if user is None:
            raise ValueError("User does not exist")
        return self.establish_session(user)

    def get_user_by_id(self, user_id: str) -> Optional[AuthUser]:
        with session_scope() as db:
            return db.get(AuthUser, user_id)

    def logout(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        with session_scope() as db:
            session = db.get(AuthSession, session_id)
            if session is None:
                return False
            session.revoked_at = self._now()
            db.add(session)
        return True


_AUTH_SERVICE: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    global _AUTH_SERVICE
    if _AUTH_SERVICE is None:
        _AUTH_SERVICE = AuthService()
    return _AUTH_SERVICE
