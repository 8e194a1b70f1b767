"""Cookie helpers for session management."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import Response

from .. import config
from .service import SessionTokens


def _max_age(target: datetime) -> int:
    if target.tzinfo is None:
        target = target.replace(tzinfo=timezone.utc)
    delta = int((target - datetime.now(timezone.utc)).total_seconds())
    return max(delta, 60)


def _set_cookie(response: Response, key: str, value: str, expires_at: datetime) -> None:
    response.set_cookie(
        key=key,
        value=value,
        domain=config.SESSION_COOKIE_DOMAIN,
        path=config.SESSION_COOKIE_PATH,
        httponly=config.SESSION_COOKIE_HTTPONLY,
        secure=config.SESSION_COOKIE_SECURE,
        samesite=config.SESSION_COOKIE_SAMESITE,
        max_age=_max_age(expires_at),
    )


def attach_session_cookies(response: Response, tokens: SessionTokens) -> None:
    _set_cookie(response, config.SESSION_COOKIE_NAME, tokens.session_id, tokens.expires_at)
    _set_cookie(response, config.REFRESH_COOKIE_NAME, tokens.refresh_token, tokens.refresh_expires_at)


def clear_session_cookies(response: Response) -> None:
    for cookie_name in (config.SESSION_COOKIE_NAME, config.REFRESH_COOKIE_NAME):
        response.delete_cookie(
            key=cookie_name,
            domain=config.SESSION_COOKIE_DOMAIN,
            path=config.SESSION_COOKIE_PATH,
        )
