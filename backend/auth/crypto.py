"""Password hashing and token helpers."""

from __future__ import annotations

import hashlib
import hmac
import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError

from ..config import SESSION_SECRET

_PASSWORD_HASHER = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a plain text password using Argon2."""

    return _PASSWORD_HASHER.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _PASSWORD_HASHER.verify(password_hash, password)
    except (VerifyMismatchError, InvalidHashError):
        return False


def password_needs_rehash(password_hash: str) -> bool:
    """True when the stored hash was made with weaker Argon2 parameters than the current ones."""
    return _PASSWORD_HASHER.check_needs_rehash(password_hash)


def generate_token(length: int = 48) -> str:
    """Generate a URL-safe random token."""

    return secrets.token_urlsafe(length)


def hash_token(value: str, *, secret: str = SESSION_SECRET) -> str:
    """Create a deterministic HMAC hash of a token."""

    return hmac.new(secret.encode("utf-8"), msg=value.encode("utf-8"), digestmod=hashlib.sha256).hexdigest()


def tokens_match(stored_hash: str, candidate: str) -> bool:
    """Constant-time comparison of a stored token hash against a raw token."""

    return hmac.compare_digest(stored_hash, hash_token(candidate))
