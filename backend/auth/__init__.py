"""Authentication package for the Arina backend."""

from .deps import require_user
from .routes import router as auth_router
from .service import AuthService, get_auth_service

__all__ = [
    "AuthService",
    "auth_router",
    "get_auth_service",
    "require_user",
]
