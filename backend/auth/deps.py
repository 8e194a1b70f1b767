"""FastAPI dependencies that guard routes behind a valid session."""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status

from ..models import AuthUserPublic
from .service import AuthenticatedSession, AuthService, get_auth_service

LOGGER = logging.getLogger(__name__)


def resolve_auth_service() -> AuthService:
    """Wrapper to allow monkeypatching of the shared auth service dependency."""
    return get_auth_service()


def get_authenticated_session(
    request: Request,
    auth_service: AuthService = Depends(resolve_auth_service),
) -> AuthenticatedSession:
    principal = auth_service.validate_request(request)
    if principal is None:
        LOGGER.debug("Rejected unauthenticated request to %s", request.url.path)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return principal


def require_user(
    principal: AuthenticatedSession = Depends(get_authenticated_session),
    auth_service: AuthService = Depends(resolve_auth_service),
) -> AuthUserPublic:
    return auth_service.serialize_user(principal.user)
