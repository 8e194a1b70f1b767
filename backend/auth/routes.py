"""FastAPI routes for registration, login and session management."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from .. import config
from .cookies import attach_session_cookies, clear_session_cookies
from .deps import get_authenticated_session, resolve_auth_service
from .schemas import (
    AuthStatusResponse,
    LoginRequest,
    LogoutResponse,
    RegisterRequest,
    SessionEnvelope,
    SessionMeta,
    SessionUser,
)
from .service import AuthService, AuthenticatedSession

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _build_envelope(auth_service: AuthService, user_obj, session_obj) -> SessionEnvelope:
    public = auth_service.serialize_user(user_obj)
    return SessionEnvelope(
        user=SessionUser(id=public.id, email=public.email, name=public.name),
        session=SessionMeta(
            session_id=session_obj.id,
            expires_at=session_obj.expires_at,
            refresh_expires_at=session_obj.refresh_expires_at,
        ),
    )


@router.get("/status", response_model=AuthStatusResponse)
def auth_status(auth_service: AuthService = Depends(resolve_auth_service)) -> AuthStatusResponse:
    return AuthStatusResponse(has_users=auth_service.has_any_users())


@router.post("/register", response_model=SessionEnvelope, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    response: Response,
    auth_service: AuthService = Depends(resolve_auth_service),
) -> SessionEnvelope:
    try:
        user = auth_service.register_user(email=payload.email, password=payload.password, name=payload.name)
    except ValueError as error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error)) from error
    session, tokens = auth_service.establish_session(user)
    attach_session_cookies(response, tokens)
    response.headers["Cache-Control"] = "no-store"
    return _build_envelope(auth_service, user, session)


@router.post("/login", response_model=SessionEnvelope)
def login(
    payload: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(resolve_auth_service),
) -> SessionEnvelope:
    user = auth_service.authenticate(email=payload.email, password=payload.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    session, tokens = auth_service.establish_session(user)
    attach_session_cookies(response, tokens)
    response.headers["Cache-Control"] = "no-store"
    return _build_envelope(auth_service, user, session)


@router.post("/logout", response_model=LogoutResponse)
def logout(
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(resolve_auth_service),
) -> LogoutResponse:
    auth_service.logout(auth_service.session_id_from_request(request))
    clear_session_cookies(response)
    return LogoutResponse()


@router.post("/refresh", response_model=SessionEnvelope)
def refresh(
    request: Request,
    response: Response,
    auth_service: AuthService = Depends(resolve_auth_service),
) -> SessionEnvelope:
    try:
        session, tokens = auth_service.refresh_session(
            session_id=request.cookies.get(config.SESSION_COOKIE_NAME),
            refresh_token=request.cookies.get(config.REFRESH_COOKIE_NAME),
        )
    except ValueError as error:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(error)) from error
    user = auth_service.get_user_by_id(session.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    attach_session_cookies(response, tokens)
    response.headers["Cache-Control"] = "no-store"
    return _build_envelope(auth_service, user, session)


@router.get("/session", response_model=SessionEnvelope)
def session_info(
    principal: AuthenticatedSession = Depends(get_authenticated_session),
    auth_service: AuthService = Depends(resolve_auth_service),
) -> SessionEnvelope:
    return _build_envelope(auth_service, principal.user, principal.session)
