"""Pydantic schemas for authentication routes."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class SessionUser(BaseModel):
    id: str
    email: EmailStr
    name: str


class SessionMeta(BaseModel):
    session_id: str = Field(..., description="Opaque session identifier, also accepted as a Bearer token")
    expires_at: datetime
    refresh_expires_at: datetime


class SessionEnvelope(BaseModel):
    user: SessionUser
    session: SessionMeta


class AuthStatusResponse(BaseModel):
    has_users: bool


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LogoutResponse(BaseModel):
    success: bool = True
