"""SQLAlchemy models for the authentication subsystem."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, JSON, String, Text, func
from sqlalchemy.orm import relationship

from ..db import Base
from ..db_models import TimestampMixin


class AuthUser(TimestampMixin, Base):
    """Account that owns chats, memory and analysis results."""

    __tablename__ = "auth_users"

    id = Column(String(40), primary_key=True, default=lambda: uuid4().hex)
    email = Column(String(320), unique=True, nullable=False, index=True)
    password_hash = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, server_default="1")
    display_name = Column(String(320), nullable=True)
    preferences = Column(JSON, nullable=False, default=dict)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    last_active_at = Column(DateTime(timezone=True), nullable=True)

    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")


class AuthSession(TimestampMixin, Base):
    """Server-side session with a rotating refresh token."""

    __tablename__ = "auth_sessions"

    id = Column(String(72), primary_key=True, default=lambda: uuid4().hex)
    user_id = Column(String(40), ForeignKey("auth_users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    refresh_expires_at = Column(DateTime(timezone=True), nullable=False)
    refresh_token_hash = Column(String(128), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    last_seen_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("AuthUser", back_populates="sessions")


Index("ix_auth_sessions_expiry", AuthSession.expires_at)
