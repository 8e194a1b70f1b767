"""SQLAlchemy ORM models for the Arina backend."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    JSON,
    String,
    Text,
    UniqueConstraint,
    func,
)

from .db import Base


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Mixin that adds created_at/updated_at audit fields.

    Values are set client-side with microsecond precision so rows created
    within the same second still sort in insertion order.
    """

    created_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )


def _owner_column() -> Column:
    return Column(
        String(40),
        ForeignKey("auth_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class ChatRecord(TimestampMixin, Base):
    """A chat thread shown in the sidebar."""

    __tablename__ = "chats"

    id = Column(String(40), primary_key=True, default=_new_id)
    user_id = _owner_column()
    title = Column(String(512), nullable=False)


class MessageRecord(TimestampMixin, Base):
    """A single user or assistant message inside a chat."""

    __tablename__ = "messages"

    id = Column(String(40), primary_key=True, default=_new_id)
    chat_id = Column(
        String(40),
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = _owner_column()
    role = Column(String(16), nullable=False)
    content = Column(Text, nullable=False)


Index("ix_messages_chat_created", MessageRecord.chat_id, MessageRecord.created_at)


class ConversationRecord(TimestampMixin, Base):
    """Long-term memory conversation, optionally tied to an analysis type."""

    __tablename__ = "conversations"

    id = Column(String(40), primary_key=True, default=_new_id)
    user_id = _owner_column()
    title = Column(String(512), nullable=False)
    analysis_type = Column(String(64), nullable=True)
    summary = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)


class MemoryMessageRecord(TimestampMixin, Base):
    """Message stored in long-term memory with an optional embedding vector."""

    __tablename__ = "memory_messages"

    id = Column(String(40), primary_key=True, default=_new_id)
    conversation_id = Column(
        String(40),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(String(16), nullable=False)
    content = Column(Text, nullable=False)
    embedding = Column(JSON, nullable=True)


class UserProfileRecord(TimestampMixin, Base):
    """Business profile, one per user."""

    __tablename__ = "user_profiles"

    id = Column(String(40), primary_key=True, default=_new_id)
    user_id = Column(
        String(40),
        ForeignKey("auth_users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    business_name = Column(String(255), nullable=True)
    business_type = Column(String(255), nullable=True)
    farm_size = Column(Float, nullable=True)
    location = Column(String(255), nullable=True)
    main_crops = Column(JSON, nullable=False, default=list)


class EntityRecord(TimestampMixin, Base):
    """Free-form typed attribute bag (crop, equipment, ...) scoped to a user."""

    __tablename__ = "entities"

    id = Column(String(40), primary_key=True, default=_new_id)
    user_id = _owner_column()
    entity_type = Column(String(64), nullable=False)
    entity_name = Column(String(255), nullable=False)
    attributes = Column(JSON, nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint("user_id", "entity_type", "entity_name", name="uq_entities_owner_type_name"),
    )


class SessionDataRecord(TimestampMixin, Base):
    """Short-lived key/value state with an expiry."""

    __tablename__ = "user_session_data"

    id = Column(String(40), primary_key=True, default=_new_id)
    user_id = _owner_column()
    session_key = Column(String(128), nullable=False)
    session_data = Column(JSON, nullable=False, default=dict)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("user_id", "session_key", name="uq_session_data_owner_key"),
    )


class AnalysisResultRecord(TimestampMixin, Base):
    """Persisted snapshot of an analysis run."""

    __tablename__ = "analysis_results"

    id = Column(String(40), primary_key=True, default=_new_id)
    user_id = _owner_column()
    feature_id = Column(String(64), nullable=False, index=True)
    inputs = Column(JSON, nullable=False, default=dict)
    result = Column(JSON, nullable=False, default=dict)
    image_url = Column(String(2048), nullable=True)
