"""SQLAlchemy-backed repository for chats, memory and analysis results.

Every read and write is scoped by the owning user id; rows owned by someone
else behave exactly like missing rows.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import delete, select, update

from .db import DATABASE_URL, init_database, session_scope
from .auth.models import AuthUser
from .db_models import (
    AnalysisResultRecord,
    ChatRecord,
    ConversationRecord,
    EntityRecord,
    MemoryMessageRecord,
    MessageRecord,
    SessionDataRecord,
    UserProfileRecord,
)

LOGGER = logging.getLogger(__name__)

MEMORY_DATA_TYPES = ("conversations", "entities", "sessions")

_PROFILE_FIELDS = ("business_name", "business_type", "farm_size", "location", "main_crops")


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DatabaseStorage:
    """Utility class encapsulating all database reads and writes."""

    def __init__(self) -> None:
        safe_url = DATABASE_URL if DATABASE_URL.startswith("sqlite") else "redacted"
        LOGGER.info("Initializing database storage (database_url=%s)", safe_url)
        try:
            init_database()
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Database initialisation failed")
            raise
        LOGGER.info("Database initialisation complete")

    # ------------------------------------------------------------------
    # Hydration helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _chat_to_dict(record: ChatRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "user_id": record.user_id,
            "title": record.title,
            "created_at": _as_utc(record.created_at),
            "updated_at": _as_utc(record.updated_at),
        }

    @staticmethod
    def _message_to_dict(record: MessageRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "chat_id": record.chat_id,
            "user_id": record.user_id,
            "role": record.role,
            "content": record.content,
            "created_at": _as_utc(record.created_at),
        }

    @staticmethod
    def _conversation_to_dict(record: ConversationRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "user_id": record.user_id,
            "title": record.title,
            "analysis_type": record.analysis_type,
            "summary": record.summary,
            "tags": list(record.tags or []),
            "created_at": _as_utc(record.created_at),
            "updated_at": _as_utc(record.updated_at),
        }

    @staticmethod
    def _memory_message_to_dict(record: MemoryMessageRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "conversation_id": record.conversation_id,
            "role": record.role,
            "content": record.content,
            "has_embedding": record.embedding is not None,
            "created_at": _as_utc(record.created_at),
        }

    @staticmethod
    def _profile_to_dict(record: UserProfileRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "user_id": record.user_id,
            "business_name": record.business_name,
            "business_type": record.business_type,
            "farm_size": record.farm_size,
            "location": record.location,
            "main_crops": list(record.main_crops or []),
            "created_at": _as_utc(record.created_at),
            "updated_at": _as_utc(record.updated_at),
        }

    @staticmethod
    def _entity_to_dict(record: EntityRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "user_id": record.user_id,
            "entity_type": record.entity_type,
            "entity_name": record.entity_name,
            "attributes": dict(record.attributes or {}),
            "created_at": _as_utc(record.created_at),
            "updated_at": _as_utc(record.updated_at),
        }

    @staticmethod
    def _session_data_to_dict(record: SessionDataRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "user_id": record.user_id,
            "session_key": record.session_key,
            "session_data": record.session_data,
            "expires_at": _as_utc(record.expires_at),
            "updated_at": _as_utc(record.updated_at),
        }

    @staticmethod
    def _analysis_to_dict(record: AnalysisResultRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "user_id": record.user_id,
            "feature_id": record.feature_id,
            "inputs": dict(record.inputs or {}),
            "result": dict(record.result or {}),
            "image_url": record.image_url,
            "created_at": _as_utc(record.created_at),
        }

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def touch_user_activity(self, user_id: str, *, when: Optional[datetime] = None) -> None:
        with session_scope() as db:
            db.execute(
                update(AuthUser)
                .where(AuthUser.id == user_id)
                .values(last_active_at=when or datetime.now(timezone.utc))
            )

    # ------------------------------------------------------------------
    # Chats and messages
    # ------------------------------------------------------------------
    def create_chat(self, user_id: str, title: str) -> Dict[str, Any]:
        with session_scope() as db:
            record = ChatRecord(user_id=user_id, title=title)
            db.add(record)
            db.flush()
            LOGGER.debug("Created chat %s for user %s", record.id, user_id)
            return self._chat_to_dict(record)

    def list_chats(self, user_id: str) -> List[Dict[str, Any]]:
        """Return the user's chats, most recently active first."""
        with session_scope() as db:
            records = db.execute(
                select(ChatRecord)
                .where(ChatRecord.user_id == user_id)
                .order_by(ChatRecord.updated_at.desc(), ChatRecord.created_at.desc())
            ).scalars().all()
            return [self._chat_to_dict(record) for record in records]

    def get_chat(self, user_id: str, chat_id: str) -> Optional[Dict[str, Any]]:
        with session_scope() as db:
            record = self._owned_chat(db, user_id, chat_id)
            return self._chat_to_dict(record) if record else None

    def delete_chat(self, user_id: str, chat_id: str) -> bool:
        with session_scope() as db:
            result = db.execute(
                delete(ChatRecord).where(ChatRecord.id == chat_id, ChatRecord.user_id == user_id)
            )
            return (result.rowcount or 0) > 0

    def add_message(self, user_id: str, chat_id: str, role: str, content: str) -> Optional[Dict[str, Any]]:
        """Append a message and bump the chat's ``updated_at``.

        Returns ``None`` when the chat does not exist for this user.
        """
        with session_scope() as db:
            chat = self._owned_chat(db, user_id, chat_id)
            if chat is None:
                return None
            record = MessageRecord(chat_id=chat_id, user_id=user_id, role=role, content=content)
            db.add(record)
            chat.updated_at = datetime.now(timezone.utc)
            db.add(chat)
            db.flush()
            return self._message_to_dict(record)

    def list_messages(self, user_id: str, chat_id: str) -> List[Dict[str, Any]]:
        """Return the chat's messages oldest first (empty for foreign chats)."""
        with session_scope() as db:
            records = db.execute(
                select(MessageRecord)
                .join(ChatRecord, ChatRecord.id == MessageRecord.chat_id)
                .where(MessageRecord.chat_id == chat_id, ChatRecord.user_id == user_id)
                .order_by(MessageRecord.created_at.asc())
            ).scalars().all()
            return [self._message_to_dict(record) for record in records]

    @staticmethod
    def _owned_chat(db, user_id: str, chat_id: str) -> Optional[ChatRecord]:
        record = db.get(ChatRecord, chat_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    # ------------------------------------------------------------------
    # Long-term memory: conversations and memory messages
    # ------------------------------------------------------------------
    def create_conversation(
        self,
        user_id: str,
        title: str,
        *,
        analysis_type: Optional[str] = None,
        summary: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        with session_scope() as db:
            record = ConversationRecord(
                user_id=user_id,
                title=title,
                analysis_type=analysis_type,
                summary=summary,
                tags=list(tags or []),
            )
            db.add(record)
            db.flush()
            return self._conversation_to_dict(record)

    def list_conversations(self, user_id: str) -> List[Dict[str, Any]]:
        with session_scope() as db:
            records = db.execute(
                select(ConversationRecord)
                .where(ConversationRecord.user_id == user_id)
                .order_by(ConversationRecord.updated_at.desc())
            ).scalars().all()
            return [self._conversation_to_dict(record) for record in records]

    def get_conversation(self, user_id: str, conversation_id: str) -> Optional[Dict[str, Any]]:
        with session_scope() as db:
            record = self._owned_conversation(db, user_id, conversation_id)
            return self._conversation_to_dict(record) if record else None

    def add_memory_message(
        self,
        user_id: str,
        conversation_id: str,
        role: str,
        content: str,
    ) -> Optional[Dict[str, Any]]:
        with session_scope() as db:
            conversation = self._owned_conversation(db, user_id, conversation_id)
            if conversation is None:
                return None
            record = MemoryMessageRecord(conversation_id=conversation_id, role=role, content=content)
            db.add(record)
            conversation.updated_at = datetime.now(timezone.utc)
            db.add(conversation)
            db.flush()
            return self._memory_message_to_dict(record)

    def list_memory_messages(self, user_id: str, conversation_id: str) -> List[Dict[str, Any]]:
        with session_scope() as db:
            records = db.execute(
                select(MemoryMessageRecord)
                .join(ConversationRecord, ConversationRecord.id == MemoryMessageRecord.conversation_id)
                .where(
                    MemoryMessageRecord.conversation_id == conversation_id,
                    ConversationRecord.user_id == user_id,
                )
                .order_by(MemoryMessageRecord.created_at.asc())
            ).scalars().all()
            return [self._memory_message_to_dict(record) for record in records]

    def set_memory_embedding(self, user_id: str, message_id: str, embedding: Sequence[float]) -> bool:
        with session_scope() as db:
            record = db.get(MemoryMessageRecord, message_id)
            if record is None:
                return False
            conversation = self._owned_conversation(db, user_id, record.conversation_id)
            if conversation is None:
                return False
            record.embedding = [float(value) for value in embedding]
            db.add(record)
            return True

    def embedded_memory_messages(self, user_id: str) -> List[Dict[str, Any]]:
        """Return every memory message of the user that carries an embedding."""
        with session_scope() as db:
            records = db.execute(
                select(MemoryMessageRecord)
                .join(ConversationRecord, ConversationRecord.id == MemoryMessageRecord.conversation_id)
                .where(ConversationRecord.user_id == user_id, MemoryMessageRecord.embedding.is_not(None))
            ).scalars().all()
            payload = []
            for record in records:
                item = self._memory_message_to_dict(record)
                item["embedding"] = list(record.embedding or [])
                payload.append(item)
            return payload

    @staticmethod
    def _owned_conversation(db, user_id: str, conversation_id: str) -> Optional[ConversationRecord]:
        record = db.get(ConversationRecord, conversation_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------
    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        with session_scope() as db:
            record = db.execute(
                select(UserProfileRecord).where(UserProfileRecord.user_id == user_id)
            ).scalar_one_or_none()
            return self._profile_to_dict(record) if record else None

    def upsert_profile(self, user_id: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Update the profile in place when present, insert it otherwise.

        Only keys present in ``values`` are written on update.
        """
        with session_scope() as db:
            record = db.execute(
                select(UserProfileRecord).where(UserProfileRecord.user_id == user_id)
            ).scalar_one_or_none()
            if record is None:
                record = UserProfileRecord(user_id=user_id, main_crops=[])
            for key in _PROFILE_FIELDS:
                if key in values:
                    value = values[key]
                    if key == "main_crops":
                        value = list(value or [])
                    setattr(record, key, value)
            db.add(record)
            db.flush()
            return self._profile_to_dict(record)

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------
    def save_entity(
        self,
        user_id: str,
        entity_type: str,
        entity_name: str,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Insert an entity, or merge ``attributes`` into the existing one with the same type and name."""
        with session_scope() as db:
            record = db.execute(
                select(EntityRecord).where(
                    EntityRecord.user_id == user_id,
                    EntityRecord.entity_type == entity_type,
                    EntityRecord.entity_name == entity_name,
                )
            ).scalar_one_or_none()
            if record is None:
                record = EntityRecord(
                    user_id=user_id,
                    entity_type=entity_type,
                    entity_name=entity_name,
                    attributes=dict(attributes or {}),
                )
            else:
                merged = dict(record.attributes or {})
                merged.update(attributes or {})
                # Reassign so the JSON column is flagged dirty.
                record.attributes = merged
            db.add(record)
            db.flush()
            return self._entity_to_dict(record)

    def list_entities(
        self,
        user_id: str,
        *,
        entity_type: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        with session_scope() as db:
            stmt = select(EntityRecord).where(EntityRecord.user_id == user_id)
            if entity_type:
                stmt = stmt.where(EntityRecord.entity_type == entity_type)
            stmt = stmt.order_by(EntityRecord.updated_at.desc())
            if limit is not None:
                stmt = stmt.limit(limit)
            records = db.execute(stmt).scalars().all()
            return [self._entity_to_dict(record) for record in records]

    # ------------------------------------------------------------------
    # Session data
    # ------------------------------------------------------------------
    def save_session_data(
        self,
        user_id: str,
        session_key: str,
        session_data: Any,
        *,
        expires_at: datetime,
    ) -> Dict[str, Any]:
        with session_scope() as db:
            record = db.execute(
                select(SessionDataRecord).where(
                    SessionDataRecord.user_id == user_id,
                    SessionDataRecord.session_key == session_key,
                )
            ).scalar_one_or_none()
            if record is None:
                record = SessionDataRecord(user_id=user_id, session_key=session_key)
            record.session_data = session_data
            record.expires_at = expires_at
            db.add(record)
            db.flush()
            return self._session_data_to_dict(record)

    def get_session_data(self, user_id: str, session_key: str, *, now: datetime) -> Optional[Dict[str, Any]]:
        """Return the stored value unless it has expired."""
        with session_scope() as db:
            record = db.execute(
                select(SessionDataRecord).where(
                    SessionDataRecord.user_id == user_id,
                    SessionDataRecord.session_key == session_key,
                )
            ).scalar_one_or_none()
            if record is None or _as_utc(record.expires_at) <= _as_utc(now):
                return None
            return self._session_data_to_dict(record)

    def delete_expired_session_data(self, *, now: datetime, user_id: Optional[str] = None) -> int:
        with session_scope() as db:
            stmt = delete(SessionDataRecord).where(SessionDataRecord.expires_at <= now)
            if user_id is not None:
                stmt = stmt.where(SessionDataRecord.user_id == user_id)
            result = db.execute(stmt)
            removed = result.rowcount or 0
        if removed:
            LOGGER.info("Removed %d expired session data rows", removed)
        return removed

    # ------------------------------------------------------------------
    # Bulk memory deletion
    # ------------------------------------------------------------------
    def delete_memory_data(self, user_id: str, data_type: str, item_id: Optional[str] = None) -> int:
        """Delete the user's conversations, entities or session data.

        Raises:
            ValueError: If ``data_type`` is not one of :data:`MEMORY_DATA_TYPES`.
        """
        model = {
            "conversations": ConversationRecord,
            "entities": EntityRecord,
            "sessions": SessionDataRecord,
        }.get(data_type)
        if model is None:
            raise ValueError(f"Unknown memory data type: {data_type}")
        with session_scope() as db:
            stmt = delete(model).where(model.user_id == user_id)
            if item_id is not None:
                stmt = stmt.where(model.id == item_id)
            result = db.execute(stmt)
            removed = result.rowcount or 0
        LOGGER.info("Deleted %d %s rows for user %s", removed, data_type, user_id)
        return removed

    # ------------------------------------------------------------------
    # Analysis results
    # ------------------------------------------------------------------
    def save_analysis_result(
        self,
        user_id: str,
        feature_id: str,
        inputs: Mapping[str, Any],
        result: Mapping[str, Any],
        *,
        image_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        with session_scope() as db:
            record = AnalysisResultRecord(
                user_id=user_id,
                feature_id=feature_id,
                inputs=dict(inputs),
                result=dict(result),
                image_url=image_url,
            )
            db.add(record)
            db.flush()
            return self._analysis_to_dict(record)

    def list_analysis_results(
        self,
        user_id: str,
        *,
        feature_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        with session_scope() as db:
            stmt = select(AnalysisResultRecord).where(AnalysisResultRecord.user_id == user_id)
            if feature_id:
                stmt = stmt.where(AnalysisResultRecord.feature_id == feature_id)
            stmt = stmt.order_by(AnalysisResultRecord.created_at.desc())
            if limit is not None:
                stmt = stmt.limit(limit)
            records = db.execute(stmt).scalars().all()
            return [self._analysis_to_dict(record) for record in records]

    def get_analysis_result(self, user_id: str, result_id: str) -> Optional[Dict[str, Any]]:
        with session_scope() as db:
            record = db.get(AnalysisResultRecord, result_id)
            if record is None or record.user_id != user_id:
                return None
            return self._analysis_to_dict(record)

    def delete_analysis_result(self, user_id: str, result_id: str) -> bool:
        with session_scope() as db:
            result = db.execute(
                delete(AnalysisResultRecord).where(
                    AnalysisResultRecord.id == result_id,
                    AnalysisResultRecord.user_id == user_id,
                )
            )
            return (result.rowcount or 0) > 0
