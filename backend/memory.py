"""Long-term memory: profiles, entities, session data and similarity recall."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from . import config
from .providers import OpenAIProvider, ProviderError
from .storage import MEMORY_DATA_TYPES, DatabaseStorage

LOGGER = logging.getLogger(__name__)


@dataclass
class MemoryContext:
    """Context interpolated into the assistant's system prompt.

    Attributes:
        profile: The user's business profile, if one was saved.
        recent_messages: Past memory messages similar to the current query,
            best match first, each with a ``similarity`` score.
        relevant_entities: A few of the user's saved entities.
    """

    profile: Optional[Dict[str, Any]] = None
    recent_messages: List[Dict[str, Any]] = field(default_factory=list)
    relevant_entities: List[Dict[str, Any]] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.profile or self.recent_messages or self.relevant_entities)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profile": self.profile,
            "recent_messages": list(self.recent_messages),
            "relevant_entities": list(self.relevant_entities),
        }


def cosine_similarity(query: Sequence[float], candidates: Sequence[Sequence[float]]) -> np.ndarray:
    """Cosine similarity between ``query`` and each row of ``candidates``.

    Rows whose length differs from the query or whose norm is zero score 0.
    """
    if not candidates:
        return np.zeros(0)
    query_vec = np.asarray(query, dtype=float)
    query_norm = np.linalg.norm(query_vec)
    scores = np.zeros(len(candidates))
    if query_norm == 0:
        return scores
    for index, candidate in enumerate(candidates):
        vector = np.asarray(candidate, dtype=float)
        if vector.shape != query_vec.shape:
            continue
        norm = np.linalg.norm(vector)
        if norm == 0:
            continue
        scores[index] = float(np.dot(query_vec, vector) / (query_norm * norm))
    return scores


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def format_context(context: Optional[Mapping[str, Any]]) -> str:
    """Render memory context as plain text for the system prompt.

    Returns an empty string when there is nothing worth adding.
    """
    if not context:
        return ""
    sections: List[str] = []

    profile = context.get("profile") or {}
    profile_lines = []
    if _text(profile.get("business_name")):
        business = _text(profile.get("business_name"))
        if _text(profile.get("business_type")):
            business = f"{business} ({_text(profile.get('business_type'))})"
        profile_lines.append(f"- Business: {business}")
    elif _text(profile.get("business_type")):
        profile_lines.append(f"- Business type: {_text(profile.get('business_type'))}")
    if profile.get("farm_size") not in (None, ""):
        profile_lines.append(f"- Farm size: {profile.get('farm_size')}")
    if _text(profile.get("location")):
        profile_lines.append(f"- Location: {_text(profile.get('location'))}")
    crops = [_text(crop) for crop in profile.get("main_crops") or [] if _text(crop)]
    if crops:
        profile_lines.append(f"- Main crops: {', '.join(crops)}")
    if profile_lines:
        sections.append("User profile:\n" + "\n".join(profile_lines))

    messages = context.get("recent_messages") or []
    message_lines = [
        f"- [{_text(item.get('role')) or 'user'}] {_text(item.get('content'))}"
        for item in messages
        if _text(item.get("content"))
    ]
    if message_lines:
        sections.append("Relevant past messages:\n" + "\n".join(message_lines))

    entities = context.get("relevant_entities") or []
    entity_lines = []
    for item in entities:
        name = _text(item.get("entity_name"))
        if not name:
            continue
        line = f"- {_text(item.get('entity_type')) or 'entity'}: {name}"
        attributes = item.get("attributes") or {}
        if attributes:
            details = ", ".join(f"{key}={value}" for key, value in attributes.items())
            line = f"{line} ({details})"
        entity_lines.append(line)
    if entity_lines:
        sections.append("Known entities:\n" + "\n".join(entity_lines))

    if not sections:
        return ""
    return "Here is what you remember about this user:\n\n" + "\n\n".join(sections)


class MemoryService:
    """Long-term memory operations over :class:`DatabaseStorage`.

    Embeddings come from the OpenAI adapter. Failing to embed a saved message
    is logged and otherwise ignored; the message is still stored.
    """

    def __init__(
        self,
        storage: DatabaseStorage,
        embedder: Optional[OpenAIProvider] = None,
        *,
        similarity_threshold: Optional[float] = None,
        match_count: Optional[int] = None,
        entity_limit: Optional[int] = None,
        session_ttl_minutes: Optional[int] = None,
    ) -> None:
        self._storage = storage
        self._embedder = embedder
        self.similarity_threshold = (
            config.MEMORY_SIMILARITY_THRESHOLD if similarity_threshold is None else similarity_threshold
        )
        self.match_count = config.MEMORY_MATCH_COUNT if match_count is None else match_count
        self.entity_limit = config.MEMORY_ENTITY_LIMIT if entity_limit is None else entity_limit
        self.session_ttl = timedelta(
            minutes=config.SESSION_DATA_TTL_MINUTES if session_ttl_minutes is None else session_ttl_minutes
        )

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    # Profile ------------------------------------------------------------
    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self._storage.get_profile(user_id)

    def save_profile(self, user_id: str, values: Mapping[str, Any]) -> Dict[str, Any]:
        profile = self._storage.upsert_profile(user_id, values)
        LOGGER.info("Saved profile for user %s", user_id)
        return profile

    # Conversations ------------------------------------------------------
    def create_conversation(self, user_id: str, title: str, **kwargs: Any) -> Dict[str, Any]:
        return self._storage.create_conversation(user_id, title, **kwargs)

    def list_conversations(self, user_id: str) -> List[Dict[str, Any]]:
        return self._storage.list_conversations(user_id)

    def list_messages(self, user_id: str, conversation_id: str) -> List[Dict[str, Any]]:
        return self._storage.list_memory_messages(user_id, conversation_id)

    def save_message(
        self,
        user_id: str,
        conversation_id: str,
        role: str,
        content: str,
    ) -> Optional[Dict[str, Any]]:
        """Store a memory message, then try to attach its embedding.

        Returns:
            The stored message, or ``None`` when the conversation does not
            belong to the user.
        """
        message = self._storage.add_memory_message(user_id, conversation_id, role, content)
        if message is None:
            return None
        if self._embedder is None or not self._embedder.is_configured():
            return message
        try:
            embedding = self._embedder.embed(content)
        except (ProviderError, ValueError) as exc:
            LOGGER.warning("Could not embed memory message %s: %s", message["id"], exc)
            return message
        if self._storage.set_memory_embedding(user_id, message["id"], embedding):
            message["has_embedding"] = True
        return message

    # Entities -----------------------------------------------------------
    def save_entity(
        self,
        user_id: str,
        entity_type: str,
        entity_name: str,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        return self._storage.save_entity(user_id, entity_type, entity_name, attributes)

    def list_entities(self, user_id: str, entity_type: Optional[str] = None) -> List[Dict[str, Any]]:
        return self._storage.list_entities(user_id, entity_type=entity_type)

    # Session data -------------------------------------------------------
    def save_session_data(
        self,
        user_id: str,
        session_key: str,
        session_data: Any,
        *,
        ttl_minutes: Optional[int] = None,
    ) -> Dict[str, Any]:
        ttl = timedelta(minutes=ttl_minutes) if ttl_minutes is not None else self.session_ttl
        return self._storage.save_session_data(
            user_id,
            session_key,
            session_data,
            expires_at=self._now() + ttl,
        )

    def get_session_data(self, user_id: str, session_key: str) -> Optional[Dict[str, Any]]:
        return self._storage.get_session_data(user_id, session_key, now=self._now())

    def cleanup_expired_sessions(self, user_id: Optional[str] = None) -> int:
        return self._storage.delete_expired_session_data(now=self._now(), user_id=user_id)

    def delete_data(self, user_id: str, data_type: str, item_id: Optional[str] = None) -> int:
        """Delete memory data by type.

        Raises:
            ValueError: If ``data_type`` is not one of conversations, entities or sessions.
        """
        if data_type not in MEMORY_DATA_TYPES:
            raise ValueError(f"Unknown memory data type: {data_type}")
        return self._storage.delete_memory_data(user_id, data_type, item_id)

    # Recall -------------------------------------------------------------
    def find_similar_messages(self, user_id: str, embedding: Sequence[float]) -> List[Dict[str, Any]]:
        """Return up to ``match_count`` memory messages at or above the similarity threshold."""
        candidates = self._storage.embedded_memory_messages(user_id)
        if not candidates:
            return []
        scores = cosine_similarity(embedding, [item["embedding"] for item in candidates])
        ranked = sorted(
            (
                (float(score), item)
                for score, item in zip(scores, candidates)
                if score >= self.similarity_threshold
            ),
            key=lambda pair: pair[0],
            reverse=True,
        )
        matches = []
        for score, item in ranked[: self.match_count]:
            match = {key: value for key, value in item.items() if key != "embedding"}
            match["similarity"] = score
            matches.append(match)
        return matches

    def retrieve_context(self, user_id: str, query: Optional[str] = None) -> MemoryContext:
        """Assemble the memory context for a user and optional query.

        Similar messages and entities are only looked up when a query is
        given. Search failures are logged and leave the partial context.
        """
        self._storage.touch_user_activity(user_id, when=self._now())
        context = MemoryContext(profile=self._storage.get_profile(user_id))
        if not query or not query.strip():
            return context
        if self._embedder is None or not self._embedder.is_configured():
            LOGGER.debug("Skipping memory search; no embedding provider configured")
            return context
        try:
            embedding = self._embedder.embed(query)
        except (ProviderError, ValueError) as exc:
            LOGGER.warning("Memory search failed for user %s: %s", user_id, exc)
            return context
        context.recent_messages = self.find_similar_messages(user_id, embedding)
        context.relevant_entities = self._storage.list_entities(user_id, limit=self.entity_limit)
        return context
