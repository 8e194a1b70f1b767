"""Workspace service for the Arina business analytics backend."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .analysis import AnalysisOutcome, get_feature, list_features
from .assistant import AssistantReply, ChatAssistant, welcome_chat_features
from .charts import build_chart_figure, generate_chart_image
from .memory import MemoryService
from .provider_registry import ProviderRegistry, get_provider_registry
from .providers import OpenAIProvider
from .storage import DatabaseStorage

LOGGER = logging.getLogger(__name__)

CHAT_TITLE_LENGTH = 30


class RecordNotFoundError(LookupError):
    """Raised when a record is missing or owned by another user."""


def chat_title(content: str) -> str:
    """First 30 characters of the opening message, with "..." when cut."""
    title = content[:CHAT_TITLE_LENGTH]
    return f"{title}..." if len(content) > CHAT_TITLE_LENGTH else title


def _summarize_outcome(feature_name: str, outcome: Mapping[str, Any]) -> str:
    metrics = ", ".join(f"{item['name']}: {item['value']}" for item in outcome.get("metrics", []))
    return f"{feature_name} with score {outcome.get('score')} ({metrics})"


class WorkspaceService:
    """Composes storage, the chat assistant, memory and charts per user."""

    def __init__(
        self,
        storage: Optional[DatabaseStorage] = None,
        *,
        assistant: Optional[ChatAssistant] = None,
        memory: Optional[MemoryService] = None,
        media_provider: Optional[OpenAIProvider] = None,
        registry: Optional[ProviderRegistry] = None,
    ) -> None:
        registry = registry or get_provider_registry()
        try:
            self._storage = storage or DatabaseStorage()
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Failed to initialise database storage layer")
            raise
        self._media = media_provider or registry.get_media_provider()
        self.memory = memory or MemoryService(self._storage, self._media)
        self.assistant = assistant or ChatAssistant(registry.get_chat_provider())
        LOGGER.info("WorkspaceService ready")

    @property
    def storage(self) -> DatabaseStorage:
        return self._storage

    # ------------------------------------------------------------------
    # Features and analysis
    # ------------------------------------------------------------------
    @staticmethod
    def feature_catalog() -> Dict[str, Any]:
        return {"analysis": list_features(), "chat": welcome_chat_features()}

    @staticmethod
    def run_analysis(feature_id: str, inputs: Optional[Mapping[str, Any]]) -> AnalysisOutcome:
        feature = get_feature(feature_id)
        if feature is None:
            raise RecordNotFoundError(f"Unknown analysis feature: {feature_id}")
        return feature.run(inputs)

    def save_analysis(
        self,
        user_id: str,
        feature_id: str,
        inputs: Mapping[str, Any],
        *,
        result: Optional[Mapping[str, Any]] = None,
        generate_image: bool = False,
        image_prompt: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Persist an analysis snapshot, computing the result when not supplied.

        Raises:
            RecordNotFoundError: If ``feature_id`` is unknown.
            ProviderError: If a chart image was requested and the image API fails.
        """
        feature = get_feature(feature_id)
        if feature is None:
            raise RecordNotFoundError(f"Unknown analysis feature: {feature_id}")
        payload = dict(result) if result is not None else feature.run(inputs).to_dict()
        image_url = None
        if generate_image:
            prompt = image_prompt or _summarize_outcome(feature.name, payload)
            image_url = generate_chart_image(prompt, feature_id, provider=self._media)
        saved = self._storage.save_analysis_result(user_id, feature_id, inputs, payload, image_url=image_url)
        LOGGER.info("Saved %s analysis %s for user %s", feature_id, saved["id"], user_id)
        return saved

    def list_analysis_results(self, user_id: str, feature_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return self._storage.list_analysis_results(user_id, feature_id=feature_id)

    def get_analysis_result(self, user_id: str, result_id: str) -> Dict[str, Any]:
        record = self._storage.get_analysis_result(user_id, result_id)
        if record is None:
            raise RecordNotFoundError("Analysis result not found")
        return record

    def delete_analysis_result(self, user_id: str, result_id: str) -> None:
        if not self._storage.delete_analysis_result(user_id, result_id):
            raise RecordNotFoundError("Analysis result not found")

    @staticmethod
    def build_figure(feature_id: str, chart_data: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
        return build_chart_figure(feature_id, chart_data)

    # ------------------------------------------------------------------
    # Chats
    # ------------------------------------------------------------------
    def list_chats(self, user_id: str) -> List[Dict[str, Any]]:
        return self._storage.list_chats(user_id)

    def create_chat(self, user_id: str, title: str) -> Dict[str, Any]:
        title = title.strip()
        if not title:
            raise ValueError("Chat title is required")
        return self._storage.create_chat(user_id, title)

    def delete_chat(self, user_id: str, chat_id: str) -> None:
        if not self._storage.delete_chat(user_id, chat_id):
            raise RecordNotFoundError("Chat not found")
        LOGGER.info("Deleted chat %s for user %s", chat_id, user_id)

    def list_messages(self, user_id: str, chat_id: str) -> List[Dict[str, Any]]:
        if self._storage.get_chat(user_id, chat_id) is None:
            raise RecordNotFoundError("Chat not found")
        return self._storage.list_messages(user_id, chat_id)

    def send_chat_message(
        self,
        user_id: str,
        content: str,
        *,
        chat_id: Optional[str] = None,
        selected_feature: Optional[str] = None,
        use_memory: bool = False,
    ) -> Dict[str, Any]:
        """Store a user message, ask the assistant and store its answer.

        A chat is created when ``chat_id`` is not given. Provider failures
        propagate after the user message has been stored.

        Raises:
            ValueError: If ``content`` is blank.
            RecordNotFoundError: If ``chat_id`` does not belong to the user.
            ProviderError: If the chat provider fails.
        """
        if not content or not content.strip():
            raise ValueError("Message content is required")

        if chat_id:
            chat = self._storage.get_chat(user_id, chat_id)
            if chat is None:
                raise RecordNotFoundError("Chat not found")
        else:
            chat = self._storage.create_chat(user_id, chat_title(content))

        user_message = self._storage.add_message(user_id, chat["id"], "user", content)
        # Equal timestamps can reorder rows; the new message always goes last.
        history = [
            message
            for message in self._storage.list_messages(user_id, chat["id"])
            if message["id"] != user_message["id"]
        ]
        history.append(user_message)

        memory_context = None
        if use_memory:
            memory_context = self.memory.retrieve_context(user_id, content).to_dict()

        reply = self.assistant.reply(history, selected_feature, memory_context, latest=content)
        assistant_message = self._storage.add_message(user_id, chat["id"], "assistant", reply.content)
        return {
            "chat": self._storage.get_chat(user_id, chat["id"]),
            "user_message": user_message,
            "assistant_message": assistant_message,
            "off_topic": reply.off_topic,
        }

    # ------------------------------------------------------------------
    # Stateless function contracts
    # ------------------------------------------------------------------
    def chat_completion(
        self,
        messages: Sequence[Mapping[str, Any]],
        selected_feature: Optional[str] = None,
        memory_context: Optional[Mapping[str, Any]] = None,
    ) -> AssistantReply:
        return self.assistant.reply(messages, selected_feature, memory_context)

    def generate_chart(self, prompt: Optional[str], feature_id: Optional[str]) -> str:
        return generate_chart_image(prompt, feature_id, provider=self._media)

    def generate_embedding(self, user_id: str, text: Optional[str], message_id: Optional[str] = None) -> List[float]:
        """Embed ``text`` and optionally store the vector on a memory message.

        Raises:
            ValueError: If ``text`` is empty.
            ProviderError: If the embedding API fails or is not configured.
            RecordNotFoundError: If ``message_id`` is not one of the user's memory messages.
        """
        if not text:
            raise ValueError("Missing text parameter")
        embedding = self._media.embed(text)
        if message_id and not self._storage.set_memory_embedding(user_id, message_id, embedding):
            raise RecordNotFoundError("Memory message not found")
        return embedding

    # ------------------------------------------------------------------
    # Memory with ownership checks
    # ------------------------------------------------------------------
    def list_memory_messages(self, user_id: str, conversation_id: str) -> List[Dict[str, Any]]:
        if self._storage.get_conversation(user_id, conversation_id) is None:
            raise RecordNotFoundError("Conversation not found")
        return self.memory.list_messages(user_id, conversation_id)

    def add_memory_message(self, user_id: str, conversation_id: str, role: str, content: str) -> Dict[str, Any]:
        message = self.memory.save_message(user_id, conversation_id, role, content)
        if message is None:
            raise RecordNotFoundError("Conversation not found")
        return message

    def get_session_data(self, user_id: str, session_key: str) -> Dict[str, Any]:
        record = self.memory.get_session_data(user_id, session_key)
        if record is None:
            raise RecordNotFoundError("Session data not found or expired")
        return record

    def delete_memory_data(self, user_id: str, data_type: str, item_id: Optional[str] = None) -> int:
        removed = self.memory.delete_data(user_id, data_type, item_id)
        if item_id is not None and removed == 0:
            raise RecordNotFoundError("Memory item not found")
        return removed


_WORKSPACE_SERVICE: Optional[WorkspaceService] = None


def get_workspace_service() -> WorkspaceService:
    """FastAPI dependency to retrieve the shared workspace service."""
    global _WORKSPACE_SERVICE
    if _WORKSPACE_SERVICE is None:
        _WORKSPACE_SERVICE = WorkspaceService()
    return _WORKSPACE_SERVICE
