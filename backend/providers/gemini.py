"""Gemini provider implementation.

Chat completion through the generative-language REST API
(``models/{model}:generateContent``), authenticated with the
``x-goog-api-key`` header.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from .. import config
from .base import ChatTurn, GenerateResult, LLMProvider, ProviderError, ProviderNotConfiguredError

LOGGER = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """Generative-language API adapter for chat completion."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize Gemini provider.

        Args:
            api_key: API key (defaults to config.GEMINI_API_KEY)
            base_url: API base URL (defaults to config.GEMINI_API_BASE)
            model: Model name (defaults to config.GEMINI_MODEL)
            timeout: Request timeout in seconds (defaults to config.CHAT_TIMEOUT_SECONDS)
        """
        self.api_key = api_key if api_key is not None else config.GEMINI_API_KEY
        self.base_url = (base_url or config.GEMINI_API_BASE).rstrip("/")
        self.model = model or config.GEMINI_MODEL
        self.timeout = timeout if timeout is not None else config.CHAT_TIMEOUT_SECONDS

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def is_available(self) -> bool:
        return self.get_unavailable_reason() is None

    def get_unavailable_reason(self) -> Optional[str]:
        if not self.api_key:
            return "API key not configured (set GEMINI_API_KEY)"

        try:
            response = requests.get(
                f"{self.base_url}/models/{self.model}",
                headers=self._get_headers(),
                timeout=10,
            )
        except requests.exceptions.Timeout:
            return "Service timeout (unreachable)"
        except requests.exceptions.ConnectionError:
            return "Connection failed (check GEMINI_API_BASE)"
        except requests.exceptions.RequestException as exc:
            return f"Service error: {exc}"

        if response.status_code in (401, 403):
            return "Authentication failed (invalid API key)"
        if response.status_code == 404:
            return f"Model {self.model} not found"
        if response.status_code != 200:
            return f"Service returned status {response.status_code}"
        return None

    def get_provider_name(self) -> str:
        return "gemini"

    def build_payload(
        self,
        messages: Sequence[ChatTurn],
        system: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Build the ``generateContent`` request body.

        ``options`` may override ``temperature``, ``top_p``, ``top_k`` and
        ``max_output_tokens``.
        """
        options = options or {}
        payload: Dict[str, Any] = {
            "contents": [
                {"role": turn.role, "parts": [{"text": turn.content}]}
                for turn in messages
            ],
            "generationConfig": {
                "temperature": options.get("temperature", config.GEMINI_TEMPERATURE),
                "topP": options.get("top_p", config.GEMINI_TOP_P),
                "topK": options.get("top_k", config.GEMINI_TOP_K),
                "maxOutputTokens": options.get("max_output_tokens", config.GEMINI_MAX_OUTPUT_TOKENS),
            },
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        return payload

    def generate_chat(
        self,
        messages: Sequence[ChatTurn],
        system: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GenerateResult:
        """Generate the next model turn for a conversation.

        Args:
            messages: Conversation turns, oldest first
            system: Optional system instruction
            options: Generation overrides (see :meth:`build_payload`)

        Returns:
            GenerateResult with the first candidate's text.

        Raises:
            ProviderNotConfiguredError: If no API key is configured.
            ProviderError: If the request fails or the response has no candidate text.
        """
        if not self.api_key:
            raise ProviderNotConfiguredError("GEMINI_API_KEY is not set in environment variables")

        LOGGER.debug("Generating chat completion with Gemini model %s (%d turns)", self.model, len(messages))
        try:
            response = requests.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                headers=self._get_headers(),
                json=self.build_payload(messages, system, options),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            LOGGER.error("Gemini request failed: %s", exc)
            raise ProviderError(f"Gemini API request failed: {exc}") from exc

        if not response.ok:
            detail = self._error_message(response)
            LOGGER.error("Gemini API error (status %d): %s", response.status_code, detail)
            raise ProviderError(f"Gemini API error: {detail}")

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError("Invalid response format from Gemini API") from exc

        content = self._extract_text(data)
        if content is None:
            LOGGER.warning(
                "Gemini response had no candidate text; keys=%s",
                list(data.keys()) if isinstance(data, dict) else type(data).__name__,
            )
            raise ProviderError("Invalid response format from Gemini API")

        candidate = data["candidates"][0]
        return GenerateResult(
            content=content,
            model=self.model,
            provider="gemini",
            metadata={
                "finish_reason": candidate.get("finishReason"),
                "usage": data.get("usageMetadata", {}),
            },
        )

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _extract_text(data: Any) -> Optional[str]:
        """Return ``candidates[0].content.parts[0].text`` when present."""
        if not isinstance(data, dict):
            return None
        candidates: List[Any] = data.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return None
        parts = (candidates[0].get("content") or {}).get("parts") or []
        if not parts or not isinstance(parts[0], dict):
            return None
        text = parts[0].get("text")
        return text if isinstance(text, str) else None

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text.strip()[:200] or "Unknown error"
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return "Unknown error"
