"""OpenAI provider implementation.

This module provides the embeddings and image-generation calls used for
long-term memory search and AI chart images. OpenAI-compatible APIs are
supported through a custom base URL.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .. import config
from .base import LLMProvider, ProviderError, ProviderNotConfiguredError

LOGGER = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI API provider implementation.

    Authentication is via Bearer token (API key).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key (defaults to config.OPENAI_API_KEY)
            base_url: API base URL (defaults to config.OPENAI_API_BASE)
            timeout: Request timeout in seconds
        """
        self.api_key = api_key if api_key is not None else config.OPENAI_API_KEY
        self.base_url = (base_url or config.OPENAI_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else config.CHAT_TIMEOUT_SECONDS

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def is_available(self) -> bool:
        """Check if OpenAI provider is configured and reachable.

        Returns:
            True if API key is set and endpoint responds, False otherwise.
        """
        return self.get_unavailable_reason() is None

    def get_unavailable_reason(self) -> Optional[str]:
        """Get human-readable reason why provider is unavailable.

        Returns:
            Error message if unavailable, None if available.
        """
        if not self.api_key:
            return "API key not configured (set OPENAI_API_KEY)"

        try:
            response = requests.get(
                f"{self.base_url}/models",
                headers=self._get_headers(),
                timeout=10,
            )
            if response.status_code == 401:
                return "Authentication failed (invalid API key)"
            if response.status_code != 200:
                return f"Service returned status {response.status_code}"
            return None
        except requests.exceptions.Timeout:
            return "Service timeout (unreachable)"
        except requests.exceptions.ConnectionError:
            return "Connection failed (check OPENAI_API_BASE)"
        except requests.exceptions.RequestException as exc:
            return f"Service error: {exc}"

    def get_provider_name(self) -> str:
        return "openai"

    def embed(self, text: str, model: Optional[str] = None) -> List[float]:
        """Return the embedding vector for ``text``.

        Raises:
            ValueError: If ``text`` is empty.
            ProviderNotConfiguredError: If no API key is configured.
            ProviderError: If the API call fails or returns no vector.
        """
        if not text:
            raise ValueError("Missing text parameter")
        self._require_key()

        data = self._post("/embeddings", {"input": text, "model": model or config.OPENAI_EMBED_MODEL})
        try:
            embedding = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError("Invalid response format from embeddings API") from exc
        return [float(value) for value in embedding]

    def generate_image(self, prompt: str, model: Optional[str] = None) -> str:
        """Generate one 1024x1024 image and return its URL.

        Raises:
            ProviderNotConfiguredError: If no API key is configured.
            ProviderError: If the API call fails or returns no URL.
        """
        self._require_key()
        data = self._post(
            "/images/generations",
            {
                "model": model or config.OPENAI_IMAGE_MODEL,
                "prompt": prompt,
                "n": 1,
                "size": "1024x1024",
                "quality": "standard",
            },
        )
        try:
            url = data["data"][0]["url"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError("Invalid response format from image API") from exc
        if not url:
            raise ProviderError("Image API returned an empty URL")
        return str(url)

    def _require_key(self) -> None:
        if not self.api_key:
            raise ProviderNotConfiguredError("OPENAI_API_KEY is not configured in environment variables")

    def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = requests.post(
                f"{self.base_url}{path}",
                headers=self._get_headers(),
                json=body,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            LOGGER.error("OpenAI request to %s failed: %s", path, exc)
            raise ProviderError(f"OpenAI request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        error = data.get("error") if isinstance(data, dict) else None
        if not response.ok or error:
            message = error.get("message") if isinstance(error, dict) else None
            detail = message or response.text.strip()[:200] or f"status {response.status_code}"
            LOGGER.error("OpenAI %s returned an error (status %d): %s", path, response.status_code, detail)
            raise ProviderError(detail)
        return data

    def _get_headers(self) -> Dict[str, str]:
        """Build HTTP headers for OpenAI requests.

        Returns:
            Dictionary with Authorization and Content-Type headers.
        """
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
