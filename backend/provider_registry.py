"""Provider registry for the external AI services.

This module provides a centralized registry holding the chat provider
(Gemini) and the embeddings/images provider (OpenAI).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .providers import GeminiProvider, LLMProvider, OpenAIProvider

LOGGER = logging.getLogger(__name__)

CHAT_PROVIDER = "gemini"
MEDIA_PROVIDER = "openai"


class ProviderRegistry:
    """Centralized registry for the AI service adapters.

    Providers are initialized lazily on first access. Providers that are not
    configured (missing API keys) are still registered but report as
    unavailable and raise when called.
    """

    def __init__(self):
        self._providers: Dict[str, LLMProvider] = {}
        self._initialized = False

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return

        self._providers[CHAT_PROVIDER] = GeminiProvider()
        self._providers[MEDIA_PROVIDER] = OpenAIProvider()
        for name, provider in self._providers.items():
            if provider.is_configured():
                LOGGER.info("Registered %s provider", name)
            else:
                LOGGER.debug("Registered %s provider without an API key", name)

        self._initialized = True

    def refresh_configuration(self) -> None:
        """Rebuild provider instances based on current configuration."""
        self._providers.clear()
        self._initialized = False
        self._ensure_initialized()

    def get_available_connections(self) -> List[Dict[str, Any]]:
        """Get status of all provider connections.

        Returns:
            List of connection status objects with keys:
            - type: Provider identifier ("gemini" | "openai")
            - available: Boolean indicating if provider is usable
            - reason: Optional string explaining why unavailable
        """
        self._ensure_initialized()
        connections = []
        for name, provider in self._providers.items():
            reason = provider.get_unavailable_reason()
            connections.append({"type": name, "available": reason is None, "reason": reason})
        return connections

    def get_provider(self, connection_type: str) -> LLMProvider:
        """Get a provider instance by type.

        Raises:
            ValueError: If connection_type is unknown
        """
        self._ensure_initialized()

        provider = self._providers.get(connection_type)
        if not provider:
            raise ValueError(f"Unknown connection type: {connection_type}")

        return provider

    def get_chat_provider(self) -> GeminiProvider:
        return self.get_provider(CHAT_PROVIDER)  # type: ignore[return-value]

    def get_media_provider(self) -> OpenAIProvider:
        return self.get_provider(MEDIA_PROVIDER)  # type: ignore[return-value]


# Singleton instance
_registry: Optional[ProviderRegistry] = None


def get_provider_registry() -> ProviderRegistry:
    """Get the global provider registry instance.

    Returns:
        Singleton ProviderRegistry instance.
    """
    global _registry
    if _registry is None:
        _registry = ProviderRegistry()
    return _registry
