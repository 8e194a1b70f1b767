"""Base provider interface for external AI services.

This module defines the abstract base class and data structures shared by the
HTTP adapters (Gemini for chat completion, OpenAI for embeddings and chart
images).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class ProviderError(RuntimeError):
    """Raised when an upstream AI service call fails.

    The message carries the upstream error text and is safe to show to users.
    """


class ProviderNotConfiguredError(ProviderError):
    """Raised when a provider is used without its API key."""


@dataclass
class ChatTurn:
    """One message forwarded to a chat provider.

    Attributes:
        role: "user" or "model"
        content: Message text
    """
    role: str
    content: str


@dataclass
class GenerateResult:
    """Result from a completion/generation request.

    Attributes:
        content: Generated text content
        model: Model name that was used
        provider: Provider that generated the response
        metadata: Additional response metadata (finish reason, usage, etc.)
    """
    content: str
    model: str
    provider: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class LLMProvider(ABC):
    """Abstract base class for AI service adapters.

    Adapters are thin: they build the request, send it with ``requests`` and
    translate failures into :class:`ProviderError`. Nothing is retried.
    """

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when the credentials needed for a call are present."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if provider is configured and reachable.

        Returns:
            True if provider can be used, False otherwise.

        Note:
            This performs a lightweight network check and is meant for health
            probes, not for every request.
        """

    @abstractmethod
    def get_unavailable_reason(self) -> Optional[str]:
        """Get human-readable reason why provider is unavailable.

        Returns:
            None if available, otherwise a message like:
            - "API key not configured"
            - "Service unreachable"
            - "Authentication failed"
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider identifier ("gemini" or "openai")."""
