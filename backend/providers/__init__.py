"""AI service provider adapters.

This package provides thin HTTP adapters for the generative-language chat API
(Gemini) and for embeddings and image generation (OpenAI).
"""

from .base import (
    ChatTurn,
    GenerateResult,
    LLMProvider,
    ProviderError,
    ProviderNotConfiguredError,
)
from .gemini import GeminiProvider
from .openai import OpenAIProvider

__all__ = [
    "ChatTurn",
    "GeminiProvider",
    "GenerateResult",
    "LLMProvider",
    "OpenAIProvider",
    "ProviderError",
    "ProviderNotConfiguredError",
]
