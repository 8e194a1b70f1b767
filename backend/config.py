"""Configuration helpers for the Arina business analytics backend."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from a .env file if present.
load_dotenv()


def _split_csv(value: str) -> List[str]:
    """Convert a comma-separated string into a clean list.

    Args:
        value (str): One or many values separated by commas.
    Returns:
        List[str]: Normalized values with whitespace removed.
    """
    return [item.strip() for item in value.split(",") if item.strip()]


def _bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


DEFAULT_ALLOWED_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000"
DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data"

API_HOST = os.getenv("ARINA_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("ARINA_API_PORT", "8502"))
API_ALLOWED_ORIGINS = _split_csv(os.getenv("ARINA_API_ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS))
# Resolve the data directory eagerly so downstream code can rely on absolute paths.
DATA_DIR = Path(os.getenv("ARINA_DATA_DIR", str(DEFAULT_DATA_DIR))).resolve()

# Generative-language (Gemini) chat configuration
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_API_BASE = os.getenv(
    "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
).rstrip("/")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_TEMPERATURE = float(os.getenv("GEMINI_TEMPERATURE", "0.7"))
GEMINI_TOP_P = float(os.getenv("GEMINI_TOP_P", "0.95"))
GEMINI_TOP_K = int(os.getenv("GEMINI_TOP_K", "40"))
GEMINI_MAX_OUTPUT_TOKENS = int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "2048"))

CHAT_HISTORY_LIMIT = int(os.getenv("CHAT_HISTORY_LIMIT", "5"))
CHAT_TIMEOUT_SECONDS = float(os.getenv("CHAT_TIMEOUT_SECONDS", "30"))

# OpenAI Configuration (embeddings and chart images)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_API_BASE = os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1").rstrip("/")
OPENAI_EMBED_MODEL = os.getenv("OPENAI_EMBED_MODEL", "text-embedding-ada-002")
OPENAI_IMAGE_MODEL = os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3")

# "placeholder" returns static images, "openai" calls the image generation API.
CHART_IMAGE_MODE = os.getenv("CHART_IMAGE_MODE", "placeholder").strip().lower()

MEMORY_SIMILARITY_THRESHOLD = float(os.getenv("MEMORY_SIMILARITY_THRESHOLD", "0.7"))
MEMORY_MATCH_COUNT = int(os.getenv("MEMORY_MATCH_COUNT", "5"))
MEMORY_ENTITY_LIMIT = int(os.getenv("MEMORY_ENTITY_LIMIT", "3"))
SESSION_DATA_TTL_MINUTES = int(os.getenv("SESSION_DATA_TTL_MINUTES", "60"))

TOPIC_GATE_INCLUDE_INDONESIAN = _bool_env("TOPIC_GATE_INCLUDE_INDONESIAN", default=True)
TOPIC_GATE_EXTRA_TERMS = _split_csv(os.getenv("TOPIC_GATE_EXTRA_TERMS", ""))
TOPIC_GATE_DENIED_TERMS = _split_csv(os.getenv("TOPIC_GATE_DENIED_TERMS", ""))

# Account sessions. Cookies are host-only unless a domain is set.
SESSION_SECRET = os.getenv("ARINA_SESSION_SECRET", "dev-session-secret")
SESSION_COOKIE_NAME = os.getenv("ARINA_SESSION_COOKIE", "arina_session")
REFRESH_COOKIE_NAME = os.getenv("ARINA_REFRESH_COOKIE", "arina_refresh")
SESSION_COOKIE_DOMAIN = os.getenv("ARINA_COOKIE_DOMAIN") or None
SESSION_COOKIE_PATH = os.getenv("ARINA_COOKIE_PATH", "/")
SESSION_COOKIE_SECURE = _bool_env("ARINA_COOKIE_SECURE", default=False)
SESSION_COOKIE_HTTPONLY = _bool_env("ARINA_COOKIE_HTTPONLY", default=True)
SESSION_COOKIE_SAMESITE = os.getenv("ARINA_COOKIE_SAMESITE", "Lax").capitalize()
SESSION_ACCESS_TTL_MINUTES = int(os.getenv("ARINA_SESSION_TTL_MINUTES", "60"))
SESSION_REFRESH_TTL_HOURS = int(os.getenv("ARINA_REFRESH_TTL_HOURS", "24"))
SESSION_IDLE_EXTENSION_MINUTES = int(os.getenv("ARINA_SESSION_IDLE_EXTENSION_MINUTES", "5"))
SESSION_MAX_DEVICES = int(os.getenv("ARINA_SESSION_MAX_DEVICES", "5"))
PASSWORD_MIN_LENGTH = int(os.getenv("ARINA_PASSWORD_MIN_LENGTH", "8"))
