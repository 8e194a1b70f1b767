"""Shared fixtures: in-memory database, fake AI providers and an authenticated client."""

from __future__ import annotations

import os

os.environ.setdefault("ARINA_SQLITE_PATH", ":memory:")
os.environ["CHART_IMAGE_MODE"] = "placeholder"

from typing import Any, Dict, List, Optional, Sequence  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from backend.app import app  # noqa: E402
from backend.assistant import ChatAssistant  # noqa: E402
from backend.auth.service import AuthService  # noqa: E402
from backend.db import reset_database  # noqa: E402
from backend.memory import MemoryService  # noqa: E402
from backend.provider_registry import ProviderRegistry  # noqa: E402
from backend.providers import ChatTurn, GenerateResult, ProviderError  # noqa: E402
from backend.services import WorkspaceService  # noqa: E402
from backend.storage import DatabaseStorage  # noqa: E402
from backend.topic_gate import build_policy  # noqa: E402

TEST_PASSWORD = "correct-horse-battery"


class FakeChatProvider:
    """Records chat calls and answers with a canned reply."""

    def __init__(self, reply: str = "Rotate your crops every season.") -> None:
        self.reply = reply
        self.calls: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def generate_chat(
        self,
        messages: Sequence[ChatTurn],
        system: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GenerateResult:
        self.calls.append({"messages": list(messages), "system": system})
        if self.error is not None:
            raise self.error
        return GenerateResult(content=self.reply, model="fake-model", provider="fake")


class FakeMediaProvider:
    """Deterministic embeddings keyed on words, plus a fixed image URL."""

    VOCABULARY = ("rice", "corn", "price", "weather")

    def __init__(self, configured: bool = True) -> None:
        self.configured = configured
        self.embedded: List[str] = []
        self.image_prompts: List[str] = []
        self.fail_embedding = False

    def is_configured(self) -> bool:
        return self.configured

    def embed(self, text: str, model: Optional[str] = None) -> List[float]:
        if not text:
            raise ValueError("Missing text parameter")
        if self.fail_embedding:
            raise ProviderError("embedding service down")
        self.embedded.append(text)
        lowered = text.lower()
        return [1.0 if word in lowered else 0.0 for word in self.VOCABULARY]

    def generate_image(self, prompt: str, model: Optional[str] = None) -> str:
        self.image_prompts.append(prompt)
        return "https://images.example.com/chart.png"


@pytest.fixture(autouse=True)
def fresh_database():
    reset_database()
    yield


@pytest.fixture
def storage() -> DatabaseStorage:
    return DatabaseStorage()


def make_user(email: str = "farmer@example.com") -> str:
    user = AuthService().register_user(email=email, password=TEST_PASSWORD, name="Farmer")
    return user.id


@pytest.fixture
def user_id(storage) -> str:
    return make_user()


@pytest.fixture
def chat_provider() -> FakeChatProvider:
    return FakeChatProvider()


@pytest.fixture
def media_provider() -> FakeMediaProvider:
    return FakeMediaProvider()


@pytest.fixture
def memory_service(storage, media_provider) -> MemoryService:
    return MemoryService(
        storage,
        media_provider,
        similarity_threshold=0.7,
        match_count=5,
        entity_limit=3,
        session_ttl_minutes=60,
    )


@pytest.fixture
def workspace(storage, chat_provider, media_provider, memory_service) -> WorkspaceService:
    return WorkspaceService(
        storage,
        assistant=ChatAssistant(chat_provider, policy=build_policy(), history_limit=5),
        memory=memory_service,
        media_provider=media_provider,
        registry=ProviderRegistry(),
    )


@pytest.fixture
def anonymous_client(monkeypatch, workspace):
    monkeypatch.setattr("backend.routes.get_workspace_service", lambda: workspace)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def client(anonymous_client):
    """Client carrying the session cookie of a freshly registered user."""
    response = anonymous_client.post(
        "/api/v1/auth/register",
        json={"email": "user@example.com", "password": TEST_PASSWORD, "name": "Test Farmer"},
    )
    assert response.status_code == 201
    return anonymous_client
