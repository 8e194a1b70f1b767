"""Tests for the chat-with-ai, generate-chart and generate-embedding contracts."""

from __future__ import annotations

from backend.providers import ProviderError
from backend.topic_gate import DEFAULT_REFUSAL


def test_chat_with_ai_returns_response(client, chat_provider):
    response = client.post(
        "/api/v1/functions/chat-with-ai",
        json={
            "messages": [{"role": "user", "content": "How do I improve soil fertility?"}],
            "selectedFeature": "business-feasibility",
            "memoryContext": {"profile": {"business_name": "Sawah Hijau"}, "recentMessages": []},
        },
    )

    assert response.status_code == 200
    assert response.json() == {"response": chat_provider.reply}
    system = chat_provider.calls[0]["system"]
    assert "Sawah Hijau" in system


def test_chat_with_ai_refuses_off_topic(client, chat_provider):
    response = client.post(
        "/api/v1/functions/chat-with-ai",
        json={"messages": [{"role": "user", "content": "Tell me a joke about cats"}]},
    )

    assert response.json() == {"response": DEFAULT_REFUSAL}
    assert chat_provider.calls == []


def test_chat_with_ai_without_messages_is_400(client):
    response = client.post("/api/v1/functions/chat-with-ai", json={"messages": []})

    assert response.status_code == 400
    assert "error" in response.json()


def test_chat_with_ai_provider_failure_is_400(client, chat_provider):
    chat_provider.error = ProviderError("Gemini API error: invalid key")

    response = client.post(
        "/api/v1/functions/chat-with-ai",
        json={"messages": [{"role": "user", "content": "Which fertilizer for corn?"}]},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Gemini API error: invalid key"}


def test_generate_chart_returns_placeholder(client):
    response = client.post(
        "/api/v1/functions/generate-chart",
        json={"prompt": "Revenue by month", "featureId": "forecasting"},
    )

    assert response.status_code == 200
    assert response.json()["imageUrl"].startswith("https://placehold.co/800x600")


def test_generate_chart_requires_prompt(client):
    response = client.post("/api/v1/functions/generate-chart", json={"featureId": "swot"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing prompt parameter"}


def test_generate_embedding_returns_vector(client, media_provider):
    response = client.post("/api/v1/functions/generate-embedding", json={"text": "rice price"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "embedding": [1.0, 0.0, 1.0, 0.0], "messageId": None}
    assert media_provider.embedded == ["rice price"]


def test_generate_embedding_stores_vector_on_memory_message(client, workspace):
    conversation = client.post("/api/v1/memory/conversations", json={"title": "Prices"}).json()
    message = client.post(
        f"/api/v1/memory/conversations/{conversation['id']}/messages",
        json={"role": "user", "content": "weather forecast"},
    ).json()

    response = client.post(
        "/api/v1/functions/generate-embedding",
        json={"text": "corn price", "messageId": message["id"]},
    )

    assert response.json()["success"] is True
    assert response.json()["messageId"] == message["id"]


def test_generate_embedding_errors_are_400(client, media_provider):
    missing_text = client.post("/api/v1/functions/generate-embedding", json={})
    unknown_message = client.post(
        "/api/v1/functions/generate-embedding", json={"text": "rice", "messageId": "missing"}
    )
    media_provider.fail_embedding = True
    provider_down = client.post("/api/v1/functions/generate-embedding", json={"text": "rice"})

    assert missing_text.status_code == 400
    assert missing_text.json() == {"success": False, "error": "Missing text parameter"}
    assert unknown_message.json()["success"] is False
    assert provider_down.json() == {"success": False, "error": "embedding service down"}


def test_functions_require_a_session(anonymous_client):
    response = anonymous_client.post("/api/v1/functions/generate-chart", json={"prompt": "x"})

    assert response.status_code == 401
