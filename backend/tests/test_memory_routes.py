"""Tests for the long-term memory endpoints."""

from __future__ import annotations


def test_profile_starts_empty_and_updates_partially(client):
    assert client.get("/api/v1/memory/profile").json() is None

    client.put("/api/v1/memory/profile", json={"business_name": "Kebun Jaya", "main_crops": ["rice"]})
    updated = client.put("/api/v1/memory/profile", json={"farm_size": 2.5})

    assert updated.status_code == 200
    payload = updated.json()
    assert payload["business_name"] == "Kebun Jaya"
    assert payload["main_crops"] == ["rice"]
    assert payload["farm_size"] == 2.5


def test_profile_rejects_negative_farm_size(client):
    assert client.put("/api/v1/memory/profile", json={"farm_size": -1}).status_code == 422


def test_conversation_messages(client, media_provider):
    conversation = client.post(
        "/api/v1/memory/conversations",
        json={"title": "Rice plan", "analysis_type": "forecasting", "tags": ["rice"]},
    )
    assert conversation.status_code == 201
    conversation_id = conversation.json()["id"]

    created = client.post(
        f"/api/v1/memory/conversations/{conversation_id}/messages",
        json={"role": "user", "content": "rice price outlook"},
    )

    assert created.status_code == 201
    assert created.json()["has_embedding"] is True
    messages = client.get(f"/api/v1/memory/conversations/{conversation_id}/messages").json()
    assert [message["content"] for message in messages] == ["rice price outlook"]
    assert [item["title"] for item in client.get("/api/v1/memory/conversations").json()] == ["Rice plan"]


def test_messages_for_unknown_conversation_are_404(client):
    assert client.get("/api/v1/memory/conversations/missing/messages").status_code == 404
    response = client.post(
        "/api/v1/memory/conversations/missing/messages",
        json={"role": "user", "content": "hello"},
    )
    assert response.status_code == 404


def test_entities_merge_and_filter(client):
    client.post(
        "/api/v1/memory/entities",
        json={"entity_type": "crop", "entity_name": "Rice", "attributes": {"variety": "IR64"}},
    )
    client.post(
        "/api/v1/memory/entities",
        json={"entity_type": "crop", "entity_name": "Rice", "attributes": {"area": 2}},
    )
    client.post("/api/v1/memory/entities", json={"entity_type": "market", "entity_name": "Pasar Induk"})

    crops = client.get("/api/v1/memory/entities", params={"entity_type": "crop"}).json()

    assert len(crops) == 1
    assert crops[0]["attributes"] == {"variety": "IR64", "area": 2}
    assert len(client.get("/api/v1/memory/entities").json()) == 2


def test_session_data_round_trip_and_missing_key(client):
    saved = client.put("/api/v1/memory/sessions/draft", json={"data": {"step": 2}, "ttl_minutes": 30})

    assert saved.status_code == 200
    assert client.get("/api/v1/memory/sessions/draft").json()["session_data"] == {"step": 2}
    assert client.get("/api/v1/memory/sessions/other").status_code == 404
    assert client.post("/api/v1/memory/sessions/cleanup").json() == {"deleted": 0}


def test_memory_context(client):
    conversation = client.post("/api/v1/memory/conversations", json={"title": "Prices"}).json()
    client.post(
        f"/api/v1/memory/conversations/{conversation['id']}/messages",
        json={"role": "user", "content": "rice price dropped"},
    )
    client.post("/api/v1/memory/entities", json={"entity_type": "crop", "entity_name": "Rice"})

    context = client.get("/api/v1/memory/context", params={"query": "rice price today"}).json()

    assert [item["content"] for item in context["recent_messages"]] == ["rice price dropped"]
    assert [item["entity_name"] for item in context["relevant_entities"]] == ["Rice"]


def test_delete_memory_data(client):
    client.post("/api/v1/memory/entities", json={"entity_type": "crop", "entity_name": "Corn"})

    assert client.delete("/api/v1/memory/entities").json() == {"deleted": 1}
    assert client.delete("/api/v1/memory/entities/missing").status_code == 404
    assert client.delete("/api/v1/memory/recipes").status_code == 400
