"""Tests for long-term memory recall and context formatting."""

from __future__ import annotations

import numpy as np
import pytest

from backend.memory import MemoryService, cosine_similarity, format_context

from conftest import FakeMediaProvider


def test_cosine_similarity_handles_mismatched_and_zero_vectors():
    scores = cosine_similarity([1.0, 0.0], [[1.0, 0.0], [0.0, 1.0], [1.0, 0.0, 0.0], [0.0, 0.0]])

    assert np.allclose(scores, [1.0, 0.0, 0.0, 0.0])
    assert cosine_similarity([1.0], []).size == 0


def test_format_context_renders_sections():
    text = format_context(
        {
            "profile": {"business_type": "dairy", "farm_size": 4.5, "location": "Malang"},
            "recent_messages": [{"role": "assistant", "content": "Milk prices rose"}],
            "relevant_entities": [{"entity_type": "livestock", "entity_name": "cows", "attributes": {"count": 12}}],
        }
    )

    assert text.startswith("Here is what you remember about this user:")
    assert "- Business type: dairy" in text
    assert "- Farm size: 4.5" in text
    assert "- [assistant] Milk prices rose" in text
    assert "- livestock: cows (count=12)" in text


def test_format_context_is_empty_without_data():
    assert format_context(None) == ""
    assert format_context({"profile": None, "recent_messages": [], "relevant_entities": []}) == ""


def test_saving_a_message_attaches_its_embedding(memory_service, media_provider, user_id):
    conversation = memory_service.create_conversation(user_id, "Prices")

    message = memory_service.save_message(user_id, conversation["id"], "user", "rice price this month")

    assert message["has_embedding"] is True
    assert media_provider.embedded == ["rice price this month"]


def test_embedding_failure_still_stores_message(memory_service, media_provider, user_id):
    conversation = memory_service.create_conversation(user_id, "Prices")
    media_provider.fail_embedding = True

    message = memory_service.save_message(user_id, conversation["id"], "user", "corn harvest")

    assert message["has_embedding"] is False
    assert len(memory_service.list_messages(user_id, conversation["id"])) == 1


def test_saving_into_foreign_conversation_returns_none(memory_service, user_id):
    from conftest import make_user

    other_id = make_user("neighbour@example.com")
    conversation = memory_service.create_conversation(user_id, "Mine")

    assert memory_service.save_message(other_id, conversation["id"], "user", "rice") is None


def test_retrieve_context_returns_similar_messages_and_entities(memory_service, user_id):
    conversation = memory_service.create_conversation(user_id, "Season")
    memory_service.save_message(user_id, conversation["id"], "user", "rice price dropped")
    memory_service.save_message(user_id, conversation["id"], "user", "weather was dry")
    memory_service.save_profile(user_id, {"business_name": "Sawah Jaya"})
    for name in ("rice", "corn", "chili", "cassava"):
        memory_service.save_entity(user_id, "crop", name)

    context = memory_service.retrieve_context(user_id, "what is the rice price?")

    assert context.profile["business_name"] == "Sawah Jaya"
    assert [item["content"] for item in context.recent_messages] == ["rice price dropped"]
    assert context.recent_messages[0]["similarity"] == pytest.approx(1.0)
    assert "embedding" not in context.recent_messages[0]
    assert len(context.relevant_entities) == 3


def test_retrieve_context_without_query_only_loads_profile(memory_service, media_provider, user_id):
    memory_service.save_entity(user_id, "crop", "rice")

    context = memory_service.retrieve_context(user_id, None)

    assert context.recent_messages == []
    assert context.relevant_entities == []
    assert media_provider.embedded == []


def test_search_failure_keeps_partial_context(storage, user_id):
    provider = FakeMediaProvider()
    provider.fail_embedding = True
    service = MemoryService(storage, provider)
    service.save_profile(user_id, {"location": "Garut"})

    context = service.retrieve_context(user_id, "rice")

    assert context.profile["location"] == "Garut"
    assert context.recent_messages == []


def test_session_data_ttl_and_cleanup(memory_service, user_id):
    memory_service.save_session_data(user_id, "wizard", {"step": 3})
    memory_service.save_session_data(user_id, "old", {"step": 1}, ttl_minutes=-1)

    assert memory_service.get_session_data(user_id, "wizard")["session_data"] == {"step": 3}
    assert memory_service.get_session_data(user_id, "old") is None
    assert memory_service.cleanup_expired_sessions(user_id) == 1


def test_delete_data_rejects_unknown_type(memory_service, user_id):
    with pytest.raises(ValueError):
        memory_service.delete_data(user_id, "everything")
