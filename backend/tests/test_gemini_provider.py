"""Tests for the Gemini chat provider."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from backend.providers import ChatTurn, GeminiProvider, ProviderError, ProviderNotConfiguredError


def _response(status_code: int, payload) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload
    response.text = ""
    return response


class TestGeminiPayload:
    def test_payload_maps_turns_and_system_instruction(self) -> None:
        provider = GeminiProvider(api_key="test-key", model="gemini-test")

        payload = provider.build_payload(
            [ChatTurn("user", "hi"), ChatTurn("model", "hello")],
            system="Be helpful",
            options={"temperature": 0.2},
        )

        assert payload["contents"] == [
            {"role": "user", "parts": [{"text": "hi"}]},
            {"role": "model", "parts": [{"text": "hello"}]},
        ]
        assert payload["generationConfig"]["temperature"] == 0.2
        assert set(payload["generationConfig"]) == {"temperature", "topP", "topK", "maxOutputTokens"}
        assert payload["systemInstruction"] == {"parts": [{"text": "Be helpful"}]}

    def test_payload_omits_empty_system_instruction(self) -> None:
        payload = GeminiProvider(api_key="k").build_payload([ChatTurn("user", "hi")])

        assert "systemInstruction" not in payload


class TestGeminiGenerate:
    def test_returns_first_candidate_text(self) -> None:
        provider = GeminiProvider(api_key="test-key", base_url="https://gl.example/v1beta", model="gemini-test")
        body = {
            "candidates": [{"content": {"parts": [{"text": "Plant after the rains."}]}, "finishReason": "STOP"}],
            "usageMetadata": {"totalTokenCount": 12},
        }

        with patch("requests.post", return_value=_response(200, body)) as mock_post:
            result = provider.generate_chat([ChatTurn("user", "When to plant?")], system="persona")

        assert result.content == "Plant after the rains."
        assert result.provider == "gemini"
        assert result.metadata["finish_reason"] == "STOP"
        url = mock_post.call_args[0][0]
        assert url == "https://gl.example/v1beta/models/gemini-test:generateContent"
        assert mock_post.call_args[1]["headers"]["x-goog-api-key"] == "test-key"

    def test_missing_key_raises_not_configured(self) -> None:
        provider = GeminiProvider(api_key="")

        with pytest.raises(ProviderNotConfiguredError, match="GEMINI_API_KEY"):
            provider.generate_chat([ChatTurn("user", "hi")])

    def test_api_error_message_is_surfaced(self) -> None:
        provider = GeminiProvider(api_key="test-key")
        body = {"error": {"message": "API key not valid"}}

        with patch("requests.post", return_value=_response(400, body)):
            with pytest.raises(ProviderError, match="Gemini API error: API key not valid"):
                provider.generate_chat([ChatTurn("user", "hi")])

    def test_response_without_candidates_is_invalid(self) -> None:
        provider = GeminiProvider(api_key="test-key")

        with patch("requests.post", return_value=_response(200, {"candidates": []})):
            with pytest.raises(ProviderError, match="Invalid response format"):
                provider.generate_chat([ChatTurn("user", "hi")])

    def test_network_failure_is_wrapped(self) -> None:
        provider = GeminiProvider(api_key="test-key")

        with patch("requests.post", side_effect=requests.exceptions.ConnectionError("refused")):
            with pytest.raises(ProviderError, match="request failed"):
                provider.generate_chat([ChatTurn("user", "hi")])


class TestGeminiAvailability:
    def test_unconfigured_reason(self) -> None:
        provider = GeminiProvider(api_key="")

        assert provider.is_configured() is False
        assert "GEMINI_API_KEY" in provider.get_unavailable_reason()

    def test_missing_model_reason(self) -> None:
        provider = GeminiProvider(api_key="test-key", model="nope")

        with patch("requests.get", return_value=_response(404, {})):
            assert provider.get_unavailable_reason() == "Model nope not found"

    def test_available_when_model_lookup_succeeds(self) -> None:
        provider = GeminiProvider(api_key="test-key")

        with patch("requests.get", return_value=_response(200, {"name": "models/x"})):
            assert provider.is_available() is True
