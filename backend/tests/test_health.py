"""Tests for backend health probing utilities and endpoints."""

from __future__ import annotations

from backend.health import HealthResult, check_chat_provider_health, check_database_health, poll_health


def test_poll_health_success():
    attempts = []

    def succeed():
        attempts.append(1)
        return {"foo": "bar"}

    result = poll_health(
        succeed,
        service="demo",
        interval_seconds=0.01,
        timeout_seconds=0.05,
    )

    assert result.status == "ok"
    assert result.attempts == 1
    assert result.meta == {"foo": "bar"}


def test_poll_health_failure():
    call_count = 0

    def fail():
        nonlocal call_count
        call_count += 1
        raise RuntimeError("boom")

    result = poll_health(
        fail,
        service="demo",
        interval_seconds=0.01,
        timeout_seconds=0.03,
    )

    assert result.status == "error"
    assert result.detail == "boom"
    assert result.attempts == 3
    assert call_count == 3


def test_database_health_against_live_engine():
    result = check_database_health(interval_seconds=0.01, timeout_seconds=0.05)

    assert result.service == "database"
    assert result.status == "ok"


def test_chat_provider_health_reports_missing_key(monkeypatch):
    class UnconfiguredProvider:
        model = "gemini-test"

        def get_unavailable_reason(self):
            return "API key not configured (set GEMINI_API_KEY)"

        def get_provider_name(self):
            return "gemini"

    class Registry:
        def get_chat_provider(self):
            return UnconfiguredProvider()

    monkeypatch.setattr("backend.health.get_provider_registry", lambda: Registry())

    result = check_chat_provider_health(interval_seconds=0.01, timeout_seconds=0.02)

    assert result.status == "error"
    assert "GEMINI_API_KEY" in result.detail


def test_health_endpoint_uses_result(monkeypatch, anonymous_client):
    fake_result = HealthResult(
        service="database",
        status="ok",
        attempts=2,
        elapsed_seconds=0.2,
        meta={"dialect": "sqlite"},
    )

    monkeypatch.setattr("backend.routes.check_database_health", lambda: fake_result)

    response = anonymous_client.get("/api/v1/health/database")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["meta"] == {"dialect": "sqlite"}


def test_backend_health_endpoint(anonymous_client):
    response = anonymous_client.get("/health")

    assert response.json() == {"status": "ok"}
