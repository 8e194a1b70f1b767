"""Health check utilities for backend dependencies."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from sqlalchemy import text

from .db import engine
from .provider_registry import get_provider_registry

LOGGER = logging.getLogger(__name__)

HEALTH_CHECK_INTERVAL_SECONDS = 5.0
HEALTH_CHECK_TIMEOUT_SECONDS = 50.0
# Provider probes hit the upstream API.
PROVIDER_CHECK_INTERVAL_SECONDS = 2.0
PROVIDER_CHECK_TIMEOUT_SECONDS = 6.0


@dataclass
class HealthResult:
    """Structured payload describing the outcome of a health probe."""

    service: str
    status: str
    attempts: int
    elapsed_seconds: float
    detail: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result into a serialisable dictionary."""
        payload: Dict[str, Any] = {
            "service": self.service,
            "status": self.status,
            "attempts": self.attempts,
            "elapsed_seconds": self.elapsed_seconds,
        }
        if self.meta:
            payload["meta"] = self.meta
        if self.detail:
            payload["detail"] = self.detail
        return payload


def poll_health(
    probe: Callable[[], Optional[Dict[str, Any]]],
    *,
    service: str,
    interval_seconds: float = HEALTH_CHECK_INTERVAL_SECONDS,
    timeout_seconds: float = HEALTH_CHECK_TIMEOUT_SECONDS,
) -> HealthResult:
    """Repeatedly invoke a health probe until it succeeds or the timeout expires."""
    start_time = time.perf_counter()
    max_attempts = max(1, int(math.ceil(timeout_seconds / interval_seconds)))
    last_error: Optional[str] = None

    for attempt in range(1, max_attempts + 1):
        try:
            meta = probe() or {}
        except Exception as exc:  # pylint: disable=broad-except
            last_error = str(exc) or exc.__class__.__name__
            LOGGER.debug("%s probe attempt %d/%d failed: %s", service, attempt, max_attempts, last_error)
            if attempt < max_attempts:
                time.sleep(interval_seconds)
            continue

        elapsed = time.perf_counter() - start_time
        return HealthResult(
            service=service,
            status="ok",
            attempts=attempt,
            elapsed_seconds=elapsed,
            meta=meta,
        )

    elapsed = time.perf_counter() - start_time
    LOGGER.warning("%s health check failed after %d attempts: %s", service, max_attempts, last_error)
    return HealthResult(
        service=service,
        status="error",
        attempts=max_attempts,
        elapsed_seconds=elapsed,
        detail=last_error or "Unhealthy",
    )


def _ping_database() -> Dict[str, Any]:
    """Run a trivial query to confirm the database connection is healthy."""
    with engine.connect() as connection:
        result = connection.execute(text("SELECT 1"))
        scalar = result.scalar_one_or_none()
    return {"result": scalar}


def _ping_chat_provider() -> Dict[str, Any]:
    """Confirm the chat provider is configured and its model is reachable."""
    provider = get_provider_registry().get_chat_provider()
    reason = provider.get_unavailable_reason()
    if reason is not None:
        raise RuntimeError(reason)
    return {"provider": provider.get_provider_name(), "model": provider.model}


def check_database_health(
    *,
    interval_seconds: float = HEALTH_CHECK_INTERVAL_SECONDS,
    timeout_seconds: float = HEALTH_CHECK_TIMEOUT_SECONDS,
) -> HealthResult:
    """Probe the database until it responds or the timeout elapses."""
    return poll_health(
        _ping_database,
        service="database",
        interval_seconds=interval_seconds,
        timeout_seconds=timeout_seconds,
    )


def check_chat_provider_health(
    *,
    interval_seconds: float = PROVIDER_CHECK_INTERVAL_SECONDS,
    timeout_seconds: float = PROVIDER_CHECK_TIMEOUT_SECONDS,
) -> HealthResult:
    """Probe the chat provider until it responds or the timeout elapses."""
    return poll_health(
        _ping_chat_provider,
        service="chat-provider",
        interval_seconds=interval_seconds,
        timeout_seconds=timeout_seconds,
    )
