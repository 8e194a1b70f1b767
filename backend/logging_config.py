"""Logging setup for the Arina backend."""

from __future__ import annotations

import logging
import os
from logging.config import dictConfig
from typing import Any, Dict


def _build_handlers(log_level: str) -> Dict[str, Dict[str, Any]]:
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": log_level,
        },
    }
    log_file = os.getenv("ARINA_LOG_FILE", "").strip()
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "standard",
            "level": log_level,
            "filename": log_file,
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
            "encoding": "utf-8",
        }
    return handlers


def configure_logging() -> None:
    """Route application, uvicorn and HTTP client logs through one formatter.

    The level comes from ``ARINA_LOG_LEVEL``; setting ``ARINA_LOG_FILE`` adds a
    rotating file handler next to the console output.
    """
    log_level = os.getenv("ARINA_LOG_LEVEL", "INFO").upper()
    handlers = _build_handlers(log_level)
    handler_names = list(handlers)

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": handlers,
            "root": {"handlers": handler_names, "level": log_level},
            "loggers": {
                "uvicorn": {"handlers": handler_names, "level": log_level, "propagate": False},
                "uvicorn.error": {"handlers": handler_names, "level": log_level, "propagate": False},
                "uvicorn.access": {
                    "handlers": handler_names,
                    "level": os.getenv("UVICORN_ACCESS_LOG_LEVEL", "INFO").upper(),
                    "propagate": False,
                },
                # urllib3 logs every pooled connection at DEBUG.
                "urllib3": {"level": "WARNING"},
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s level (handlers=%s)", log_level, handler_names)
