"""FastAPI application for the Arina business analytics backend."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .auth import auth_router
from .config import API_ALLOWED_ORIGINS, API_HOST, API_PORT
from .db import init_database
from .logging_config import configure_logging
from .routes import router

configure_logging()
LOGGER = logging.getLogger(__name__)
LOGGER.info("Creating Arina Business Analytics FastAPI application")

app = FastAPI(
    title="Arina Business Analytics API",
    version="1.0.0",
    description="Backend for agricultural business analysis calculators, the Arina chat assistant and memory.",
)

# Session cookies travel cross-origin from the web client, so credentials are allowed.
app.add_middleware(
    CORSMiddleware,
    allow_origins=API_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(router)


@app.on_event("startup")
def ensure_schema() -> None:
    """Create missing tables before the first request is served."""
    LOGGER.info("Backend startup hook triggered - ensuring database schema")
    try:
        init_database()
    except Exception:  # pylint: disable=broad-except
        LOGGER.exception("Database schema could not be created during startup")
        raise
    LOGGER.info("Database schema ready")


@app.get("/health", tags=["health"])
def healthcheck() -> dict[str, str]:
    """Report a simple OK status used for readiness checks.

    Returns:
        dict[str, str]: A service status payload.
    """
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    LOGGER.info("Launching Uvicorn development server on %s:%s", API_HOST, API_PORT)
    uvicorn.run("backend.app:app", host=API_HOST, port=API_PORT, reload=True)
