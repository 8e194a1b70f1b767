"""Database engine and session management for the Arina backend."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from dotenv import load_dotenv

# Load environment from .env if available so database configuration is discoverable.
load_dotenv()

LOGGER = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base declarative class used by all ORM models."""


def _build_sqlite_url() -> str:
    """Construct the default SQLite connection string."""
    sqlite_path_env = os.getenv("ARINA_SQLITE_PATH", "data/arina.db")
    if sqlite_path_env == ":memory:":
        return "sqlite:///:memory:"

    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    sqlite_path = os.path.expanduser(sqlite_path_env)
    if not os.path.isabs(sqlite_path):
        sqlite_path = os.path.normpath(os.path.join(project_root, sqlite_path))

    directory = os.path.dirname(sqlite_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return f"sqlite:///{sqlite_path}"


def _build_database_url() -> str:
    """Use ``ARINA_DB_URL`` when set, otherwise fall back to a local SQLite file."""
    url = os.getenv("ARINA_DB_URL", "").strip()
    if url:
        return url
    return _build_sqlite_url()


DATABASE_URL = _build_database_url()
engine_kwargs: Dict[str, Any] = {
    "future": True,
    "pool_pre_ping": True,
}

if DATABASE_URL.startswith("sqlite"):
    # SQLite requires disabling same-thread checks for multi-threaded FastAPI workers.
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    if DATABASE_URL == "sqlite:///:memory:":
        # A single shared connection keeps the in-memory database alive across sessions.
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(
    DATABASE_URL,
    **engine_kwargs,
)
SessionLocal = sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
    future=True,
)


if DATABASE_URL.startswith("sqlite"):

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
        # Ownership cascades rely on foreign keys, which SQLite enables per connection.
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_database() -> None:
    """Ensure all ORM tables are created in the configured database."""
    # Import models within the function to avoid circular imports.
    from . import db_models  # noqa: F401  # pylint: disable=unused-import
    from .auth import models as auth_models  # noqa: F401  # pylint: disable=unused-import

    if DATABASE_URL.startswith("sqlite") and DATABASE_URL != "sqlite:///:memory:":
        with engine.begin() as conn:
            # Enable WAL (Write-Ahead Logging) mode
            conn.execute(text("PRAGMA journal_mode=WAL"))
            # Set synchronous mode to NORMAL for better performance (still safe with WAL)
            conn.execute(text("PRAGMA synchronous=NORMAL"))

    Base.metadata.create_all(bind=engine)
    LOGGER.debug("Database schema ensured (%d tables)", len(Base.metadata.tables))


def reset_database() -> None:
    """Drop and recreate every table. Intended for tests and local resets."""
    from . import db_models  # noqa: F401  # pylint: disable=unused-import
    from .auth import models as auth_models  # noqa: F401  # pylint: disable=unused-import

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    LOGGER.info("Database schema reset")
