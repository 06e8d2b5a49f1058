"""Database engine and session management."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import get_config

logger = logging.getLogger(__name__)

config = get_config()
DATABASE_URL = config.DATABASE_URL


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    # SQLite ships with foreign key enforcement off.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(database_url: str):
    options: dict[str, Any] = {"echo": config.DEBUG and not config.is_production, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # Sessions may cross threads in Celery workers.
        options["connect_args"] = {"check_same_thread": False}
        sqlite_engine = create_engine(database_url, **options)
        event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine
    options.update(pool_recycle=3600, pool_size=10, max_overflow=20)
    return create_engine(database_url, **options)


def _configure_engine(database_url: str) -> None:
    global DATABASE_URL, engine, SessionLocal
    DATABASE_URL = database_url
    engine = _build_engine(database_url)
    SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


_configure_engine(DATABASE_URL)


def get_active_database_url() -> str:
    """Return the currently bound database URL."""
    return DATABASE_URL


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Yield a session that is rolled back if the block raises and always closed."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def verify_database_connection() -> bool:
    """Verify DB connectivity during startup."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as exc:  # pragma: no cover - exercised in deployment.
        event = "database.connection_failed" if config.DB_CONNECTIVITY_REQUIRED else "database.connection_failed.optional"
        logger.warning(
            event,
            extra={"event": event, "scheme": DATABASE_URL.split("://", 1)[0], "reason": str(exc)},
        )
        return False
