"""Apply Alembic migrations to the configured database."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

from app.core.startup import bootstrap
from app.database.db import get_active_database_url

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def build_alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def init_db() -> None:
    """Upgrade the configured database to the latest revision.

    Migration errors propagate; existing data is never moved or rebuilt.
    """
    bootstrap()
    active_url = get_active_database_url()
    scheme = active_url.split("://", 1)[0]
    try:
        command.upgrade(build_alembic_config(active_url), "head")
    except Exception:
        logger.exception("database.migration_failed", extra={"event": "database.migration_failed", "scheme": scheme})
        raise

    logger.info("database.migrated", extra={"event": "database.migrated", "scheme": scheme})


if __name__ == "__main__":
    init_db()
