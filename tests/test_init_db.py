from __future__ import annotations

import pytest
from alembic import command
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError

import app.database.init_db as init_db_module
from app.models import Base


def test_migrations_build_every_model_table(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'coopbuy.db'}"

    command.upgrade(init_db_module.build_alembic_config(database_url), "head")

    engine = create_engine(database_url)
    try:
        tables = set(inspect(engine).get_table_names())
        status_change_columns = {c["name"] for c in inspect(engine).get_columns("commitment_status_changes")}
    finally:
        engine.dispose()
    assert set(Base.metadata.tables) <= tables
    assert {"email_claim_token", "email_claimed_at", "processed_for_email"} <= status_change_columns


def test_failed_migration_raises_and_keeps_existing_data(tmp_path, monkeypatch):
    db_path = tmp_path / "coopbuy.db"
    database_url = f"sqlite:///{db_path}"
    engine = create_engine(database_url)
    with engine.begin() as conn:
        # A pre-existing table with the same name makes the first revision fail.
        conn.execute(text("CREATE TABLE users (id INTEGER PRIMARY KEY, legacy TEXT)"))
        conn.execute(text("INSERT INTO users (id, legacy) VALUES (1, 'keep me')"))
    engine.dispose()
    monkeypatch.setattr(init_db_module, "bootstrap", lambda: None)
    monkeypatch.setattr(init_db_module, "get_active_database_url", lambda: database_url)

    with pytest.raises(OperationalError):
        init_db_module.init_db()

    assert [p.name for p in tmp_path.iterdir()] == ["coopbuy.db"]
    engine = create_engine(database_url)
    try:
        with engine.connect() as conn:
            assert conn.execute(text("SELECT legacy FROM users")).scalar_one() == "keep me"
    finally:
        engine.dispose()
