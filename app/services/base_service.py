"""Shared service base with robust session lifecycle behavior."""

from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, PersistenceError
from app.database.db import SessionLocal

ModelT = TypeVar("ModelT")


class BaseService:
    """Base class for services that operate on a SQLAlchemy session."""

    def __init__(self, db: Session | None = None) -> None:
        self.db = db or SessionLocal()

    def commit(self) -> None:
        """Commit current transaction and rollback on failure."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def commit_or_raise(self, action: str) -> None:
        """Commit a primary mutation, surfacing store failures as ``PersistenceError``."""
        try:
            self.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to {action}.") from exc

    def get_or_raise(self, model: type[ModelT], object_id: Any, label: str | None = None) -> ModelT:
        try:
            instance = self.db.get(model, object_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load {label or model.__name__} {object_id}.") from exc
        if instance is None:
            raise NotFoundError(f"{label or model.__name__} {object_id} not found.")
        return instance

    def rollback(self) -> None:
        self.db.rollback()

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        self.close()
