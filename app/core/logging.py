"""Structured logging helpers shared by services and background tasks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in structured logs."""

    user_id: str | None = None
    deal_id: str | None = None
    commitment_id: str | None = None
    task_name: str | None = None
    task_id: str | None = None
    trace_id: str | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "user_id": context.user_id,
        "deal_id": context.deal_id,
        "commitment_id": context.commitment_id,
        "task_name": context.task_name,
        "task_id": context.task_id,
        "trace_id": context.trace_id,
    }
    payload.update(fields)
    return payload
