"""Fire-and-log wrapper for best-effort side channels.

Audit rows, in-app notifications and activity-log entries must never fail
the business operation that produced them. Every such call goes through
``fire_and_log`` which converts an exception into a logged, failed
``SideEffectResult`` instead of propagating it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SideEffectResult(Generic[T]):
    ok: bool
    value: T | None = None
    error: Exception | None = None


def fire_and_log(
    event: str,
    func: Callable[..., T],
    *args: Any,
    log_context: dict[str, Any] | None = None,
    **kwargs: Any,
) -> SideEffectResult[T]:
    """Run ``func`` and swallow any failure after logging it under ``event``."""
    try:
        return SideEffectResult(ok=True, value=func(*args, **kwargs))
    except Exception as exc:
        extra = {"event": event, "error_type": exc.__class__.__name__}
        extra.update(log_context or {})
        logger.exception(event, extra=extra)
        return SideEffectResult(ok=False, error=exc)
