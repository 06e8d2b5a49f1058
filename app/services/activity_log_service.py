"""Activity log sink.

Rows are written in their own commit. Callers treat this as a side channel and
invoke it through ``fire_and_log``.
"""

from __future__ import annotations

import logging
from typing import Any

from app.core.enums import LogType, Severity
from app.models import ActivityLog
from app.services.base_service import BaseService

logger = logging.getLogger(__name__)


class ActivityLogService(BaseService):
    """Service for persisting structured activity log rows."""

    def log_action(
        self,
        message: str,
        action: str,
        *,
        user_id: int | None = None,
        resource: str | None = None,
        resource_id: int | None = None,
        log_type: LogType = LogType.INFO,
        severity: Severity = Severity.LOW,
        details: dict[str, Any] | None = None,
        tags: list[str] | None = None,
    ) -> ActivityLog:
        row = ActivityLog(
            message=message,
            action=action,
            user_id=user_id,
            resource=resource,
            resource_id=resource_id,
            type=LogType(log_type).value,
            severity=Severity(severity).value,
            details=dict(details or {}),
            tags=list(tags or []),
        )
        self.db.add(row)
        self.commit()
        logger.debug("activity_log.written", extra={"event": "activity_log.written", "action": action})
        return row

    def log_system_action(self, message: str, action: str, **kwargs: Any) -> ActivityLog:
        """Log an action not attributable to a user, e.g. a scheduled job."""
        tags = ["system", *(kwargs.pop("tags", None) or [])]
        return self.log_action(message, action, user_id=None, tags=tags, **kwargs)

    def list_recent(self, action: str | None = None, limit: int = 50) -> list[ActivityLog]:
        query = self.db.query(ActivityLog)
        if action:
            query = query.filter(ActivityLog.action == action)
        return query.order_by(ActivityLog.id.desc()).limit(limit).all()
