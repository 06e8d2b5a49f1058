"""Scheduled daily status summary task."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from datetime import date
from typing import Any

from app.database.db import get_db_session
from app.services.status_summary_service import DailyStatusSummaryBatcher
from app.tasks.celery_app import celery_app
from app.tasks.hooks import after_task, before_task

logger = logging.getLogger(__name__)

TASK_NAME = "summaries.daily_status_summary"


def run_daily_status_summary(as_of: str | None = None, task_id: str | None = None) -> dict[str, Any]:
    """Run one summary batch in its own session and return the report as a dict."""
    context = {"task_id": task_id, "trace_id": uuid.uuid4().hex}
    logger.info("task.start", extra=before_task(TASK_NAME, context))

    report_date = date.fromisoformat(as_of) if as_of else None
    try:
        with get_db_session() as session:
            report = DailyStatusSummaryBatcher(db=session).run_daily_batch(report_date)
    except Exception as exc:
        logger.exception(
            "task.failed",
            extra=after_task(
                TASK_NAME, context, status="failed", event="task.failed", error_type=exc.__class__.__name__
            ),
        )
        raise

    logger.info(
        "task.finish",
        extra=after_task(
            TASK_NAME,
            context,
            status="succeeded",
            emails_sent=report.emails_sent,
            failures=report.failures,
        ),
    )
    return asdict(report)


@celery_app.task(bind=True, name=TASK_NAME)
def daily_status_summary(self, as_of: str | None = None) -> dict[str, Any]:
    return run_daily_status_summary(as_of=as_of, task_id=self.request.id)
