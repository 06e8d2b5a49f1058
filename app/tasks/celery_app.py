"""Celery application bootstrap."""

from __future__ import annotations

import os

from celery import Celery
from celery.schedules import crontab

from app.core.config import get_config

config = get_config()

celery_app = Celery(
    "coopbuy",
    broker=config.CELERY_BROKER_URL,
    backend=config.CELERY_RESULT_BACKEND,
    include=["app.tasks.summary_tasks"],
)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=config.REPORTING_TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    beat_schedule={
        "daily-status-summary": {
            "task": "summaries.daily_status_summary",
            "schedule": crontab(hour=config.DAILY_SUMMARY_HOUR, minute=0),
        },
    },
)

# Local/dev convenience: run tasks synchronously when requested.
if os.getenv("CELERY_TASK_ALWAYS_EAGER", "false").lower() in {"1", "true", "yes", "on"}:
    celery_app.conf.task_always_eager = True
