"""Daily per-member commitment status summary emails.

A run selects the reporting day's unprocessed status change rows and sends
each member one summary. Each member's rows are claimed with a conditional
update before sending, so overlapping runs never pick up the same rows. Rows
are marked processed only after a confirmed send; a failed send releases the
claim so the next run retries it.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy import func, or_, update
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Config, get_config
from app.core.enums import COMMITMENT_APPROVED, COMMITMENT_DECLINED, LogType, Severity
from app.core.exceptions import NotificationError
from app.core.side_effects import fire_and_log
from app.models import CommitmentStatusChange, User
from app.models.base import utcnow
from app.services.activity_log_service import ActivityLogService
from app.services.base_service import BaseService
from app.services.email_sender import EmailSender
from app.services.email_templates import (
    MemberStatusSummary,
    daily_summary_subject,
    render_daily_status_summary,
)
from app.services.period_calculator import to_utc_naive

logger = logging.getLogger(__name__)

SKIP_EMAIL_DISABLED = "email_disabled"
SKIP_NO_CHANGES = "no_changes"


@dataclass(frozen=True)
class BatchReport:
    total_status_changes: int = 0
    users_processed: int = 0
    emails_sent: int = 0
    failures: int = 0
    skipped: str | None = None
    failed_user_ids: list[int] = field(default_factory=list)


class DailyStatusSummaryBatcher(BaseService):
    """Builds and sends the once-daily member status summaries."""

    def __init__(self, db=None, sender: EmailSender | None = None, config: Config | None = None) -> None:
        super().__init__(db)
        self.config = config or get_config()
        self.sender = sender or EmailSender(self.config)

    def report_date(self, as_of: date | datetime | None = None) -> date:
        tz = self.config.reporting_tz
        if as_of is None:
            return datetime.now(tz).date()
        if isinstance(as_of, datetime):
            return as_of.astimezone(tz).date() if as_of.tzinfo else as_of.date()
        return as_of

    def day_bounds(self, report_date: date) -> tuple[datetime, datetime]:
        """Naive UTC ``[start, end)`` of ``report_date`` in the reporting timezone."""
        tz = self.config.reporting_tz
        start = datetime.combine(report_date, time.min, tzinfo=tz)
        end = datetime.combine(report_date + timedelta(days=1), time.min, tzinfo=tz)
        return to_utc_naive(start), to_utc_naive(end)

    def run_daily_batch(self, as_of: date | datetime | None = None) -> BatchReport:
        report_date = self.report_date(as_of)
        if not self.config.EMAIL_ENABLED:
            logger.info(
                "summary.skipped",
                extra={"event": "summary.skipped", "reason": SKIP_EMAIL_DISABLED, "report_date": report_date.isoformat()},
            )
            return BatchReport(skipped=SKIP_EMAIL_DISABLED)

        start, end = self.day_bounds(report_date)
        unprocessed = (
            CommitmentStatusChange.created_at >= start,
            CommitmentStatusChange.created_at < end,
            CommitmentStatusChange.processed_for_email.is_(False),
        )
        total = self.db.query(func.count(CommitmentStatusChange.id)).filter(*unprocessed).scalar() or 0
        if not total:
            logger.info(
                "summary.skipped",
                extra={"event": "summary.skipped", "reason": SKIP_NO_CHANGES, "report_date": report_date.isoformat()},
            )
            return BatchReport(skipped=SKIP_NO_CHANGES)

        user_ids = [
            user_id
            for (user_id,) in self.db.query(CommitmentStatusChange.user_id)
            .filter(*unprocessed)
            .distinct()
            .order_by(CommitmentStatusChange.user_id)
            .all()
        ]
        logger.info(
            "summary.started",
            extra={
                "event": "summary.started",
                "report_date": report_date.isoformat(),
                "total_status_changes": total,
                "user_count": len(user_ids),
            },
        )

        users_processed = 0
        emails_sent = 0
        failed_user_ids: list[int] = []
        for user_id in user_ids:
            outcome = self._process_user(user_id, report_date, start, end)
            if outcome is None:
                continue
            users_processed += 1
            if outcome:
                emails_sent += 1
            else:
                failed_user_ids.append(user_id)

        report = BatchReport(
            total_status_changes=total,
            users_processed=users_processed,
            emails_sent=emails_sent,
            failures=len(failed_user_ids),
            failed_user_ids=failed_user_ids,
        )
        logger.info(
            "summary.completed",
            extra={
                "event": "summary.completed",
                "report_date": report_date.isoformat(),
                "users_processed": users_processed,
                "emails_sent": emails_sent,
                "failures": report.failures,
            },
        )
        fire_and_log(
            "summary.activity_log_failed",
            ActivityLogService(db=self.db).log_system_action,
            f"Daily status summary: {emails_sent} sent, {report.failures} failed",
            "daily_status_summary_completed",
            log_type=LogType.WARNING if failed_user_ids else LogType.SUCCESS,
            severity=Severity.MEDIUM if failed_user_ids else Severity.LOW,
            details={
                "reportDate": report_date.isoformat(),
                "totalStatusChanges": total,
                "usersProcessed": users_processed,
                "emailsSent": emails_sent,
                "failedUserIds": failed_user_ids,
            },
        )
        return report

    def _process_user(self, user_id: int, report_date: date, start: datetime, end: datetime) -> bool | None:
        """Send one member's summary; ``None`` when another run holds every row."""
        try:
            token = self._claim(user_id, start, end)
        except SQLAlchemyError:
            logger.exception("summary.claim_failed", extra={"event": "summary.claim_failed", "user_id": user_id})
            return False

        rows = (
            self.db.query(CommitmentStatusChange)
            .filter(CommitmentStatusChange.email_claim_token == token)
            .order_by(CommitmentStatusChange.created_at, CommitmentStatusChange.id)
            .all()
        )
        if not rows:
            logger.info("summary.user_claimed_elsewhere", extra={"event": "summary.user_claimed_elsewhere", "user_id": user_id})
            return None

        summary = MemberStatusSummary(user_id=user_id, report_date=report_date)
        for row in rows:
            if row.new_status == COMMITMENT_APPROVED:
                summary.approved.append(row)
            elif row.new_status == COMMITMENT_DECLINED:
                summary.declined.append(row)

        status_change_ids = [row.id for row in rows]
        try:
            self._send_summary(user_id, summary)
        except NotificationError as exc:
            self._release(token, user_id)
            logger.warning(
                "summary.user_failed",
                extra={"event": "summary.user_failed", "user_id": user_id, "error": str(exc)},
            )
            fire_and_log(
                "summary.activity_log_failed",
                ActivityLogService(db=self.db).log_system_action,
                f"Daily status summary email failed for user {user_id}",
                "daily_status_summary_failed",
                resource="user",
                resource_id=user_id,
                log_type=LogType.ERROR,
                severity=Severity.HIGH,
                details={"userId": user_id, "error": str(exc), "statusChangeIds": status_change_ids},
                log_context={"user_id": user_id},
            )
            return False

        self._mark_processed(token, user_id)
        logger.info(
            "summary.user_sent",
            extra={
                "event": "summary.user_sent",
                "user_id": user_id,
                "approved_count": len(summary.approved),
                "declined_count": len(summary.declined),
                "total_approved_value": summary.total_approved_value,
                "total_declined_value": summary.total_declined_value,
            },
        )
        return True

    def _send_summary(self, user_id: int, summary: MemberStatusSummary) -> None:
        """Look up, render and send one member's summary; every failure surfaces as ``NotificationError``."""
        try:
            user = self.db.get(User, user_id)
            if user is None or not user.email:
                raise NotificationError(f"User {user_id} has no deliverable address.")
            html_body = render_daily_status_summary(user.display_name, summary)
            self.sender.send_email(user.email, daily_summary_subject(summary), html_body)
        except NotificationError:
            raise
        except SQLAlchemyError as exc:
            self.rollback()
            raise NotificationError(f"Failed to load user {user_id}: {exc}") from exc
        except Exception as exc:
            raise NotificationError(f"Failed to send summary to user {user_id}: {exc!r}") from exc

    def _claim(self, user_id: int, start: datetime, end: datetime) -> str:
        token = uuid.uuid4().hex
        now = utcnow()
        stale_before = now - timedelta(minutes=self.config.SUMMARY_CLAIM_TTL_MINUTES)
        self.db.execute(
            update(CommitmentStatusChange)
            .where(
                CommitmentStatusChange.user_id == user_id,
                CommitmentStatusChange.created_at >= start,
                CommitmentStatusChange.created_at < end,
                CommitmentStatusChange.processed_for_email.is_(False),
                or_(
                    CommitmentStatusChange.email_claim_token.is_(None),
                    CommitmentStatusChange.email_claimed_at < stale_before,
                ),
            )
            .values(email_claim_token=token, email_claimed_at=now)
            .execution_options(synchronize_session="fetch")
        )
        self.commit()
        return token

    def _release(self, token: str, user_id: int) -> None:
        def release() -> None:
            self.db.execute(
                update(CommitmentStatusChange)
                .where(CommitmentStatusChange.email_claim_token == token)
                .values(email_claim_token=None, email_claimed_at=None)
                .execution_options(synchronize_session="fetch")
            )
            self.commit()

        # An unreleased claim expires after SUMMARY_CLAIM_TTL_MINUTES.
        fire_and_log("summary.release_failed", release, log_context={"user_id": user_id})

    def _mark_processed(self, token: str, user_id: int) -> None:
        try:
            self.db.execute(
                update(CommitmentStatusChange)
                .where(CommitmentStatusChange.email_claim_token == token)
                .values(processed_for_email=True, email_sent_at=utcnow())
                .execution_options(synchronize_session="fetch")
            )
            self.commit()
        except SQLAlchemyError as exc:
            # Sent but unmarked rows are re-sent once the claim expires.
            logger.exception(
                "summary.mark_processed_failed",
                extra={"event": "summary.mark_processed_failed", "user_id": user_id},
            )
            fire_and_log(
                "summary.activity_log_failed",
                ActivityLogService(db=self.db).log_system_action,
                f"Daily status summary sent to user {user_id} but not marked processed",
                "daily_status_summary_mark_failed",
                resource="user",
                resource_id=user_id,
                log_type=LogType.ERROR,
                severity=Severity.HIGH,
                details={"userId": user_id, "claimToken": token, "error": str(exc)},
                log_context={"user_id": user_id},
            )

    def status_change_stats(self, as_of: date | datetime | None = None) -> dict[str, Any]:
        report_date = self.report_date(as_of)
        start, end = self.day_bounds(report_date)
        rows = (
            self.db.query(CommitmentStatusChange)
            .filter(CommitmentStatusChange.created_at >= start, CommitmentStatusChange.created_at < end)
            .all()
        )
        by_status: dict[str, dict[str, Any]] = {}
        for row in rows:
            bucket = by_status.setdefault(row.new_status, {"count": 0, "totalValue": 0.0})
            bucket["count"] += 1
            bucket["totalValue"] = round(bucket["totalValue"] + row.total_price, 2)
        processed = sum(1 for row in rows if row.processed_for_email)
        return {
            "date": report_date.isoformat(),
            "totalChanges": len(rows),
            "byStatus": by_status,
            "processed": processed,
            "pending": len(rows) - processed,
        }
