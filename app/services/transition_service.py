"""Commitment status transitions: single decisions and bulk decisions.

Each commitment transition is committed together with its status change
record. When that combined commit fails, the transition is re-applied and
committed on its own, so a broken audit write never blocks the decision
itself. Notifications and activity-log rows are written after the commit
through ``fire_and_log``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from app.auth.actor import Actor, enforce_deal_access
from app.core.enums import (
    COMMITMENT_APPROVED,
    COMMITMENT_CANCELLED,
    COMMITMENT_PENDING,
    DECISION_STATUSES,
    BulkStatus,
    CommitmentStatus,
    DealStatus,
    LogType,
)
from app.core.exceptions import CoopBuyError, InvalidStateError, PersistenceError
from app.core.side_effects import fire_and_log
from app.models import Commitment, CommitmentStatusChange, Deal
from app.services.activity_log_service import ActivityLogService
from app.services.aggregation import recompute_deal_aggregates
from app.services.audit_service import build_status_change
from app.services.base_service import BaseService
from app.services.notification_service import NotificationService
from app.services.pricing import SizedValue, price_size_lines

logger = logging.getLogger(__name__)

SUB_TYPE_STATUS_CHANGED = "commitment_status_changed"

# Response stored on commitments decided in bulk without an explicit message.
DEFAULT_BULK_RESPONSES = {
    CommitmentStatus.APPROVED: "Approved by distributor",
    CommitmentStatus.DECLINED: "Declined by distributor",
}


@dataclass(frozen=True)
class BulkTransitionResult:
    affected_count: int
    succeeded_ids: list[int] = field(default_factory=list)
    failed_ids: list[int] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failed_ids)


def decision_status(value: str | CommitmentStatus) -> CommitmentStatus:
    """Coerce ``value`` to a status a distributor or admin may decide into."""
    try:
        status = CommitmentStatus(value)
    except ValueError as exc:
        raise InvalidStateError(f"Unknown commitment status: {value!r}") from exc
    if status not in DECISION_STATUSES:
        raise InvalidStateError(f"Commitments cannot be decided into {status.value}.")
    return status


class StatusTransitionService(BaseService):
    """Applies approve/decline decisions to commitments."""

    def update_single_commitment_status(
        self,
        commitment_id: int,
        new_status: str | CommitmentStatus,
        distributor_response: str | None,
        actor: Actor,
        modified_sizes: Sequence[Any] | None = None,
    ) -> Commitment:
        target = decision_status(new_status)
        commitment = self.get_or_raise(Commitment, commitment_id, "Commitment")
        deal = self.get_or_raise(Deal, commitment.deal_id, "Deal")
        enforce_deal_access(deal.distributor_id, actor)
        if deal.bulk_action:
            raise InvalidStateError(
                f"Deal {deal.id} already has a bulk decision; change the deal decision instead."
            )
        if commitment.status == COMMITMENT_CANCELLED:
            raise InvalidStateError(f"Commitment {commitment.id} is cancelled.")

        modification = price_size_lines(deal.sizes, modified_sizes) if modified_sizes else None
        previous_status = self.apply_transition(
            commitment,
            deal,
            target,
            distributor_response,
            actor,
            modification=modification,
            recompute=True,
        )

        logger.info(
            "commitment.status_updated",
            extra={
                "event": "commitment.status_updated",
                "commitment_id": commitment.id,
                "deal_id": deal.id,
                "previous_status": previous_status,
                "new_status": target.value,
                "actor_type": actor.type.value,
            },
        )
        self.notify_members(deal, [commitment], target, actor)
        fire_and_log(
            "commitment.activity_log_failed",
            ActivityLogService(db=self.db).log_action,
            f"Commitment {commitment.id} on {deal.name} moved from {previous_status} to {target.value}",
            "commitment_status_updated",
            user_id=actor.id,
            resource="commitment",
            resource_id=commitment.id,
            log_type=LogType.SUCCESS,
            details={"dealId": deal.id, "previousStatus": previous_status, "newStatus": target.value},
            log_context={"commitment_id": commitment.id},
        )
        return commitment

    def bulk_transition(
        self,
        deal_id: int,
        target_status: str | CommitmentStatus,
        response_text: str | None,
        actor: Actor,
    ) -> BulkTransitionResult:
        target = decision_status(target_status)
        deal = self.get_or_raise(Deal, deal_id, "Deal")
        enforce_deal_access(deal.distributor_id, actor)

        pending_ids = [
            commitment_id
            for (commitment_id,) in self.db.query(Commitment.id)
            .filter(Commitment.deal_id == deal.id, Commitment.status == COMMITMENT_PENDING)
            .order_by(Commitment.id)
            .all()
        ]
        if not pending_ids:
            logger.info("deal.bulk_noop", extra={"event": "deal.bulk_noop", "deal_id": deal.id})
            return BulkTransitionResult(affected_count=0)

        response = response_text or DEFAULT_BULK_RESPONSES[target]
        succeeded, failed = self.transition_each(
            deal, pending_ids, target, response, actor, from_statuses={COMMITMENT_PENDING}
        )
        if not succeeded:
            logger.error(
                "deal.bulk_failed",
                extra={"event": "deal.bulk_failed", "deal_id": deal_id, "failed_ids": failed},
            )
            return BulkTransitionResult(affected_count=0, failed_ids=failed)

        bulk_status = BulkStatus.APPROVED if target is CommitmentStatus.APPROVED else BulkStatus.REJECTED

        def close_deal() -> None:
            recompute_deal_aggregates(self.db, deal)
            deal.status = DealStatus.INACTIVE.value
            deal.bulk_action = True
            deal.bulk_status = bulk_status.value

        self.apply_or_raise(close_deal, f"record bulk decision on deal {deal_id}")
        self.commit_or_raise(f"record bulk decision on deal {deal_id}")

        logger.info(
            "deal.bulk_decided",
            extra={
                "event": "deal.bulk_decided",
                "deal_id": deal.id,
                "bulk_status": bulk_status.value,
                "affected_count": len(succeeded),
                "failed_ids": failed,
            },
        )
        moved = self.db.query(Commitment).filter(Commitment.id.in_(succeeded)).all()
        self.notify_members(deal, moved, target, actor)
        fire_and_log(
            "deal.activity_log_failed",
            ActivityLogService(db=self.db).log_action,
            f"Bulk {bulk_status.value} on {deal.name}: {len(succeeded)} commitments, {len(failed)} failed",
            "bulk_commitment_decision",
            user_id=actor.id,
            resource="deal",
            resource_id=deal.id,
            log_type=LogType.WARNING if failed else LogType.SUCCESS,
            details={"succeededIds": succeeded, "failedIds": failed, "bulkStatus": bulk_status.value},
            log_context={"deal_id": deal.id},
        )
        return BulkTransitionResult(affected_count=len(succeeded), succeeded_ids=succeeded, failed_ids=failed)

    def transition_each(
        self,
        deal: Deal,
        commitment_ids: Sequence[int],
        target: CommitmentStatus,
        response_text: str | None,
        actor: Actor,
        from_statuses: set[str],
    ) -> tuple[list[int], list[int]]:
        """Move each listed commitment in its own commit; returns (succeeded, failed) ids.

        Commitments that left ``from_statuses`` since they were listed are skipped.
        """
        succeeded: list[int] = []
        failed: list[int] = []
        for commitment_id in commitment_ids:
            try:
                commitment = self.get_or_raise(Commitment, commitment_id, "Commitment")
                if commitment.status not in from_statuses:
                    logger.info(
                        "commitment.transition_skipped",
                        extra={
                            "event": "commitment.transition_skipped",
                            "commitment_id": commitment_id,
                            "current_status": commitment.status,
                        },
                    )
                    continue
                self.apply_transition(commitment, deal, target, response_text, actor, recompute=False)
                succeeded.append(commitment_id)
            except (CoopBuyError, SQLAlchemyError):
                logger.exception(
                    "commitment.transition_failed",
                    extra={
                        "event": "commitment.transition_failed",
                        "commitment_id": commitment_id,
                        "deal_id": deal.id,
                    },
                )
                failed.append(commitment_id)
        return succeeded, failed

    def apply_transition(
        self,
        commitment: Commitment,
        deal: Deal,
        target: CommitmentStatus,
        response_text: str | None,
        actor: Actor,
        modification: SizedValue | None = None,
        recompute: bool = True,
    ) -> str:
        """Set the new status, commit it with its audit row and return the previous status."""
        previous_status = commitment.status

        def apply() -> None:
            commitment.status = target.value
            commitment.distributor_response = response_text or ""
            if modification is not None:
                commitment.modified_by_distributor = True
                commitment.modified_size_commitments = modification.line_documents()
                commitment.modified_quantity = modification.quantity
                commitment.modified_total_price = modification.total_price
            if recompute and COMMITMENT_APPROVED in (previous_status, target.value):
                recompute_deal_aggregates(self.db, deal)

        self.commit_with_audit(
            apply,
            lambda: build_status_change(commitment, deal, previous_status, actor),
            action=f"update commitment {commitment.id}",
            log_context={"commitment_id": commitment.id, "deal_id": deal.id},
        )
        return previous_status

    def commit_with_audit(
        self,
        apply: Callable[[], None],
        build_audit: Callable[[], CommitmentStatusChange],
        action: str,
        log_context: dict[str, Any] | None = None,
    ) -> CommitmentStatusChange | None:
        """Commit ``apply`` and its audit row together, falling back to ``apply`` alone."""
        self.apply_or_raise(apply, action)
        audit = fire_and_log("commitment.audit_build_failed", build_audit, log_context=log_context)
        if audit.ok:
            self.db.add(audit.value)
        try:
            self.commit()
            return audit.value
        except SQLAlchemyError as exc:
            if not audit.ok:
                raise PersistenceError(f"Failed to {action}.") from exc
            logger.exception(
                "commitment.audit_write_failed",
                extra={"event": "commitment.audit_write_failed", **(log_context or {})},
            )

        # The rollback discarded the in-memory change along with the audit row.
        self.apply_or_raise(apply, action)
        self.commit_or_raise(action)
        return None

    def apply_or_raise(self, apply: Callable[[], None], action: str) -> None:
        try:
            apply()
        except SQLAlchemyError as exc:
            self.rollback()
            raise PersistenceError(f"Failed to {action}.") from exc

    def notify_members(
        self,
        deal: Deal,
        commitments: Sequence[Commitment],
        target: CommitmentStatus,
        actor: Actor,
    ) -> None:
        for commitment in commitments:
            fire_and_log(
                "commitment.notification_failed",
                NotificationService(db=self.db).notify_user,
                commitment.user_id,
                f"Commitment {target.value.capitalize()}",
                f"Your commitment to {deal.name} has been {target.value}.",
                sub_type=SUB_TYPE_STATUS_CHANGED,
                sender_id=actor.id,
                related_id=commitment.id,
                related_model="Commitment",
                log_context={"commitment_id": commitment.id},
            )
