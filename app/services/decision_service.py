"""Reversal of a deal's bulk decision."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.auth.actor import Actor, enforce_deal_access
from app.core.enums import (
    COMMITMENT_APPROVED,
    COMMITMENT_DECLINED,
    COMMITMENT_PENDING,
    BulkStatus,
    LogType,
)
from app.core.exceptions import InvalidStateError
from app.core.side_effects import fire_and_log
from app.models import Commitment, Deal, DealDecisionChange
from app.models.base import utcnow
from app.schemas.deals import DecisionChangeRequest
from app.services.activity_log_service import ActivityLogService
from app.services.aggregation import recompute_deal_aggregates
from app.services.base_service import BaseService
from app.services.pricing import parse_model
from app.services.transition_service import StatusTransitionService

logger = logging.getLogger(__name__)

# Commitment statuses each decision pulls into its own commitment status.
# Cancelled commitments never move.
MOVABLE_STATUSES: dict[BulkStatus, frozenset[str]] = {
    BulkStatus.APPROVED: frozenset({COMMITMENT_DECLINED, COMMITMENT_PENDING}),
    BulkStatus.REJECTED: frozenset({COMMITMENT_APPROVED, COMMITMENT_PENDING}),
}


@dataclass(frozen=True)
class DecisionChangeResult:
    previous_status: str
    new_status: str
    moved_count: int
    succeeded_ids: list[int] = field(default_factory=list)
    failed_ids: list[int] = field(default_factory=list)


def _bulk_status(value: str | BulkStatus) -> BulkStatus:
    try:
        return BulkStatus(value)
    except ValueError as exc:
        raise InvalidStateError(f"Deal decisions are approved or rejected, not {value!r}.") from exc


class DecisionReversalService(BaseService):
    """Flips an approved deal to rejected or the other way round."""

    def change_deal_decision(
        self,
        deal_id: int,
        new_status: str | BulkStatus,
        reason: str,
        notes: str,
        actor: Actor,
    ) -> DecisionChangeResult:
        target = _bulk_status(new_status)
        request = parse_model(
            DecisionChangeRequest,
            {"new_status": target, "reason": reason or "", "notes": notes or ""},
            "decision change",
        )
        deal = self.get_or_raise(Deal, deal_id, "Deal")
        enforce_deal_access(deal.distributor_id, actor)
        if not deal.bulk_action or not deal.bulk_status:
            raise InvalidStateError(f"Deal {deal.id} has no decision to change.")
        previous = deal.bulk_status
        if previous == target.value:
            raise InvalidStateError(f"Deal {deal.id} is already {target.value}.")

        commitment_ids = [
            commitment_id
            for (commitment_id,) in self.db.query(Commitment.id)
            .filter(Commitment.deal_id == deal.id, Commitment.status.in_(MOVABLE_STATUSES[target]))
            .order_by(Commitment.id)
            .all()
        ]
        transitions = StatusTransitionService(db=self.db)
        succeeded, failed = transitions.transition_each(
            deal,
            commitment_ids,
            target.commitment_status,
            request.reason,
            actor,
            from_statuses=set(MOVABLE_STATUSES[target]),
        )
        if commitment_ids and not succeeded:
            # Nothing moved, so the deal keeps its current decision.
            logger.error(
                "deal.decision_change_failed",
                extra={
                    "event": "deal.decision_change_failed",
                    "deal_id": deal.id,
                    "requested_status": target.value,
                    "failed_ids": failed,
                },
            )
            return DecisionChangeResult(
                previous_status=previous,
                new_status=previous,
                moved_count=0,
                failed_ids=failed,
            )

        def record_decision() -> None:
            recompute_deal_aggregates(self.db, deal)
            self.db.add(
                DealDecisionChange(
                    deal_id=deal.id,
                    previous_status=previous,
                    new_status=target.value,
                    reason=request.reason,
                    notes=request.notes,
                    changed_by_id=actor.id,
                    changed_at=utcnow(),
                )
            )
            deal.bulk_status = target.value

        transitions.apply_or_raise(record_decision, f"change decision on deal {deal_id}")
        self.commit_or_raise(f"change decision on deal {deal_id}")

        logger.info(
            "deal.decision_changed",
            extra={
                "event": "deal.decision_changed",
                "deal_id": deal.id,
                "previous_status": previous,
                "new_status": target.value,
                "moved_count": len(succeeded),
                "failed_ids": failed,
            },
        )
        if succeeded:
            moved = self.db.query(Commitment).filter(Commitment.id.in_(succeeded)).all()
            transitions.notify_members(deal, moved, target.commitment_status, actor)
        fire_and_log(
            "deal.activity_log_failed",
            ActivityLogService(db=self.db).log_action,
            f"Decision on {deal.name} changed from {previous} to {target.value}",
            "deal_decision_changed",
            user_id=actor.id,
            resource="deal",
            resource_id=deal.id,
            log_type=LogType.WARNING if failed else LogType.SUCCESS,
            details={
                "previousStatus": previous,
                "newStatus": target.value,
                "reason": reason or "",
                "succeededIds": succeeded,
                "failedIds": failed,
            },
            log_context={"deal_id": deal.id},
        )
        return DecisionChangeResult(
            previous_status=previous,
            new_status=target.value,
            moved_count=len(succeeded),
            succeeded_ids=succeeded,
            failed_ids=failed,
        )
