"""Member-side commitment operations: commit, re-submit, cancel and lookups."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from app.core.enums import (
    COMMITMENT_APPROVED,
    COMMITMENT_CANCELLED,
    COMMITMENT_PENDING,
    DealStatus,
    LogType,
    UserRole,
)
from app.core.exceptions import AuthorizationError, InvalidStateError
from app.core.side_effects import fire_and_log
from app.models import Commitment, Deal, User
from app.models.base import utcnow
from app.schemas.commitments import CommitRequest
from app.services.activity_log_service import ActivityLogService
from app.services.aggregation import recompute_deal_aggregates
from app.services.base_service import BaseService
from app.services.notification_service import NotificationService
from app.services.pricing import parse_model, price_size_lines

logger = logging.getLogger(__name__)


class CommitmentService(BaseService):
    """Service for the member side of the commitment lifecycle."""

    def commit_to_deal(
        self,
        deal_id: int,
        user_id: int,
        sizes: Sequence[Any],
        now: datetime | None = None,
    ) -> Commitment:
        """Create a pending commitment or re-submit the member's open one.

        A re-submission resets the commitment to ``pending`` and drops any
        distributor modification.
        """
        request = parse_model(CommitRequest, {"sizes": list(sizes)}, "commitment")
        member = self.get_or_raise(User, user_id, "User")
        if member.role != UserRole.MEMBER.value:
            raise AuthorizationError("Only members can commit to deals.")
        deal = self.get_or_raise(Deal, deal_id, "Deal")
        self._ensure_open(deal, now or utcnow())

        value = price_size_lines(deal.sizes, request.sizes)
        commitment = (
            self.db.query(Commitment)
            .filter(
                Commitment.deal_id == deal.id,
                Commitment.user_id == member.id,
                Commitment.status != COMMITMENT_CANCELLED,
            )
            .order_by(Commitment.id.desc())
            .first()
        )
        resubmitted = commitment is not None
        was_approved = resubmitted and commitment.status == COMMITMENT_APPROVED
        if commitment is None:
            commitment = Commitment(deal_id=deal.id, user_id=member.id)
            self.db.add(commitment)

        commitment.size_commitments = value.line_documents()
        commitment.quantity = value.quantity
        commitment.total_price = value.total_price
        commitment.status = COMMITMENT_PENDING
        commitment.distributor_response = ""
        commitment.modified_by_distributor = False
        commitment.modified_size_commitments = None
        commitment.modified_quantity = None
        commitment.modified_total_price = None
        if was_approved:
            recompute_deal_aggregates(self.db, deal)
        self.commit_or_raise(f"commit to deal {deal_id}")

        logger.info(
            "commitment.submitted",
            extra={
                "event": "commitment.submitted",
                "commitment_id": commitment.id,
                "deal_id": deal.id,
                "user_id": member.id,
                "resubmitted": resubmitted,
            },
        )
        fire_and_log(
            "commitment.notification_failed",
            NotificationService(db=self.db).notify_user,
            deal.distributor_id,
            "Commitment Updated" if resubmitted else "New Commitment",
            f"{member.display_name} committed {value.quantity} units (${value.total_price:.2f}) to {deal.name}.",
            sub_type="commitment_updated" if resubmitted else "commitment_created",
            sender_id=member.id,
            related_id=commitment.id,
            related_model="Commitment",
            log_context={"commitment_id": commitment.id},
        )
        fire_and_log(
            "commitment.activity_log_failed",
            ActivityLogService(db=self.db).log_action,
            f"{member.display_name} committed to {deal.name}",
            "commitment_updated" if resubmitted else "commitment_created",
            user_id=member.id,
            resource="commitment",
            resource_id=commitment.id,
            log_type=LogType.SUCCESS,
            details={"dealId": deal.id, "quantity": value.quantity, "totalPrice": value.total_price},
            log_context={"commitment_id": commitment.id},
        )
        return commitment

    def cancel_commitment(self, commitment_id: int, user_id: int) -> Commitment:
        commitment = self.get_commitment(commitment_id)
        if commitment.user_id != user_id:
            raise AuthorizationError("Only the committing member can cancel this commitment.")
        if commitment.status != COMMITMENT_PENDING:
            raise InvalidStateError(f"Only pending commitments can be cancelled (is {commitment.status}).")

        commitment.status = COMMITMENT_CANCELLED
        self.commit_or_raise(f"cancel commitment {commitment_id}")
        logger.info(
            "commitment.cancelled",
            extra={"event": "commitment.cancelled", "commitment_id": commitment.id, "user_id": user_id},
        )
        return commitment

    def get_commitment(self, commitment_id: int) -> Commitment:
        return self.get_or_raise(Commitment, commitment_id, "Commitment")

    def list_for_deal(self, deal_id: int, status: str | None = None) -> list[Commitment]:
        query = self.db.query(Commitment).filter(Commitment.deal_id == deal_id)
        if status:
            query = query.filter(Commitment.status == status)
        return query.order_by(Commitment.id).all()

    def list_for_user(self, user_id: int) -> list[Commitment]:
        return self.db.query(Commitment).filter(Commitment.user_id == user_id).order_by(Commitment.id).all()

    @staticmethod
    def _ensure_open(deal: Deal, now: datetime) -> None:
        if deal.status != DealStatus.ACTIVE.value:
            raise InvalidStateError(f"Deal {deal.id} is not accepting commitments.")
        if deal.bulk_action:
            raise InvalidStateError(f"Deal {deal.id} has already been decided.")
        if deal.commitment_starts_at and now < deal.commitment_starts_at:
            raise InvalidStateError(f"Commitments for deal {deal.id} have not opened yet.")
        if deal.commitment_ends_at and now > deal.commitment_ends_at:
            raise InvalidStateError(f"Commitments for deal {deal.id} are closed.")
