"""Commitment status change snapshots and audit trail queries."""

from __future__ import annotations

from app.auth.actor import Actor
from app.models import Commitment, CommitmentStatusChange, Deal
from app.services.base_service import BaseService
from app.services.pricing import commitment_details, effective_value


def build_status_change(
    commitment: Commitment,
    deal: Deal,
    previous_status: str,
    actor: Actor,
) -> CommitmentStatusChange:
    """Snapshot one transition of ``commitment``; the caller adds it to the session."""
    distributor = deal.distributor
    return CommitmentStatusChange(
        commitment_id=commitment.id,
        deal_id=deal.id,
        user_id=commitment.user_id,
        deal_name=deal.name,
        distributor_name=distributor.display_name if distributor else "",
        distributor_email=distributor.email if distributor else "",
        previous_status=previous_status,
        new_status=commitment.status,
        distributor_response=commitment.distributor_response or "",
        commitment_details=commitment_details(effective_value(commitment)),
        processed_by=actor.type.value,
        processed_by_id=actor.id,
        processed_for_email=False,
    )


class AuditService(BaseService):
    """Read access to the status change trail."""

    def for_commitment(self, commitment_id: int) -> list[CommitmentStatusChange]:
        return (
            self.db.query(CommitmentStatusChange)
            .filter(CommitmentStatusChange.commitment_id == commitment_id)
            .order_by(CommitmentStatusChange.id)
            .all()
        )

    def for_deal(self, deal_id: int) -> list[CommitmentStatusChange]:
        return (
            self.db.query(CommitmentStatusChange)
            .filter(CommitmentStatusChange.deal_id == deal_id)
            .order_by(CommitmentStatusChange.id)
            .all()
        )

    def unprocessed_for_user(self, user_id: int) -> list[CommitmentStatusChange]:
        return (
            self.db.query(CommitmentStatusChange)
            .filter(
                CommitmentStatusChange.user_id == user_id,
                CommitmentStatusChange.processed_for_email.is_(False),
            )
            .order_by(CommitmentStatusChange.created_at, CommitmentStatusChange.id)
            .all()
        )
