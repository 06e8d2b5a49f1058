from __future__ import annotations

from datetime import datetime

import pytest

from app.core.enums import CommitmentStatus, DealStatus
from app.core.exceptions import AuthorizationError, InvalidStateError, ValidationError
from app.models import Notification
from app.services.commitment_service import CommitmentService
from app.services.transition_service import StatusTransitionService


def test_commit_to_deal_prices_lines_and_notifies_distributor(session, seed):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    member = seed.member()

    commitment = CommitmentService(db=session).commit_to_deal(
        deal.id, member.id, [{"size": "750ml", "quantity": 60}, {"size": "1.5L", "quantity": 2}]
    )

    assert commitment.status == CommitmentStatus.PENDING.value
    assert commitment.total_price == 60 * 18.0 + 2 * 35.0
    assert commitment.quantity == 62
    assert commitment.size_commitments[0]["appliedDiscountTier"] == {"tierQuantity": 50, "tierDiscount": 18.0}
    assert "appliedDiscountTier" not in commitment.size_commitments[1]
    notification = session.query(Notification).one()
    assert notification.recipient_id == distributor.id
    assert notification.sub_type == "commitment_created"


def test_resubmission_resets_approved_commitment_and_totals(session, seed, as_actor):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    member = seed.member()
    service = CommitmentService(db=session)
    commitment = service.commit_to_deal(deal.id, member.id, [{"size": "750ml", "quantity": 10}])
    StatusTransitionService(db=session).update_single_commitment_status(
        commitment.id,
        "approved",
        "",
        as_actor(distributor),
        modified_sizes=[{"size": "750ml", "quantity": 8}],
    )
    assert deal.total_sold == 8

    again = service.commit_to_deal(deal.id, member.id, [{"size": "750ml", "quantity": 12}])

    assert again.id == commitment.id
    assert again.status == "pending"
    assert again.modified_by_distributor is False
    assert again.modified_size_commitments is None
    assert again.quantity == 12
    assert (deal.total_sold, deal.total_revenue) == (0, 0.0)
    assert len(service.list_for_deal(deal.id)) == 1


@pytest.mark.parametrize(
    "deal_fields",
    [
        {"status": DealStatus.INACTIVE.value},
        {"bulk_action": True, "bulk_status": "approved"},
        {"commitment_starts_at": datetime(2026, 7, 1), "commitment_ends_at": datetime(2026, 7, 10)},
    ],
)
def test_closed_deals_refuse_commitments(session, seed, deal_fields):
    deal = seed.deal(seed.distributor(), **deal_fields)

    with pytest.raises(InvalidStateError):
        CommitmentService(db=session).commit_to_deal(
            deal.id, seed.member().id, [{"size": "750ml", "quantity": 1}], now=datetime(2026, 7, 11)
        )


def test_commit_inside_window_is_accepted(session, seed):
    deal = seed.deal(
        seed.distributor(),
        commitment_starts_at=datetime(2026, 7, 1),
        commitment_ends_at=datetime(2026, 7, 10),
    )

    commitment = CommitmentService(db=session).commit_to_deal(
        deal.id, seed.member().id, [{"size": "750ml", "quantity": 1}], now=datetime(2026, 7, 5)
    )

    assert commitment.id is not None


def test_only_members_commit_and_sizes_are_validated(session, seed):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    service = CommitmentService(db=session)

    with pytest.raises(AuthorizationError):
        service.commit_to_deal(deal.id, distributor.id, [{"size": "750ml", "quantity": 1}])
    with pytest.raises(ValidationError):
        service.commit_to_deal(deal.id, seed.member().id, [])
    with pytest.raises(ValidationError):
        service.commit_to_deal(deal.id, seed.member().id, [{"size": "375ml", "quantity": 1}])


def test_cancel_commitment_rules(session, seed):
    deal = seed.deal(seed.distributor())
    member = seed.member()
    service = CommitmentService(db=session)
    commitment = seed.commitment(deal, member)

    with pytest.raises(AuthorizationError):
        service.cancel_commitment(commitment.id, seed.member().id)

    cancelled = service.cancel_commitment(commitment.id, member.id)
    assert cancelled.status == "cancelled"

    with pytest.raises(InvalidStateError):
        service.cancel_commitment(commitment.id, member.id)


def test_cancelled_commitment_is_not_reused_on_recommit(session, seed):
    deal = seed.deal(seed.distributor())
    member = seed.member()
    service = CommitmentService(db=session)
    first = seed.commitment(deal, member)
    service.cancel_commitment(first.id, member.id)

    second = service.commit_to_deal(deal.id, member.id, [{"size": "1.5L", "quantity": 3}])

    assert second.id != first.id
    assert [c.id for c in service.list_for_user(member.id)] == [first.id, second.id]
