from __future__ import annotations

import pytest

import app.services.transition_service as transition_module
from app.core.enums import ActorType, CommitmentStatus, DealStatus
from app.core.exceptions import AuthorizationError, InvalidStateError, NotFoundError
from app.models import ActivityLog, CommitmentStatusChange, Notification
from app.services.transition_service import StatusTransitionService


def _changes(session, commitment_id=None):
    query = session.query(CommitmentStatusChange)
    if commitment_id is not None:
        query = query.filter(CommitmentStatusChange.commitment_id == commitment_id)
    return query.order_by(CommitmentStatusChange.id).all()


def test_single_approval_updates_status_totals_and_audit(session, seed, as_actor):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    member = seed.member(business_name="Corner Bistro")
    commitment = seed.commitment(deal, member, lines=[("750ml", 10, 20.0)])
    service = StatusTransitionService(db=session)

    updated = service.update_single_commitment_status(commitment.id, "approved", "ok", as_actor(distributor))

    assert updated.status == CommitmentStatus.APPROVED.value
    assert updated.distributor_response == "ok"
    assert deal.total_sold == 10
    assert deal.total_revenue == 200.0

    changes = _changes(session, commitment.id)
    assert len(changes) == 1
    change = changes[0]
    assert change.previous_status == "pending"
    assert change.new_status == "approved"
    assert change.processed_by == "distributor"
    assert change.processed_by_id == distributor.id
    assert change.distributor_name == "Valley Wine Distributors"
    assert change.commitment_details["totalPrice"] == 200.0
    assert change.commitment_details["quantity"] == 10
    assert change.processed_for_email is False

    notification = session.query(Notification).filter(Notification.recipient_id == member.id).one()
    assert notification.sub_type == "commitment_status_changed"
    assert session.query(ActivityLog).filter(ActivityLog.action == "commitment_status_updated").count() == 1


def test_declining_an_approved_commitment_removes_it_from_totals(session, seed, as_actor):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    approved = seed.commitment(deal, seed.member(), CommitmentStatus.PENDING, lines=[("750ml", 10, 20.0)])
    other = seed.commitment(deal, seed.member(), CommitmentStatus.PENDING, lines=[("1.5L", 2, 35.0)])
    service = StatusTransitionService(db=session)
    actor = as_actor(distributor)

    service.update_single_commitment_status(approved.id, "approved", "", actor)
    service.update_single_commitment_status(other.id, "approved", "", actor)
    assert (deal.total_sold, deal.total_revenue) == (12, 270.0)

    service.update_single_commitment_status(approved.id, "declined", "out of stock", actor)

    assert (deal.total_sold, deal.total_revenue) == (2, 70.0)
    assert [c.previous_status for c in _changes(session, approved.id)] == ["pending", "approved"]


def test_repeated_decision_creates_independent_audit_rows(session, seed, as_actor):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    commitment = seed.commitment(deal, seed.member())
    service = StatusTransitionService(db=session)

    service.update_single_commitment_status(commitment.id, "approved", "", as_actor(distributor))
    service.update_single_commitment_status(commitment.id, "approved", "still ok", as_actor(distributor))

    assert [(c.previous_status, c.new_status) for c in _changes(session, commitment.id)] == [
        ("pending", "approved"),
        ("approved", "approved"),
    ]
    assert deal.total_sold == 10


def test_approval_with_modified_sizes_reprices_and_drives_totals(session, seed, as_actor):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    commitment = seed.commitment(deal, seed.member(), lines=[("750ml", 10, 20.0)])
    service = StatusTransitionService(db=session)

    service.update_single_commitment_status(
        commitment.id,
        "approved",
        "we can do 60",
        as_actor(distributor),
        modified_sizes=[{"size": "750ml", "quantity": 60}],
    )

    assert commitment.modified_by_distributor is True
    assert commitment.modified_quantity == 60
    assert commitment.modified_total_price == 1080.0
    assert (deal.total_sold, deal.total_revenue) == (60, 1080.0)
    assert _changes(session, commitment.id)[0].commitment_details["totalPrice"] == 1080.0


def test_admin_may_decide_any_deal(session, seed, as_actor):
    deal = seed.deal(seed.distributor())
    commitment = seed.commitment(deal, seed.member())
    admin = seed.user()

    StatusTransitionService(db=session).update_single_commitment_status(
        commitment.id, "declined", "", as_actor(admin, ActorType.ADMIN)
    )

    change = _changes(session, commitment.id)[0]
    assert change.processed_by == "admin"
    assert change.processed_by_id == admin.id


def test_other_distributor_is_rejected(session, seed, as_actor):
    deal = seed.deal(seed.distributor())
    commitment = seed.commitment(deal, seed.member())
    stranger = seed.distributor(business_name="Other Co")

    with pytest.raises(AuthorizationError):
        StatusTransitionService(db=session).update_single_commitment_status(
            commitment.id, "approved", "", as_actor(stranger)
        )

    assert commitment.status == "pending"
    assert _changes(session) == []


def test_missing_commitment_raises_not_found(session, seed, as_actor):
    with pytest.raises(NotFoundError):
        StatusTransitionService(db=session).update_single_commitment_status(
            999, "approved", "", as_actor(seed.distributor())
        )


@pytest.mark.parametrize("status", ["pending", "cancelled", "shipped"])
def test_only_approve_or_decline_are_decisions(session, seed, as_actor, status):
    distributor = seed.distributor()
    commitment = seed.commitment(seed.deal(distributor), seed.member())

    with pytest.raises(InvalidStateError):
        StatusTransitionService(db=session).update_single_commitment_status(
            commitment.id, status, "", as_actor(distributor)
        )


def test_cancelled_commitment_cannot_be_decided(session, seed, as_actor):
    distributor = seed.distributor()
    commitment = seed.commitment(seed.deal(distributor), seed.member(), CommitmentStatus.CANCELLED)

    with pytest.raises(InvalidStateError):
        StatusTransitionService(db=session).update_single_commitment_status(
            commitment.id, "approved", "", as_actor(distributor)
        )


def test_single_decision_rejected_after_bulk_decision(session, seed, as_actor):
    distributor = seed.distributor()
    deal = seed.deal(distributor, bulk_action=True, bulk_status="approved")
    commitment = seed.commitment(deal, seed.member())

    with pytest.raises(InvalidStateError):
        StatusTransitionService(db=session).update_single_commitment_status(
            commitment.id, "declined", "", as_actor(distributor)
        )


def test_audit_build_failure_does_not_block_the_decision(session, seed, as_actor, monkeypatch):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    commitment = seed.commitment(deal, seed.member())

    def _broken(*args, **kwargs):
        raise RuntimeError("snapshot unavailable")

    monkeypatch.setattr(transition_module, "build_status_change", _broken)

    StatusTransitionService(db=session).update_single_commitment_status(
        commitment.id, "approved", "", as_actor(distributor)
    )

    session.expire_all()
    assert commitment.status == "approved"
    assert deal.total_sold == 10
    assert _changes(session) == []


def test_audit_write_failure_falls_back_to_status_only_commit(session, seed, as_actor, monkeypatch):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    commitment = seed.commitment(deal, seed.member())

    def _unwritable(commitment, deal, previous_status, actor):
        # Missing NOT NULL snapshot columns make the combined commit fail.
        return CommitmentStatusChange(commitment_id=commitment.id, deal_id=deal.id, user_id=commitment.user_id)

    monkeypatch.setattr(transition_module, "build_status_change", _unwritable)

    StatusTransitionService(db=session).update_single_commitment_status(
        commitment.id, "approved", "ok", as_actor(distributor)
    )

    session.expire_all()
    assert commitment.status == "approved"
    assert commitment.distributor_response == "ok"
    assert deal.total_sold == 10
    assert _changes(session) == []


def test_notification_failure_is_swallowed(session, seed, as_actor, monkeypatch):
    distributor = seed.distributor()
    commitment = seed.commitment(seed.deal(distributor), seed.member())

    def _boom(self, *args, **kwargs):
        raise RuntimeError("notification store down")

    monkeypatch.setattr(transition_module.NotificationService, "notify_user", _boom)

    updated = StatusTransitionService(db=session).update_single_commitment_status(
        commitment.id, "approved", "", as_actor(distributor)
    )

    assert updated.status == "approved"
    assert len(_changes(session, commitment.id)) == 1


def test_bulk_transition_declines_pending_and_closes_deal(session, seed, as_actor):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    pending = [seed.commitment(deal, seed.member()) for _ in range(3)]
    already_approved = seed.commitment(deal, seed.member(), CommitmentStatus.APPROVED, lines=[("1.5L", 2, 35.0)])

    result = StatusTransitionService(db=session).bulk_transition(deal.id, "declined", "sold out", as_actor(distributor))

    assert result.affected_count == 3
    assert result.succeeded_ids == [c.id for c in pending]
    assert result.failed_ids == []
    assert all(c.status == "declined" for c in pending)
    assert already_approved.status == "approved"
    assert deal.status == DealStatus.INACTIVE.value
    assert deal.bulk_action is True
    assert deal.bulk_status == "rejected"
    assert (deal.total_sold, deal.total_revenue) == (2, 70.0)
    changes = _changes(session)
    assert len(changes) == 3
    assert {c.previous_status for c in changes} == {"pending"}


def test_bulk_transition_without_pending_commitments_is_a_noop(session, seed, as_actor):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    seed.commitment(deal, seed.member(), CommitmentStatus.APPROVED)

    result = StatusTransitionService(db=session).bulk_transition(deal.id, "approved", "", as_actor(distributor))

    assert result.affected_count == 0
    assert result.failed_ids == []
    assert _changes(session) == []
    assert deal.bulk_action is False
    assert deal.status == DealStatus.ACTIVE.value


def test_bulk_transition_reports_partial_failures(session, seed, as_actor, monkeypatch):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    commitments = [seed.commitment(deal, seed.member()) for _ in range(3)]
    failing_id = commitments[1].id
    original = StatusTransitionService.apply_transition

    def _flaky(self, commitment, *args, **kwargs):
        if commitment.id == failing_id:
            raise transition_module.PersistenceError("write conflict")
        return original(self, commitment, *args, **kwargs)

    monkeypatch.setattr(StatusTransitionService, "apply_transition", _flaky)

    result = StatusTransitionService(db=session).bulk_transition(deal.id, "approved", "", as_actor(distributor))

    assert result.affected_count == 2
    assert result.failed_ids == [failing_id]
    assert result.partial is True
    assert commitments[1].status == "pending"
    assert deal.bulk_status == "approved"
    assert deal.total_sold == 20


def test_bulk_transition_enforces_ownership(session, seed, as_actor):
    deal = seed.deal(seed.distributor())
    seed.commitment(deal, seed.member())

    with pytest.raises(AuthorizationError):
        StatusTransitionService(db=session).bulk_transition(
            deal.id, "approved", "", as_actor(seed.distributor(business_name="Rival"))
        )


@pytest.mark.parametrize(
    ("target", "expected"),
    [("approved", "Approved by distributor"), ("declined", "Declined by distributor")],
)
def test_bulk_transition_without_response_uses_default_text(session, seed, as_actor, target, expected):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    commitment = seed.commitment(deal, seed.member())

    StatusTransitionService(db=session).bulk_transition(deal.id, target, "", as_actor(distributor))

    assert commitment.distributor_response == expected
    assert [c.distributor_response for c in _changes(session, commitment.id)] == [expected]


def test_bulk_transition_keeps_explicit_response(session, seed, as_actor):
    distributor = seed.distributor()
    deal = seed.deal(distributor)
    commitment = seed.commitment(deal, seed.member())

    StatusTransitionService(db=session).bulk_transition(deal.id, "approved", "see you Friday", as_actor(distributor))

    assert commitment.distributor_response == "see you Friday"
