"""Deal service: creation against the monthly calendar and lifecycle status."""

from __future__ import annotations

import logging
from typing import Any

from app.auth.actor import Actor, enforce_deal_access
from app.core.enums import COMMITMENT_CANCELLED, DealStatus, UserRole
from app.core.exceptions import ValidationError
from app.core.side_effects import fire_and_log
from app.models import Commitment, Deal, DealDecisionChange, User
from app.schemas.deals import DealCreateRequest
from app.services.base_service import BaseService
from app.services.notification_service import NOTIFICATION_TYPE_DEAL, NotificationService
from app.services.period_calculator import (
    MONTHS,
    PeriodCalculator,
    ScheduledPeriodCalculator,
    month_index,
    to_utc_naive,
)
from app.services.pricing import parse_model, validate_deal_sizes

logger = logging.getLogger(__name__)


class DealService(BaseService):
    """Service for deal creation, lookup and active/inactive transitions."""

    def __init__(self, db=None, calculator: PeriodCalculator | None = None) -> None:
        super().__init__(db)
        self.calculator = calculator or ScheduledPeriodCalculator()

    def create_deal(
        self,
        distributor_id: int,
        name: str,
        sizes: list[Any],
        month: str,
        year: int,
        description: str | None = None,
        category: str | None = None,
    ) -> Deal:
        request = parse_model(
            DealCreateRequest,
            {
                "name": name,
                "description": description,
                "category": category,
                "sizes": sizes,
                "month": month,
                "year": year,
            },
            "deal",
        )
        distributor = self.get_or_raise(User, distributor_id, "Distributor")
        if distributor.role != UserRole.DISTRIBUTOR.value:
            raise ValidationError(f"User {distributor_id} is not a distributor.")

        month_name = MONTHS[month_index(request.month)]
        window = self.calculator.get_commitment_dates(month_name, request.year)
        timeframe = self.calculator.get_deal_timeframe(month_name, request.year)

        deal = Deal(
            name=request.name,
            description=request.description,
            category=request.category,
            distributor_id=distributor.id,
            sizes=validate_deal_sizes(request.sizes),
            status=DealStatus.ACTIVE.value,
            deal_month=month_name,
            deal_year=request.year,
            commitment_starts_at=to_utc_naive(window.starts_at),
            commitment_ends_at=to_utc_naive(window.ends_at),
            deal_ends_at=to_utc_naive(timeframe.ends_at),
            total_sold=0,
            total_revenue=0.0,
            bulk_action=False,
        )
        self.db.add(deal)
        self.commit_or_raise("create deal")
        logger.info(
            "deal.created",
            extra={"event": "deal.created", "deal_id": deal.id, "deal_month": month_name, "deal_year": request.year},
        )
        return deal

    def get_deal(self, deal_id: int) -> Deal:
        return self.get_or_raise(Deal, deal_id, "Deal")

    def list_for_distributor(self, distributor_id: int, status: str | None = None) -> list[Deal]:
        query = self.db.query(Deal).filter(Deal.distributor_id == distributor_id)
        if status:
            query = query.filter(Deal.status == status)
        return query.order_by(Deal.id).all()

    def set_deal_status(self, deal_id: int, status: str | DealStatus, actor: Actor) -> Deal:
        try:
            new_status = DealStatus(status)
        except ValueError as exc:
            raise ValidationError(f"Unknown deal status: {status!r}") from exc

        deal = self.get_deal(deal_id)
        enforce_deal_access(deal.distributor_id, actor)
        if deal.status == new_status.value:
            return deal

        deal.status = new_status.value
        self.commit_or_raise(f"update status of deal {deal_id}")
        logger.info(
            "deal.status_updated",
            extra={"event": "deal.status_updated", "deal_id": deal.id, "status": new_status.value},
        )

        member_ids = [
            user_id
            for (user_id,) in self.db.query(Commitment.user_id)
            .filter(Commitment.deal_id == deal.id, Commitment.status != COMMITMENT_CANCELLED)
            .distinct()
            .all()
        ]
        fire_and_log(
            "deal.notification_failed",
            NotificationService(db=self.db).notify_users,
            member_ids,
            "Deal Status Updated",
            f"{deal.name} is now {new_status.value}.",
            type=NOTIFICATION_TYPE_DEAL,
            sub_type="deal_status_changed",
            sender_id=actor.id,
            related_id=deal.id,
            related_model="Deal",
            log_context={"deal_id": deal.id},
        )
        return deal

    def decision_history(self, deal_id: int) -> list[DealDecisionChange]:
        deal = self.get_deal(deal_id)
        return (
            self.db.query(DealDecisionChange)
            .filter(DealDecisionChange.deal_id == deal.id)
            .order_by(DealDecisionChange.changed_at, DealDecisionChange.id)
            .all()
        )
