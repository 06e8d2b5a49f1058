"""Deal aggregate recomputation.

Totals are always rebuilt from the approved commitments in the store, never
incremented, so repeated or concurrent recomputation converges on the same
values.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from app.core.enums import COMMITMENT_APPROVED
from app.models import Commitment, Deal
from app.services.pricing import effective_value


@dataclass(frozen=True)
class DealTotals:
    total_sold: int
    total_revenue: float


def compute_deal_totals(commitments: Iterable[Any]) -> DealTotals:
    """Sum effective quantity and price over approved commitments only."""
    total_sold = 0
    total_revenue = 0.0
    for commitment in commitments:
        if commitment.status != COMMITMENT_APPROVED:
            continue
        value = effective_value(commitment)
        total_sold += value.quantity
        total_revenue += value.total_price
    return DealTotals(total_sold=total_sold, total_revenue=round(total_revenue, 2))


def recompute_deal_aggregates(session: Session, deal: Deal) -> DealTotals:
    """Re-scan the deal's commitments and write ``total_sold``/``total_revenue``.

    The caller owns the transaction.
    """
    session.flush()
    commitments = (
        session.query(Commitment)
        .filter(Commitment.deal_id == deal.id)
        .filter(Commitment.status == COMMITMENT_APPROVED)
        .all()
    )
    totals = compute_deal_totals(commitments)
    deal.total_sold = totals.total_sold
    deal.total_revenue = totals.total_revenue
    return totals
