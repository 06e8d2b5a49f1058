"""Deal model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.enums import DealStatus
from app.models.base import AuditMixin, Base, utcnow


class Deal(Base, AuditMixin):
    __tablename__ = "deals"
    __table_args__ = (
        Index("idx_deals_distributor_status", "distributor_id", "status"),
        Index("idx_deals_month_year", "deal_month", "deal_year"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(120))
    distributor_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    # [{size, name, originalCost, discountPrice, bottlesPerCase, discountTiers: [{tierQuantity, tierDiscount}]}]
    sizes: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=DealStatus.ACTIVE.value, nullable=False)
    deal_month: Mapped[str | None] = mapped_column(String(20))
    deal_year: Mapped[int | None] = mapped_column(Integer)
    commitment_starts_at: Mapped[datetime | None] = mapped_column(DateTime)
    commitment_ends_at: Mapped[datetime | None] = mapped_column(DateTime)
    deal_ends_at: Mapped[datetime | None] = mapped_column(DateTime)

    total_sold: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_revenue: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    bulk_action: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    bulk_status: Mapped[str | None] = mapped_column(String(20))

    distributor = relationship("User")
    commitments = relationship("Commitment", back_populates="deal", order_by="Commitment.id")
    decision_changes = relationship(
        "DealDecisionChange",
        back_populates="deal",
        order_by="DealDecisionChange.id",
    )


class DealDecisionChange(Base):
    """Append-only history of bulk decision reversals on a deal."""

    __tablename__ = "deal_decision_changes"
    __table_args__ = (Index("idx_deal_decision_changes_deal", "deal_id", "changed_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    deal_id: Mapped[int] = mapped_column(ForeignKey("deals.id", ondelete="CASCADE"), nullable=False)
    previous_status: Mapped[str] = mapped_column(String(20), nullable=False)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[str] = mapped_column(Text, default="", nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    changed_by_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    deal = relationship("Deal", back_populates="decision_changes")
