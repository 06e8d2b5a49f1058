"""Commitment model module."""

from __future__ import annotations

from sqlalchemy import JSON, Boolean, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.enums import CommitmentStatus
from app.models.base import AuditMixin, Base


class Commitment(Base, AuditMixin):
    __tablename__ = "commitments"
    __table_args__ = (
        Index("idx_commitments_deal_status", "deal_id", "status"),
        Index("idx_commitments_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    deal_id: Mapped[int] = mapped_column(ForeignKey("deals.id", ondelete="RESTRICT"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    # [{size, name, quantity, pricePerUnit, totalPrice, appliedDiscountTier?}]
    size_commitments: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    # Pre size-aware records only carry these two.
    quantity: Mapped[int | None] = mapped_column(Integer)
    total_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=CommitmentStatus.PENDING.value, nullable=False)
    distributor_response: Mapped[str] = mapped_column(Text, default="", nullable=False)

    modified_by_distributor: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    modified_size_commitments: Mapped[list | None] = mapped_column(JSON)
    modified_quantity: Mapped[int | None] = mapped_column(Integer)
    modified_total_price: Mapped[float | None] = mapped_column(Float)

    deal = relationship("Deal", back_populates="commitments")
    user = relationship("User")
