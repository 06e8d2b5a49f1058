"""Commitment status change model module.

One row per commitment transition. Rows are immutable once written except for
the email processing columns, which the daily summary job owns.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.enums import CommitmentStatus
from app.models.base import Base, utcnow


class CommitmentStatusChange(Base):
    __tablename__ = "commitment_status_changes"
    __table_args__ = (
        Index("idx_status_changes_user_created", "user_id", "created_at"),
        Index("idx_status_changes_processed_created", "processed_for_email", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    commitment_id: Mapped[int] = mapped_column(ForeignKey("commitments.id", ondelete="CASCADE"), nullable=False)
    deal_id: Mapped[int] = mapped_column(ForeignKey("deals.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    deal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    distributor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    distributor_email: Mapped[str] = mapped_column(String(320), nullable=False)
    previous_status: Mapped[str] = mapped_column(String(20), default=CommitmentStatus.PENDING.value, nullable=False)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    distributor_response: Mapped[str] = mapped_column(Text, default="", nullable=False)
    # {sizeCommitments: [...], totalPrice, quantity}
    commitment_details: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    processed_by: Mapped[str] = mapped_column(String(20), nullable=False)
    processed_by_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)

    processed_for_email: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_sent_at: Mapped[datetime | None] = mapped_column(DateTime)
    email_claim_token: Mapped[str | None] = mapped_column(String(64), index=True)
    email_claimed_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    @property
    def total_price(self) -> float:
        return float((self.commitment_details or {}).get("totalPrice") or 0)
