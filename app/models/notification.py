"""In-app notification model module."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.enums import NotificationPriority
from app.models.base import AuditMixin, Base


class Notification(Base, AuditMixin):
    __tablename__ = "notifications"
    __table_args__ = (Index("idx_notifications_recipient_read", "recipient_id", "is_read"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recipient_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sender_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    sub_type: Mapped[str] = mapped_column(String(60), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    related_id: Mapped[int | None] = mapped_column(Integer)
    related_model: Mapped[str | None] = mapped_column(String(40))
    priority: Mapped[str] = mapped_column(String(10), default=NotificationPriority.MEDIUM.value, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
