"""Activity log model module."""

from __future__ import annotations

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.enums import LogType, Severity
from app.models.base import AuditMixin, Base


class ActivityLog(Base, AuditMixin):
    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("idx_activity_logs_action_created", "action", "created_at"),
        Index("idx_activity_logs_resource", "resource", "resource_id"),
        Index("idx_activity_logs_type_severity", "type", "severity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), default=LogType.INFO.value, nullable=False)
    action: Mapped[str] = mapped_column(String(120), nullable=False)
    resource: Mapped[str | None] = mapped_column(String(50))
    resource_id: Mapped[int | None] = mapped_column(Integer)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    severity: Mapped[str] = mapped_column(String(20), default=Severity.LOW.value, nullable=False)
    details: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
