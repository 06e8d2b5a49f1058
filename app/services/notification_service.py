"""In-app notification writer."""

from __future__ import annotations

from collections.abc import Iterable

from app.core.enums import NotificationPriority, UserRole
from app.models import Notification, User
from app.services.base_service import BaseService

NOTIFICATION_TYPE_COMMITMENT = "commitment"
NOTIFICATION_TYPE_DEAL = "deal"


class NotificationService(BaseService):
    """Creates unread notifications for one or more recipients."""

    def notify_user(
        self,
        recipient_id: int,
        title: str,
        message: str,
        *,
        type: str = NOTIFICATION_TYPE_COMMITMENT,
        sub_type: str,
        sender_id: int | None = None,
        related_id: int | None = None,
        related_model: str | None = None,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
    ) -> Notification:
        notification = self._build(
            recipient_id, title, message, type, sub_type, sender_id, related_id, related_model, priority
        )
        self.db.add(notification)
        self.commit()
        return notification

    def notify_users(
        self,
        recipient_ids: Iterable[int],
        title: str,
        message: str,
        *,
        type: str = NOTIFICATION_TYPE_COMMITMENT,
        sub_type: str,
        sender_id: int | None = None,
        related_id: int | None = None,
        related_model: str | None = None,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
    ) -> list[Notification]:
        notifications = [
            self._build(recipient_id, title, message, type, sub_type, sender_id, related_id, related_model, priority)
            for recipient_id in dict.fromkeys(recipient_ids)
        ]
        if not notifications:
            return []
        self.db.add_all(notifications)
        self.commit()
        return notifications

    def notify_role(self, role: UserRole, title: str, message: str, **kwargs) -> list[Notification]:
        recipient_ids = [
            user_id
            for (user_id,) in self.db.query(User.id)
            .filter(User.role == UserRole(role).value, User.is_active.is_(True))
            .all()
        ]
        return self.notify_users(recipient_ids, title, message, **kwargs)

    def unread_for(self, recipient_id: int) -> list[Notification]:
        return (
            self.db.query(Notification)
            .filter(Notification.recipient_id == recipient_id, Notification.is_read.is_(False))
            .order_by(Notification.id)
            .all()
        )

    @staticmethod
    def _build(
        recipient_id: int,
        title: str,
        message: str,
        type: str,
        sub_type: str,
        sender_id: int | None,
        related_id: int | None,
        related_model: str | None,
        priority: NotificationPriority,
    ) -> Notification:
        return Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            type=type,
            sub_type=sub_type,
            title=title,
            message=message,
            related_id=related_id,
            related_model=related_model,
            priority=NotificationPriority(priority).value,
            is_read=False,
        )
