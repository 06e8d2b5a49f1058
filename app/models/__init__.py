"""SQLAlchemy model package for deals, commitments and their audit trail."""

from app.models.activity_log import ActivityLog
from app.models.base import Base
from app.models.commitment import Commitment
from app.models.commitment_status_change import CommitmentStatusChange
from app.models.deal import Deal, DealDecisionChange
from app.models.notification import Notification
from app.models.user import User

__all__ = [
    "ActivityLog",
    "Base",
    "Commitment",
    "CommitmentStatusChange",
    "Deal",
    "DealDecisionChange",
    "Notification",
    "User",
]
