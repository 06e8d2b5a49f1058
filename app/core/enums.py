"""Canonical enum values for deals, commitments and their audit trail."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    DISTRIBUTOR = "distributor"
    MEMBER = "member"


class ActorType(str, enum.Enum):
    """Who performed a commitment decision."""

    DISTRIBUTOR = "distributor"
    ADMIN = "admin"


class CommitmentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    CANCELLED = "cancelled"


class DealStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class BulkStatus(str, enum.Enum):
    """Blanket decision recorded on a deal.

    Note the asymmetry with ``CommitmentStatus``: a rejected deal moves its
    commitments to ``declined``.
    """

    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def commitment_status(self) -> CommitmentStatus:
        if self is BulkStatus.APPROVED:
            return CommitmentStatus.APPROVED
        return CommitmentStatus.DECLINED


class LogType(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class NotificationPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Statuses a distributor or admin may decide a commitment into.
DECISION_STATUSES = frozenset({CommitmentStatus.APPROVED, CommitmentStatus.DECLINED})

COMMITMENT_PENDING = CommitmentStatus.PENDING.value
COMMITMENT_APPROVED = CommitmentStatus.APPROVED.value
COMMITMENT_DECLINED = CommitmentStatus.DECLINED.value
COMMITMENT_CANCELLED = CommitmentStatus.CANCELLED.value
