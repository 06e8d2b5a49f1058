"""Pydantic schema package for engine inputs."""

from app.schemas.commitments import CommitRequest, SizeRequest
from app.schemas.deals import DealCreateRequest, DealSize, DecisionChangeRequest, DiscountTier

__all__ = [
    "CommitRequest",
    "DealCreateRequest",
    "DealSize",
    "DecisionChangeRequest",
    "DiscountTier",
    "SizeRequest",
]
