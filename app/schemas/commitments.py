"""Commitment request schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SizeRequest(BaseModel):
    size: str = Field(min_length=1, max_length=60)
    quantity: int = Field(ge=1)


class CommitRequest(BaseModel):
    sizes: list[SizeRequest] = Field(min_length=1)
