"""Commitment value resolution and deal size pricing.

A commitment is valued either by its size lines or, for records created
before sizes existed, by a scalar quantity and total price. Distributor
modifications take precedence over what the member submitted. All callers
resolve values through ``effective_value`` instead of checking fields
themselves.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from app.core.exceptions import ValidationError
from app.schemas.commitments import SizeRequest
from app.schemas.deals import DealSize, DiscountTier


def money(value: float | int | None) -> float:
    return round(float(value or 0), 2)


@dataclass(frozen=True)
class SizeLine:
    size: str
    name: str
    quantity: int
    price_per_unit: float
    total_price: float
    applied_discount_tier: dict | None = None

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "SizeLine":
        quantity = int(document.get("quantity") or 0)
        price_per_unit = float(document.get("pricePerUnit") or 0)
        total = document.get("totalPrice")
        return cls(
            size=str(document.get("size") or ""),
            name=str(document.get("name") or ""),
            quantity=quantity,
            price_per_unit=price_per_unit,
            total_price=money(total if total is not None else quantity * price_per_unit),
            applied_discount_tier=document.get("appliedDiscountTier"),
        )

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "size": self.size,
            "name": self.name,
            "quantity": self.quantity,
            "pricePerUnit": self.price_per_unit,
            "totalPrice": self.total_price,
        }
        if self.applied_discount_tier is not None:
            document["appliedDiscountTier"] = dict(self.applied_discount_tier)
        return document


@dataclass(frozen=True)
class SizedValue:
    lines: tuple[SizeLine, ...]
    total_override: float | None = None

    @property
    def quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total_price(self) -> float:
        if self.total_override is not None:
            return money(self.total_override)
        return money(sum(line.total_price for line in self.lines))

    def line_documents(self) -> list[dict[str, Any]]:
        return [line.to_document() for line in self.lines]


@dataclass(frozen=True)
class ScalarValue:
    quantity: int
    total_price: float


CommitmentValue = Union[SizedValue, ScalarValue]


def _lines(documents: Iterable[Mapping[str, Any]] | None) -> tuple[SizeLine, ...]:
    return tuple(SizeLine.from_document(document) for document in documents or ())


def original_value(commitment: Any) -> CommitmentValue:
    """Value as the member submitted it."""
    lines = _lines(commitment.size_commitments)
    if lines:
        return SizedValue(lines)
    return ScalarValue(quantity=int(commitment.quantity or 0), total_price=money(commitment.total_price))


def effective_value(commitment: Any) -> CommitmentValue:
    """Value after any distributor modification, falling back to the submitted one."""
    if commitment.modified_by_distributor:
        modified_lines = _lines(commitment.modified_size_commitments)
        if modified_lines:
            return SizedValue(modified_lines, total_override=commitment.modified_total_price)
        if commitment.modified_quantity is not None:
            total = commitment.modified_total_price
            if total is None:
                total = original_value(commitment).total_price
            return ScalarValue(quantity=int(commitment.modified_quantity), total_price=money(total))
    return original_value(commitment)


def commitment_details(value: CommitmentValue) -> dict[str, Any]:
    """Snapshot shape stored on status change records."""
    lines = value.line_documents() if isinstance(value, SizedValue) else []
    return {"sizeCommitments": lines, "totalPrice": value.total_price, "quantity": value.quantity}


def parse_model(model: type[BaseModel], item: Any, label: str) -> Any:
    if isinstance(item, model):
        return item
    try:
        return model.model_validate(item)
    except SchemaValidationError as exc:
        first = exc.errors()[0]
        raise ValidationError(f"Invalid {label}: {first.get('msg', 'invalid value')}") from exc


def parse_deal_sizes(sizes: Sequence[Any]) -> list[DealSize]:
    parsed = [parse_model(DealSize, item, "deal size") for item in sizes]
    labels = [item.size for item in parsed]
    if len(labels) != len(set(labels)):
        raise ValidationError("Invalid deal size: sizes must be unique.")
    return parsed


def validate_deal_sizes(sizes: Sequence[Any]) -> list[dict[str, Any]]:
    """Validate deal sizes and return them in stored document form."""
    if not sizes:
        raise ValidationError("A deal needs at least one size.")
    return [item.to_document() for item in parse_deal_sizes(sizes)]


def resolve_tier(deal_size: DealSize, quantity: int) -> DiscountTier | None:
    """Highest tier whose threshold the quantity reaches."""
    applied = None
    for tier in deal_size.discount_tiers:
        if tier.tier_quantity > quantity:
            break
        applied = tier
    return applied


def price_size_lines(deal_sizes: Sequence[Any], requests: Sequence[Any]) -> SizedValue:
    """Price requested ``{size, quantity}`` lines against a deal's size table."""
    catalog = {item.size: item for item in parse_deal_sizes(deal_sizes)}
    parsed = [parse_model(SizeRequest, item, "size request") for item in requests]
    if not parsed:
        raise ValidationError("At least one size line is required.")

    seen: set[str] = set()
    lines: list[SizeLine] = []
    for request in parsed:
        if request.size in seen:
            raise ValidationError(f"Size {request.size} requested more than once.")
        seen.add(request.size)
        deal_size = catalog.get(request.size)
        if deal_size is None:
            raise ValidationError(f"Size {request.size} is not offered by this deal.")

        tier = resolve_tier(deal_size, request.quantity)
        unit_price = tier.tier_discount if tier else deal_size.discount_price
        lines.append(
            SizeLine(
                size=deal_size.size,
                name=deal_size.name or deal_size.size,
                quantity=request.quantity,
                price_per_unit=money(unit_price),
                total_price=money(unit_price * request.quantity),
                applied_discount_tier=tier.model_dump(by_alias=True) if tier else None,
            )
        )
    return SizedValue(tuple(lines))
