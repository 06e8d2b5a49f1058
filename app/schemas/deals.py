"""Deal request schemas; field aliases follow the stored document shape."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.enums import BulkStatus


class DiscountTier(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tier_quantity: int = Field(alias="tierQuantity", ge=1)
    tier_discount: float = Field(alias="tierDiscount", ge=0)


class DealSize(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    size: str = Field(min_length=1, max_length=60)
    name: str = Field(default="", max_length=255)
    original_cost: float = Field(alias="originalCost", ge=0)
    discount_price: float = Field(alias="discountPrice", ge=0)
    bottles_per_case: int | None = Field(default=None, alias="bottlesPerCase", ge=1)
    discount_tiers: list[DiscountTier] = Field(default_factory=list, alias="discountTiers")

    @model_validator(mode="after")
    def tiers_get_cheaper_with_volume(self) -> "DealSize":
        previous_quantity: int | None = None
        previous_price = self.discount_price
        for tier in self.discount_tiers:
            if previous_quantity is not None and tier.tier_quantity <= previous_quantity:
                raise ValueError("discountTiers must be sorted ascending by tierQuantity")
            if tier.tier_discount > previous_price:
                raise ValueError("tier price must not increase as tierQuantity grows")
            previous_quantity = tier.tier_quantity
            previous_price = tier.tier_discount
        return self

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class DealCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10000)
    category: str | None = Field(default=None, max_length=120)
    sizes: list[DealSize] = Field(min_length=1)
    month: str = Field(min_length=3, max_length=20)
    year: int = Field(ge=2000, le=2100)

    @model_validator(mode="after")
    def sizes_are_unique(self) -> "DealCreateRequest":
        labels = [item.size for item in self.sizes]
        if len(labels) != len(set(labels)):
            raise ValueError("deal sizes must be unique")
        return self


class DecisionChangeRequest(BaseModel):
    new_status: BulkStatus
    reason: str = Field(default="", max_length=2000)
    notes: str = Field(default="", max_length=10000)
