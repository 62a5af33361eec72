"""Shipping DTOs."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ShippingQuoteRequestDTO(BaseModel):
    """Destination and parcel data for a quote.

    ``weight_kg`` and the dimensions (cm) describe a single package
    holding every item.
    """

    model_config = ConfigDict(frozen=True)

    zip_code: str
    state: Optional[str] = None
    order_value: Decimal = Decimal("0.00")
    item_count: int = Field(default=1, ge=1)
    weight_kg: Decimal = Decimal("1")
    height_cm: int = 10
    width_cm: int = 10
    length_cm: int = 10

    @field_validator("zip_code", mode="before")
    @classmethod
    def digits_only(cls, v: str) -> str:
        if not isinstance(v, str):
            return v
        return "".join(ch for ch in v if ch.isdigit())

    @field_validator("zip_code")
    @classmethod
    def must_have_eight_digits(cls, v: str) -> str:
        if len(v) != 8:
            raise ValueError("CEP must have 8 digits.")
        return v


class ShippingQuoteDTO(BaseModel):
    """A priced option; its fields double as the order's shipping snapshot."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: str = "correios"
    carrier: str = ""
    cost: Decimal
    estimated_days: int = 0
    provider: str = ""

    def with_cost(self, cost: Decimal) -> ShippingQuoteDTO:
        return self.model_copy(update={"cost": cost})
