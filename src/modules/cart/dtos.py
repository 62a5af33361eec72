"""Cart DTOs.

``CartItemDTO`` denormalizes the product data captured when the item was
added.  Lines are identified by ``(product_id, size, color name)``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.products.dtos import ColorDTO

CartKey = Tuple[str, Optional[str], Optional[str]]


class CartItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    name: str
    price: Decimal
    promotional_price: Optional[Decimal] = None
    image: str = ""
    quantity: int = 1
    size: Optional[str] = None
    color: Optional[ColorDTO] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @property
    def key(self) -> CartKey:
        return cart_key(self.product_id, self.size, self.color.name if self.color else None)

    @property
    def unit_price(self) -> Decimal:
        if self.promotional_price is not None:
            return self.promotional_price
        return self.price

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class CartTotalsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    shipping: Decimal
    discount: Decimal
    total: Decimal


def cart_key(
    product_id: UUID | str, size: Optional[str] = None, color_name: Optional[str] = None
) -> CartKey:
    return (str(product_id), size or None, color_name or None)
