"""Catalog DTOs for the Service Layer.

Pydantic v2 contracts between the DRF views and ``ProductService``.
DTOs are immutable (``frozen=True``).
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


class ColorDTO(BaseModel):
    """A color variant: display name plus hex code."""

    model_config = ConfigDict(frozen=True)

    name: str
    hex: str = "#000000"

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Color name must not be empty.")
        return v.strip()

    @field_validator("hex")
    @classmethod
    def hex_must_be_valid(cls, v: str) -> str:
        if not HEX_COLOR.match(v):
            raise ValueError("Color hex must look like #RRGGBB.")
        return v.upper()


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class CreateProductDTO(BaseModel):
    """Product creation request.

    Validates positive prices, a promotional price below the list price
    and non-negative stock.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    price: Decimal
    description: str = ""
    cost_price: Optional[Decimal] = None
    promotional_price: Optional[Decimal] = None
    images: List[str] = Field(default_factory=list)
    category_id: Optional[UUID] = None
    stock_quantity: int = 0
    min_stock: Optional[int] = None
    sizes: List[str] = Field(default_factory=list)
    colors: List[ColorDTO] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name must not be empty.")
        return v.strip()

    @field_validator("price")
    @classmethod
    def price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Price must be greater than zero.")
        return v

    @field_validator("cost_price", "promotional_price")
    @classmethod
    def optional_price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Prices must be greater than zero.")
        return v

    @field_validator("stock_quantity", "min_stock")
    @classmethod
    def stock_must_be_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v

    @model_validator(mode="after")
    def promotion_below_price(self):
        if self.promotional_price is not None and self.promotional_price >= self.price:
            raise ValueError("Promotional price must be lower than the price.")
        return self


class UpdateProductDTO(BaseModel):
    """Partial product update: only supplied fields are applied."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    price: Optional[Decimal] = None
    description: Optional[str] = None
    cost_price: Optional[Decimal] = None
    promotional_price: Optional[Decimal] = None
    images: Optional[List[str]] = None
    category_id: Optional[UUID] = None
    stock_quantity: Optional[int] = None
    min_stock: Optional[int] = None
    sizes: Optional[List[str]] = None
    colors: Optional[List[ColorDTO]] = None
    is_active: Optional[bool] = None

    @field_validator("price", "cost_price", "promotional_price")
    @classmethod
    def price_must_be_positive(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v <= 0:
            raise ValueError("Prices must be greater than zero.")
        return v

    @field_validator("stock_quantity", "min_stock")
    @classmethod
    def stock_must_be_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class CreateCategoryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    slug: Optional[str] = None
    description: str = ""
    image: str = ""
    parent_id: Optional[UUID] = None
    order: int = 0
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name must not be empty.")
        return v.strip()
