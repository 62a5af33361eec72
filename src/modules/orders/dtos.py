"""Order DTOs for the Service Layer.

Pydantic v2 contracts between the API layer (DRF views, cart checkout,
point of sale) and ``OrderService``.  DTOs are immutable (``frozen=True``).

- ``BuyerDTO``: buyer identity snapshot.
- ``CreateOrderDTO``: checkout input (lines, pricing, payment, shipping).
- ``PaymentReferencesDTO``: external payment references from the gateway.
- ``OrderSummaryDTO``: read model handed to notifiers.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator, model_validator

from modules.orders.constants import PaymentMethod
from modules.products.dtos import ColorDTO

if TYPE_CHECKING:
    from modules.orders.models import Order

ZERO = Decimal("0.00")


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


class BuyerDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: Optional[EmailStr] = None
    phone: str = ""

    @classmethod
    def from_principal(cls, user) -> BuyerDTO:
        """Build the snapshot from an ``IdentityUser`` or a Django user."""
        if hasattr(user, "sub"):
            return cls(
                id=user.sub,
                name=user.name or user.email or user.sub,
                email=user.email or None,
                phone=user.phone or "",
            )
        full_name = user.get_full_name() if hasattr(user, "get_full_name") else ""
        return cls(
            id=str(user.pk),
            name=full_name or user.get_username(),
            email=user.email or None,
            phone="",
        )


class ShippingMethodDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: str = "standard"
    carrier: str = ""
    cost: Decimal = ZERO
    estimated_days: int = 0

    @field_validator("cost")
    @classmethod
    def cost_must_be_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Shipping cost cannot be negative.")
        return v


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    zip_code: str = ""
    street: str = ""
    number: str = ""
    complement: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""

    @field_validator("zip_code")
    @classmethod
    def digits_only(cls, v: str) -> str:
        return "".join(ch for ch in v if ch.isdigit())

    @field_validator("state")
    @classmethod
    def upper_state(cls, v: str) -> str:
        return v.strip().upper()


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """A cart line submitted at checkout.

    Name and prices are resolved by the Service Layer from the catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    size: Optional[str] = None
    color: Optional[ColorDTO] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @property
    def key(self) -> tuple:
        return (self.product_id, self.size or None, self.color.name if self.color else None)


class OrderPricingDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    shipping_cost: Decimal = ZERO
    discount: Decimal = ZERO

    @field_validator("shipping_cost", "discount")
    @classmethod
    def must_be_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Amounts cannot be negative.")
        return v


class CreateOrderDTO(BaseModel):
    """Order creation request.

    Validates:
    - ``items`` contains at least one line.
    - No two lines share the same product and variant.
    """

    model_config = ConfigDict(frozen=True)

    buyer: BuyerDTO
    items: List[CreateOrderItemDTO]
    payment_method: PaymentMethod
    pricing: OrderPricingDTO = OrderPricingDTO()
    shipping_method: ShippingMethodDTO
    shipping_address: ShippingAddressDTO = ShippingAddressDTO()
    notes: str = ""
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_lines(self):
        keys = [item.key for item in self.items]
        if len(keys) != len(set(keys)):
            raise ValueError("Duplicate product variants are not allowed in the same order.")
        return self


class PaymentReferencesDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_id: Optional[str] = None
    qr_code: Optional[str] = None
    qr_payload: Optional[str] = None
    payment_link: Optional[str] = None

    def as_fields(self) -> dict[str, str]:
        """Order model fields to update (only the supplied references)."""
        mapping = {
            "payment_id": self.payment_id,
            "payment_qr_code": self.qr_code,
            "payment_qr_payload": self.qr_payload,
            "payment_link": self.payment_link,
        }
        return {field: value for field, value in mapping.items() if value is not None}


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderLineSummaryDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    quantity: int
    unit_price: Decimal
    size: str = ""
    color: str = ""
    subtotal: Decimal


class OrderSummaryDTO(BaseModel):
    """Flattened order view used by notifiers."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    buyer_name: str
    buyer_email: str = ""
    buyer_phone: str = ""
    status: str
    payment_method: str
    payment_status: str
    items: List[OrderLineSummaryDTO]
    subtotal: Decimal
    shipping_cost: Decimal
    discount: Decimal
    total: Decimal
    shipping_method: str = ""
    shipping_type: str = ""
    shipping_address: dict = {}
    tracking_code: str = ""
    created_at: datetime

    @classmethod
    def from_entity(cls, order: Order) -> OrderSummaryDTO:
        items = [
            OrderLineSummaryDTO(
                name=item.product_name,
                quantity=item.quantity,
                unit_price=item.effective_price,
                size=item.size,
                color=(item.color or {}).get("name", ""),
                subtotal=item.subtotal,
            )
            for item in order.items.all()
        ]
        return cls(
            id=order.id,
            order_number=order.order_number,
            buyer_name=order.buyer_name,
            buyer_email=order.buyer_email,
            buyer_phone=order.buyer_phone,
            status=order.status,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            items=items,
            subtotal=order.subtotal,
            shipping_cost=order.shipping_cost,
            discount=order.discount,
            total=order.total,
            shipping_method=(order.shipping_method or {}).get("name", ""),
            shipping_type=(order.shipping_method or {}).get("type", ""),
            shipping_address=order.shipping_address or {},
            tracking_code=order.tracking_code,
            created_at=order.created_at,
        )
