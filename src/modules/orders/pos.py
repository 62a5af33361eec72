"""Point-of-sale (PDV) checkout.

An in-store sale is an ordinary order with a pickup shipping snapshot and
no shipping cost.  Counter payments (cash, cards, PIX) are settled right
away: the payment is recorded as RECEIVED, which makes the order PAID.
Boleto sales stay PENDING until the gateway confirms them.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, field_validator

from modules.core.results import returns_result
from modules.orders.constants import (
    PICKUP_ADDRESS,
    PICKUP_SHIPPING_METHOD,
    POS_SETTLED_METHODS,
    PaymentMethod,
    PaymentStatus,
)
from modules.orders.dtos import (
    BuyerDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    OrderPricingDTO,
    ShippingAddressDTO,
    ShippingMethodDTO,
)

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.services import OrderService

logger = structlog.get_logger(__name__)

WALK_IN_CUSTOMER = "Cliente PDV"


class PointOfSaleSaleDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    attendant_id: str
    attendant_name: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    items: List[CreateOrderItemDTO]
    payment_method: PaymentMethod
    discount: Decimal = Decimal("0.00")
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[CreateOrderItemDTO]) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Add at least one product to the sale.")
        return v


class PointOfSaleService:
    def __init__(self, order_service: OrderService) -> None:
        self._orders = order_service

    @returns_result
    def complete_sale(self, dto: PointOfSaleSaleDTO) -> Order:
        """Create the pickup order and settle counter payments in one transaction."""
        log = logger.bind(attendant_id=dto.attendant_id, payment_method=dto.payment_method)

        order = self._orders.create_order(
            CreateOrderDTO(
                buyer=BuyerDTO(
                    id=dto.attendant_id,
                    name=dto.customer_name.strip() or WALK_IN_CUSTOMER,
                    phone=dto.customer_phone,
                ),
                items=dto.items,
                payment_method=dto.payment_method,
                pricing=OrderPricingDTO(shipping_cost=Decimal("0.00"), discount=dto.discount),
                shipping_method=ShippingMethodDTO(**PICKUP_SHIPPING_METHOD),
                shipping_address=ShippingAddressDTO(**PICKUP_ADDRESS),
                notes=f"Venda PDV - Atendente: {dto.attendant_name or 'Sistema'}",
                idempotency_key=dto.idempotency_key,
            )
        ).unwrap()

        if dto.payment_method in POS_SETTLED_METHODS:
            order = self._orders.update_payment_status(
                order.id, PaymentStatus.RECEIVED, changed_by=dto.attendant_id
            ).unwrap()

        log.info("pos.sale_completed", order_id=str(order.id), status=order.status)
        return order
