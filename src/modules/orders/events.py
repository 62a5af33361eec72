"""Domain events for the Orders bounded context.

Written to the outbox with the order and published on the in-process
bus after commit.  Notification handlers subscribe to them.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderCreated(DomainEvent):
    order_number: str
    buyer_id: str
    total: Decimal
    payment_method: str


@dataclass(frozen=True, kw_only=True)
class PaymentConfirmed(DomainEvent):
    """The gateway settled the charge and the order became PAID."""

    order_number: str
    payment_status: str


@dataclass(frozen=True, kw_only=True)
class OrderShipped(DomainEvent):
    order_number: str
    tracking_code: str = ""


@dataclass(frozen=True, kw_only=True)
class OrderCancelled(DomainEvent):
    order_number: str
    reason: str = ""


@dataclass(frozen=True, kw_only=True)
class OrderRefunded(DomainEvent):
    order_number: str
    stock_restored: bool = False


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(DomainEvent):
    """Raised on every status transition."""

    old_status: str
    new_status: str
    changed_by: str = "system"
