"""Order, OrderItem, OrderStatusHistory and OrderNumberSequence models.

- Every status change generates an append-only history record.
- Buyer, shipping method and shipping address are snapshots taken at
  checkout; so are line prices (``unit_price``, ``promotional_price``,
  ``cost_price``).  They never follow later catalog changes.
- ``total`` is ``max(0, subtotal + shipping_cost - discount)``.
- ``order_number`` comes from ``OrderNumberSequence`` and is unique.
- Orders are never deleted; cancellation and refund are status changes.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import structlog
from django.core.validators import MinValueValidator
from django.db import IntegrityError, models, transaction
from django.db.models import F

from modules.core.models import BaseModel
from modules.orders.constants import (
    NON_CANCELLABLE_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)

MONEY = {"max_digits": 12, "decimal_places": 2}


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root."""

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    idempotency_key = models.CharField(max_length=255, null=True, blank=True)

    # Buyer snapshot
    buyer_id = models.CharField(max_length=255, db_index=True)
    buyer_name = models.CharField(max_length=255)
    buyer_email = models.EmailField(blank=True, default="")
    buyer_phone = models.CharField(max_length=32, blank=True, default="")

    # Money
    subtotal = models.DecimalField(**MONEY, default=Decimal("0.00"))
    shipping_cost = models.DecimalField(**MONEY, default=Decimal("0.00"))
    discount = models.DecimalField(**MONEY, default=Decimal("0.00"))
    total = models.DecimalField(**MONEY, default=Decimal("0.00"))

    # State
    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING
    )
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )

    # Payment references
    payment_id = models.CharField(max_length=100, blank=True, default="", db_index=True)
    payment_qr_code = models.TextField(blank=True, default="")
    payment_qr_payload = models.TextField(blank=True, default="")
    payment_link = models.URLField(max_length=500, blank=True, default="")

    # Shipping snapshot
    shipping_method = models.JSONField(default=dict)
    shipping_address = models.JSONField(default=dict)
    tracking_code = models.CharField(max_length=100, blank=True, default="")

    notes = models.TextField(blank=True, default="")

    paid_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=0), name="orders_total_non_negative"
            ),
            models.UniqueConstraint(
                fields=["buyer_id", "idempotency_key"], name="orders_buyer_idempotency_key_uniq"
            ),
        ]

    # ------------------------------------------------------------------
    # State machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_cancellable(self) -> bool:
        return self.status not in NON_CANCELLABLE_STATES and self.can_transition_to(
            OrderStatus.CANCELLED
        )

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    @staticmethod
    def compute_total(subtotal: Decimal, shipping_cost: Decimal, discount: Decimal) -> Decimal:
        return max(Decimal("0.00"), subtotal + shipping_cost - discount)

    def append_note(self, note: str) -> None:
        self.notes = f"{self.notes}\n{note}" if self.notes else note

    def __str__(self) -> str:
        return f"#{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """Line snapshot of a product at checkout.

    ``product_id`` is kept as a plain reference so stock can be restored;
    everything a buyer saw (name, prices, image, variant) is copied.
    ``subtotal`` is ``quantity * effective unit price``, calculated on save.
    """

    order = models.ForeignKey("orders.Order", on_delete=models.CASCADE, related_name="items")
    product_id = models.UUIDField(db_index=True)
    product_name = models.CharField(max_length=255)
    image = models.URLField(max_length=500, blank=True, default="")
    unit_price = models.DecimalField(**MONEY)
    promotional_price = models.DecimalField(**MONEY, null=True, blank=True)
    cost_price = models.DecimalField(**MONEY, null=True, blank=True)
    size = models.CharField(max_length=20, blank=True, default="")
    color = models.JSONField(null=True, blank=True)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    subtotal = models.DecimalField(**MONEY, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    @property
    def effective_price(self) -> Decimal:
        if self.promotional_price is not None:
            return self.promotional_price
        return self.unit_price

    def line_cost(self, default_cost_ratio: Decimal) -> Decimal:
        """Unit cost times quantity; unknown cost falls back to a ratio of the price."""
        unit_cost = self.cost_price
        if unit_cost is None:
            unit_cost = self.unit_price * default_cost_ratio
        return unit_cost * self.quantity

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.effective_price * self.quantity
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``changed_by`` is the principal's identifier, or ``"system"`` for
    gateway-driven changes.
    """

    order = models.ForeignKey(
        "orders.Order", on_delete=models.CASCADE, related_name="status_history"
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20, choices=OrderStatus.choices, null=True, blank=True
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    changed_by = models.CharField(max_length=255, blank=True, default="system")
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["order", "created_at"], name="osh_order_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id}: {self.old_status} -> {self.new_status}"


class OrderNumberSequence(models.Model):
    """Single-row counter backing human-readable order numbers."""

    name = models.CharField(max_length=50, primary_key=True)
    last_value = models.PositiveBigIntegerField(default=0)

    DEFAULT = "orders"

    class Meta:
        db_table = "order_number_sequence"

    @classmethod
    def next_value(cls, name: Optional[str] = None) -> int:
        """Atomically increment and return the counter.

        The row lock taken by the ``UPDATE`` serializes concurrent
        checkouts until the surrounding transaction ends.
        """
        name = name or cls.DEFAULT
        with transaction.atomic():
            updated = cls.objects.filter(name=name).update(last_value=F("last_value") + 1)
            if not updated:
                try:
                    with transaction.atomic():
                        cls.objects.create(name=name, last_value=1)
                    return 1
                except IntegrityError:
                    cls.objects.filter(name=name).update(last_value=F("last_value") + 1)
            return cls.objects.filter(name=name).values_list("last_value", flat=True).get()
