"""Order lifecycle service (Use Cases).

Orchestrates order creation from a cart snapshot, stock reservation
through the inventory ledger, payment-status reconciliation and status
progression, including compensating stock restoration on cancellation
and refund.

Every public command returns an ``OperationResult`` and runs in one
transaction: order persistence and all stock changes either commit
together or not at all.  Mutations lock the order row first
(``SELECT FOR UPDATE``) so webhook-driven and manual updates serialize.

Domain events are written to the outbox with the order, published on the
in-process bus once the transaction commits and then flagged as published.
"""

from __future__ import annotations

from decimal import Decimal
from functools import partial
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import IntegrityError, transaction
from django.utils import timezone

from modules.core.results import DomainError, ErrorCode, returns_result
from modules.orders.constants import (
    NON_CANCELLABLE_STATES,
    PAYMENT_TO_ORDER_STATUS,
    SETTLED_STATES,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderRefunded,
    OrderShipped,
    OrderStatusChanged,
    PaymentConfirmed,
)
from modules.orders.exceptions import InvalidOrderStatus, OrderNotCancellable, OrderNotFound
from modules.orders.models import Order, OrderItem
from modules.products.exceptions import InactiveProduct, ProductNotFound
from shared.infrastructure.bus import event_bus as default_event_bus

if TYPE_CHECKING:
    from modules.orders.dtos import CreateOrderDTO, PaymentReferencesDTO
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.inventory import InventoryLedger
    from modules.products.repositories.interfaces import IProductRepository
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

SYSTEM = "system"


class OrderService:
    """Application service for the order lifecycle.

    Receives its repositories, the inventory ledger and the event bus via
    constructor injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        inventory: InventoryLedger,
        event_bus: Optional[IEventBus] = None,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._inventory = inventory
        self._bus = event_bus or default_event_bus

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @returns_result
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create a PENDING order from a cart snapshot and reserve its stock.

        Steps:
        1. Return the existing order when this buyer already used the
           idempotency key.
        2. Snapshot name and prices of every line from the catalog.
        3. Draw the next order number and persist order + lines.
        4. Decrement stock per line (sorted by product to avoid deadlocks).
        5. Record the initial history entry and the ``OrderCreated`` event.

        Fails with:
            NOT_FOUND: a product does not exist.
            VALIDATION: a product is inactive.
            INSUFFICIENT_STOCK: ``reject`` policy and a line exceeds stock.
        """
        log = logger.bind(buyer_id=dto.buyer.id)
        log.info("order.creation_started", line_count=len(dto.items))

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(
                dto.buyer.id, dto.idempotency_key
            )
            if existing:
                log.info("order.idempotency_hit", order_id=str(existing.id))
                return existing

        items = self._snapshot_lines(dto)
        subtotal = sum((item.effective_price * item.quantity for item in items), Decimal("0.00"))
        pricing = dto.pricing

        order = Order(
            order_number=self._order_repo.next_order_number(),
            idempotency_key=dto.idempotency_key,
            buyer_id=dto.buyer.id,
            buyer_name=dto.buyer.name,
            buyer_email=dto.buyer.email or "",
            buyer_phone=dto.buyer.phone,
            subtotal=subtotal,
            shipping_cost=pricing.shipping_cost,
            discount=pricing.discount,
            total=Order.compute_total(subtotal, pricing.shipping_cost, pricing.discount),
            status=OrderStatus.PENDING,
            payment_method=dto.payment_method,
            payment_status=PaymentStatus.PENDING,
            shipping_method=dto.shipping_method.model_dump(mode="json"),
            shipping_address=dto.shipping_address.model_dump(mode="json"),
            notes=dto.notes,
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                order_number=order.order_number,
                buyer_id=order.buyer_id,
                total=order.total,
                payment_method=order.payment_method,
            )
        )
        events = order.domain_events

        try:
            with transaction.atomic():
                self._order_repo.create(order, items)
        except IntegrityError:
            existing = (
                self._order_repo.get_by_idempotency_key(dto.buyer.id, dto.idempotency_key)
                if dto.idempotency_key
                else None
            )
            if existing is None:
                raise
            log.info("order.idempotency_race", order_id=str(existing.id))
            return existing

        for item in sorted(items, key=lambda line: str(line.product_id)):
            self._inventory.decrement(item.product_id, item.quantity)

        self._order_repo.add_history(
            order, OrderStatus.PENDING, notes="Order created", changed_by=dto.buyer.id
        )
        self._publish_after_commit(events)

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total=str(order.total),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @returns_result
    def update_order_status(
        self,
        order_id: UUID | str,
        new_status: str,
        tracking_code: Optional[str] = None,
        notes: str = "",
        changed_by: str = SYSTEM,
    ) -> Order:
        """Move an order to *new_status* following the transition table.

        Stamps ``shipped_at``/``delivered_at`` on the matching transition and
        stores *tracking_code* when given.  Re-applying the current status
        only updates the tracking code.

        Fails with:
            NOT_FOUND: the order does not exist.
            ILLEGAL_TRANSITION: the table does not allow the change.
        """
        new_status = _coerce(new_status, OrderStatus, "order status")
        order = self._lock(order_id)
        log = logger.bind(order_id=str(order.id), current_status=order.status, new_status=new_status)

        if tracking_code:
            order.tracking_code = tracking_code

        if new_status == order.status:
            self._save(order)
            log.info("order.status_unchanged", tracking_code=order.tracking_code)
            return order

        if new_status == OrderStatus.CANCELLED:
            self._cancel(order, notes, changed_by)
        else:
            self._transition(order, new_status, notes, changed_by)
        self._save(order)

        log.info("order.status_updated")
        return order

    @returns_result
    def update_payment_status(
        self,
        order_id: UUID | str,
        new_payment_status: str,
        references: Optional[PaymentReferencesDTO] = None,
        changed_by: str = SYSTEM,
    ) -> Order:
        """Record the gateway's view of the charge and derive the order status.

        CONFIRMED/RECEIVED make the order PAID (``paid_at`` stamped once),
        CANCELLED cancels it and restores stock, REFUNDED refunds it.
        PENDING and OVERDUE leave the order status alone, as does a
        PAID-equivalent status on an order that is already settled.

        Fails with:
            NOT_FOUND: the order does not exist.
            ILLEGAL_TRANSITION: the derived order status is not reachable.
        """
        new_payment_status = _coerce(new_payment_status, PaymentStatus, "payment status")
        order = self._lock(order_id)
        log = logger.bind(
            order_id=str(order.id),
            order_status=order.status,
            old_payment_status=order.payment_status,
            new_payment_status=new_payment_status,
        )

        order.payment_status = new_payment_status
        target = PAYMENT_TO_ORDER_STATUS.get(new_payment_status)
        already_settled = target == OrderStatus.PAID and order.status in SETTLED_STATES
        if target is not None and target != order.status and not already_settled:
            if target == OrderStatus.CANCELLED:
                self._cancel(order, f"Payment {new_payment_status.lower()}", changed_by)
            else:
                self._transition(
                    order, target, f"Payment {new_payment_status.lower()}", changed_by
                )

        if references is not None:
            for field, value in references.as_fields().items():
                setattr(order, field, value)
        self._save(order)

        log.info("order.payment_status_updated", order_status=order.status)
        return order

    @returns_result
    def cancel_order(
        self, order_id: UUID | str, reason: str = "", changed_by: str = SYSTEM
    ) -> Order:
        """Cancel an order that has not shipped and restore its stock.

        Sets the payment status to CANCELLED and appends *reason* to notes.

        Fails with:
            NOT_FOUND: the order does not exist.
            ILLEGAL_TRANSITION: the order shipped, was delivered, or is
            already cancelled/refunded.
        """
        order = self._lock(order_id)
        if order.status in NON_CANCELLABLE_STATES:
            logger.warning("order.cancel_rejected", order_id=str(order.id), status=order.status)
            raise OrderNotCancellable(
                f"Order #{order.order_number} is {order.status} and can no longer be cancelled."
            )

        self._cancel(order, reason, changed_by)
        self._save(order)
        logger.info("order.cancelled", order_id=str(order.id), reason=reason)
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @returns_result
    def get_order(self, order_id: UUID | str) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    @returns_result
    def get_order_by_number(self, order_number: str) -> Order:
        order = self._order_repo.get_by_number(str(order_number).lstrip("#"))
        if not order:
            raise OrderNotFound(f"Order #{order_number} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        return self._order_repo.list(filters)

    def list_buyer_orders(self, buyer_id: str) -> List[Order]:
        return self._order_repo.list_by_buyer(buyer_id)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _transition(self, order: Order, new_status: str, notes: str, changed_by: str) -> None:
        """Validate and apply a transition with its side effects."""
        if not order.can_transition_to(new_status):
            logger.warning(
                "order.invalid_transition",
                order_id=str(order.id),
                current_status=order.status,
                new_status=new_status,
            )
            raise InvalidOrderStatus(f"Cannot transition from {order.status} to {new_status}.")

        old_status = order.status
        now = timezone.now()
        order.status = new_status

        if new_status == OrderStatus.PAID:
            if order.paid_at is None:
                order.paid_at = now
            order.add_domain_event(
                PaymentConfirmed(
                    aggregate_id=order.id,
                    order_number=order.order_number,
                    payment_status=order.payment_status,
                )
            )
        elif new_status == OrderStatus.SHIPPED:
            order.shipped_at = now
            order.add_domain_event(
                OrderShipped(
                    aggregate_id=order.id,
                    order_number=order.order_number,
                    tracking_code=order.tracking_code,
                )
            )
        elif new_status == OrderStatus.DELIVERED:
            order.delivered_at = now
        elif new_status == OrderStatus.CANCELLED:
            self._restore_stock(order)
            order.add_domain_event(
                OrderCancelled(aggregate_id=order.id, order_number=order.order_number, reason=notes)
            )
        elif new_status == OrderStatus.REFUNDED:
            never_shipped = order.shipped_at is None
            if never_shipped:
                self._restore_stock(order)
            order.add_domain_event(
                OrderRefunded(
                    aggregate_id=order.id,
                    order_number=order.order_number,
                    stock_restored=never_shipped,
                )
            )

        self._order_repo.add_history(
            order, new_status, old_status=old_status, notes=notes, changed_by=changed_by
        )
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=new_status,
                changed_by=changed_by,
            )
        )

    def _cancel(self, order: Order, reason: str, changed_by: str) -> None:
        self._transition(order, OrderStatus.CANCELLED, reason or "Order cancelled", changed_by)
        order.payment_status = PaymentStatus.CANCELLED
        if reason:
            order.append_note(f"Cancelled: {reason}")

    def _restore_stock(self, order: Order) -> None:
        for item in sorted(order.items.all(), key=lambda line: str(line.product_id)):
            self._inventory.restore(item.product_id, item.quantity)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _snapshot_lines(self, dto: CreateOrderDTO) -> List[OrderItem]:
        products = self._product_repo.get_many([str(line.product_id) for line in dto.items])
        items = []
        for line in dto.items:
            product = products.get(str(line.product_id))
            if product is None:
                raise ProductNotFound(f"Product {line.product_id} not found.")
            if not product.is_active:
                raise InactiveProduct(f"Product {product.name} is not available for sale.")
            items.append(
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    image=product.main_image or "",
                    unit_price=product.price,
                    promotional_price=product.promotional_price,
                    cost_price=product.cost_price,
                    size=line.size or "",
                    color=line.color.model_dump() if line.color else None,
                    quantity=line.quantity,
                )
            )
        return items

    def _lock(self, order_id: UUID | str) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _save(self, order: Order) -> None:
        events = order.domain_events
        self._order_repo.save(order)
        self._publish_after_commit(events)

    def _publish_after_commit(self, events) -> None:
        if events:
            transaction.on_commit(partial(self._deliver, list(events)))

    def _deliver(self, events) -> None:
        self._bus.publish_all(events)
        self._order_repo.mark_events_published(events)


def _coerce(value: str, choices, label: str) -> str:
    normalized = str(value or "").upper()
    if normalized not in choices.values:
        raise DomainError(f"Unknown {label}: {value}.", code=ErrorCode.VALIDATION)
    return normalized
