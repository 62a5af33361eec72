"""Django ORM implementation of the Order repository.

Pending domain events of the aggregate are written to the transactional
outbox by ``create``/``save``, inside the caller's transaction.
Status mutations are expected on rows fetched with ``get_for_update``.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.core.models import OutboxEvent
from modules.orders.models import Order, OrderItem, OrderNumberSequence, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

if TYPE_CHECKING:
    from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, order: Order, items: List[OrderItem]) -> Order:
        order.save(force_insert=True)
        for item in items:
            item.order = order
            item.save(force_insert=True)
        self._flush_events(order)
        logger.info("order.persisted", order_id=str(order.id), item_count=len(items))
        return order

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        self._flush_events(entity)
        return entity

    @transaction.atomic
    def add_history(
        self,
        order: Order,
        new_status: str,
        old_status: Optional[str] = None,
        notes: str = "",
        changed_by: str = "system",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order=order,
            old_status=old_status,
            new_status=new_status,
            notes=notes,
            changed_by=changed_by or "system",
        )
        logger.info(
            "order.history_added",
            order_id=str(order.id),
            old_status=old_status,
            new_status=new_status,
        )
        return history

    def next_order_number(self) -> str:
        return str(OrderNumberSequence.next_value())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its lines and history; ``None`` for invalid IDs."""
        try:
            return self._with_relations().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return (
                Order.objects.select_for_update()
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_number(self, order_number: str) -> Optional[Order]:
        return self._with_relations().filter(order_number=order_number).first()

    def get_by_idempotency_key(self, buyer_id: str, key: str) -> Optional[Order]:
        return (
            self._with_relations().filter(buyer_id=buyer_id, idempotency_key=key).first()
        )

    def get_by_payment_id(self, payment_id: str) -> Optional[Order]:
        if not payment_id:
            return None
        return self._with_relations().filter(payment_id=payment_id).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional ORM look-ups.

        Supported filter keys include ``status``, ``payment_status``,
        ``buyer_id`` and ``created_at__range``.
        """
        queryset = self._with_relations()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_by_buyer(self, buyer_id: str) -> List[Order]:
        return self.list({"buyer_id": buyer_id})

    def list_created_between(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Order]:
        queryset = Order.objects.prefetch_related("items")
        if start is not None:
            queryset = queryset.filter(created_at__gte=start)
        if end is not None:
            queryset = queryset.filter(created_at__lte=end)
        return list(queryset.order_by("created_at"))

    def mark_events_published(self, events: List[DomainEvent]) -> None:
        OutboxEvent.mark_published(event.event_id for event in events)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _with_relations():
        return Order.objects.prefetch_related("items", "status_history")

    @staticmethod
    def _flush_events(order: Order) -> None:
        events = order.domain_events
        for event in events:
            OutboxEvent.record(event, topic=OUTBOX_TOPIC)
        order.clear_domain_events()
        if events:
            logger.info("order.events_stored", order_id=str(order.id), count=len(events))
