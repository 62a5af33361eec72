"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
creation together with its lines, locked reads, status history, the
order-number sequence and the look-ups used by payments and reports.

The Service Layer depends exclusively on this contract.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderItem, OrderStatusHistory
    from shared.domain.events import DomainEvent


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, order: Order, items: List[OrderItem]) -> Order:
        """Insert an order with its lines and write its pending events."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (``SELECT FOR UPDATE``)."""

    @abstractmethod
    def get_by_number(self, order_number: str) -> Optional[Order]:
        """Retrieve an order by its human-readable number."""

    @abstractmethod
    def get_by_idempotency_key(self, buyer_id: str, key: str) -> Optional[Order]:
        """Retrieve the order *buyer_id* created with an idempotency key.

        Keys are scoped per buyer: two buyers may send the same key.
        """

    @abstractmethod
    def get_by_payment_id(self, payment_id: str) -> Optional[Order]:
        """Retrieve the order holding an external payment reference."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders (newest first) with optional filters."""

    @abstractmethod
    def list_by_buyer(self, buyer_id: str) -> List[Order]:
        """Orders placed by a buyer, newest first."""

    @abstractmethod
    def list_created_between(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Order]:
        """Orders with prefetched lines created inside ``[start, end]``."""

    @abstractmethod
    def add_history(
        self,
        order: Order,
        new_status: str,
        old_status: Optional[str] = None,
        notes: str = "",
        changed_by: str = "system",
    ) -> OrderStatusHistory:
        """Append a record to the order's status audit trail."""

    @abstractmethod
    def next_order_number(self) -> str:
        """Draw the next number from the persistent sequence."""

    @abstractmethod
    def mark_events_published(self, events: List[DomainEvent]) -> None:
        """Flag outbox rows of events the bus has delivered."""
