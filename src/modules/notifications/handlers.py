"""Bus handlers that queue notification tasks.

Enqueue failures (broker down) are logged and dropped; they never reach
the publisher.
"""

from __future__ import annotations

import structlog

from modules.notifications import tasks
from modules.orders.events import OrderCreated, OrderShipped, PaymentConfirmed
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


def _enqueue(task, event, *args) -> None:
    try:
        task.delay(*args)
    except Exception:
        logger.exception(
            "notification.enqueue_failed",
            task=task.name,
            event_name=event.event_name,
            order_id=str(event.aggregate_id),
        )


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        _enqueue(tasks.notify_order_created, event, str(event.aggregate_id))


class PaymentConfirmedHandler(IEventHandler[PaymentConfirmed]):
    def handle(self, event: PaymentConfirmed) -> None:
        _enqueue(tasks.notify_payment_confirmed, event, str(event.aggregate_id))


class OrderShippedHandler(IEventHandler[OrderShipped]):
    def handle(self, event: OrderShipped) -> None:
        _enqueue(tasks.notify_order_shipped, event, str(event.aggregate_id), event.tracking_code)


order_created_handler = OrderCreatedHandler()
payment_confirmed_handler = PaymentConfirmedHandler()
order_shipped_handler = OrderShippedHandler()
