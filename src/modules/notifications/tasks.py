"""Celery tasks that deliver order notifications.

Each task reloads the order, so it reflects the committed state.
"""

from __future__ import annotations

from typing import Optional

import structlog
from celery import shared_task

from modules.notifications.dispatcher import NotificationDispatcher
from modules.orders.dtos import OrderSummaryDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository

logger = structlog.get_logger(__name__)


def _load_summary(order_id: str) -> Optional[OrderSummaryDTO]:
    order = OrderDjangoRepository().get_by_id(order_id)
    if order is None:
        logger.warning("notification.order_missing", order_id=order_id)
        return None
    return OrderSummaryDTO.from_entity(order)


@shared_task(name="notifications.notify_order_created")
def notify_order_created(order_id: str) -> dict:
    summary = _load_summary(order_id)
    if summary is None:
        return {"sent": False}
    dispatcher = NotificationDispatcher()
    result = {
        "email": dispatcher.send_order_confirmation(summary),
        "store": dispatcher.send_order_notification(summary),
        "customer": False,
    }
    if summary.buyer_phone:
        result["customer"] = dispatcher.send_customer_notification(summary, summary.buyer_phone)
    return result


@shared_task(name="notifications.notify_payment_confirmed")
def notify_payment_confirmed(order_id: str) -> dict:
    summary = _load_summary(order_id)
    if summary is None:
        return {"sent": False}
    return {"email": NotificationDispatcher().send_payment_confirmation(summary)}


@shared_task(name="notifications.notify_order_shipped")
def notify_order_shipped(order_id: str, tracking_code: str = "") -> dict:
    summary = _load_summary(order_id)
    if summary is None:
        return {"sent": False}
    return {
        "email": NotificationDispatcher().send_shipping_confirmation(
            summary, tracking_code or summary.tracking_code
        )
    }
