"""Notification dispatcher.

Fire-and-forget: every method reports delivery as a bool and never
raises, so a failing channel cannot affect the order that triggered it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog
from django.conf import settings

from modules.notifications import messages
from modules.notifications.notifiers import EmailNotifier, WhatsAppNotifier

if TYPE_CHECKING:
    from modules.orders.dtos import OrderSummaryDTO

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    def __init__(
        self,
        email: Optional[EmailNotifier] = None,
        whatsapp: Optional[WhatsAppNotifier] = None,
        store_phone: Optional[str] = None,
    ) -> None:
        self._email = email or EmailNotifier()
        self._whatsapp = whatsapp or WhatsAppNotifier()
        self._store_phone = store_phone or settings.STORE_WHATSAPP_NUMBER

    def send_order_confirmation(self, summary: OrderSummaryDTO) -> bool:
        subject, body = messages.order_confirmation_email(summary)
        return self._deliver_email("order_confirmation", summary, subject, body)

    def send_payment_confirmation(self, summary: OrderSummaryDTO) -> bool:
        subject, body = messages.payment_confirmation_email(summary)
        return self._deliver_email("payment_confirmation", summary, subject, body)

    def send_shipping_confirmation(self, summary: OrderSummaryDTO, tracking_code: str = "") -> bool:
        subject, body = messages.shipping_confirmation_email(summary, tracking_code)
        return self._deliver_email("shipping_confirmation", summary, subject, body)

    def send_order_notification(self, summary: OrderSummaryDTO) -> bool:
        """WhatsApp message to the store about a new order."""
        return self._deliver_whatsapp(
            "store_order", summary, self._store_phone, messages.store_order_message(summary)
        )

    def send_customer_notification(self, summary: OrderSummaryDTO, phone: str) -> bool:
        return self._deliver_whatsapp(
            "customer_order", summary, phone, messages.customer_order_message(summary)
        )

    def _deliver_email(self, kind: str, summary: OrderSummaryDTO, subject: str, body: str) -> bool:
        if not summary.buyer_email:
            logger.info(
                "notification.skipped", kind=kind, reason="no_email", order_id=str(summary.id)
            )
            return False
        try:
            self._email.send(summary.buyer_email, subject, body)
        except Exception:
            logger.exception(
                "notification.failed", kind=kind, channel="email", order_id=str(summary.id)
            )
            return False
        return True

    def _deliver_whatsapp(
        self, kind: str, summary: OrderSummaryDTO, phone: str, message: str
    ) -> bool:
        try:
            self._whatsapp.send(phone, message)
        except Exception:
            logger.exception(
                "notification.failed", kind=kind, channel="whatsapp", order_id=str(summary.id)
            )
            return False
        return True
