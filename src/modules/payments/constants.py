"""Provider status and webhook vocabularies mapped onto ``PaymentStatus``."""

from __future__ import annotations

from typing import Optional

from modules.orders.constants import PaymentStatus

# Provider statuses without a direct counterpart.
STATUS_ALIASES: dict[str, str] = {
    "RECEIVED_IN_CASH": PaymentStatus.RECEIVED,
    "DUNNING_RECEIVED": PaymentStatus.RECEIVED,
    "DELETED": PaymentStatus.CANCELLED,
}

WEBHOOK_EVENTS: dict[str, str] = {
    "PAYMENT_CREATED": PaymentStatus.PENDING,
    "PAYMENT_CONFIRMED": PaymentStatus.CONFIRMED,
    "PAYMENT_RECEIVED": PaymentStatus.RECEIVED,
    "PAYMENT_RECEIVED_IN_CASH": PaymentStatus.RECEIVED,
    "PAYMENT_OVERDUE": PaymentStatus.OVERDUE,
    "PAYMENT_DELETED": PaymentStatus.CANCELLED,
    "PAYMENT_REFUNDED": PaymentStatus.REFUNDED,
}

# Carries the new status in the payment body.
PAYMENT_UPDATED = "PAYMENT_UPDATED"


def to_payment_status(raw: Optional[str]) -> PaymentStatus:
    """Normalize a provider status; unknown values read as PENDING."""
    value = STATUS_ALIASES.get(raw or "", raw)
    try:
        return PaymentStatus(value)
    except ValueError:
        return PaymentStatus.PENDING


def webhook_status(event: str, raw_status: Optional[str] = None) -> Optional[PaymentStatus]:
    """Payment status announced by a webhook event, ``None`` when irrelevant."""
    if event == PAYMENT_UPDATED:
        return to_payment_status(raw_status) if raw_status else None
    mapped = WEBHOOK_EVENTS.get(event)
    return PaymentStatus(mapped) if mapped else None
