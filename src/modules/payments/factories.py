"""Wiring of ``PaymentService`` with the Asaas gateway."""

from __future__ import annotations

from typing import Optional

from modules.orders.factories import build_order_service
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.payments.asaas import AsaasGateway
from modules.payments.gateway import IPaymentGateway
from modules.payments.services import PaymentService


def build_payment_service(gateway: Optional[IPaymentGateway] = None) -> PaymentService:
    return PaymentService(
        gateway=gateway or AsaasGateway(),
        order_service=build_order_service(),
        order_repository=OrderDjangoRepository(),
    )
