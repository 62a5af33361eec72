"""Payment service (Use Cases).

Bridges the payment provider and the order lifecycle.  The provider is
only reached through ``IPaymentGateway``; every change to an order goes
through ``OrderService`` so the status mapping, stock compensation and
events stay in one place.

A provider failure fails the operation with ``PAYMENT_PROVIDER_FAILURE``
and leaves the order as it was; retrying is up to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog

from modules.core.results import returns_result
from modules.orders.constants import (
    NON_CANCELLABLE_STATES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from modules.orders.dtos import PaymentReferencesDTO
from modules.orders.exceptions import InvalidOrderStatus, OrderNotCancellable, OrderNotFound
from modules.payments.constants import webhook_status
from modules.payments.exceptions import ChargeNotAllowed

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.services import OrderService
    from modules.payments.dtos import BillingInfoDTO, CardDTO, ChargeDTO, WebhookEventDTO
    from modules.payments.gateway import IPaymentGateway

logger = structlog.get_logger(__name__)

GATEWAY = "payment-gateway"


class PaymentService:
    def __init__(
        self,
        gateway: IPaymentGateway,
        order_service: OrderService,
        order_repository: IOrderRepository,
    ) -> None:
        self._gateway = gateway
        self._orders = order_service
        self._order_repo = order_repository

    @returns_result
    def create_charge(
        self,
        order_id: UUID | str,
        billing: BillingInfoDTO,
        card: Optional[CardDTO] = None,
    ) -> ChargeDTO:
        """Create the provider charge for a PENDING order and store its references.

        Fails with:
            NOT_FOUND: the order does not exist.
            ILLEGAL_TRANSITION: the order is no longer PENDING.
            VALIDATION: cash orders are settled at the counter.
            PAYMENT_PROVIDER_FAILURE: the provider rejected the charge.
        """
        order = self._get(order_id)
        log = logger.bind(order_id=str(order.id), payment_method=order.payment_method)

        if order.status != OrderStatus.PENDING:
            raise InvalidOrderStatus(
                f"Order #{order.order_number} is {order.status}; only pending orders can be charged."
            )
        if order.payment_method == PaymentMethod.CASH:
            raise ChargeNotAllowed("Cash orders are settled at the counter.")

        charge = self._gateway.create_charge(order, billing, card)
        references = PaymentReferencesDTO(
            payment_id=charge.payment_id,
            qr_code=charge.qr_image,
            qr_payload=charge.qr_payload,
            payment_link=charge.payment_link,
        )
        self._orders.update_payment_status(
            order.id, charge.status, references, changed_by=GATEWAY
        ).unwrap()

        log.info("payment.charge_stored", payment_id=charge.payment_id, status=charge.status)
        return charge

    @returns_result
    def reconcile(self, order_id: UUID | str) -> Order:
        """Poll the provider for the charge status and apply it to the order."""
        order = self._get(order_id)
        if not order.payment_id:
            raise ChargeNotAllowed(f"Order #{order.order_number} has no charge to check.")

        status = self._gateway.check_status(order.payment_id)
        logger.info(
            "payment.reconciled",
            order_id=str(order.id),
            payment_id=order.payment_id,
            provider_status=status.status,
        )
        return self._orders.update_payment_status(
            order.id, status.status, changed_by=GATEWAY
        ).unwrap()

    @returns_result
    def handle_webhook(self, event: WebhookEventDTO) -> Optional[Order]:
        """Apply a provider notification.

        Unknown events are acknowledged and ignored (returns ``None``).
        The order is located by payment id, then by external reference.
        """
        payment_status = webhook_status(event.event, event.status)
        if payment_status is None:
            logger.info("payment.webhook_ignored", webhook_event=event.event)
            return None

        order = self._locate(event)
        if payment_status == PaymentStatus.PENDING and order.status != OrderStatus.PENDING:
            logger.info("payment.webhook_stale", webhook_event=event.event, order_id=str(order.id))
            return order

        logger.info(
            "payment.webhook_received",
            webhook_event=event.event,
            order_id=str(order.id),
            payment_id=event.payment_id,
        )
        references = PaymentReferencesDTO(payment_id=event.payment_id) if event.payment_id else None
        return self._orders.update_payment_status(
            order.id, payment_status, references, changed_by=GATEWAY
        ).unwrap()

    @returns_result
    def cancel(self, order_id: UUID | str, reason: str = "", changed_by: str = GATEWAY) -> Order:
        """Cancel the provider charge (when there is one) and then the order."""
        order = self._get(order_id)
        if order.status in NON_CANCELLABLE_STATES or order.is_terminal:
            raise OrderNotCancellable(
                f"Order #{order.order_number} is {order.status} and can no longer be cancelled."
            )

        if order.payment_id and order.payment_status not in (
            PaymentStatus.CANCELLED,
            PaymentStatus.REFUNDED,
        ):
            self._gateway.cancel(order.payment_id)
        return self._orders.cancel_order(order.id, reason=reason, changed_by=changed_by).unwrap()

    @returns_result
    def refund(self, order_id: UUID | str, reason: str = "", changed_by: str = GATEWAY) -> Order:
        """Refund the provider charge (when there is one) and mark the order REFUNDED."""
        order = self._get(order_id)
        if not order.can_transition_to(OrderStatus.REFUNDED):
            raise InvalidOrderStatus(
                f"Order #{order.order_number} is {order.status} and cannot be refunded."
            )

        if order.payment_id:
            self._gateway.refund(order.payment_id, description=reason)
        order = self._orders.update_payment_status(
            order.id, PaymentStatus.REFUNDED, changed_by=changed_by
        ).unwrap()
        if reason:
            order.append_note(f"Refunded: {reason}")
            self._order_repo.save(order)
        return order

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get(self, order_id: UUID | str) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _locate(self, event: WebhookEventDTO) -> Order:
        order = None
        if event.payment_id:
            order = self._order_repo.get_by_payment_id(event.payment_id)
        if order is None and event.external_reference:
            order = self._order_repo.get_by_id(event.external_reference)
        if order is None:
            raise OrderNotFound(
                f"No order for payment {event.payment_id or event.external_reference}."
            )
        return order
