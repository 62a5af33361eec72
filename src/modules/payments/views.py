"""Payment API views.

- ``POST /api/v1/orders/{id}/charge/``: create the provider charge.
- ``POST /api/v1/orders/{id}/check-payment/``: poll the charge status.
- ``POST /api/v1/orders/{id}/refund/``: refund (back-office).
- ``/api/v1/payments/webhook/``: provider notifications, authenticated by
  the ``asaas-access-token`` header; GET answers a liveness probe.
"""

from __future__ import annotations

import hmac

import structlog
from django.conf import settings
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.permissions import IsBackOffice
from modules.core.results import ErrorCode, error_response
from modules.orders.dtos import BuyerDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderSerializer
from modules.payments.dtos import BillingInfoDTO, CardDTO, WebhookEventDTO
from modules.payments.factories import build_payment_service
from modules.payments.serializers import (
    ChargeRequestSerializer,
    RefundSerializer,
    WebhookSerializer,
)

logger = structlog.get_logger(__name__)

WEBHOOK_TOKEN_HEADER = "asaas-access-token"


def _not_found() -> Response:
    return Response(
        {"detail": "Order not found.", "code": ErrorCode.NOT_FOUND.value},
        status=status.HTTP_404_NOT_FOUND,
    )


class OrderPaymentView(APIView):
    """Base for buyer-facing payment actions on one order."""

    permission_classes = [IsAuthenticated]

    def can_access(self, request: Request, pk) -> bool:
        if IsBackOffice().has_permission(request, self):
            return True
        order = OrderDjangoRepository().get_by_id(str(pk))
        return order is not None and order.buyer_id == BuyerDTO.from_principal(request.user).id


class ChargeView(OrderPaymentView):
    throttle_scope = "checkout"

    def post(self, request: Request, pk) -> Response:
        if not self.can_access(request, pk):
            return _not_found()

        serializer = ChargeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            billing = BillingInfoDTO(**data["billing"])
            card = CardDTO(**data["card"]) if data.get("card") else None
        except PydanticValidationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        result = build_payment_service().create_charge(pk, billing, card)
        if not result.success:
            return error_response(result)

        charge = result.value
        return Response(
            {
                "order_id": str(pk),
                "payment_id": charge.payment_id,
                "status": charge.status,
                "payment_link": charge.payment_link,
                "invoice_url": charge.invoice_url,
                "bank_slip_url": charge.bank_slip_url,
                "qr_code": charge.qr_image,
                "qr_payload": charge.qr_payload,
                "qr_expiration": charge.qr_expiration,
            },
            status=status.HTTP_201_CREATED,
        )


class CheckPaymentView(OrderPaymentView):
    def post(self, request: Request, pk) -> Response:
        if not self.can_access(request, pk):
            return _not_found()

        result = build_payment_service().reconcile(pk)
        if not result.success:
            return error_response(result)
        return Response(OrderSerializer(result.value).data)


class RefundView(APIView):
    permission_classes = [IsBackOffice]

    def post(self, request: Request, pk) -> Response:
        serializer = RefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = build_payment_service().refund(
            pk,
            reason=serializer.validated_data["reason"],
            changed_by=BuyerDTO.from_principal(request.user).id,
        )
        if not result.success:
            return error_response(result)
        return Response(OrderSerializer(result.value).data)


class PaymentWebhookView(APIView):
    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_scope = "payment_webhook"

    def get(self, request: Request) -> Response:
        return Response({"status": "active"})

    def post(self, request: Request) -> Response:
        expected = settings.ASAAS_WEBHOOK_TOKEN
        received = request.headers.get(WEBHOOK_TOKEN_HEADER, "")
        if not expected or not hmac.compare_digest(received, expected):
            logger.warning("payment.webhook_unauthorized")
            return Response(
                {"detail": "Invalid webhook token."}, status=status.HTTP_401_UNAUTHORIZED
            )

        serializer = WebhookSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = serializer.validated_data.get("payment") or {}
        event = WebhookEventDTO(
            event=serializer.validated_data["event"],
            payment_id=payment.get("id") or None,
            external_reference=payment.get("externalReference") or None,
            status=payment.get("status") or None,
        )

        result = build_payment_service().handle_webhook(event)
        if not result.success:
            if result.code == ErrorCode.NOT_FOUND:
                # Acknowledged so the provider does not keep retrying.
                return Response({"received": True, "processed": False})
            return error_response(result)
        return Response({"received": True, "processed": result.value is not None})
