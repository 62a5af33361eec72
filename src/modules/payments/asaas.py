"""Asaas payment gateway adapter.

Concrete ``IPaymentGateway`` over the Asaas v3 REST API using ``httpx``.

- Customers are found by external reference (the buyer id) or created.
- Billing types map one to one, except CASH which falls back to PIX.
- Credit card charges carry the card, the holder info and installments.
- PIX charges fetch the QR code right after creation; a missing QR code
  does not fail the charge.
- Only GET requests are retried (see ``modules.core.http.send``); every
  request propagates ``X-Request-ID``.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

import httpx
import structlog
from django.conf import settings
from django.utils import timezone

from modules.core.http import request_headers, send
from modules.orders.constants import PaymentMethod
from modules.payments.constants import to_payment_status
from modules.payments.dtos import (
    BillingInfoDTO,
    CardDTO,
    ChargeDTO,
    PaymentStatusDTO,
    PixQrCodeDTO,
)
from modules.payments.exceptions import PaymentProviderError
from modules.payments.gateway import IPaymentGateway

logger = structlog.get_logger(__name__)

BILLING_TYPES: dict[str, str] = {
    PaymentMethod.PIX: "PIX",
    PaymentMethod.CREDIT_CARD: "CREDIT_CARD",
    PaymentMethod.DEBIT_CARD: "DEBIT_CARD",
    PaymentMethod.BOLETO: "BOLETO",
    PaymentMethod.CASH: "PIX",
}

CENTS = Decimal("0.01")


class AsaasGateway(IPaymentGateway):
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url or settings.ASAAS_API_URL,
            headers={
                "Content-Type": "application/json",
                "access_token": api_key if api_key is not None else settings.ASAAS_API_KEY,
            },
            timeout=timeout or settings.HTTP_TIMEOUT_SECS,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Charges
    # ------------------------------------------------------------------

    def create_charge(
        self, order, billing: BillingInfoDTO, card: Optional[CardDTO] = None
    ) -> ChargeDTO:
        log = logger.bind(order_id=str(order.id), payment_method=order.payment_method)
        customer_id = self.find_or_create_customer(billing, external_reference=order.buyer_id)

        billing_type = BILLING_TYPES.get(order.payment_method, "PIX")
        due_date = timezone.localdate() + timedelta(days=settings.PAYMENT_DUE_DAYS)
        payload: dict[str, Any] = {
            "customer": customer_id,
            "billingType": billing_type,
            "value": float(order.total),
            "dueDate": due_date.isoformat(),
            "description": f"Pedido {order.order_number} - {settings.STORE_NAME}",
            "externalReference": str(order.id),
        }
        if card is not None and billing_type == "CREDIT_CARD":
            payload.update(self._card_payload(order.total, billing, card))

        data = self._request("POST", "/payments", json=payload)
        charge = {
            "payment_id": data["id"],
            "status": to_payment_status(data.get("status")),
            "invoice_url": data.get("invoiceUrl"),
            "bank_slip_url": data.get("bankSlipUrl"),
        }

        if billing_type == "PIX":
            try:
                qr = self.get_pix_qr_code(data["id"])
            except PaymentProviderError as exc:
                log.warning("payment.pix_qr_unavailable", payment_id=data["id"], reason=str(exc))
            else:
                charge.update(
                    qr_image=qr.image, qr_payload=qr.payload, qr_expiration=qr.expiration
                )

        log.info("payment.charge_created", payment_id=data["id"], billing_type=billing_type)
        return ChargeDTO(**charge)

    def check_status(self, payment_id: str) -> PaymentStatusDTO:
        data = self._request("GET", f"/payments/{payment_id}", retryable=True)
        return self._status_from(data)

    def cancel(self, payment_id: str) -> None:
        self._request("DELETE", f"/payments/{payment_id}")
        logger.info("payment.charge_cancelled", payment_id=payment_id)

    def refund(
        self, payment_id: str, value: Optional[Decimal] = None, description: str = ""
    ) -> PaymentStatusDTO:
        payload: dict[str, Any] = {}
        if value is not None:
            payload["value"] = float(value)
        if description:
            payload["description"] = description
        data = self._request("POST", f"/payments/{payment_id}/refund", json=payload)
        logger.info("payment.charge_refunded", payment_id=payment_id)
        return self._status_from(data)

    def get_pix_qr_code(self, payment_id: str) -> PixQrCodeDTO:
        data = self._request("GET", f"/payments/{payment_id}/pixQrCode", retryable=True)
        return PixQrCodeDTO(
            image=f"data:image/png;base64,{data['encodedImage']}",
            payload=data["payload"],
            expiration=data.get("expirationDate"),
        )

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def find_or_create_customer(self, billing: BillingInfoDTO, external_reference: str) -> str:
        found = self._request(
            "GET",
            "/customers",
            params={"externalReference": external_reference},
            retryable=True,
        )
        matches = found.get("data") or []
        if matches and matches[0].get("id"):
            return matches[0]["id"]

        created = self._request(
            "POST",
            "/customers",
            json={
                "name": billing.name,
                "cpfCnpj": billing.cpf_cnpj,
                "email": billing.email,
                "mobilePhone": billing.phone or None,
                "postalCode": billing.postal_code or None,
                "address": billing.address or None,
                "addressNumber": billing.address_number or None,
                "complement": billing.complement or None,
                "province": billing.province or None,
                "externalReference": external_reference,
            },
        )
        logger.info("payment.customer_created", customer_id=created["id"])
        return created["id"]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _card_payload(total: Decimal, billing: BillingInfoDTO, card: CardDTO) -> dict:
        payload: dict[str, Any] = {
            "creditCard": {
                "holderName": card.holder_name,
                "number": card.number,
                "expiryMonth": card.expiry_month,
                "expiryYear": card.expiry_year,
                "ccv": card.ccv,
            },
            "creditCardHolderInfo": {
                "name": billing.name,
                "email": billing.email,
                "cpfCnpj": billing.cpf_cnpj,
                "postalCode": billing.postal_code or "00000000",
                "addressNumber": billing.address_number or "S/N",
                "addressComplement": billing.complement or None,
                "mobilePhone": billing.phone or None,
            },
        }
        if card.installments > 1:
            installment_value = (total / card.installments).quantize(CENTS, ROUND_HALF_UP)
            payload["installmentCount"] = card.installments
            payload["installmentValue"] = float(installment_value)
        return payload

    @staticmethod
    def _status_from(data: dict) -> PaymentStatusDTO:
        raw_status = "DELETED" if data.get("deleted") else data.get("status")
        return PaymentStatusDTO(
            payment_id=data["id"],
            status=to_payment_status(raw_status),
            value=data.get("value"),
            paid_value=data.get("netValue"),
            paid_at=data.get("paymentDate"),
        )

    def _request(self, method: str, path: str, *, retryable: bool = False, **kwargs) -> dict:
        try:
            resp = send(
                self._client,
                method,
                path,
                retryable=retryable,
                headers=request_headers(),
                **kwargs,
            )
        except httpx.RequestError as exc:
            logger.error("payment.provider_unreachable", method=method, path=path, error=str(exc))
            raise PaymentProviderError("Payment provider is unreachable.") from exc

        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.warning(
                "payment.provider_error",
                method=method,
                path=path,
                status_code=resp.status_code,
                reason=message,
            )
            raise PaymentProviderError(message)

        if not resp.content:
            return {}
        return resp.json()


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    errors = body.get("errors") if isinstance(body, dict) else None
    if errors and errors[0].get("description"):
        return errors[0]["description"]
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return f"HTTP {resp.status_code}"
