"""Payment DTOs.

Contracts between the payment views, ``PaymentService`` and the gateway
adapters.  DTOs are immutable (``frozen=True``).

Validation rules:
- ``cpf_cnpj`` accepts formatted or raw input and must be a valid CPF
  (11 digits) or CNPJ (14 digits), checked with *validate-docbr*.
- Card numbers are stored without spaces; installments range 1..12.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from validate_docbr import CNPJ, CPF

from modules.orders.constants import PaymentStatus


class BillingInfoDTO(BaseModel):
    """Buyer data the payment provider needs to issue a charge."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: EmailStr
    cpf_cnpj: str
    phone: str = ""
    postal_code: str = ""
    address: str = ""
    address_number: str = ""
    complement: str = ""
    province: str = ""

    @field_validator("cpf_cnpj", "postal_code", "phone", mode="before")
    @classmethod
    def digits_only(cls, v: str) -> str:
        if not isinstance(v, str):
            return v
        return re.sub(r"\D", "", v)

    @field_validator("cpf_cnpj")
    @classmethod
    def validate_document(cls, v: str) -> str:
        validator = CPF() if len(v) == 11 else CNPJ()
        if not validator.validate(v):
            raise ValueError("Invalid CPF/CNPJ number.")
        return v


class CardDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    holder_name: str
    number: str
    expiry_month: str
    expiry_year: str
    ccv: str
    installments: int = Field(default=1, ge=1, le=12)

    @field_validator("number", mode="before")
    @classmethod
    def strip_spaces(cls, v: str) -> str:
        if not isinstance(v, str):
            return v
        return re.sub(r"\s", "", v)


class ChargeDTO(BaseModel):
    """A charge created at the provider, with its payment references."""

    model_config = ConfigDict(frozen=True)

    payment_id: str
    status: PaymentStatus = PaymentStatus.PENDING
    invoice_url: Optional[str] = None
    bank_slip_url: Optional[str] = None
    qr_image: Optional[str] = None
    qr_payload: Optional[str] = None
    qr_expiration: Optional[str] = None

    @property
    def payment_link(self) -> Optional[str]:
        return self.invoice_url or self.bank_slip_url


class PaymentStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_id: str
    status: PaymentStatus
    value: Optional[Decimal] = None
    paid_value: Optional[Decimal] = None
    paid_at: Optional[str] = None


class PixQrCodeDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    image: str
    payload: str
    expiration: Optional[str] = None


class WebhookEventDTO(BaseModel):
    """A provider notification about a charge."""

    model_config = ConfigDict(frozen=True)

    event: str
    payment_id: Optional[str] = None
    external_reference: Optional[str] = None
    status: Optional[str] = None
