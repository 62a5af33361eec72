"""Payment gateway port.

The order lifecycle sees the payment provider only through this contract.
Adapters raise ``PaymentProviderError`` for any provider-side failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.payments.dtos import (
        BillingInfoDTO,
        CardDTO,
        ChargeDTO,
        PaymentStatusDTO,
        PixQrCodeDTO,
    )


class IPaymentGateway(ABC):
    """Abstract payment provider."""

    @abstractmethod
    def create_charge(
        self, order: Order, billing: BillingInfoDTO, card: Optional[CardDTO] = None
    ) -> ChargeDTO:
        """Create a charge for the order total."""

    @abstractmethod
    def check_status(self, payment_id: str) -> PaymentStatusDTO:
        """Fetch the provider's view of a charge."""

    @abstractmethod
    def cancel(self, payment_id: str) -> None:
        """Cancel an unpaid charge."""

    @abstractmethod
    def refund(
        self, payment_id: str, value: Optional[Decimal] = None, description: str = ""
    ) -> PaymentStatusDTO:
        """Refund a settled charge, fully when *value* is omitted."""

    @abstractmethod
    def get_pix_qr_code(self, payment_id: str) -> PixQrCodeDTO:
        """Fetch the PIX QR code (image and copy-and-paste payload)."""
