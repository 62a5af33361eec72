"""Payment exceptions."""

from __future__ import annotations

from modules.core.results import DomainError, ErrorCode


class PaymentProviderError(DomainError):
    """The payment provider rejected the request or could not be reached."""

    code = ErrorCode.PAYMENT_PROVIDER_FAILURE


class ChargeNotAllowed(DomainError):
    """The order cannot be charged through the payment provider."""
