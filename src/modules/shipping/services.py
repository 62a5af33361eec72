"""Shipping quote service.

Asks the carrier providers in order and takes the first non-empty answer.
When every provider fails or answers nothing, the stored methods are
offered instead.  Provider failures are logged, never raised.

The store-wide free-shipping threshold zeroes every quote once the order
value reaches it.  Quotes come back cheapest first.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Sequence

import structlog

from modules.shipping.exceptions import ShippingProviderError

if TYPE_CHECKING:
    from modules.shipping.dtos import ShippingQuoteDTO, ShippingQuoteRequestDTO
    from modules.shipping.providers import IShippingQuoteProvider

logger = structlog.get_logger(__name__)


class ShippingQuoteService:
    def __init__(
        self,
        providers: Sequence[IShippingQuoteProvider],
        fallback: IShippingQuoteProvider,
        free_shipping_above: Optional[Decimal] = None,
    ) -> None:
        self._providers = list(providers)
        self._fallback = fallback
        self._free_shipping_above = free_shipping_above

    def quote(self, request: ShippingQuoteRequestDTO) -> List[ShippingQuoteDTO]:
        log = logger.bind(zip_code=request.zip_code, order_value=str(request.order_value))

        quotes: List[ShippingQuoteDTO] = []
        for provider in self._providers:
            try:
                quotes = provider.quote(request)
            except ShippingProviderError as exc:
                log.warning("shipping.provider_failed", provider=provider.name, reason=str(exc))
                continue
            if quotes:
                log.info("shipping.quoted", provider=provider.name, count=len(quotes))
                break

        if not quotes:
            try:
                quotes = self._fallback.quote(request)
            except ShippingProviderError as exc:
                log.error("shipping.fallback_failed", reason=str(exc))
                quotes = []
            log.info("shipping.quoted", provider=self._fallback.name, count=len(quotes))

        if (
            self._free_shipping_above is not None
            and request.order_value >= self._free_shipping_above
        ):
            quotes = [quote.with_cost(Decimal("0.00")) for quote in quotes]

        return sorted(quotes, key=lambda quote: quote.cost)
