"""Shipping quote providers.

``IShippingQuoteProvider`` is the pluggable quoting port.  Providers raise
``ShippingProviderError`` when they cannot answer; the quote service
decides what to fall back to.

- ``SuperFreteProvider``: SuperFrete calculator API over ``httpx``.
- ``StoredMethodsProvider``: the back-office configured methods, priced
  by destination region and per-method free-shipping threshold.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, List, Optional

import httpx
import structlog
from django.conf import settings

from modules.core.http import request_headers, send
from modules.shipping.dtos import ShippingQuoteDTO
from modules.shipping.exceptions import ShippingProviderError
from modules.shipping.regions import region_for_state

if TYPE_CHECKING:
    from modules.shipping.dtos import ShippingQuoteRequestDTO
    from modules.shipping.repositories.interfaces import IShippingMethodRepository

logger = structlog.get_logger(__name__)


class IShippingQuoteProvider(ABC):
    name: str = ""

    @abstractmethod
    def quote(self, request: ShippingQuoteRequestDTO) -> List[ShippingQuoteDTO]:
        """Return the priced options for *request*."""


class SuperFreteProvider(IShippingQuoteProvider):
    name = "superfrete"

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        origin_zip: Optional[str] = None,
        services: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._token = token if token is not None else settings.SUPERFRETE_TOKEN
        self._origin_zip = origin_zip or settings.SHIPPING_ORIGIN_ZIP
        self._services = services or settings.SUPERFRETE_SERVICES
        self._client = httpx.Client(
            base_url=base_url or settings.SUPERFRETE_API_URL,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Content-Type": "application/json",
            },
            timeout=settings.HTTP_TIMEOUT_SECS,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._token)

    def quote(self, request: ShippingQuoteRequestDTO) -> List[ShippingQuoteDTO]:
        if not self.is_configured:
            raise ShippingProviderError("SuperFrete is not configured.")

        payload = {
            "from": {"postal_code": self._origin_zip},
            "to": {"postal_code": request.zip_code},
            "services": self._services,
            "options": {
                "own_hand": False,
                "receipt": False,
                "insurance_value": float(request.order_value),
                "use_insurance_value": False,
            },
            "products": [
                {
                    "quantity": request.item_count,
                    "weight": float(request.weight_kg),
                    "height": request.height_cm,
                    "width": request.width_cm,
                    "length": request.length_cm,
                }
            ],
        }
        try:
            # The calculator is a read-only lookup, safe to retry.
            resp = send(
                self._client,
                "POST",
                "/calculator",
                retryable=True,
                json=payload,
                headers=request_headers(),
            )
        except httpx.RequestError as exc:
            raise ShippingProviderError("SuperFrete is unreachable.") from exc

        if resp.status_code >= 400:
            raise ShippingProviderError(f"SuperFrete answered HTTP {resp.status_code}.")
        try:
            body = resp.json()
        except ValueError as exc:
            raise ShippingProviderError("SuperFrete answered with invalid JSON.") from exc
        if not isinstance(body, list):
            raise ShippingProviderError("SuperFrete answered with an unexpected payload.")

        return [quote for quote in map(self._to_quote, body) if quote is not None]

    def _to_quote(self, entry: dict) -> Optional[ShippingQuoteDTO]:
        if entry.get("error") or entry.get("has_error") or entry.get("price") in (None, ""):
            return None
        try:
            cost = Decimal(str(entry["price"]))
        except InvalidOperation:
            return None
        delivery = entry.get("delivery_range") or {}
        company = entry.get("company") or {}
        return ShippingQuoteDTO(
            id=str(entry.get("id") or entry.get("service_id")),
            name=entry.get("name") or company.get("name", ""),
            type="correios",
            carrier=company.get("name", ""),
            cost=cost,
            estimated_days=int(delivery.get("max") or entry.get("delivery_time") or 0),
            provider=self.name,
        )


class StoredMethodsProvider(IShippingQuoteProvider):
    name = "stored"

    def __init__(self, repository: IShippingMethodRepository) -> None:
        self._repo = repository

    def quote(self, request: ShippingQuoteRequestDTO) -> List[ShippingQuoteDTO]:
        region = region_for_state(request.state)
        quotes = []
        for method in self._repo.list_active():
            if method.min_order_value is not None and request.order_value < method.min_order_value:
                continue
            cost = method.cost_for_region(region)
            if (
                method.free_shipping_above is not None
                and request.order_value >= method.free_shipping_above
            ):
                cost = Decimal("0.00")
            quotes.append(
                ShippingQuoteDTO(
                    id=str(method.id),
                    name=method.name,
                    type=method.type,
                    carrier=method.provider,
                    cost=cost,
                    estimated_days=method.estimated_days,
                    provider=self.name,
                )
            )
        return quotes
