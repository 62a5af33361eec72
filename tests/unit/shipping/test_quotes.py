"""Shipping quotes: provider chain, stored methods and SuperFrete adapter."""

from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest
from pydantic import ValidationError

from modules.shipping.dtos import ShippingQuoteDTO, ShippingQuoteRequestDTO
from modules.shipping.exceptions import ShippingProviderError
from modules.shipping.models import ShippingMethod, ShippingType
from modules.shipping.providers import (
    IShippingQuoteProvider,
    StoredMethodsProvider,
    SuperFreteProvider,
)
from modules.shipping.regions import region_for_state
from modules.shipping.repositories.django_repository import ShippingMethodDjangoRepository
from modules.shipping.services import ShippingQuoteService

pytestmark = pytest.mark.unit


def _quote(id, cost, provider="fake"):
    return ShippingQuoteDTO(id=id, name=id.upper(), cost=Decimal(cost), provider=provider)


def _request(**overrides):
    fields = {"zip_code": "65075-000", "state": "MA", "order_value": Decimal("150.00")}
    fields.update(overrides)
    return ShippingQuoteRequestDTO(**fields)


class StaticProvider(IShippingQuoteProvider):
    def __init__(self, name, quotes=None, error=None):
        self.name = name
        self._quotes = quotes or []
        self._error = error
        self.calls = 0

    def quote(self, request):
        self.calls += 1
        if self._error:
            raise self._error
        return list(self._quotes)


# ===========================================================================
# ShippingQuoteService
# ===========================================================================


class TestQuoteService:
    def test_first_non_empty_provider_wins(self):
        empty = StaticProvider("empty")
        carrier = StaticProvider("carrier", [_quote("sedex", "30.00"), _quote("pac", "18.00")])
        never = StaticProvider("never", [_quote("x", "1.00")])
        fallback = StaticProvider("stored", [_quote("stored", "5.00")])

        quotes = ShippingQuoteService([empty, carrier, never], fallback).quote(_request())

        assert [q.id for q in quotes] == ["pac", "sedex"]
        assert never.calls == 0
        assert fallback.calls == 0

    def test_failing_providers_fall_back_to_stored_methods(self):
        broken = StaticProvider("carrier", error=ShippingProviderError("HTTP 500"))
        fallback = StaticProvider("stored", [_quote("motoboy", "10.00")])

        quotes = ShippingQuoteService([broken], fallback).quote(_request())

        assert [q.id for q in quotes] == ["motoboy"]

    def test_fallback_failure_yields_no_quotes(self):
        fallback = StaticProvider("stored", error=ShippingProviderError("down"))
        assert ShippingQuoteService([], fallback).quote(_request()) == []

    @pytest.mark.parametrize(
        "order_value,expected",
        [("299.99", Decimal("18.00")), ("300.00", Decimal("0.00"))],
    )
    def test_store_wide_free_shipping(self, order_value, expected):
        carrier = StaticProvider("carrier", [_quote("pac", "18.00")])
        service = ShippingQuoteService(
            [carrier], StaticProvider("stored"), free_shipping_above=Decimal("300.00")
        )

        quotes = service.quote(_request(order_value=Decimal(order_value)))
        assert quotes[0].cost == expected


# ===========================================================================
# StoredMethodsProvider
# ===========================================================================


class TestStoredMethods:
    @pytest.fixture()
    def provider(self):
        ShippingMethod.objects.create(
            name="PAC",
            cost=Decimal("25.00"),
            estimated_days=8,
            provider="Correios",
            region_costs=[{"region": "nordeste", "cost": "18.90"}],
        )
        ShippingMethod.objects.create(
            name="Motoboy",
            type=ShippingType.MOTOBOY,
            cost=Decimal("12.00"),
            min_order_value=Decimal("100.00"),
            free_shipping_above=Decimal("200.00"),
        )
        ShippingMethod.objects.create(name="Antigo", cost=Decimal("1.00"), is_active=False)
        return StoredMethodsProvider(ShippingMethodDjangoRepository())

    def test_region_price_and_inactive_methods(self, provider):
        quotes = {q.name: q for q in provider.quote(_request(state="MA"))}

        assert set(quotes) == {"PAC", "Motoboy"}
        assert quotes["PAC"].cost == Decimal("18.90")
        assert quotes["PAC"].carrier == "Correios"
        assert quotes["Motoboy"].type == "motoboy"

    def test_base_cost_outside_priced_regions(self, provider):
        quotes = {q.name: q for q in provider.quote(_request(state="SP"))}
        assert quotes["PAC"].cost == Decimal("25.00")

    def test_minimum_order_value(self, provider):
        quotes = provider.quote(_request(order_value=Decimal("99.99")))
        assert [q.name for q in quotes] == ["PAC"]

    def test_per_method_free_shipping(self, provider):
        quotes = {q.name: q for q in provider.quote(_request(order_value=Decimal("200.00")))}
        assert quotes["Motoboy"].cost == Decimal("0.00")
        assert quotes["PAC"].cost == Decimal("18.90")


# ===========================================================================
# SuperFreteProvider
# ===========================================================================


class TestSuperFrete:
    @staticmethod
    def _provider(handler, token="sf-token"):
        return SuperFreteProvider(
            base_url="https://sandbox.superfrete.test/api/v0",
            token=token,
            origin_zip="65058619",
            services="1,2",
            transport=httpx.MockTransport(handler),
        )

    def test_maps_priced_services(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(
                200,
                json=[
                    {
                        "id": 1,
                        "name": "PAC",
                        "price": "22.35",
                        "delivery_range": {"min": 5, "max": 9},
                        "company": {"name": "Correios"},
                    },
                    {"id": 2, "name": "SEDEX", "price": 41.2, "delivery_time": 3},
                    {"id": 17, "name": "Mini Envios", "error": "Peso excedido"},
                    {"id": 3, "name": "Jadlog", "price": None},
                ],
            )

        quotes = self._provider(handler).quote(_request(item_count=2))

        assert [(q.id, q.cost, q.estimated_days) for q in quotes] == [
            ("1", Decimal("22.35"), 9),
            ("2", Decimal("41.2"), 3),
        ]
        assert quotes[0].carrier == "Correios"
        assert quotes[0].provider == "superfrete"

        body = json.loads(seen[0].content)
        assert seen[0].url.path.endswith("/calculator")
        assert seen[0].headers["Authorization"] == "Bearer sf-token"
        assert body["from"]["postal_code"] == "65058619"
        assert body["to"]["postal_code"] == "65075000"
        assert body["services"] == "1,2"
        assert body["products"][0]["quantity"] == 2

    def test_http_error(self):
        provider = self._provider(lambda request: httpx.Response(401, json={"message": "token"}))
        with pytest.raises(ShippingProviderError, match="HTTP 401"):
            provider.quote(_request())

    def test_unexpected_payload(self):
        provider = self._provider(lambda request: httpx.Response(200, json={"error": "x"}))
        with pytest.raises(ShippingProviderError):
            provider.quote(_request())

    def test_unconfigured_provider_refuses(self):
        provider = self._provider(lambda request: httpx.Response(200, json=[]), token="")
        assert provider.is_configured is False
        with pytest.raises(ShippingProviderError):
            provider.quote(_request())

    def test_unreachable_after_retries(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            raise httpx.ConnectTimeout("timeout")

        with pytest.raises(ShippingProviderError, match="unreachable"):
            self._provider(handler).quote(_request())
        assert len(attempts) == 3


# ===========================================================================
# DTOs and regions
# ===========================================================================


class TestQuoteRequest:
    def test_zip_code_is_normalized(self):
        assert _request(zip_code="65075-000").zip_code == "65075000"

    @pytest.mark.parametrize("zip_code", ["6507500", "650750000", "abc"])
    def test_zip_code_needs_eight_digits(self, zip_code):
        with pytest.raises(ValidationError):
            _request(zip_code=zip_code)


@pytest.mark.parametrize(
    "state,region",
    [("ma", "nordeste"), ("SP", "sudeste"), (" rs ", "sul"), ("XX", None), (None, None)],
)
def test_region_for_state(state, region):
    assert region_for_state(state) == region
