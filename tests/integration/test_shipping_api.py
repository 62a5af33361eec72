from __future__ import annotations

from decimal import Decimal

import pytest

from modules.shipping.models import ShippingMethod, ShippingType

pytestmark = pytest.mark.integration

QUOTES_URL = "/api/v1/shipping/quotes/"
METHODS_URL = "/api/v1/shipping/methods/"


@pytest.fixture()
def methods():
    pac = ShippingMethod.objects.create(
        name="PAC",
        cost=Decimal("25.00"),
        estimated_days=8,
        provider="Correios",
        region_costs=[{"region": "nordeste", "cost": "18.90"}],
    )
    motoboy = ShippingMethod.objects.create(
        name="Motoboy", type=ShippingType.MOTOBOY, cost=Decimal("12.00"), estimated_days=1
    )
    retired = ShippingMethod.objects.create(name="Antigo", cost=Decimal("5.00"), is_active=False)
    return {"pac": pac, "motoboy": motoboy, "retired": retired}


class TestQuotes:
    def test_stored_methods_answer_without_a_carrier_token(self, api_client, methods):
        response = api_client.post(
            QUOTES_URL,
            {"zip_code": "65075-000", "state": "MA", "order_value": "150.00"},
            format="json",
        )

        assert response.status_code == 200
        quotes = response.json()["quotes"]
        assert [(q["name"], q["cost"]) for q in quotes] == [
            ("Motoboy", "12.00"),
            ("PAC", "18.90"),
        ]
        assert quotes[1]["provider"] == "stored"
        assert quotes[1]["estimated_days"] == 8

    def test_invalid_zip_code(self, api_client, methods):
        response = api_client.post(QUOTES_URL, {"zip_code": "123"}, format="json")
        assert response.status_code == 400

    def test_no_methods_no_quotes(self, api_client):
        response = api_client.post(QUOTES_URL, {"zip_code": "01310-100"}, format="json")
        assert response.json() == {"quotes": []}


class TestMethods:
    def test_public_list_hides_inactive_methods(self, api_client, methods):
        response = api_client.get(METHODS_URL)

        assert response.status_code == 200
        assert {m["name"] for m in response.json()} == {"PAC", "Motoboy"}

    def test_back_office_sees_inactive_methods(self, staff_client, methods):
        assert len(staff_client.get(METHODS_URL).json()) == 3

    def test_back_office_creates_a_method(self, staff_client):
        response = staff_client.post(
            METHODS_URL,
            {
                "name": "Sedex",
                "cost": "35.00",
                "estimated_days": 3,
                "region_costs": [{"region": "sudeste", "cost": "29.90"}],
            },
            format="json",
        )

        assert response.status_code == 201
        method = ShippingMethod.objects.get(name="Sedex")
        assert method.cost_for_region("sudeste") == Decimal("29.90")

    def test_buyers_cannot_create_methods(self, buyer_client):
        response = buyer_client.post(METHODS_URL, {"name": "X", "cost": "1.00"}, format="json")
        assert response.status_code == 403
