"""Order and point-of-sale endpoints through the DRF stack."""

from __future__ import annotations

import pytest
from django.core import mail
from rest_framework.test import APIClient

from modules.products.models import Product

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


def _payload(product, quantity=2, **overrides):
    payload = {
        "items": [{"product_id": str(product.id), "quantity": quantity, "size": "M"}],
        "payment_method": "PIX",
        "shipping_method": {
            "id": "pac",
            "name": "PAC",
            "type": "correios",
            "carrier": "Correios",
            "cost": "15.00",
            "estimated_days": 8,
        },
        "shipping_address": {
            "zip_code": "65075-000",
            "street": "Rua das Flores",
            "number": "10",
            "city": "São Luís",
            "state": "MA",
        },
    }
    payload.update(overrides)
    return payload


def _stock(product) -> int:
    return Product.objects.get(id=product.id).stock_quantity


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def other_client(other_buyer):
    client = APIClient()
    client.force_authenticate(user=other_buyer)
    return client


@pytest.fixture()
def placed_order(buyer_client, product):
    response = buyer_client.post(ORDERS_URL, _payload(product), format="json")
    assert response.status_code == 201
    return response.json()


# ===========================================================================
# Checkout
# ===========================================================================


class TestCreateOrder:
    def test_creates_pending_order_and_reserves_stock(self, buyer_client, buyer_user, product):
        response = buyer_client.post(ORDERS_URL, _payload(product), format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["payment_status"] == "PENDING"
        assert data["buyer_id"] == str(buyer_user.pk)
        assert data["buyer_email"] == "maria@example.com"
        assert data["total"] == "215.00"
        assert data["items"][0]["product_name"] == "Vestido Midi"
        assert data["items"][0]["quantity"] == 2
        assert data["status_history"][0]["new_status"] == "PENDING"
        assert _stock(product) == 8

    def test_anonymous_checkout_is_rejected(self, api_client, product):
        response = api_client.post(ORDERS_URL, _payload(product), format="json")
        assert response.status_code == 401

    def test_buyer_discount_is_ignored(self, buyer_client, product):
        response = buyer_client.post(
            ORDERS_URL, _payload(product, discount="20.00"), format="json"
        )
        assert response.json()["total"] == "215.00"

    def test_back_office_discount_is_applied(self, staff_client, product):
        response = staff_client.post(
            ORDERS_URL, _payload(product, discount="20.00"), format="json"
        )
        assert response.json()["total"] == "195.00"

    def test_idempotency_key_returns_the_same_order(self, buyer_client, product):
        first = buyer_client.post(
            ORDERS_URL, _payload(product), format="json", HTTP_IDEMPOTENCY_KEY="chk-1"
        )
        second = buyer_client.post(
            ORDERS_URL, _payload(product), format="json", HTTP_IDEMPOTENCY_KEY="chk-1"
        )

        assert second.status_code == 201
        assert first.json()["id"] == second.json()["id"]
        assert _stock(product) == 8

    def test_idempotency_key_of_another_buyer_creates_a_new_order(
        self, buyer_client, other_client, product
    ):
        mine = buyer_client.post(
            ORDERS_URL, _payload(product), format="json", HTTP_IDEMPOTENCY_KEY="chk-1"
        )
        theirs = other_client.post(
            ORDERS_URL, _payload(product, quantity=1), format="json", HTTP_IDEMPOTENCY_KEY="chk-1"
        )

        assert theirs.status_code == 201
        assert theirs.json()["id"] != mine.json()["id"]
        assert theirs.json()["buyer_email"] == "joana@example.com"
        assert _stock(product) == 7

    def test_insufficient_stock_is_a_conflict(self, buyer_client, product):
        response = buyer_client.post(ORDERS_URL, _payload(product, quantity=11), format="json")

        assert response.status_code == 409
        assert response.json()["code"] == "INSUFFICIENT_STOCK"
        assert _stock(product) == 10

    def test_empty_items_are_rejected(self, buyer_client, product):
        response = buyer_client.post(ORDERS_URL, _payload(product, items=[]), format="json")
        assert response.status_code == 400

    def test_unknown_payment_method(self, buyer_client, product):
        response = buyer_client.post(
            ORDERS_URL, _payload(product, payment_method="CRYPTO"), format="json"
        )
        assert response.status_code == 400


# ===========================================================================
# Reading orders
# ===========================================================================


class TestReadOrders:
    def test_buyer_lists_only_own_orders(self, buyer_client, other_client, placed_order, product):
        other_client.post(ORDERS_URL, _payload(product, quantity=1), format="json")

        response = buyer_client.get(ORDERS_URL)

        assert response.status_code == 200
        assert [o["id"] for o in response.json()["results"]] == [placed_order["id"]]

    def test_back_office_lists_every_order(self, staff_client, other_client, placed_order, product):
        other_client.post(ORDERS_URL, _payload(product, quantity=1), format="json")

        response = staff_client.get(ORDERS_URL)

        assert response.json()["count"] == 2

    def test_list_filters_by_status(self, staff_client, placed_order):
        assert staff_client.get(ORDERS_URL, {"status": "pending"}).json()["count"] == 1
        assert staff_client.get(ORDERS_URL, {"status": "PAID"}).json()["count"] == 0

    def test_retrieve_own_order(self, buyer_client, placed_order):
        response = buyer_client.get(f"{ORDERS_URL}{placed_order['id']}/")
        assert response.status_code == 200
        assert response.json()["order_number"] == placed_order["order_number"]

    def test_someone_elses_order_is_not_found(self, other_client, placed_order):
        response = other_client.get(f"{ORDERS_URL}{placed_order['id']}/")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_unknown_order_is_not_found(self, staff_client):
        response = staff_client.get(f"{ORDERS_URL}not-a-uuid/")
        assert response.status_code == 404

    def test_by_number(self, buyer_client, placed_order):
        response = buyer_client.get(f"{ORDERS_URL}by-number/{placed_order['order_number']}/")

        assert response.status_code == 200
        assert response.json()["id"] == placed_order["id"]


# ===========================================================================
# Status changes
# ===========================================================================


class TestStatusChanges:
    def test_buyer_cannot_change_status(self, buyer_client, placed_order):
        response = buyer_client.patch(
            f"{ORDERS_URL}{placed_order['id']}/", {"status": "PAID"}, format="json"
        )
        assert response.status_code == 403

    def test_payment_then_shipping(self, staff_client, placed_order):
        url = f"{ORDERS_URL}{placed_order['id']}/"

        paid = staff_client.post(
            f"{url}payment-status/",
            {"payment_status": "RECEIVED", "payment_id": "pay_9"},
            format="json",
        )
        assert paid.status_code == 200
        assert paid.json()["status"] == "PAID"
        assert paid.json()["payment_id"] == "pay_9"
        assert paid.json()["paid_at"] is not None

        shipped = staff_client.patch(
            url, {"status": "SHIPPED", "tracking_code": "BR123456789BR"}, format="json"
        )
        assert shipped.status_code == 200
        assert shipped.json()["status"] == "SHIPPED"
        assert shipped.json()["tracking_code"] == "BR123456789BR"
        assert shipped.json()["shipped_at"] is not None

    def test_illegal_transition(self, staff_client, placed_order):
        response = staff_client.patch(
            f"{ORDERS_URL}{placed_order['id']}/", {"status": "DELIVERED"}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "ILLEGAL_TRANSITION"

    def test_buyer_cannot_record_payments(self, buyer_client, placed_order):
        response = buyer_client.post(
            f"{ORDERS_URL}{placed_order['id']}/payment-status/",
            {"payment_status": "RECEIVED"},
            format="json",
        )
        assert response.status_code == 403


class TestCancel:
    def test_owner_cancels_and_stock_returns(self, buyer_client, placed_order, product):
        response = buyer_client.post(
            f"{ORDERS_URL}{placed_order['id']}/cancel/", {"reason": "Desisti"}, format="json"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "CANCELLED"
        assert data["payment_status"] == "CANCELLED"
        assert "Cancelled: Desisti" in data["notes"]
        assert _stock(product) == 10

    def test_other_buyer_cannot_cancel(self, other_client, placed_order, product):
        response = other_client.post(f"{ORDERS_URL}{placed_order['id']}/cancel/", format="json")

        assert response.status_code == 404
        assert _stock(product) == 8

    def test_shipped_order_cannot_be_cancelled(self, staff_client, placed_order):
        url = f"{ORDERS_URL}{placed_order['id']}/"
        staff_client.post(f"{url}payment-status/", {"payment_status": "CONFIRMED"}, format="json")
        staff_client.patch(url, {"status": "SHIPPED"}, format="json")

        response = staff_client.post(f"{url}cancel/", format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "ILLEGAL_TRANSITION"


# ===========================================================================
# Point of sale
# ===========================================================================


class TestPointOfSale:
    URL = "/api/v1/pos/sales/"

    def test_counter_sale_is_settled(self, staff_client, product):
        response = staff_client.post(
            self.URL,
            {
                "items": [{"product_id": str(product.id), "quantity": 1, "size": "G"}],
                "payment_method": "CASH",
                "customer_name": "Joana",
            },
            format="json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PAID"
        assert data["payment_status"] == "RECEIVED"
        assert data["buyer_name"] == "Joana"
        assert data["shipping_method"]["type"] == "retirada"
        assert data["total"] == "100.00"
        assert _stock(product) == 9

    def test_buyers_cannot_use_the_counter(self, buyer_client, product):
        response = buyer_client.post(
            self.URL,
            {"items": [{"product_id": str(product.id), "quantity": 1}], "payment_method": "PIX"},
            format="json",
        )
        assert response.status_code == 403


# ===========================================================================
# Notifications after commit
# ===========================================================================


class TestNotifications:
    def test_confirmation_email_after_checkout(
        self, buyer_client, product, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            response = buyer_client.post(ORDERS_URL, _payload(product), format="json")

        number = response.json()["order_number"]
        assert [m.subject for m in mail.outbox] == [
            f"Pedido Confirmado - {number} - GessiElegance"
        ]
        assert mail.outbox[0].to == ["maria@example.com"]

    def test_failed_checkout_sends_nothing(
        self, buyer_client, product, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            buyer_client.post(ORDERS_URL, _payload(product, quantity=50), format="json")

        assert callbacks == []
        assert mail.outbox == []
