from __future__ import annotations

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.orders.constants import PaymentMethod
from modules.orders.dtos import (
    BuyerDTO,
    CreateOrderDTO,
    CreateOrderItemDTO,
    OrderPricingDTO,
    ShippingAddressDTO,
    ShippingMethodDTO,
)
from modules.orders.factories import build_order_service
from modules.products.models import Product

User = get_user_model()

BLACK = {"name": "Preto", "hex": "#000000"}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Carts live in the cache, which outlives the per-test transaction."""
    cache.clear()
    yield
    cache.clear()


# ---------------------------------------------------------------------------
# Clients and principals
# ---------------------------------------------------------------------------


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def buyer_user():
    return User.objects.create_user(
        username="maria", password="testpass123", email="maria@example.com"
    )


@pytest.fixture()
def other_buyer():
    return User.objects.create_user(
        username="joana", password="testpass123", email="joana@example.com"
    )


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="atendente", password="testpass123", email="loja@example.com", is_staff=True
    )


@pytest.fixture()
def buyer_client(buyer_user):
    client = APIClient()
    client.force_authenticate(user=buyer_user)
    return client


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def product_factory():
    """Create products with sensible apparel defaults."""
    counter = {"n": 0}

    def _make(**overrides) -> Product:
        counter["n"] += 1
        defaults = {
            "name": f"Vestido {counter['n']}",
            "price": Decimal("100.00"),
            "stock_quantity": 10,
            "sizes": ["P", "M", "G"],
            "colors": [BLACK],
            "images": ["https://cdn.example.com/vestido.jpg"],
        }
        defaults.update(overrides)
        return Product.objects.create(**defaults)

    return _make


@pytest.fixture()
def product(product_factory):
    return product_factory(name="Vestido Midi", price=Decimal("100.00"), stock_quantity=10)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return build_order_service()


@pytest.fixture()
def buyer():
    return BuyerDTO(id="buyer-1", name="Maria Silva", email="maria@example.com", phone="98991234567")


@pytest.fixture()
def checkout_dto(buyer):
    """Build a ``CreateOrderDTO`` from ``(product, quantity)`` pairs."""

    def _make(
        lines,
        payment_method=PaymentMethod.PIX,
        shipping_cost=Decimal("15.00"),
        discount=Decimal("0.00"),
        idempotency_key=None,
        buyer_dto=None,
    ) -> CreateOrderDTO:
        return CreateOrderDTO(
            buyer=buyer_dto or buyer,
            items=[
                CreateOrderItemDTO(product_id=product.id, quantity=quantity, size="M")
                for product, quantity in lines
            ],
            payment_method=payment_method,
            pricing=OrderPricingDTO(shipping_cost=shipping_cost, discount=discount),
            shipping_method=ShippingMethodDTO(
                id="pac", name="PAC", type="correios", carrier="Correios", cost=shipping_cost
            ),
            shipping_address=ShippingAddressDTO(
                zip_code="65075-000",
                street="Rua das Flores",
                number="10",
                city="São Luís",
                state="ma",
            ),
            idempotency_key=idempotency_key,
        )

    return _make


@pytest.fixture()
def pending_order(order_service, checkout_dto, product):
    """A PENDING order for 2 units of ``product`` (stock 10 -> 8)."""
    return order_service.create_order(checkout_dto([(product, 2)])).unwrap()
