"""Unit tests for the inventory ledger under both oversell policies."""

from __future__ import annotations

from uuid import uuid4

import pytest
from django.db import IntegrityError, transaction

from modules.core.results import DomainError
from modules.products.exceptions import InsufficientStock, ProductNotFound
from modules.products.inventory import InventoryLedger, StockPolicy
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return ProductDjangoRepository()


def _stock(product) -> int:
    product.refresh_from_db()
    return product.stock_quantity


class TestRejectPolicy:
    def test_default_policy_comes_from_settings(self, repo, settings):
        settings.INVENTORY_OVERSELL_POLICY = "reject"
        assert InventoryLedger(repo).policy is StockPolicy.REJECT

    def test_decrement_returns_remaining_stock(self, repo, product):
        ledger = InventoryLedger(repo, StockPolicy.REJECT)
        assert ledger.decrement(product.id, 3) == 7
        assert _stock(product) == 7

    def test_decrement_whole_stock(self, repo, product):
        assert InventoryLedger(repo, "reject").decrement(product.id, 10) == 0

    def test_oversell_is_rejected_and_stock_untouched(self, repo, product):
        ledger = InventoryLedger(repo, StockPolicy.REJECT)
        with pytest.raises(InsufficientStock) as excinfo:
            ledger.decrement(product.id, 11)
        assert "available 10" in str(excinfo.value)
        assert _stock(product) == 10


class TestClampPolicy:
    def test_oversell_floors_stock_at_zero(self, repo, product):
        ledger = InventoryLedger(repo, StockPolicy.CLAMP)
        assert ledger.decrement(product.id, 15) == 0
        assert _stock(product) == 0

    def test_regular_decrement(self, repo, product):
        assert InventoryLedger(repo, "clamp").decrement(product.id, 4) == 6


class TestRestoreAndValidation:
    def test_restore_adds_the_full_quantity(self, repo, product):
        ledger = InventoryLedger(repo, StockPolicy.REJECT)
        ledger.decrement(product.id, 4)
        assert ledger.restore(product.id, 4) == 10

    def test_unknown_product(self, repo):
        ledger = InventoryLedger(repo, StockPolicy.REJECT)
        with pytest.raises(ProductNotFound):
            ledger.decrement(uuid4(), 1)
        with pytest.raises(ProductNotFound):
            ledger.restore(uuid4(), 1)

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_quantity_must_be_positive(self, repo, product, quantity):
        with pytest.raises(DomainError):
            InventoryLedger(repo, StockPolicy.REJECT).decrement(product.id, quantity)

    def test_unknown_policy_is_refused(self, repo):
        with pytest.raises(ValueError):
            InventoryLedger(repo, "backorder")


class TestStockConstraint:
    def test_database_refuses_negative_stock(self, product):
        with pytest.raises(IntegrityError), transaction.atomic():
            Product.objects.filter(id=product.id).update(stock_quantity=-1)

        assert _stock(product) == 10
