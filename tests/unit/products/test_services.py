"""Unit tests for ProductService backed by the Django repositories."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.products.dtos import (
    ColorDTO,
    CreateCategoryDTO,
    CreateProductDTO,
    UpdateProductDTO,
)
from modules.products.exceptions import (
    CategoryAlreadyExists,
    CategoryNotFound,
    ProductNotFound,
)
from modules.products.repositories.django_repository import (
    CategoryDjangoRepository,
    ProductDjangoRepository,
)
from modules.products.services import ProductService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return ProductService(ProductDjangoRepository(), CategoryDjangoRepository())


@pytest.fixture()
def category(service):
    return service.create_category(CreateCategoryDTO(name="Vestidos"))


# ===========================================================================
# Products
# ===========================================================================


class TestCreateProduct:
    def test_create_with_variants(self, service, category):
        product = service.create_product(
            CreateProductDTO(
                name="  Vestido Longo  ",
                price=Decimal("259.90"),
                promotional_price=Decimal("199.90"),
                category_id=category.id,
                stock_quantity=5,
                sizes=["P", "M"],
                colors=[ColorDTO(name="Rosa", hex="#f4a7b9")],
            )
        )

        assert product.name == "Vestido Longo"
        assert product.category == category
        assert product.colors == [{"name": "Rosa", "hex": "#F4A7B9"}]
        assert product.effective_price == Decimal("199.90")

    def test_unknown_category(self, service):
        with pytest.raises(CategoryNotFound):
            service.create_product(
                CreateProductDTO(name="Saia", price=Decimal("80"), category_id=uuid4())
            )


class TestUpdateAndDelete:
    def test_update_applies_only_supplied_fields(self, service, product):
        updated = service.update_product(
            str(product.id), UpdateProductDTO(price=Decimal("120.00"))
        )
        assert updated.price == Decimal("120.00")
        assert updated.name == "Vestido Midi"
        assert updated.stock_quantity == 10

    def test_update_unknown_product(self, service):
        with pytest.raises(ProductNotFound):
            service.update_product(str(uuid4()), UpdateProductDTO(name="x"))

    def test_delete_is_soft(self, service, product):
        service.delete_product(str(product.id))
        with pytest.raises(ProductNotFound):
            service.get_product(str(product.id))

    def test_low_stock_lists_products_at_threshold(self, service, product_factory):
        low = product_factory(stock_quantity=2, min_stock=2)
        product_factory(stock_quantity=9, min_stock=2)
        product_factory(stock_quantity=0)

        assert service.list_low_stock() == [low]


class TestCategories:
    def test_slug_is_derived_from_name(self, category):
        assert category.slug == "vestidos"

    def test_duplicate_slug_is_rejected(self, service, category):
        with pytest.raises(CategoryAlreadyExists):
            service.create_category(CreateCategoryDTO(name="Vestidos"))

    def test_list_active_only(self, service, category):
        service.create_category(CreateCategoryDTO(name="Arquivados", is_active=False))
        assert [c.slug for c in service.list_categories(active_only=True)] == ["vestidos"]


# ===========================================================================
# DTO validation
# ===========================================================================


class TestProductDTOs:
    def test_promotion_must_be_below_price(self):
        with pytest.raises(ValidationError):
            CreateProductDTO(
                name="Blusa", price=Decimal("50"), promotional_price=Decimal("50")
            )

    @pytest.mark.parametrize("price", [Decimal("0"), Decimal("-1")])
    def test_price_must_be_positive(self, price):
        with pytest.raises(ValidationError):
            CreateProductDTO(name="Blusa", price=price)

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError):
            CreateProductDTO(name="Blusa", price=Decimal("50"), stock_quantity=-1)

    def test_color_hex_is_validated(self):
        with pytest.raises(ValidationError):
            ColorDTO(name="Azul", hex="blue")
