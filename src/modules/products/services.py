"""Catalog service layer (Use Cases).

Orchestrates business logic for products and categories, delegating
persistence to the injected repositories.  Stock is never written here
directly except through an explicit back-office stock edit; order-driven
changes go through ``InventoryLedger``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction
from django.utils.text import slugify

from modules.products.exceptions import (
    CategoryAlreadyExists,
    CategoryNotFound,
    ProductNotFound,
)
from modules.products.models import Category, Product

if TYPE_CHECKING:
    from modules.products.dtos import (
        CreateCategoryDTO,
        CreateProductDTO,
        UpdateProductDTO,
    )
    from modules.products.repositories.interfaces import (
        ICategoryRepository,
        IProductRepository,
    )

logger = structlog.get_logger(__name__)

_PLAIN_FIELDS = (
    "name",
    "price",
    "description",
    "cost_price",
    "promotional_price",
    "images",
    "stock_quantity",
    "min_stock",
    "sizes",
    "is_active",
)


class ProductService:
    """Application service for catalog use-cases."""

    def __init__(
        self,
        repository: IProductRepository,
        category_repository: Optional[ICategoryRepository] = None,
    ) -> None:
        self._repo = repository
        self._category_repo = category_repository

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        """Create a new product.

        Raises:
            CategoryNotFound: ``category_id`` does not match a category.
        """
        product = Product(
            name=dto.name,
            price=dto.price,
            description=dto.description,
            cost_price=dto.cost_price,
            promotional_price=dto.promotional_price,
            images=list(dto.images),
            category=self._resolve_category(dto.category_id),
            stock_quantity=dto.stock_quantity,
            min_stock=dto.min_stock,
            sizes=list(dto.sizes),
            colors=[color.model_dump() for color in dto.colors],
            is_active=dto.is_active,
        )
        product = self._repo.save(product)
        logger.info("product.registered", product_id=str(product.id))
        return product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Apply the supplied fields to an existing product.

        Raises:
            ProductNotFound: the product does not exist.
            CategoryNotFound: ``category_id`` does not match a category.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        supplied = dto.model_fields_set
        for field in _PLAIN_FIELDS:
            if field in supplied:
                setattr(product, field, getattr(dto, field))
        if "colors" in supplied and dto.colors is not None:
            product.colors = [color.model_dump() for color in dto.colors]
        if "category_id" in supplied:
            product.category = self._resolve_category(dto.category_id)

        product = self._repo.save(product)
        logger.info("product.updated", product_id=str(id), fields=sorted(supplied))
        return product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        """Soft-delete a product.

        Raises:
            ProductNotFound: the product does not exist.
        """
        if not self._repo.delete(id):
            raise ProductNotFound(f"Product {id} not found.")

    def get_product(self, id: str) -> Product:
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        return self._repo.list(filters)

    def list_low_stock(self) -> List[Product]:
        """Active products at or below their minimum-stock threshold."""
        products = self._repo.list_low_stock()
        if products:
            logger.info("product.low_stock_detected", count=len(products))
        return products

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_category(self, dto: CreateCategoryDTO) -> Category:
        """Create a category.

        Raises:
            CategoryAlreadyExists: the slug is taken.
            CategoryNotFound: ``parent_id`` does not match a category.
        """
        repo = self._categories()
        slug = slugify(dto.slug or dto.name)
        if repo.get_by_slug(slug):
            raise CategoryAlreadyExists(f"Category '{slug}' already exists.")

        category = Category(
            name=dto.name,
            slug=slug,
            description=dto.description,
            image=dto.image,
            parent=self._resolve_category(dto.parent_id),
            order=dto.order,
            is_active=dto.is_active,
        )
        return repo.save(category)

    def list_categories(self, active_only: bool = False) -> List[Category]:
        filters = {"is_active": True} if active_only else None
        return self._categories().list(filters)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _categories(self) -> ICategoryRepository:
        if self._category_repo is None:
            raise RuntimeError("ProductService was built without a category repository.")
        return self._category_repo

    def _resolve_category(self, category_id) -> Optional[Category]:
        if category_id is None:
            return None
        category = self._categories().get_by_id(str(category_id))
        if not category:
            raise CategoryNotFound(f"Category {category_id} not found.")
        return category
