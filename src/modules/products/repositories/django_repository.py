"""Django ORM implementation of the catalog repositories.

Look-ups return ``None`` instead of raising: the service layer decides
how to translate a missing entity.  Stock changes are single conditional
``UPDATE`` statements built from ``F()`` expressions, so concurrent
checkouts on the same product never lose updates.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Value
from django.db.models.functions import Greatest
from django.utils import timezone

from modules.products.models import Category, Product
from modules.products.repositories.interfaces import (
    ICategoryRepository,
    IProductRepository,
)

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a non-deleted product; ``None`` for unknown or invalid IDs."""
        try:
            return (
                Product.objects.alive().select_related("category").filter(id=id).first()
            )
        except (ValueError, ValidationError):
            return None

    def get_many(self, ids: List[str]) -> Dict[str, Product]:
        try:
            products = Product.objects.alive().filter(id__in=ids)
            return {str(product.id): product for product in products}
        except (ValueError, ValidationError):
            return {}

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"is_active": True}
            {"category__slug": "vestidos"}
        """
        queryset = Product.objects.alive().select_related("category")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Stock primitives
    # ------------------------------------------------------------------

    def decrement_stock(self, id: str, quantity: int, clamp: bool) -> Optional[int]:
        try:
            queryset = Product.objects.filter(id=id)
            if clamp:
                new_stock = Greatest(F("stock_quantity") - quantity, Value(0))
            else:
                queryset = queryset.filter(stock_quantity__gte=quantity)
                new_stock = F("stock_quantity") - quantity
            updated = queryset.update(
                stock_quantity=new_stock, updated_at=timezone.now()
            )
        except (ValueError, ValidationError):
            return None
        if not updated:
            return None
        return self._current_stock(id)

    def restore_stock(self, id: str, quantity: int) -> Optional[int]:
        try:
            updated = Product.objects.filter(id=id).update(
                stock_quantity=F("stock_quantity") + quantity,
                updated_at=timezone.now(),
            )
        except (ValueError, ValidationError):
            return None
        if not updated:
            return None
        return self._current_stock(id)

    def list_low_stock(self) -> List[Product]:
        return list(
            Product.objects.alive()
            .filter(
                is_active=True,
                min_stock__isnull=False,
                stock_quantity__lte=F("min_stock"),
            )
            .order_by("stock_quantity", "name")
        )

    @staticmethod
    def _current_stock(id: str) -> Optional[int]:
        return Product.objects.filter(id=id).values_list("stock_quantity", flat=True).first()


class CategoryDjangoRepository(ICategoryRepository):
    """Concrete Category repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Category]:
        try:
            return Category.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_slug(self, slug: str) -> Optional[Category]:
        return Category.objects.alive().filter(slug=slug).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Category]:
        queryset = Category.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Category) -> Category:
        entity.save()
        logger.info("category.saved", category_id=str(entity.id), slug=entity.slug)
        return entity
