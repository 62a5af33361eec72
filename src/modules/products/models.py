"""Catalog models: Category and Product.

Rules enforced here:
- Price must be greater than zero; cost and promotional prices are optional.
- Stock quantity is never negative (``PositiveIntegerField`` + check
  constraint); decrements go through ``InventoryLedger``.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.text import slugify

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class Category(SoftDeleteModel):
    name = models.CharField(max_length=120)
    slug = models.SlugField(max_length=140, unique=True)
    description = models.TextField(blank=True, default="")
    image = models.URLField(max_length=500, blank=True, default="")
    parent = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="children",
    )
    order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "categories"
        ordering = ["order", "name"]
        verbose_name_plural = "categories"

    def save(self, *args, **kwargs) -> None:
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.name


class Product(SoftDeleteModel):
    """Product aggregate root.

    ``colors`` holds ``{"name": ..., "hex": ...}`` entries and ``sizes``
    plain labels ("P", "M", "G"...).
    """

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    cost_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    promotional_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    images = models.JSONField(default=list, blank=True)
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )
    stock_quantity = models.PositiveIntegerField(default=0)
    min_stock = models.PositiveIntegerField(null=True, blank=True)
    sizes = models.JSONField(default=list, blank=True)
    colors = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="products_active_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        if self.promotional_price is not None and self.promotional_price <= 0:
            raise ValidationError(
                {"promotional_price": "Promotional price must be greater than zero."}
            )

    @property
    def effective_price(self) -> Decimal:
        """Price a buyer pays today: the promotional price when set."""
        if self.promotional_price is not None:
            return self.promotional_price
        return self.price

    @property
    def main_image(self) -> Optional[str]:
        return self.images[0] if self.images else None

    @property
    def is_low_stock(self) -> bool:
        return self.min_stock is not None and self.stock_quantity <= self.min_stock

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info("product.created", product_id=str(self.id), name=self.name)

    def __str__(self) -> str:
        return self.name
