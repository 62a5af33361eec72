"""Catalog DRF serializers (read side).

Writes go through the pydantic DTOs in ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Category, Product


class CategorySerializer(serializers.ModelSerializer):
    parent_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Category
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "image",
            "parent_id",
            "order",
            "is_active",
        ]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    """Read serializer for the Product resource."""

    category_id = serializers.UUIDField(read_only=True, allow_null=True)
    category_name = serializers.CharField(
        source="category.name", read_only=True, default=None
    )
    effective_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, read_only=True
    )
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "price",
            "promotional_price",
            "effective_price",
            "images",
            "category_id",
            "category_name",
            "stock_quantity",
            "min_stock",
            "is_low_stock",
            "sizes",
            "colors",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BackOfficeProductSerializer(ProductSerializer):
    """Adds the cost price, which is never exposed to buyers."""

    class Meta(ProductSerializer.Meta):
        fields = ProductSerializer.Meta.fields + ["cost_price"]
        read_only_fields = fields
