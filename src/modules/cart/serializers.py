"""Cart DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.serializers import ColorInputSerializer


class AddCartItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, required=False, default=1)
    size = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    color = ColorInputSerializer(required=False, allow_null=True)


class UpdateCartQuantitySerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
    size = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    color_name = serializers.CharField(
        max_length=50, required=False, allow_blank=True, allow_null=True
    )


class UpdateCartOptionsSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    size = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    color_name = serializers.CharField(
        max_length=50, required=False, allow_blank=True, allow_null=True
    )
    new_size = serializers.CharField(
        max_length=20, required=False, allow_blank=True, allow_null=True
    )
    new_color = ColorInputSerializer(required=False, allow_null=True)


class MergeCartSerializer(serializers.Serializer):
    guest_cart_id = serializers.CharField(max_length=64)
