"""Shipping DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.shipping.models import ShippingMethod


class ShippingQuoteRequestSerializer(serializers.Serializer):
    zip_code = serializers.CharField(max_length=9)
    state = serializers.CharField(max_length=2, required=False, allow_blank=True, allow_null=True)
    order_value = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, default=0
    )
    item_count = serializers.IntegerField(min_value=1, required=False, default=1)
    weight_kg = serializers.DecimalField(
        max_digits=6, decimal_places=3, min_value=0, required=False, default=1
    )


class ShippingQuoteSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    type = serializers.CharField()
    carrier = serializers.CharField()
    cost = serializers.DecimalField(max_digits=10, decimal_places=2)
    estimated_days = serializers.IntegerField()
    provider = serializers.CharField()


class RegionCostSerializer(serializers.Serializer):
    region = serializers.CharField(max_length=20)
    cost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)


class ShippingMethodSerializer(serializers.ModelSerializer):
    region_costs = RegionCostSerializer(many=True, required=False)

    class Meta:
        model = ShippingMethod
        fields = [
            "id",
            "name",
            "type",
            "provider",
            "cost",
            "estimated_days",
            "is_active",
            "min_order_value",
            "free_shipping_above",
            "region_costs",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_region_costs(self, value):
        return [{"region": entry["region"], "cost": str(entry["cost"])} for entry in value]
