"""Order DRF serializers for API input/output.

Input serializers validate the request shape; the views then build the
pydantic DTOs consumed by ``OrderService``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus, PaymentMethod, PaymentStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class ColorInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=50)
    hex = serializers.CharField(max_length=7, required=False, default="#000000")


class CreateOrderItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    size = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    color = ColorInputSerializer(required=False, allow_null=True)


class ShippingMethodInputSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=50)
    name = serializers.CharField(max_length=120)
    type = serializers.CharField(max_length=30, required=False, default="standard")
    carrier = serializers.CharField(max_length=60, required=False, allow_blank=True, default="")
    cost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    estimated_days = serializers.IntegerField(min_value=0, required=False, default=0)


class ShippingAddressInputSerializer(serializers.Serializer):
    zip_code = serializers.CharField(max_length=9)
    street = serializers.CharField(max_length=255)
    number = serializers.CharField(max_length=20)
    complement = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    neighborhood = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    city = serializers.CharField(max_length=120)
    state = serializers.CharField(max_length=2)


class CheckoutSerializer(serializers.Serializer):
    """Fields shared by direct order creation and cart checkout."""

    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    shipping_method = ShippingMethodInputSerializer()
    shipping_address = ShippingAddressInputSerializer()
    discount = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, default=0
    )
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class CreateOrderSerializer(CheckoutSerializer):
    items = CreateOrderItemSerializer(many=True, allow_empty=False)


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    tracking_code = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdatePaymentStatusSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices)
    payment_id = serializers.CharField(max_length=100, required=False)
    qr_code = serializers.CharField(required=False)
    qr_payload = serializers.CharField(required=False)
    payment_link = serializers.URLField(required=False)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class PointOfSaleSaleSerializer(serializers.Serializer):
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    customer_name = serializers.CharField(required=False, default="", allow_blank=True)
    customer_phone = serializers.CharField(required=False, default="", allow_blank=True)
    discount = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, default=0
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "image",
            "unit_price",
            "promotional_price",
            "size",
            "color",
            "quantity",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ["id", "old_status", "new_status", "changed_by", "notes", "created_at"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer_id",
            "buyer_name",
            "buyer_email",
            "buyer_phone",
            "status",
            "payment_method",
            "payment_status",
            "payment_id",
            "payment_qr_code",
            "payment_qr_payload",
            "payment_link",
            "subtotal",
            "shipping_cost",
            "discount",
            "total",
            "shipping_method",
            "shipping_address",
            "tracking_code",
            "notes",
            "paid_at",
            "shipped_at",
            "delivered_at",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer_name",
            "status",
            "payment_method",
            "payment_status",
            "total",
            "created_at",
        ]
        read_only_fields = fields
