"""Payment DRF serializers (input only)."""

from __future__ import annotations

from rest_framework import serializers


class BillingInfoSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    cpf_cnpj = serializers.CharField(max_length=18)
    phone = serializers.CharField(max_length=20, required=False, default="", allow_blank=True)
    postal_code = serializers.CharField(max_length=9, required=False, default="", allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, default="", allow_blank=True)
    address_number = serializers.CharField(
        max_length=20, required=False, default="", allow_blank=True
    )
    complement = serializers.CharField(max_length=120, required=False, default="", allow_blank=True)
    province = serializers.CharField(max_length=120, required=False, default="", allow_blank=True)


class CardSerializer(serializers.Serializer):
    holder_name = serializers.CharField(max_length=255)
    number = serializers.CharField(max_length=23)
    expiry_month = serializers.CharField(max_length=2)
    expiry_year = serializers.CharField(max_length=4)
    ccv = serializers.CharField(max_length=4)
    installments = serializers.IntegerField(min_value=1, max_value=12, required=False, default=1)


class ChargeRequestSerializer(serializers.Serializer):
    billing = BillingInfoSerializer()
    card = CardSerializer(required=False, allow_null=True)


class RefundSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, default="", allow_blank=True)


class WebhookPaymentSerializer(serializers.Serializer):
    id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    externalReference = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    status = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class WebhookSerializer(serializers.Serializer):
    event = serializers.CharField()
    payment = WebhookPaymentSerializer(required=False)
