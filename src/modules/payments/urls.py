"""Payment URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.payments.views import ChargeView, CheckPaymentView, PaymentWebhookView, RefundView

urlpatterns = [
    path("orders/<uuid:pk>/charge/", ChargeView.as_view(), name="order-charge"),
    path("orders/<uuid:pk>/check-payment/", CheckPaymentView.as_view(), name="order-check-payment"),
    path("orders/<uuid:pk>/refund/", RefundView.as_view(), name="order-refund"),
    path("payments/webhook/", PaymentWebhookView.as_view(), name="payment-webhook"),
]
