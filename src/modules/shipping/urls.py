"""Shipping URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.shipping.views import ShippingMethodViewSet, ShippingQuoteView

router = DefaultRouter(trailing_slash=True)
router.register("shipping/methods", ShippingMethodViewSet, basename="shipping-method")

urlpatterns = [
    path("shipping/quotes/", ShippingQuoteView.as_view(), name="shipping-quotes"),
    *router.urls,
]
