"""Order URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import OrderViewSet, PointOfSaleSaleView

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")

urlpatterns = [
    path("pos/sales/", PointOfSaleSaleView.as_view(), name="pos-sale"),
    *router.urls,
]
