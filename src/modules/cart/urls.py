"""Cart URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.cart.views import CartCheckoutView, CartMergeView, CartOptionsView, CartView

urlpatterns = [
    path("cart/", CartView.as_view(), name="cart"),
    path("cart/options/", CartOptionsView.as_view(), name="cart-options"),
    path("cart/merge/", CartMergeView.as_view(), name="cart-merge"),
    path("cart/checkout/", CartCheckoutView.as_view(), name="cart-checkout"),
]
