"""Wiring of the shipping quote service."""

from __future__ import annotations

from django.conf import settings

from modules.shipping.providers import StoredMethodsProvider, SuperFreteProvider
from modules.shipping.repositories.django_repository import ShippingMethodDjangoRepository
from modules.shipping.services import ShippingQuoteService


def build_quote_service() -> ShippingQuoteService:
    providers = []
    superfrete = SuperFreteProvider()
    if superfrete.is_configured:
        providers.append(superfrete)
    return ShippingQuoteService(
        providers=providers,
        fallback=StoredMethodsProvider(ShippingMethodDjangoRepository()),
        free_shipping_above=settings.FREE_SHIPPING_ABOVE,
    )
