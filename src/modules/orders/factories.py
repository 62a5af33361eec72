"""Wiring of the order services with their Django-backed collaborators."""

from __future__ import annotations

from modules.orders.pos import PointOfSaleService
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.inventory import InventoryLedger
from modules.products.repositories.django_repository import ProductDjangoRepository


def build_order_service() -> OrderService:
    product_repository = ProductDjangoRepository()
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=product_repository,
        inventory=InventoryLedger(product_repository),
    )


def build_pos_service() -> PointOfSaleService:
    return PointOfSaleService(build_order_service())
