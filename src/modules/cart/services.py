"""Cart use cases.

Loads the owner's cart from ``CartStore``, applies one change and saves
it back.  Adding a product captures its name, prices and main image from
the catalog at that moment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog

from modules.cart.dtos import CartItemDTO, cart_key
from modules.core.results import DomainError
from modules.products.exceptions import InactiveProduct, InsufficientStock

if TYPE_CHECKING:
    from modules.cart.cart import Cart
    from modules.cart.storage import CartStore
    from modules.products.dtos import ColorDTO
    from modules.products.services import ProductService

logger = structlog.get_logger(__name__)


class CartService:
    def __init__(self, store: CartStore, product_service: ProductService) -> None:
        self._store = store
        self._products = product_service

    def get_cart(self, owner: str) -> Cart:
        return self._store.load(owner)

    def add_item(
        self,
        owner: str,
        product_id: UUID | str,
        quantity: int = 1,
        size: Optional[str] = None,
        color: Optional[ColorDTO] = None,
    ) -> Cart:
        """Add a product variant, merging with an existing line.

        Raises:
            ProductNotFound: unknown product.
            InactiveProduct: the product is not for sale.
            DomainError: the size or color is not offered.
            InsufficientStock: the cart would hold more than the stock.
        """
        product = self._products.get_product(str(product_id))
        if not product.is_active:
            raise InactiveProduct(f"{product.name} is not available.")
        if size and product.sizes and size not in product.sizes:
            raise DomainError(f"Size {size} is not available for {product.name}.")
        if color and product.colors and color.name not in {
            entry.get("name") for entry in product.colors
        }:
            raise DomainError(f"Color {color.name} is not available for {product.name}.")

        cart = self._store.load(owner)
        existing = cart.find(cart_key(product.id, size, color.name if color else None))
        wanted = quantity + (existing.quantity if existing else 0)
        if wanted > product.stock_quantity:
            raise InsufficientStock(
                f"Only {product.stock_quantity} unit(s) of {product.name} in stock."
            )

        cart.add_item(
            CartItemDTO(
                product_id=product.id,
                name=product.name,
                price=product.price,
                promotional_price=product.promotional_price,
                image=product.main_image or "",
                quantity=quantity,
                size=size,
                color=color,
            )
        )
        self._store.save(owner, cart)
        logger.info("cart.item_added", owner=owner, product_id=str(product.id), quantity=quantity)
        return cart

    def update_quantity(
        self,
        owner: str,
        product_id: UUID | str,
        quantity: int,
        size: Optional[str] = None,
        color_name: Optional[str] = None,
    ) -> Cart:
        cart = self._store.load(owner)
        if not cart.update_quantity(product_id, quantity, size, color_name):
            raise DomainError("Item is not in the cart.")
        self._store.save(owner, cart)
        return cart

    def update_item_options(
        self,
        owner: str,
        product_id: UUID | str,
        old_size: Optional[str],
        old_color_name: Optional[str],
        new_size: Optional[str],
        new_color: Optional[ColorDTO],
    ) -> Cart:
        cart = self._store.load(owner)
        if not cart.update_item_options(product_id, old_size, old_color_name, new_size, new_color):
            raise DomainError("Item is not in the cart.")
        self._store.save(owner, cart)
        return cart

    def clear(self, owner: str) -> None:
        self._store.delete(owner)
        logger.info("cart.cleared", owner=owner)

    def merge_guest_cart(self, guest_owner: str, user_owner: str) -> Cart:
        return self._store.merge_guest_cart(guest_owner, user_owner)
