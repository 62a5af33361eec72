"""Cart persistence in the Django cache (Redis in production).

Carts are keyed by owner: the buyer's identity when authenticated, the
session key otherwise.  Every save pushes the expiry ``CART_TTL_DAYS``
forward.
"""

from __future__ import annotations

from datetime import timedelta

import structlog
from django.conf import settings
from django.core.cache import cache

from modules.cart.cart import Cart

logger = structlog.get_logger(__name__)

KEY_PREFIX = "cart"


class CartStore:
    def __init__(self, backend=None, ttl_days: int | None = None) -> None:
        self._cache = backend or cache
        days = ttl_days if ttl_days is not None else settings.CART_TTL_DAYS
        self._ttl = int(timedelta(days=days).total_seconds())

    @staticmethod
    def key_for(owner: str) -> str:
        return f"{KEY_PREFIX}:{owner}"

    def load(self, owner: str) -> Cart:
        data = self._cache.get(self.key_for(owner))
        if not data:
            return Cart()
        return Cart.from_dict(data)

    def save(self, owner: str, cart: Cart) -> None:
        if cart.is_empty():
            self.delete(owner)
            return
        self._cache.set(self.key_for(owner), cart.to_dict(), timeout=self._ttl)

    def delete(self, owner: str) -> None:
        self._cache.delete(self.key_for(owner))

    def merge_guest_cart(self, guest_owner: str, user_owner: str) -> Cart:
        """Fold a guest cart into the user's cart after login."""
        guest = self.load(guest_owner)
        cart = self.load(user_owner)
        if guest.is_empty():
            return cart
        cart.merge(guest)
        self.save(user_owner, cart)
        self.delete(guest_owner)
        logger.info(
            "cart.merged",
            owner=user_owner,
            merged_lines=len(guest.items),
            item_count=cart.item_count(),
        )
        return cart
