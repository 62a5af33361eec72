"""Cart accumulator.

Holds line items before checkout.  Adding an item whose
``(product_id, size, color name)`` matches an existing line increments its
quantity instead of duplicating it.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from django.utils import timezone

from modules.cart.dtos import CartItemDTO, CartKey, CartTotalsDTO, cart_key
from modules.products.dtos import ColorDTO

ZERO = Decimal("0")


class Cart:
    def __init__(
        self,
        items: Optional[Iterable[CartItemDTO]] = None,
        updated_at: Optional[datetime] = None,
    ) -> None:
        self._items: List[CartItemDTO] = []
        self.updated_at = updated_at or timezone.now()
        for item in items or []:
            self.add_item(item)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def items(self) -> List[CartItemDTO]:
        return list(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self._items), ZERO)

    def calculate_totals(
        self, shipping_cost: Decimal = ZERO, discount: Decimal = ZERO
    ) -> CartTotalsDTO:
        """Subtotal, shipping, discount and a total floored at zero."""
        subtotal = self.subtotal()
        total = max(ZERO, subtotal + shipping_cost - discount)
        return CartTotalsDTO(
            subtotal=subtotal, shipping=shipping_cost, discount=discount, total=total
        )

    def find(self, key: CartKey) -> Optional[CartItemDTO]:
        index = self._index(key)
        return self._items[index] if index is not None else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(self, item: CartItemDTO) -> CartItemDTO:
        index = self._index(item.key)
        if index is None:
            self._items.append(item)
            merged = item
        else:
            current = self._items[index]
            merged = current.model_copy(update={"quantity": current.quantity + item.quantity})
            self._items[index] = merged
        self._touch()
        return merged

    def remove_item(
        self,
        product_id: UUID | str,
        size: Optional[str] = None,
        color_name: Optional[str] = None,
    ) -> bool:
        index = self._index(cart_key(product_id, size, color_name))
        if index is None:
            return False
        del self._items[index]
        self._touch()
        return True

    def update_quantity(
        self,
        product_id: UUID | str,
        quantity: int,
        size: Optional[str] = None,
        color_name: Optional[str] = None,
    ) -> bool:
        """Set the quantity of a line; zero or less removes it."""
        if quantity <= 0:
            return self.remove_item(product_id, size, color_name)
        index = self._index(cart_key(product_id, size, color_name))
        if index is None:
            return False
        self._items[index] = self._items[index].model_copy(update={"quantity": quantity})
        self._touch()
        return True

    def update_item_options(
        self,
        product_id: UUID | str,
        old_size: Optional[str],
        old_color_name: Optional[str],
        new_size: Optional[str],
        new_color: Optional[ColorDTO],
    ) -> bool:
        """Change a line's variant, merging into a line that already has it."""
        index = self._index(cart_key(product_id, old_size, old_color_name))
        if index is None:
            return False

        item = self._items[index]
        new_key = cart_key(product_id, new_size, new_color.name if new_color else None)
        target = self._index(new_key)
        if target is not None and target != index:
            existing = self._items[target]
            self._items[target] = existing.model_copy(
                update={"quantity": existing.quantity + item.quantity}
            )
            del self._items[index]
        else:
            self._items[index] = item.model_copy(
                update={"size": new_size or None, "color": new_color}
            )
        self._touch()
        return True

    def merge(self, other: Cart) -> None:
        for item in other.items:
            self.add_item(item)

    def clear(self) -> None:
        self._items = []
        self._touch()

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_order_items(self) -> List[Dict[str, Any]]:
        """Line payload accepted by the order creation DTO."""
        return [
            {
                "product_id": item.product_id,
                "quantity": item.quantity,
                "size": item.size,
                "color": item.color.model_dump() if item.color else None,
            }
            for item in self._items
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.model_dump(mode="json") for item in self._items],
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Cart:
        updated_at = data.get("updated_at")
        return cls(
            items=[CartItemDTO.model_validate(raw) for raw in data.get("items", [])],
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _index(self, key: CartKey) -> Optional[int]:
        for position, item in enumerate(self._items):
            if item.key == key:
                return position
        return None

    def _touch(self) -> None:
        self.updated_at = timezone.now()
