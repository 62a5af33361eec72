"""Inventory ledger: the only component that mutates product stock.

Every change is one conditional UPDATE at the database level.  What
happens when an order asks for more than is available is decided by the
oversell policy:

- ``reject`` (default): raise ``InsufficientStock`` and leave stock as is.
- ``clamp``: store ``max(0, stock - quantity)``.

``restore`` is the compensating action for cancellations and refunds and
always adds the full quantity back.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional
from uuid import UUID

import structlog
from django.conf import settings

from modules.core.results import DomainError
from modules.products.exceptions import InsufficientStock, ProductNotFound

if TYPE_CHECKING:
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class StockPolicy(str, Enum):
    REJECT = "reject"
    CLAMP = "clamp"


class InventoryLedger:
    """Per-product stock counter with decrement/restore operations."""

    def __init__(
        self,
        product_repository: IProductRepository,
        policy: Optional[StockPolicy | str] = None,
    ) -> None:
        self._repo = product_repository
        self.policy = StockPolicy(policy or settings.INVENTORY_OVERSELL_POLICY)

    def decrement(self, product_id: UUID | str, quantity: int) -> int:
        """Subtract *quantity* from the product stock and return what is left.

        Raises:
            ProductNotFound: the product does not exist.
            InsufficientStock: ``reject`` policy and not enough stock.
        """
        _validate_quantity(quantity)
        log = logger.bind(product_id=str(product_id), quantity=quantity)

        remaining = self._repo.decrement_stock(
            str(product_id), quantity, clamp=self.policy is StockPolicy.CLAMP
        )
        if remaining is None:
            product = self._repo.get_by_id(str(product_id))
            if product is None:
                raise ProductNotFound(f"Product {product_id} not found.")
            log.warning("inventory.insufficient_stock", available=product.stock_quantity)
            raise InsufficientStock(
                f"Product {product.name}: requested {quantity}, "
                f"available {product.stock_quantity}."
            )

        log.info("inventory.decremented", remaining=remaining, policy=self.policy.value)
        return remaining

    def restore(self, product_id: UUID | str, quantity: int) -> int:
        """Add *quantity* back to the product stock and return the new level.

        Raises:
            ProductNotFound: the product does not exist.
        """
        _validate_quantity(quantity)
        stock = self._repo.restore_stock(str(product_id), quantity)
        if stock is None:
            raise ProductNotFound(f"Product {product_id} not found.")
        logger.info(
            "inventory.restored",
            product_id=str(product_id),
            quantity=quantity,
            stock=stock,
        )
        return stock


def _validate_quantity(quantity: int) -> None:
    if quantity < 1:
        raise DomainError("Quantity must be at least 1.")
