"""Catalog repository interfaces.

``IProductRepository`` adds the atomic stock primitives used by the
inventory ledger on top of ``IRepository[Product]``.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Category, Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List non-deleted products with optional filters."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Soft-delete a product. Returns ``False`` if it does not exist."""

    @abstractmethod
    def get_many(self, ids: List[str]) -> Dict[str, Product]:
        """Return the products with the given IDs keyed by ``str(id)``."""

    @abstractmethod
    def decrement_stock(self, id: str, quantity: int, clamp: bool) -> Optional[int]:
        """Atomically subtract *quantity* from the stored stock.

        With ``clamp`` the stock floors at zero; without it the update only
        applies when enough stock is available.  Returns the remaining
        stock, or ``None`` when no row was updated.
        """

    @abstractmethod
    def restore_stock(self, id: str, quantity: int) -> Optional[int]:
        """Atomically add *quantity* to the stored stock.

        Returns the new stock, or ``None`` if the product does not exist.
        """

    @abstractmethod
    def list_low_stock(self) -> List[Product]:
        """Active products whose stock is at or below ``min_stock``."""


class ICategoryRepository(IRepository["Category"]):
    """Repository contract for catalog categories."""

    @abstractmethod
    def get_by_slug(self, slug: str) -> Optional[Category]:
        """Retrieve a category by its slug."""
