"""Catalog and inventory exceptions.

Raised by the services and the inventory ledger.  Lifecycle operations
turn them into failed results; the catalog views translate them into HTTP
responses directly.
"""

from __future__ import annotations

from modules.core.results import DomainError, ErrorCode, NotFound


class ProductNotFound(NotFound):
    """The requested product does not exist or has been soft-deleted."""


class CategoryNotFound(NotFound):
    """The requested category does not exist."""


class CategoryAlreadyExists(DomainError):
    """A category with the same slug already exists."""


class InactiveProduct(DomainError):
    """The product is inactive and cannot be sold."""


class InsufficientStock(DomainError):
    """Not enough stock to cover the requested quantity."""

    code = ErrorCode.INSUFFICIENT_STOCK
