"""Shipping method repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.shipping.models import ShippingMethod


class IShippingMethodRepository(IRepository["ShippingMethod"]):
    @abstractmethod
    def list_active(self) -> List[ShippingMethod]:
        """Active methods, cheapest first."""
