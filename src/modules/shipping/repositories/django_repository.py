"""Django ORM implementation of the shipping method repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError

from modules.shipping.models import ShippingMethod
from modules.shipping.repositories.interfaces import IShippingMethodRepository


class ShippingMethodDjangoRepository(IShippingMethodRepository):
    def get_by_id(self, id: str) -> Optional[ShippingMethod]:
        try:
            return ShippingMethod.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[ShippingMethod]:
        return list(ShippingMethod.objects.filter(**(filters or {})))

    def list_active(self) -> List[ShippingMethod]:
        return list(ShippingMethod.objects.filter(is_active=True))

    def save(self, entity: ShippingMethod) -> ShippingMethod:
        entity.save()
        return entity
