"""Shipping method model.

Methods configured by the back-office.  They are offered directly when no
carrier quote is available, priced by destination region and subject to
their own free-shipping threshold.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from django.db import models

from modules.core.models import BaseModel


class ShippingType(models.TextChoices):
    CORREIOS = "correios", "Correios"
    TRANSPORTADORA = "transportadora", "Transportadora"
    MOTOBOY = "motoboy", "Motoboy"
    RETIRADA = "retirada", "Retirada"
    PERSONALIZADO = "personalizado", "Personalizado"
    OTHER = "other", "Outro"


class ShippingMethod(BaseModel):
    name = models.CharField(max_length=120)
    type = models.CharField(
        max_length=20, choices=ShippingType.choices, default=ShippingType.CORREIOS
    )
    provider = models.CharField(max_length=60, blank=True, default="")
    cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    estimated_days = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True, db_index=True)
    min_order_value = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    free_shipping_above = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    # [{"region": "nordeste", "cost": "19.90"}, ...]
    region_costs = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "shipping_methods"
        ordering = ["cost", "name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(cost__gte=0), name="shipping_method_cost_non_negative"
            ),
        ]

    def __str__(self) -> str:
        return self.name

    def cost_for_region(self, region: Optional[str]) -> Decimal:
        if region:
            for entry in self.region_costs or []:
                if str(entry.get("region", "")).lower() == region.lower():
                    return Decimal(str(entry["cost"]))
        return self.cost
