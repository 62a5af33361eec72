"""Report read models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PeriodTotalsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    period: str
    orders: int = 0
    sales: Decimal = Decimal("0.00")


class RecentOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    buyer_name: str
    status: str
    payment_method: str
    total: Decimal
    created_at: datetime


class DashboardStatsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_orders: int
    total_sales: Decimal
    orders_today: int
    sales_today: Decimal
    orders_this_month: int
    sales_this_month: Decimal
    orders_last_month: int
    sales_last_month: Decimal
    orders_by_status: Dict[str, int]
    daily: List[PeriodTotalsDTO]
    monthly: List[PeriodTotalsDTO]
    recent_orders: List[RecentOrderDTO]


class TopProductDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    name: str
    total_sold: int
    revenue: Decimal


class DailyProfitDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    revenue: Decimal
    cost: Decimal
    profit: Decimal
    orders: int


class ProfitReportDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    total_revenue: Decimal
    total_cost: Decimal
    gross_profit: Decimal
    profit_margin: Decimal
    total_orders: int
    average_order_value: Decimal
    sales_by_payment_method: Dict[str, Decimal]
    daily_breakdown: List[DailyProfitDTO]
