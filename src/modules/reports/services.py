"""Reporting aggregator.

Read-only derivations over the persisted orders: dashboard statistics,
best-selling products and the profit report.  Orders are loaded once per
report and aggregated in memory.

Money figures leave cancelled orders out.  A line without a captured cost
price costs ``unit_price * default_cost_ratio``.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Iterable, List, Optional

import structlog
from django.utils import timezone

from modules.orders.constants import OrderStatus
from modules.reports.dtos import (
    DailyProfitDTO,
    DashboardStatsDTO,
    PeriodTotalsDTO,
    ProfitReportDTO,
    RecentOrderDTO,
    TopProductDTO,
)

if TYPE_CHECKING:
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")
DAILY_WINDOW_DAYS = 30
RECENT_ORDERS = 10


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, ROUND_HALF_UP)


def _local_date(moment: datetime) -> date:
    return timezone.localtime(moment).date()


def _counted(orders: Iterable[Order]) -> List[Order]:
    return [order for order in orders if order.status != OrderStatus.CANCELLED]


def _sales(orders: Iterable[Order]) -> Decimal:
    return _money(sum((order.total for order in _counted(orders)), ZERO))


class ReportingService:
    def __init__(self, order_repository: IOrderRepository, default_cost_ratio: Decimal) -> None:
        self._order_repo = order_repository
        self._cost_ratio = Decimal(default_cost_ratio)

    def dashboard_stats(self, now: Optional[datetime] = None) -> DashboardStatsDTO:
        now = now or timezone.now()
        today = _local_date(now)
        month_start = today.replace(day=1)
        last_month_start = (month_start - timedelta(days=1)).replace(day=1)
        window_start = today - timedelta(days=DAILY_WINDOW_DAYS - 1)

        orders = self._order_repo.list_created_between(end=now)
        by_date = [(order, _local_date(order.created_at)) for order in orders]

        todays = [order for order, day in by_date if day == today]
        this_month = [order for order, day in by_date if day >= month_start]
        last_month = [order for order, day in by_date if last_month_start <= day < month_start]

        by_status = {status: 0 for status in OrderStatus.values}
        for order in orders:
            by_status[order.status] = by_status.get(order.status, 0) + 1

        daily = {
            (window_start + timedelta(days=offset)).isoformat(): [0, ZERO]
            for offset in range(DAILY_WINDOW_DAYS)
        }
        monthly: dict[str, list] = defaultdict(lambda: [0, ZERO])
        for order, day in by_date:
            month_bucket = monthly[day.strftime("%Y-%m")]
            month_bucket[0] += 1
            day_bucket = daily.get(day.isoformat())
            if day_bucket is not None:
                day_bucket[0] += 1
            if order.status != OrderStatus.CANCELLED:
                month_bucket[1] += order.total
                if day_bucket is not None:
                    day_bucket[1] += order.total

        recent = sorted(orders, key=lambda order: order.created_at, reverse=True)[:RECENT_ORDERS]

        return DashboardStatsDTO(
            total_orders=len(orders),
            total_sales=_sales(orders),
            orders_today=len(todays),
            sales_today=_sales(todays),
            orders_this_month=len(this_month),
            sales_this_month=_sales(this_month),
            orders_last_month=len(last_month),
            sales_last_month=_sales(last_month),
            orders_by_status=by_status,
            daily=[
                PeriodTotalsDTO(period=period, orders=count, sales=_money(total))
                for period, (count, total) in daily.items()
            ],
            monthly=[
                PeriodTotalsDTO(period=period, orders=count, sales=_money(total))
                for period, (count, total) in sorted(monthly.items())
            ],
            recent_orders=[
                RecentOrderDTO(
                    id=order.id,
                    order_number=order.order_number,
                    buyer_name=order.buyer_name,
                    status=order.status,
                    payment_method=order.payment_method,
                    total=order.total,
                    created_at=order.created_at,
                )
                for order in recent
            ],
        )

    def top_products(self, limit: int = 5) -> List[TopProductDTO]:
        """Best sellers by units sold across non-cancelled orders."""
        stats: dict = {}
        for order in _counted(self._order_repo.list_created_between()):
            for item in order.items.all():
                entry = stats.setdefault(
                    item.product_id, {"name": item.product_name, "sold": 0, "revenue": ZERO}
                )
                entry["sold"] += item.quantity
                entry["revenue"] += item.subtotal

        ranked = sorted(stats.items(), key=lambda pair: pair[1]["sold"], reverse=True)
        return [
            TopProductDTO(
                product_id=product_id,
                name=entry["name"],
                total_sold=entry["sold"],
                revenue=_money(entry["revenue"]),
            )
            for product_id, entry in ranked[: max(limit, 0)]
        ]

    def profit_report(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> ProfitReportDTO:
        orders = _counted(self._order_repo.list_created_between(start, end))

        revenue = cost = ZERO
        by_method: dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_day: dict[date, dict] = {}
        for order in orders:
            order_cost = sum(
                (item.line_cost(self._cost_ratio) for item in order.items.all()), ZERO
            )
            revenue += order.total
            cost += order_cost
            by_method[order.payment_method or "OTHER"] += order.total

            day = by_day.setdefault(
                _local_date(order.created_at), {"revenue": ZERO, "cost": ZERO, "orders": 0}
            )
            day["revenue"] += order.total
            day["cost"] += order_cost
            day["orders"] += 1

        gross_profit = revenue - cost
        margin = (gross_profit / revenue * 100) if revenue > 0 else ZERO
        average = (revenue / len(orders)) if orders else ZERO

        logger.info(
            "reports.profit_computed",
            orders=len(orders),
            start=start.isoformat() if start else None,
            end=end.isoformat() if end else None,
        )
        return ProfitReportDTO(
            start=start,
            end=end,
            total_revenue=_money(revenue),
            total_cost=_money(cost),
            gross_profit=_money(gross_profit),
            profit_margin=_money(margin),
            total_orders=len(orders),
            average_order_value=_money(average),
            sales_by_payment_method={
                method: _money(total) for method, total in sorted(by_method.items())
            },
            daily_breakdown=[
                DailyProfitDTO(
                    date=day,
                    revenue=_money(values["revenue"]),
                    cost=_money(values["cost"]),
                    profit=_money(values["revenue"] - values["cost"]),
                    orders=values["orders"],
                )
                for day, values in sorted(by_day.items())
            ],
        )
