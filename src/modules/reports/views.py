"""Back-office report endpoints."""

from __future__ import annotations

from datetime import datetime, time

from django.conf import settings
from django.utils import timezone
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.permissions import IsBackOffice
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.reports.serializers import ProfitQuerySerializer, TopProductsQuerySerializer
from modules.reports.services import ReportingService


def build_reporting_service() -> ReportingService:
    return ReportingService(OrderDjangoRepository(), settings.DEFAULT_COST_RATIO)


class ReportView(APIView):
    permission_classes = [IsBackOffice]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_reporting_service()


class DashboardView(ReportView):
    """GET /api/v1/reports/dashboard/"""

    def get(self, request: Request) -> Response:
        return Response(self._service.dashboard_stats().model_dump(mode="json"))


class TopProductsView(ReportView):
    """GET /api/v1/reports/top-products/?limit=5"""

    def get(self, request: Request) -> Response:
        params = TopProductsQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        products = self._service.top_products(params.validated_data["limit"])
        return Response([product.model_dump(mode="json") for product in products])


class ProfitReportView(ReportView):
    """GET /api/v1/reports/profit/?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD

    Both bounds are inclusive whole days in the store's timezone.
    """

    def get(self, request: Request) -> Response:
        params = ProfitQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        start_date = params.validated_data.get("start_date")
        end_date = params.validated_data.get("end_date")

        start = timezone.make_aware(datetime.combine(start_date, time.min)) if start_date else None
        end = timezone.make_aware(datetime.combine(end_date, time.max)) if end_date else None
        return Response(self._service.profit_report(start, end).model_dump(mode="json"))
