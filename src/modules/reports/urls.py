"""Report URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.reports.views import DashboardView, ProfitReportView, TopProductsView

urlpatterns = [
    path("reports/dashboard/", DashboardView.as_view(), name="reports-dashboard"),
    path("reports/top-products/", TopProductsView.as_view(), name="reports-top-products"),
    path("reports/profit/", ProfitReportView.as_view(), name="reports-profit"),
]
