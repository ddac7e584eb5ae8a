"""Reporting over the consolidated invoice set."""

from reporting.aggregation import (
    DashboardTotals,
    MonthlyPaidReport,
    compute_dashboard_totals,
    compute_monthly_paid_report,
    filter_for_month,
    matches_search,
)
from reporting.query import query_invoices

__all__ = [
    "DashboardTotals",
    "MonthlyPaidReport",
    "compute_dashboard_totals",
    "compute_monthly_paid_report",
    "filter_for_month",
    "matches_search",
    "query_invoices",
]
