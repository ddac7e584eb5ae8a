"""Dashboard totals and monthly paid report over the consolidated set.

- compute_dashboard_totals(records) -> DashboardTotals
- compute_monthly_paid_report(records, year, month, search_text) -> MonthlyPaidReport
- filter_for_month(records, year, month) -> issue-date month scope
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from consolidation.status import resolve_status
from core.models.canonical import ConsolidatedInvoice, DisplayStatus, Provenance


@dataclass
class DashboardTotals:
    """Dashboard totals.

    total_paid and total_receivable partition part of total_invoiced;
    freight records that are not delivered count only in total_invoiced.
    """
    total_invoiced: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    total_receivable: Decimal = Decimal("0")
    delivered_count: int = 0


@dataclass
class MonthlyPaidReport:
    """Paid invoices whose payment date falls in one month."""
    year: int
    month: int
    rows: List[ConsolidatedInvoice] = field(default_factory=list)
    total_paid: Decimal = Decimal("0")


def _check_month(year: int, month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    if year < 1:
        raise ValueError(f"Invalid year: {year}")


def _in_month(value: Optional[date], year: int, month: int) -> bool:
    return value is not None and value.year == year and value.month == month


def matches_search(record: ConsolidatedInvoice, search_text: Optional[str]) -> bool:
    """Case-insensitive substring match on invoice number or client org."""
    if not search_text:
        return True
    needle = search_text.strip().lower()
    if not needle:
        return True
    return (
        needle in (record.invoice_number or "").lower()
        or needle in (record.client_org or "").lower()
    )


def compute_dashboard_totals(records: Iterable[ConsolidatedInvoice]) -> DashboardTotals:
    """Accumulate dashboard totals in a single pass.

    - total_invoiced: every record
    - total_paid: RECEIVABLE provenance
    - total_receivable: FREIGHT provenance resolved as DELIVERED
    - delivered_count: records counted in either of the two buckets above
    """
    totals = DashboardTotals()
    for record in records:
        totals.total_invoiced += record.value

        if record.provenance == Provenance.RECEIVABLE:
            totals.total_paid += record.value
            totals.delivered_count += 1
        elif resolve_status(record) == DisplayStatus.DELIVERED:
            totals.total_receivable += record.value
            totals.delivered_count += 1
    return totals


def filter_for_month(
    records: Iterable[ConsolidatedInvoice],
    year: int,
    month: int,
) -> List[ConsolidatedInvoice]:
    """Keep records issued in (year, month). Records without an issue date are dropped."""
    _check_month(year, month)
    return [r for r in records if _in_month(r.issue_date, year, month)]


def compute_monthly_paid_report(
    records: Iterable[ConsolidatedInvoice],
    year: int,
    month: int,
    search_text: Optional[str] = None,
) -> MonthlyPaidReport:
    """Build the paid-invoices report for one month.

    Filters to RECEIVABLE provenance paid in (year, month), then applies the
    optional search, then sorts ascending by payment date.
    """
    _check_month(year, month)
    rows = [
        r for r in records
        if r.provenance == Provenance.RECEIVABLE
        and _in_month(r.payment_date, year, month)
        and matches_search(r, search_text)
    ]
    rows.sort(key=lambda r: r.payment_date)

    total = sum((r.value for r in rows), Decimal("0"))
    return MonthlyPaidReport(year=year, month=month, rows=rows, total_paid=total)
