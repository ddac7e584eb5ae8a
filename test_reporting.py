"""Dashboard totals, monthly report and query layer tests."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_freight, make_receivable
from consolidation.engine import merge
from core.models.canonical import DisplayStatus, Provenance
from reporting.aggregation import (
    compute_dashboard_totals,
    compute_monthly_paid_report,
    filter_for_month,
    matches_search,
)
from reporting.query import query_invoices


@pytest.fixture
def records():
    freight = [
        make_freight("NF-001", status="ENTREGUE", value="100", issue=date(2024, 3, 1), client_org="Prefeitura de Campinas"),
        make_freight("NF-002", status="ENTREGUE", value="200", issue=date(2024, 3, 10), client_org="Hospital Municipal"),
        make_freight("NF-003", status="EM TRANSITO", value="300", issue=date(2024, 4, 2), client_org="Camara"),
        make_freight("NF-004", status="DEVOLVIDO", value="50", issue=None, client_org="Escola"),
    ]
    receivables = [
        make_receivable("NF-001", paid_on=date(2024, 3, 28), value="100", issue=date(2024, 3, 1), client_org="Prefeitura de Campinas"),
        make_receivable("NF-010", paid_on=date(2024, 3, 5), value="700", issue=date(2024, 2, 20), client_org="Secretaria de Saude"),
        make_receivable("NF-011", paid_on=date(2024, 4, 1), value="40", issue=date(2024, 3, 15), client_org="Hospital Municipal"),
    ]
    return merge(freight, receivables, "A")


class TestDashboardTotals:

    def test_totals(self, records):
        totals = compute_dashboard_totals(records)

        assert totals.total_invoiced == Decimal("1390")
        assert totals.total_paid == Decimal("840")
        assert totals.total_receivable == Decimal("200")
        # 3 paid + 1 delivered freight
        assert totals.delivered_count == 4

    def test_partition_never_exceeds_total(self, records):
        totals = compute_dashboard_totals(records)
        assert totals.total_paid + totals.total_receivable <= totals.total_invoiced

    def test_empty_set(self):
        totals = compute_dashboard_totals([])
        assert totals.total_invoiced == Decimal("0")
        assert totals.delivered_count == 0

    def test_filter_for_month_uses_issue_date(self, records):
        march = filter_for_month(records, 2024, 3)
        assert sorted(r.invoice_number for r in march) == ["NF-001", "NF-002", "NF-011"]

    def test_invalid_month(self, records):
        with pytest.raises(ValueError):
            filter_for_month(records, 2024, 13)


class TestMonthlyPaidReport:

    def test_report_uses_payment_date_and_sorts(self, records):
        report = compute_monthly_paid_report(records, 2024, 3)

        assert [r.invoice_number for r in report.rows] == ["NF-010", "NF-001"]
        assert report.total_paid == Decimal("800")
        assert all(r.provenance == Provenance.RECEIVABLE for r in report.rows)

    def test_report_search(self, records):
        report = compute_monthly_paid_report(records, 2024, 3, "saude")
        assert [r.invoice_number for r in report.rows] == ["NF-010"]

    def test_report_with_no_rows_is_empty_not_error(self, records):
        report = compute_monthly_paid_report(records, 2023, 1)
        assert report.rows == []
        assert report.total_paid == Decimal("0")

    def test_report_rejects_invalid_month(self, records):
        with pytest.raises(ValueError):
            compute_monthly_paid_report(records, 2024, 0)


class TestQuery:

    def test_search_by_number_or_client(self, records):
        assert matches_search(records[0], "nf-0")
        assert [r.invoice_number for r in query_invoices(records, search_text="hospital")] == ["NF-002", "NF-011"]

    def test_status_filter(self, records):
        rows = query_invoices(records, status="DELIVERED")
        assert [r.invoice_number for r in rows] == ["NF-002"]

        rows = query_invoices(records, status="pago")
        assert {r.invoice_number for r in rows} == {"NF-001", "NF-010", "NF-011"}

    def test_sort_by_issue_date_puts_undated_last(self, records):
        rows = query_invoices(records)
        assert rows[-1].invoice_number == "NF-004"
        assert [r.invoice_number for r in rows[:-1]] == ["NF-010", "NF-001", "NF-002", "NF-011", "NF-003"]

    def test_sort_descending(self, records):
        rows = query_invoices(records, descending=True)
        assert rows[0].invoice_number == "NF-003"
        assert rows[-1].invoice_number == "NF-004"

    def test_sort_by_payment_date(self, records):
        rows = query_invoices(records, status=DisplayStatus.PAID, sort_by="payment_date")
        assert [r.invoice_number for r in rows] == ["NF-010", "NF-001", "NF-011"]

    def test_invalid_sort_field(self, records):
        with pytest.raises(ValueError):
            query_invoices(records, sort_by="value")

    def test_unknown_status_filter(self, records):
        with pytest.raises(ValueError):
            query_invoices(records, status="SHIPPED")
