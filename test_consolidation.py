"""
Merge engine tests.

Covers the consolidation rules:
1. A paid receivable (PAGO + payment date) always wins
2. Otherwise the freight row wins; unpaid receivables never surface
3. No duplicate invoice numbers per representative
4. Malformed rows are skipped, never fatal
"""

import random
from collections import Counter
from datetime import date
from decimal import Decimal

import pytest

from conftest import make_freight, make_receivable
from consolidation.engine import (
    RepresentativeBatch,
    build_paid_set,
    consolidate,
    is_confirmed_payment,
    merge,
    merge_representative,
)
from consolidation.status import resolve_status
from core.models.canonical import DisplayStatus, Provenance, RawFreightRecord
from reporting.aggregation import compute_dashboard_totals


class TestPaidDetection:

    def test_paid_requires_status_and_date(self):
        assert is_confirmed_payment(make_receivable("NF-1", status="PAGO", paid_on=date(2024, 1, 5)))
        assert not is_confirmed_payment(make_receivable("NF-1", status="PAGO", paid_on=None))
        assert not is_confirmed_payment(make_receivable("NF-1", status="PENDENTE", paid_on=date(2024, 1, 5)))

    def test_paid_status_ignores_case_and_padding(self):
        assert is_confirmed_payment(make_receivable("NF-1", status=" pago ", paid_on=date(2024, 1, 5)))

    def test_later_duplicate_paid_row_replaces_earlier(self):
        first = make_receivable("NF-1", paid_on=date(2024, 1, 5), value="10")
        second = make_receivable("NF-1", paid_on=date(2024, 1, 9), value="20")
        paid = build_paid_set([first, second], "A")
        assert list(paid) == ["NF-1"]
        assert paid["NF-1"].value == Decimal("20")


class TestMerge:

    def test_paid_receivable_wins_over_delivered_freight(self, scenario_rows):
        freight, receivables = scenario_rows
        records = merge(freight, receivables, "A")

        assert [r.invoice_number for r in records] == ["NF-001"]
        record = records[0]
        assert record.provenance == Provenance.RECEIVABLE
        assert resolve_status(record) == DisplayStatus.PAID
        assert record.value == Decimal("1000")

        totals = compute_dashboard_totals(records)
        assert totals.total_invoiced == Decimal("1000")
        assert totals.total_paid == Decimal("1000")
        assert totals.total_receivable == Decimal("0")

    def test_freight_only_invoice_awaiting_pickup(self):
        freight = [make_freight("NF-010", status="AGUARDANDO COLETA", value="500")]
        records = merge(freight, [], "A")

        assert len(records) == 1
        assert records[0].provenance == Provenance.FREIGHT
        assert resolve_status(records[0]) == DisplayStatus.AWAITING_PICKUP

        totals = compute_dashboard_totals(records)
        assert totals.total_invoiced == Decimal("500")
        assert totals.total_paid == Decimal("0")
        assert totals.total_receivable == Decimal("0")

    def test_unpaid_receivable_does_not_block_freight(self):
        freight = [make_freight("NF-5", status="EM TRANSITO", value="50")]
        receivables = [make_receivable("NF-5", status="PENDENTE", paid_on=None, value="50")]
        records = merge(freight, receivables, "A")

        assert len(records) == 1
        assert records[0].provenance == Provenance.FREIGHT

    def test_paid_without_date_does_not_win(self):
        freight = [make_freight("NF-6", status="ENTREGUE")]
        receivables = [make_receivable("NF-6", status="PAGO", paid_on=None)]
        records = merge(freight, receivables, "A")

        assert records[0].provenance == Provenance.FREIGHT

    def test_paid_receivable_without_freight_is_emitted(self):
        receivables = [make_receivable("NF-7", paid_on=date(2024, 2, 1))]
        records = merge([], receivables, "A")

        assert len(records) == 1
        assert records[0].provenance == Provenance.RECEIVABLE

    def test_unpaid_receivable_without_freight_is_excluded(self):
        receivables = [make_receivable("NF-8", status="PENDENTE", paid_on=None)]
        assert merge([], receivables, "A") == []

    def test_paid_records_come_first(self):
        freight = [make_freight("NF-1"), make_freight("NF-2")]
        receivables = [make_receivable("NF-2", paid_on=date(2024, 2, 1))]
        records = merge(freight, receivables, "A")

        assert [(r.invoice_number, r.provenance) for r in records] == [
            ("NF-2", Provenance.RECEIVABLE),
            ("NF-1", Provenance.FREIGHT),
        ]

    def test_duplicate_freight_rows_keep_first(self):
        freight = [
            make_freight("NF-1", status="EM TRANSITO", value="10"),
            make_freight("NF-1", status="ENTREGUE", value="99"),
        ]
        records = merge(freight, [], "A")

        assert len(records) == 1
        assert records[0].value == Decimal("10")

    def test_superseded_freight_is_counted(self, scenario_rows):
        freight, receivables = scenario_rows
        outcome = merge_representative(freight, receivables, "A")
        assert outcome.superseded_freight == 1

    def test_rows_of_other_representatives_are_ignored(self):
        freight = [make_freight("NF-1", rep="A"), make_freight("NF-2", rep="B")]
        records = merge(freight, [], "A")
        assert [r.invoice_number for r in records] == ["NF-1"]

    def test_record_carries_merging_representative(self):
        freight = [RawFreightRecord(invoice_number="NF-1", sales_rep=None, delivery_status="ENTREGUE")]
        records = merge(freight, [], "A")
        assert records[0].sales_rep == "A"

    def test_missing_value_defaults_to_zero(self):
        records = merge([make_freight("NF-1", value=None)], [], "A")
        assert records[0].value == Decimal("0")


class TestAmountParsing:

    @pytest.mark.parametrize("raw,expected", [
        ("R$ 1.234,56", Decimal("1234.56")),
        ("R$ 1.234", Decimal("1234")),
        ("R$ 12.500.000", Decimal("12500000")),
        ("1.234.567", Decimal("1234567")),
        ("1234.56", Decimal("1234.56")),
        ("1.234", Decimal("1.234")),
        ("10,50", Decimal("10.50")),
        (250, Decimal("250")),
    ])
    def test_upstream_amount_formats(self, raw, expected):
        record = RawFreightRecord.model_validate({"numero_nf": "NF-1", "valor_nf": raw})
        assert record.value == expected


class TestMalformedRecords:

    def test_blank_invoice_number_is_skipped(self):
        freight = [make_freight("   ", source_id="f-9"), make_freight("NF-1")]
        outcome = merge_representative(freight, [], "A")

        assert [r.invoice_number for r in outcome.records] == ["NF-1"]
        assert len(outcome.skipped) == 1
        assert outcome.skipped[0].source == "freight"
        assert outcome.skipped[0].source_id == "f-9"
        assert "f-9" in outcome.warnings[0]

    def test_paid_receivable_without_number_is_skipped(self):
        receivables = [make_receivable(None, paid_on=date(2024, 1, 1), source_id="r-3")]
        outcome = merge_representative([], receivables, "A")

        assert outcome.records == []
        assert outcome.skipped[0].source == "receivable"


class TestConsolidate:

    def _batches(self):
        return [
            RepresentativeBatch(
                representative="A",
                freight=[make_freight("NF-1", rep="A"), make_freight("NF-2", rep="A", status="EM TRANSITO")],
                receivables=[make_receivable("NF-1", rep="A", paid_on=date(2024, 3, 3))],
            ),
            RepresentativeBatch(
                representative="B",
                freight=[make_freight("NF-1", rep="B", value="70")],
                receivables=[],
            ),
        ]

    def test_same_number_for_different_representatives_is_kept(self):
        result = consolidate(self._batches())
        keys = [r.key for r in result.records]

        assert ("NF-1", "A") in keys
        assert ("NF-1", "B") in keys
        assert len(result.records) == 3

    def test_no_duplicate_numbers_per_representative(self):
        result = consolidate(self._batches())
        counts = Counter(r.key for r in result.records)
        assert all(n == 1 for n in counts.values())

    def test_total_invoiced_is_order_independent(self):
        freight = [make_freight(f"NF-{i}", value=str(i * 10), status="ENTREGUE") for i in range(1, 20)]
        receivables = [make_receivable(f"NF-{i}", paid_on=date(2024, 5, i), value=str(i * 10)) for i in range(1, 20, 3)]

        baseline = compute_dashboard_totals(merge(freight, receivables, "A")).total_invoiced
        rng = random.Random(7)
        for _ in range(5):
            shuffled_f = freight[:]
            shuffled_r = receivables[:]
            rng.shuffle(shuffled_f)
            rng.shuffle(shuffled_r)
            totals = compute_dashboard_totals(merge(shuffled_f, shuffled_r, "A"))
            assert totals.total_invoiced == baseline
            assert totals.total_paid + totals.total_receivable <= totals.total_invoiced
