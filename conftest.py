"""Shared pytest fixtures: raw row factories and in-memory sources."""

from datetime import date
from decimal import Decimal

import pytest

from connectors.memory import InMemoryFreightSource, InMemoryReceivableSource
from core.models.canonical import RawFreightRecord, RawReceivableRecord
from core.observability.metrics import MetricsCollector


def make_freight(number, rep="A", status="ENTREGUE", value="1000", issue=None, **kwargs) -> RawFreightRecord:
    return RawFreightRecord(
        invoice_number=number,
        sales_rep=rep,
        delivery_status=status,
        value=Decimal(value) if value is not None else None,
        issue_date=issue,
        **kwargs,
    )


def make_receivable(number, rep="A", status="PAGO", paid_on=None, value="1000", issue=None, **kwargs) -> RawReceivableRecord:
    return RawReceivableRecord(
        invoice_number=number,
        sales_rep=rep,
        payment_status=status,
        payment_date=paid_on,
        value=Decimal(value) if value is not None else None,
        issue_date=issue,
        **kwargs,
    )


@pytest.fixture
def metrics():
    """Fresh collector, isolated from the global singleton."""
    return MetricsCollector()


@pytest.fixture
def scenario_rows():
    """NF-001 paid and delivered, NF-002 pending without freight."""
    freight = [make_freight("NF-001", status="ENTREGUE", value="1000", issue=date(2024, 3, 1))]
    receivables = [
        make_receivable("NF-001", status="PAGO", paid_on=date(2024, 3, 20), value="1000", issue=date(2024, 3, 1)),
        make_receivable("NF-002", status="PENDENTE", paid_on=None, value="400", issue=date(2024, 3, 2)),
    ]
    return freight, receivables


@pytest.fixture
def three_rep_sources():
    """Sources for ROBERTO, ISAQUE and MIGUEL with one invoice each."""
    freight = InMemoryFreightSource([
        make_freight("NF-100", rep="ROBERTO", status="ENTREGUE", value="100", issue=date(2024, 3, 1)),
        make_freight("NF-200", rep="ISAQUE", status="EM TRANSITO", value="200", issue=date(2024, 3, 2)),
        make_freight("NF-300", rep="MIGUEL", status="AGUARDANDO COLETA", value="300", issue=date(2024, 4, 3)),
    ])
    receivables = InMemoryReceivableSource([
        make_receivable("NF-100", rep="ROBERTO", paid_on=date(2024, 3, 25), value="100", issue=date(2024, 3, 1)),
    ])
    return freight, receivables
