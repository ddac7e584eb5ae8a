"""In-memory source and fixture loading tests."""

import asyncio
import json
from pathlib import Path

import pytest

from connectors.memory import InMemoryFreightSource, InMemoryReceivableSource, load_fixture
from core.errors import SourceUnavailable
from sync import SyncService

FIXTURE = Path(__file__).resolve().parent / "fixtures" / "sample_vendas.json"


def test_dict_rows_are_parsed_and_malformed_skipped():
    source = InMemoryFreightSource([
        {"numero_nf": "NF-2", "vendedor": "ROBERTO", "valor_nf": "10"},
        {"numero_nf": "NF-1", "vendedor": "ROBERTO", "valor_nf": "10,50"},
        {"numero_nf": "NF-3", "vendedor": "ROBERTO", "valor_nf": "ten"},
    ])
    rows = asyncio.run(source.fetch_for_representative("ROBERTO"))
    assert [r.invoice_number for r in rows] == ["NF-1", "NF-2"]


def test_failure_injection():
    source = InMemoryFreightSource(fail_for=["MIGUEL"])
    with pytest.raises(SourceUnavailable) as exc_info:
        asyncio.run(source.fetch_for_representative("MIGUEL"))
    assert exc_info.value.source == "freight"


def test_sample_fixture_consolidates(metrics):
    freight, receivables = load_fixture(FIXTURE)
    service = SyncService(freight, receivables, ["ROBERTO", "ISAQUE", "MIGUEL"], metrics=metrics, sync_on_read=False)

    async def scenario():
        await service.trigger_sync()
        invoices = await service.list_invoices()
        report = await service.monthly_paid_report(2024, 3)
        return invoices, report

    invoices, report = asyncio.run(scenario())

    assert [(r.invoice_number, r.provenance.value) for r in invoices] == [
        ("NF-001", "RECEIVABLE"),
        ("NF-002", "FREIGHT"),
        ("NF-010", "FREIGHT"),
        ("NF-011", "FREIGHT"),
        ("NF-020", "RECEIVABLE"),
    ]
    assert [r.invoice_number for r in report.rows] == ["NF-020", "NF-001"]


def test_fixture_layout(tmp_path):
    path = tmp_path / "rows.json"
    path.write_text(json.dumps({"controle_frete": [{"numero_nf": "NF-1", "vendedor": "A"}]}), encoding="utf-8")
    freight, receivables = load_fixture(path)
    assert len(asyncio.run(freight.fetch_for_representative("A"))) == 1
    assert asyncio.run(receivables.fetch_for_representative("A")) == []


def test_malformed_dict_rows_count_on_service_collector(metrics):
    freight = InMemoryFreightSource([
        {"numero_nf": "NF-1", "vendedor": "ROBERTO", "valor_nf": "10"},
        {"id": "f-3", "numero_nf": "NF-3", "vendedor": "ROBERTO", "valor_nf": "ten"},
    ])
    service = SyncService(freight, InMemoryReceivableSource(), ["ROBERTO"], metrics=metrics)

    result = asyncio.run(service.trigger_sync())

    assert result.record_count == 1
    assert freight.metrics is metrics
    assert metrics.get_summary()["sources"]["malformed_records"] == 1
