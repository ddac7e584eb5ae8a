"""
HTTP boundary tests.

Drives the FastAPI app with TestClient against in-memory sources:
- session gate (401 without a valid X-Session-Token)
- 503 when consolidation fails, distinct from an empty 200
- 400/422 for invalid query parameters
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from conftest import make_freight, make_receivable
from connectors.memory import InMemoryFreightSource, InMemoryReceivableSource
from core.config import Settings
from core.security import AllowAllGate, StaticTokenGate, build_gate
from api.server import create_app
from sync import SyncService

TOKEN = "s3cret"
HEADERS = {"X-Session-Token": TOKEN}
REPS = ["ROBERTO", "ISAQUE", "MIGUEL"]


def make_client(freight=None, receivables=None, gate=None, metrics=None) -> TestClient:
    service = SyncService(
        freight if freight is not None else InMemoryFreightSource(),
        receivables if receivables is not None else InMemoryReceivableSource(),
        REPS,
        metrics=metrics,
    )
    settings = Settings(representatives=REPS, session_tokens=[TOKEN])
    app = create_app(settings=settings, service=service, gate=gate or StaticTokenGate([TOKEN]), schedule=False)
    return TestClient(app)


@pytest.fixture
def client(three_rep_sources, metrics):
    freight, receivables = three_rep_sources
    return make_client(freight, receivables, metrics=metrics)


class TestSessionGate:

    def test_missing_token_is_rejected(self, client):
        response = client.get("/api/vendas")
        assert response.status_code == 401
        assert response.json()["detail"] == "unauthorized"

    def test_invalid_token_is_rejected(self, client):
        response = client.get("/api/dashboard", headers={"X-Session-Token": "nope"})
        assert response.status_code == 401

    def test_health_needs_no_token(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["last_sync"] is None
        assert "syncs" in body["metrics"]

    def test_development_gate_allows_everything(self, three_rep_sources):
        freight, receivables = three_rep_sources
        client = make_client(freight, receivables, gate=AllowAllGate())
        assert client.get("/api/vendas").status_code == 200

    def test_build_gate(self):
        assert isinstance(build_gate(Settings(development_mode=True)), AllowAllGate)
        assert isinstance(build_gate(Settings(session_tokens=["a"])), StaticTokenGate)
        with pytest.raises(ValueError):
            build_gate(Settings())


class TestVendasRoutes:

    def test_sync(self, client):
        response = client.get("/api/sync", headers=HEADERS)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 3
        assert body["failed_representatives"] == []

    def test_list_vendas_with_status(self, client):
        response = client.get("/api/vendas", headers=HEADERS)
        assert response.status_code == 200
        rows = response.json()

        by_number = {r["invoice_number"]: r for r in rows}
        assert by_number["NF-100"]["status"] == "PAID"
        assert by_number["NF-100"]["provenance"] == "RECEIVABLE"
        assert by_number["NF-200"]["status"] == "IN_TRANSIT"
        assert by_number["NF-300"]["status"] == "AWAITING_PICKUP"
        assert by_number["NF-300"]["value"] == 300.0

    def test_list_vendas_filters(self, client):
        response = client.get(
            "/api/vendas",
            params={"year": 2024, "month": 3, "status": "pago"},
            headers=HEADERS,
        )
        assert response.status_code == 200
        assert [r["invoice_number"] for r in response.json()] == ["NF-100"]

    def test_empty_result_is_200(self, client):
        response = client.get("/api/vendas", params={"search": "does-not-exist"}, headers=HEADERS)
        assert response.status_code == 200
        assert response.json() == []

    def test_dashboard(self, client):
        body = client.get("/api/dashboard", headers=HEADERS).json()
        assert body["total_invoiced"] == 600.0
        assert body["total_paid"] == 100.0
        assert body["total_receivable"] == 0.0
        assert body["delivered_count"] == 1

    def test_monthly_report(self, client):
        response = client.get("/api/relatorio", params={"year": 2024, "month": 3}, headers=HEADERS)
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["total_paid"] == 100.0
        assert body["rows"][0]["invoice_number"] == "NF-100"

    def test_monthly_report_without_rows(self, client):
        body = client.get("/api/relatorio", params={"year": 2020, "month": 1}, headers=HEADERS).json()
        assert body["rows"] == []
        assert body["total_paid"] == 0.0


class TestInvalidParameters:

    def test_month_out_of_range(self, client):
        response = client.get("/api/relatorio", params={"year": 2024, "month": 13}, headers=HEADERS)
        assert response.status_code == 422

    def test_unknown_status(self, client):
        response = client.get("/api/vendas", params={"status": "SHIPPED"}, headers=HEADERS)
        assert response.status_code == 400

    def test_year_without_month(self, client):
        response = client.get("/api/dashboard", params={"year": 2024}, headers=HEADERS)
        assert response.status_code == 400

    def test_unknown_sort_field(self, client):
        response = client.get("/api/vendas", params={"sort_by": "value"}, headers=HEADERS)
        assert response.status_code == 400


class TestFailures:

    def test_total_failure_is_503(self, metrics):
        freight = InMemoryFreightSource(fail_for=REPS)
        client = make_client(freight, metrics=metrics)

        response = client.get("/api/vendas", headers=HEADERS)

        assert response.status_code == 503
        assert response.json()["detail"] == "sync failed"

    def test_partial_failure_is_degraded(self, metrics):
        freight = InMemoryFreightSource(
            [make_freight("NF-1", rep="ROBERTO"), make_freight("NF-2", rep="MIGUEL")],
            fail_for=["MIGUEL"],
        )
        receivables = InMemoryReceivableSource([make_receivable("NF-1", rep="ROBERTO", paid_on=date(2024, 1, 2))])
        client = make_client(freight, receivables, metrics=metrics)

        body = client.get("/api/sync", headers=HEADERS).json()
        assert body["count"] == 1
        assert body["failed_representatives"] == ["MIGUEL"]

        health = client.get("/health").json()
        assert health["status"] == "degraded"
        assert health["last_sync"]["failed_representatives"] == ["MIGUEL"]
