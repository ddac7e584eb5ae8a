"""In-memory sources.

Used by the fixture-driven CLI and the tests. Rows can be injected as raw
models or as upstream dicts. Failures and latency can be injected per
representative to exercise partial-failure handling.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Type, Union

from connectors.source_base import FreightSource, ReceivableSource, parse_rows
from core.errors import SourceUnavailable
from core.models.canonical import RawFreightRecord, RawReceivableRecord
from core.observability.metrics import MetricsCollector


class _InMemoryMixin:
    """Shared storage and fault injection for in-memory sources."""

    model: Optional[Type] = None

    def _setup(
        self,
        records: Iterable[Any],
        fail_for: Optional[Iterable[str]] = None,
        delay_seconds: float = 0.0,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        items = list(records)
        self.records = [r for r in items if not isinstance(r, dict)]
        # Upstream dicts are parsed on first fetch, against the bound collector
        self._unparsed: List[Dict[str, Any]] = [r for r in items if isinstance(r, dict)]
        self.fail_for: Set[str] = set(fail_for or ())
        self.delay_seconds = delay_seconds
        self.metrics = metrics
        self.calls: List[str] = []

    async def _select(self, representative: str) -> list:
        self.calls.append(representative)
        if self._unparsed:
            self.records.extend(parse_rows(self._unparsed, self.model, self.name, self.metrics))
            self._unparsed = []
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if representative in self.fail_for:
            raise SourceUnavailable(
                f"{self.name} source unavailable for {representative}",
                source=self.name,
                representative=representative,
            )
        rows = [r for r in self.records if r.sales_rep == representative]
        return sorted(rows, key=lambda r: r.invoice_number or "")


class InMemoryFreightSource(_InMemoryMixin, FreightSource):
    """Freight rows held in memory."""

    model = RawFreightRecord

    def __init__(
        self,
        records: Iterable[Union[RawFreightRecord, Dict[str, Any]]] = (),
        fail_for: Optional[Iterable[str]] = None,
        delay_seconds: float = 0.0,
        metrics: Optional[MetricsCollector] = None,
    ):
        self._setup(records, fail_for, delay_seconds, metrics)

    async def fetch_for_representative(self, representative: str) -> List[RawFreightRecord]:
        return await self._select(representative)


class InMemoryReceivableSource(_InMemoryMixin, ReceivableSource):
    """Receivable rows held in memory."""

    model = RawReceivableRecord

    def __init__(
        self,
        records: Iterable[Union[RawReceivableRecord, Dict[str, Any]]] = (),
        fail_for: Optional[Iterable[str]] = None,
        delay_seconds: float = 0.0,
        metrics: Optional[MetricsCollector] = None,
    ):
        self._setup(records, fail_for, delay_seconds, metrics)

    async def fetch_for_representative(self, representative: str) -> List[RawReceivableRecord]:
        return await self._select(representative)


def load_fixture(path: Path) -> Tuple[InMemoryFreightSource, InMemoryReceivableSource]:
    """Load both sources from a JSON file.

    Expected layout (upstream column names):
        {"controle_frete": [...], "contas_receber": [...]}
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return (
        InMemoryFreightSource(data.get("controle_frete", [])),
        InMemoryReceivableSource(data.get("contas_receber", [])),
    )
