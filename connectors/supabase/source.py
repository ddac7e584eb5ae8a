"""Supabase-backed upstream sources.

Each source reads one table filtered by `vendedor` and ordered by
`numero_nf`, and parses rows into raw models. Client errors are raised as
SourceUnavailable so the sync service can isolate the representative.
"""

from typing import List, Optional

from connectors.source_base import FreightSource, ReceivableSource, parse_rows
from connectors.supabase.client import PostgrestClient, PostgrestError, eq
from core.errors import SourceUnavailable
from core.models.canonical import RawFreightRecord, RawReceivableRecord
from core.observability.logging import get_logger
from core.observability.metrics import MetricsCollector

logger = get_logger(__name__)

REPRESENTATIVE_COLUMN = "vendedor"
ORDER_BY_INVOICE = "numero_nf.asc,id.asc"


async def _select_for(client: PostgrestClient, table: str, source: str, representative: str) -> list:
    try:
        return await client.select(
            table,
            filters={REPRESENTATIVE_COLUMN: eq(representative)},
            order=ORDER_BY_INVOICE,
        )
    except PostgrestError as e:
        raise SourceUnavailable(
            f"Could not read {table} for {representative}: {e}",
            source=source,
            representative=representative,
        ) from e


class SupabaseFreightSource(FreightSource):
    """Freight rows from the `controle_frete` table."""

    def __init__(
        self,
        client: PostgrestClient,
        table: str = "controle_frete",
        metrics: Optional[MetricsCollector] = None,
    ):
        self.client = client
        self.table = table
        self.metrics = metrics

    async def fetch_for_representative(self, representative: str) -> List[RawFreightRecord]:
        rows = await _select_for(self.client, self.table, self.name, representative)
        logger.debug(f"Fetched {len(rows)} rows from {self.table}")
        return parse_rows(rows, RawFreightRecord, self.name, self.metrics)


class SupabaseReceivableSource(ReceivableSource):
    """Receivable rows from the `contas_receber` table."""

    def __init__(
        self,
        client: PostgrestClient,
        table: str = "contas_receber",
        metrics: Optional[MetricsCollector] = None,
    ):
        self.client = client
        self.table = table
        self.metrics = metrics

    async def fetch_for_representative(self, representative: str) -> List[RawReceivableRecord]:
        rows = await _select_for(self.client, self.table, self.name, representative)
        logger.debug(f"Fetched {len(rows)} rows from {self.table}")
        return parse_rows(rows, RawReceivableRecord, self.name, self.metrics)
