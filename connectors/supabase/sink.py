"""Publishes consolidated snapshots to a Supabase table.

The table is fully replaced on every publish: all rows are deleted, then
the new snapshot is inserted. Column names follow the `vendas` table.
"""

from typing import Any, Dict, Iterable, List, Optional

from connectors.supabase.client import PostgrestClient, neq
from core.models.canonical import ConsolidatedInvoice, Provenance
from core.observability.logging import get_logger

logger = get_logger(__name__)

# PostgREST refuses unfiltered deletes; no row carries the nil UUID.
NIL_UUID = "00000000-0000-0000-0000-000000000000"

ORIGIN_LABELS = {
    Provenance.RECEIVABLE: "CONTAS_RECEBER",
    Provenance.FREIGHT: "CONTROLE_FRETE",
}


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _number(value) -> Optional[float]:
    return float(value) if value is not None else None


RECEIVABLE_COLUMNS = (
    "banco",
    "data_vencimento",
    "data_pagamento",
    "status_pagamento",
    "observacoes",
    "id_contas_receber",
)

FREIGHT_COLUMNS = (
    "documento",
    "contato_orgao",
    "transportadora",
    "valor_frete",
    "data_coleta",
    "cidade_destino",
    "previsao_entrega",
    "status_frete",
    "id_controle_frete",
)


def to_vendas_row(invoice: ConsolidatedInvoice) -> Dict[str, Any]:
    """Serialize a consolidated invoice with the `vendas` column names.

    Every row carries the same keys; columns belonging to the other origin
    are null. PostgREST bulk inserts require one key set per request.
    """
    row: Dict[str, Any] = {
        "numero_nf": invoice.invoice_number,
        "origem": ORIGIN_LABELS[invoice.provenance],
        "data_emissao": _iso(invoice.issue_date),
        "valor_nf": _number(invoice.value),
        "tipo_nf": invoice.invoice_type,
        "nome_orgao": invoice.client_org,
        "vendedor": invoice.sales_rep,
        "prioridade": invoice.priority,
    }
    row.update(dict.fromkeys(RECEIVABLE_COLUMNS + FREIGHT_COLUMNS))
    if invoice.provenance == Provenance.RECEIVABLE:
        row.update({
            "banco": invoice.bank,
            "data_vencimento": _iso(invoice.due_date),
            "data_pagamento": _iso(invoice.payment_date),
            "status_pagamento": invoice.payment_status,
            "observacoes": invoice.notes,
            "id_contas_receber": invoice.receivable_id,
        })
    else:
        row.update({
            "documento": invoice.document,
            "contato_orgao": invoice.contact,
            "transportadora": invoice.carrier,
            "valor_frete": _number(invoice.freight_value),
            "data_coleta": _iso(invoice.pickup_date),
            "cidade_destino": invoice.destination_city,
            "previsao_entrega": _iso(invoice.expected_delivery),
            "status_frete": invoice.delivery_status,
            "id_controle_frete": invoice.freight_id,
        })
    return row


class SupabaseVendasSink:
    """Replaces the contents of the `vendas` table with a snapshot."""

    def __init__(self, client: PostgrestClient, table: str = "vendas"):
        self.client = client
        self.table = table

    async def publish(self, records: Iterable[ConsolidatedInvoice]) -> int:
        """Delete every row and insert the snapshot. Returns rows written.

        Raises:
            PostgrestError: Delete or insert failed
        """
        rows: List[Dict[str, Any]] = [to_vendas_row(r) for r in records]
        await self.client.delete(self.table, {"id": neq(NIL_UUID)})
        await self.client.insert(self.table, rows)
        logger.info(f"Published {len(rows)} rows to {self.table}")
        return len(rows)
