"""Record Normalization.

Maps raw upstream rows into the common ConsolidatedInvoice shape and
provides the text normalization shared by the status resolver:
1. Converts to uppercase
2. Strips diacritics (TRÂNSITO -> TRANSITO)
3. Collapses runs of spaces, underscores and hyphens into one underscore

Examples:
    "em trânsito"       -> "EM_TRANSITO"
    "AGUARDANDO COLETA" -> "AGUARDANDO_COLETA"
    " Entregue "        -> "ENTREGUE"
"""

import re
import unicodedata
from decimal import Decimal
from typing import Optional

from core.errors import MalformedRecord
from core.models.canonical import (
    ConsolidatedInvoice,
    Provenance,
    RawFreightRecord,
    RawReceivableRecord,
    PRIORITY_FREIGHT,
    PRIORITY_RECEIVABLE,
)

FREIGHT_SOURCE = "freight"
RECEIVABLE_SOURCE = "receivable"

_SEPARATORS = re.compile(r"[\s_\-]+")


def strip_diacritics(text: str) -> str:
    """Remove combining accents: "TRÂNSITO" -> "TRANSITO"."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_status_text(value: Optional[str]) -> str:
    """Normalize a free-text status for comparison.

    Args:
        value: Raw status from an upstream row (may be None)

    Returns:
        Uppercase, accent-free, underscore-separated token ("" when missing)

    Examples:
        >>> normalize_status_text("Em Trânsito")
        'EM_TRANSITO'
        >>> normalize_status_text("aguardando_coleta")
        'AGUARDANDO_COLETA'
    """
    if not value:
        return ""
    text = strip_diacritics(value).upper().strip()
    return _SEPARATORS.sub("_", text).strip("_")


def normalize_invoice_number(value: Optional[str]) -> str:
    """Strip an invoice number; blank values are malformed."""
    number = (value or "").strip()
    if not number:
        raise MalformedRecord("missing invoice number")
    return number


def _amount(value: Optional[Decimal]) -> Decimal:
    return value if value is not None else Decimal("0")


def normalize_freight(raw: RawFreightRecord, rep: str) -> ConsolidatedInvoice:
    """Normalize a freight row into a FREIGHT-provenance invoice.

    Raises:
        MalformedRecord: If the row has no invoice number
    """
    try:
        invoice_number = normalize_invoice_number(raw.invoice_number)
    except MalformedRecord as e:
        raise MalformedRecord(e.reason, source=FREIGHT_SOURCE, source_id=raw.source_id)

    return ConsolidatedInvoice(
        invoice_number=invoice_number,
        provenance=Provenance.FREIGHT,
        sales_rep=rep,
        priority=PRIORITY_FREIGHT,
        issue_date=raw.issue_date,
        value=_amount(raw.value),
        invoice_type=raw.invoice_type,
        client_org=raw.client_org,
        document=raw.document,
        contact=raw.contact,
        carrier=raw.carrier,
        freight_value=raw.freight_value,
        pickup_date=raw.pickup_date,
        destination_city=raw.destination_city,
        expected_delivery=raw.expected_delivery,
        delivery_status=raw.delivery_status,
        freight_id=raw.source_id,
    )


def normalize_receivable(raw: RawReceivableRecord, rep: str) -> ConsolidatedInvoice:
    """Normalize a receivable row into a RECEIVABLE-provenance invoice.

    Raises:
        MalformedRecord: If the row has no invoice number
    """
    try:
        invoice_number = normalize_invoice_number(raw.invoice_number)
    except MalformedRecord as e:
        raise MalformedRecord(e.reason, source=RECEIVABLE_SOURCE, source_id=raw.source_id)

    return ConsolidatedInvoice(
        invoice_number=invoice_number,
        provenance=Provenance.RECEIVABLE,
        sales_rep=rep,
        priority=PRIORITY_RECEIVABLE,
        issue_date=raw.issue_date,
        value=_amount(raw.value),
        invoice_type=raw.invoice_type,
        client_org=raw.client_org,
        bank=raw.bank,
        due_date=raw.due_date,
        payment_date=raw.payment_date,
        payment_status=raw.payment_status,
        notes=raw.notes,
        receivable_id=raw.source_id,
    )
