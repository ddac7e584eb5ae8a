"""Merge engine for the vendas consolidation.

Exposes high-level functions:
- merge(freight_records, receivable_records, rep) -> List[ConsolidatedInvoice]
- consolidate(batches) -> ConsolidationResult

Per representative, a confirmed payment in accounts-receivable supersedes the
freight row for the same invoice number. Everything else comes from freight.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from consolidation.normalize import (
    RECEIVABLE_SOURCE,
    normalize_freight,
    normalize_invoice_number,
    normalize_receivable,
)
from core.errors import MalformedRecord
from core.models.canonical import (
    ConsolidatedInvoice,
    RawFreightRecord,
    RawReceivableRecord,
)
from core.observability.logging import get_logger, with_correlation

logger = get_logger(__name__)

PAID_STATUS = "PAGO"


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class RepresentativeBatch:
    """Raw rows fetched for one representative."""
    representative: str
    freight: Sequence[RawFreightRecord] = field(default_factory=list)
    receivables: Sequence[RawReceivableRecord] = field(default_factory=list)


@dataclass
class RepresentativeMerge:
    """Merge outcome for one representative."""
    representative: str
    records: List[ConsolidatedInvoice] = field(default_factory=list)
    skipped: List[MalformedRecord] = field(default_factory=list)
    superseded_freight: int = 0

    @property
    def warnings(self) -> List[str]:
        return [f"{self.representative}: skipped {m.describe()}" for m in self.skipped]


@dataclass
class ConsolidationResult:
    """Concatenated merge outcome across representatives."""
    records: List[ConsolidatedInvoice] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    merges: List[RepresentativeMerge] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return sum(len(m.skipped) for m in self.merges)


# =============================================================================
# Utility Functions
# =============================================================================

def is_confirmed_payment(raw: RawReceivableRecord) -> bool:
    """A receivable counts as paid only with status PAGO and a payment date."""
    status = (raw.payment_status or "").strip().upper()
    return status == PAID_STATUS and raw.payment_date is not None


def _belongs_to(raw_rep: Optional[str], rep: str) -> bool:
    return raw_rep is None or raw_rep == rep


def build_paid_set(
    receivable_records: Iterable[RawReceivableRecord],
    rep: str,
    skipped: Optional[List[MalformedRecord]] = None,
) -> Dict[str, RawReceivableRecord]:
    """Map invoice number -> confirmed-paid receivable row.

    A later paid row for the same invoice number replaces an earlier one
    while keeping the first row's position.
    """
    paid: Dict[str, RawReceivableRecord] = {}
    for raw in receivable_records:
        if not _belongs_to(raw.sales_rep, rep) or not is_confirmed_payment(raw):
            continue
        try:
            number = normalize_invoice_number(raw.invoice_number)
        except MalformedRecord as e:
            malformed = MalformedRecord(e.reason, source=RECEIVABLE_SOURCE, source_id=raw.source_id)
            logger.warning(f"Skipping malformed record: {malformed.describe()}")
            if skipped is not None:
                skipped.append(malformed)
            continue
        if number in paid:
            logger.debug(f"Duplicate paid receivable for {number}; keeping the later row")
        paid[number] = raw
    return paid


# =============================================================================
# Merge
# =============================================================================

def merge_representative(
    freight_records: Iterable[RawFreightRecord],
    receivable_records: Iterable[RawReceivableRecord],
    rep: str,
) -> RepresentativeMerge:
    """Merge one representative's rows into a deduplicated invoice list.

    1. Paid set: receivables with status PAGO and a payment date
    2. Emit every paid receivable (RECEIVABLE provenance)
    3. Emit freight rows whose invoice number was not emitted yet (FREIGHT)
    4. Freight rows for paid invoices are dropped
    5. Unpaid receivables are never emitted and never block freight
    """
    outcome = RepresentativeMerge(representative=rep)
    seen: Set[str] = set()

    with with_correlation(representative=rep, stage="merge"):
        paid = build_paid_set(receivable_records, rep, outcome.skipped)

        for number, raw in paid.items():
            outcome.records.append(normalize_receivable(raw, rep))
            seen.add(number)

        for raw in freight_records:
            if not _belongs_to(raw.sales_rep, rep):
                logger.debug(f"Ignoring freight row {raw.source_id} of representative {raw.sales_rep}")
                continue
            try:
                invoice = normalize_freight(raw, rep)
            except MalformedRecord as malformed:
                logger.warning(f"Skipping malformed record: {malformed.describe()}")
                outcome.skipped.append(malformed)
                continue

            if invoice.invoice_number in seen:
                if invoice.invoice_number in paid:
                    outcome.superseded_freight += 1
                else:
                    logger.debug(f"Duplicate freight row for {invoice.invoice_number}; keeping the first")
                continue

            outcome.records.append(invoice)
            seen.add(invoice.invoice_number)

        logger.debug(
            f"Merged {len(outcome.records)} invoices",
            extra_fields={
                "paid": len(paid),
                "superseded_freight": outcome.superseded_freight,
                "skipped": len(outcome.skipped),
            },
        )

    return outcome


def merge(
    freight_records: Iterable[RawFreightRecord],
    receivable_records: Iterable[RawReceivableRecord],
    rep: str,
) -> List[ConsolidatedInvoice]:
    """Merge one representative's rows; see merge_representative."""
    return merge_representative(freight_records, receivable_records, rep).records


def consolidate(batches: Iterable[RepresentativeBatch]) -> ConsolidationResult:
    """Merge every representative batch and concatenate the results in order."""
    result = ConsolidationResult()
    for batch in batches:
        outcome = merge_representative(batch.freight, batch.receivables, batch.representative)
        result.merges.append(outcome)
        result.records.extend(outcome.records)
        result.warnings.extend(outcome.warnings)
    return result


__all__ = [
    "RepresentativeBatch",
    "RepresentativeMerge",
    "ConsolidationResult",
    "is_confirmed_payment",
    "build_paid_set",
    "merge_representative",
    "merge",
    "consolidate",
]
