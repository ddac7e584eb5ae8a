"""Consolidation of freight and receivable rows into one invoice set.

Exposes:
- normalize_freight / normalize_receivable: raw row -> ConsolidatedInvoice
- merge / consolidate: per-representative deduplication
- resolve_status: derived display status
"""

from consolidation.normalize import (
    normalize_freight,
    normalize_receivable,
    normalize_status_text,
)
from consolidation.engine import (
    RepresentativeBatch,
    RepresentativeMerge,
    ConsolidationResult,
    merge,
    merge_representative,
    consolidate,
)
from consolidation.status import (
    resolve_status,
    parse_status_filter,
)

__all__ = [
    "normalize_freight",
    "normalize_receivable",
    "normalize_status_text",
    "RepresentativeBatch",
    "RepresentativeMerge",
    "ConsolidationResult",
    "merge",
    "merge_representative",
    "consolidate",
    "resolve_status",
    "parse_status_filter",
]
