"""Core data models - source-neutral canonical types.

Raw models mirror the upstream tables; ConsolidatedInvoice is what every
consumer of the consolidated set sees.
"""

from core.models.canonical import (
    # Base
    CanonicalBase,
    DecimalValue,
    DateValue,
    TextValue,

    # Enums
    Provenance,
    DisplayStatus,
    PRIORITY_RECEIVABLE,
    PRIORITY_FREIGHT,

    # Records
    RawFreightRecord,
    RawReceivableRecord,
    ConsolidatedInvoice,
)

__all__ = [
    "CanonicalBase",
    "DecimalValue",
    "DateValue",
    "TextValue",
    "Provenance",
    "DisplayStatus",
    "PRIORITY_RECEIVABLE",
    "PRIORITY_FREIGHT",
    "RawFreightRecord",
    "RawReceivableRecord",
    "ConsolidatedInvoice",
]
