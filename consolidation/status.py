"""Status Resolver.

The single place where a consolidated invoice's display status is derived.
Table view, dashboard and report all call resolve_status.
"""

from typing import Dict, Union

from consolidation.normalize import normalize_status_text
from core.models.canonical import ConsolidatedInvoice, DisplayStatus, Provenance


# Normalized freight sub-status -> display status
FREIGHT_STATUS_MAP: Dict[str, DisplayStatus] = {
    "ENTREGUE": DisplayStatus.DELIVERED,
    "EM_TRANSITO": DisplayStatus.IN_TRANSIT,
    "AGUARDANDO_COLETA": DisplayStatus.AWAITING_PICKUP,
    "EXTRAVIADO": DisplayStatus.LOST,
    "DEVOLVIDO": DisplayStatus.RETURNED,
}

DEFAULT_FREIGHT_STATUS = DisplayStatus.IN_TRANSIT

PAID_ALIASES = {"PAGO", "PAGA"}


def resolve_freight_status(sub_status: str) -> DisplayStatus:
    """Map a raw delivery sub-status to a display status.

    Unknown or missing values resolve to IN_TRANSIT.
    """
    return FREIGHT_STATUS_MAP.get(normalize_status_text(sub_status), DEFAULT_FREIGHT_STATUS)


def resolve_status(record: ConsolidatedInvoice) -> DisplayStatus:
    """Derive the display status of a consolidated invoice.

    RECEIVABLE provenance is always PAID; FREIGHT provenance follows the
    delivery sub-status.
    """
    if record.provenance == Provenance.RECEIVABLE:
        return DisplayStatus.PAID
    return resolve_freight_status(record.delivery_status)


def parse_status_filter(value: Union[str, DisplayStatus]) -> DisplayStatus:
    """Parse a user-supplied status filter.

    Accepts display names ("PAID", "in transit") and raw upstream values
    ("PAGO", "ENTREGUE", "aguardando coleta").

    Raises:
        ValueError: If the text matches no known status
    """
    if isinstance(value, DisplayStatus):
        return value

    token = normalize_status_text(value)
    if token in DisplayStatus.__members__:
        return DisplayStatus[token]
    if token in PAID_ALIASES:
        return DisplayStatus.PAID
    if token in FREIGHT_STATUS_MAP:
        return FREIGHT_STATUS_MAP[token]
    raise ValueError(f"Unknown status filter: {value!r}")
