"""Core canonical data models for the vendas consolidation.

Raw models mirror the two upstream tables (`controle_frete` and
`contas_receber`). They accept either the upstream Portuguese column names
or the Python field names.

ConsolidatedInvoice is the single, source-neutral shape produced by the
normalizer and consumed by reporting and the API layer.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, Field, ConfigDict
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


# =============================================================================
# Value Parsers (upstream rows mix numbers, strings and timestamps)
# =============================================================================

_THOUSANDS_ONLY = re.compile(r"^-?\d{1,3}(\.\d{3})+$")


def _parse_decimal(value):
    """Parse decimal from numbers or strings ("R$ 1.234,56", "1234.56")."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("Boolean is not a monetary value")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        currency = "R$" in value
        s = value.strip().replace("R$", "").replace(" ", "")
        if s == "":
            return None
        if "," in s:
            # Brazilian format: dot for thousands, comma for decimals
            s = s.replace(".", "").replace(",", ".")
        elif _THOUSANDS_ONLY.match(s) and (currency or s.count(".") > 1):
            # "R$ 1.234" or "1.234.567": grouped integer, no decimals
            s = s.replace(".", "")
        try:
            return Decimal(s)
        except InvalidOperation:
            raise ValueError(f"Cannot parse amount: {value}")
    return value


def _parse_date(value):
    """Parse date from ISO dates, ISO timestamps or dd/mm/yyyy."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        s = value.strip()
        if s == "":
            return None
        for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
            try:
                return datetime.strptime(s, fmt).date()
            except ValueError:
                continue
        try:
            return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
        except ValueError:
            raise ValueError(f"Cannot parse date: {s}")
    return value


def _parse_text(value):
    """Coerce identifiers and free text to stripped strings (None when blank)."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    s = str(value).strip()
    return s or None


DecimalValue = Annotated[Decimal, BeforeValidator(_parse_decimal)]
DateValue = Annotated[date, BeforeValidator(_parse_date)]
TextValue = Annotated[str, BeforeValidator(_parse_text)]


# =============================================================================
# Enums
# =============================================================================

class Provenance(str, Enum):
    """Which upstream source won for a consolidated invoice."""
    RECEIVABLE = "RECEIVABLE"
    FREIGHT = "FREIGHT"


class DisplayStatus(str, Enum):
    """Derived status shown for an invoice. Never stored."""
    PAID = "PAID"
    DELIVERED = "DELIVERED"
    IN_TRANSIT = "IN_TRANSIT"
    AWAITING_PICKUP = "AWAITING_PICKUP"
    LOST = "LOST"
    RETURNED = "RETURNED"


PRIORITY_RECEIVABLE = 2
PRIORITY_FREIGHT = 1


# =============================================================================
# Base Model
# =============================================================================

class CanonicalBase(BaseModel):
    """Base model for all canonical data structures."""
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Raw Upstream Records
# =============================================================================

class RawFreightRecord(CanonicalBase):
    """A row of the freight/delivery tracking table."""
    invoice_number: Optional[TextValue] = Field(None, alias="numero_nf")
    sales_rep: Optional[TextValue] = Field(None, alias="vendedor")
    issue_date: Optional[DateValue] = Field(None, alias="data_emissao")
    value: Optional[DecimalValue] = Field(None, alias="valor_nf")
    invoice_type: Optional[TextValue] = Field(None, alias="tipo_nf")
    client_org: Optional[TextValue] = Field(None, alias="nome_orgao")
    document: Optional[TextValue] = Field(None, alias="documento")
    contact: Optional[TextValue] = Field(None, alias="contato_orgao")
    carrier: Optional[TextValue] = Field(None, alias="transportadora")
    freight_value: Optional[DecimalValue] = Field(None, alias="valor_frete")
    pickup_date: Optional[DateValue] = Field(None, alias="data_coleta")
    destination_city: Optional[TextValue] = Field(None, alias="cidade_destino")
    expected_delivery: Optional[DateValue] = Field(None, alias="previsao_entrega")
    delivery_status: Optional[TextValue] = Field(None, alias="status")
    source_id: Optional[TextValue] = Field(None, alias="id")


class RawReceivableRecord(CanonicalBase):
    """A row of the accounts-receivable table."""
    invoice_number: Optional[TextValue] = Field(None, alias="numero_nf")
    sales_rep: Optional[TextValue] = Field(None, alias="vendedor")
    issue_date: Optional[DateValue] = Field(None, alias="data_emissao")
    value: Optional[DecimalValue] = Field(None, alias="valor")
    invoice_type: Optional[TextValue] = Field(None, alias="tipo_nf")
    client_org: Optional[TextValue] = Field(None, alias="orgao")
    bank: Optional[TextValue] = Field(None, alias="banco")
    due_date: Optional[DateValue] = Field(None, alias="data_vencimento")
    payment_date: Optional[DateValue] = Field(None, alias="data_pagamento")
    payment_status: Optional[TextValue] = Field(None, alias="status")
    notes: Optional[TextValue] = Field(None, alias="observacoes")
    source_id: Optional[TextValue] = Field(None, alias="id")


# =============================================================================
# Consolidated Invoice
# =============================================================================

class ConsolidatedInvoice(CanonicalBase):
    """One invoice in the consolidated set, tagged with its provenance.

    Immutable for the lifetime of a sync cycle. The display status is not a
    field: it is derived by consolidation.status.resolve_status on read.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    invoice_number: str
    provenance: Provenance
    sales_rep: str
    priority: int
    issue_date: Optional[date] = None
    value: Decimal = Decimal("0")
    invoice_type: Optional[str] = None
    client_org: Optional[str] = None

    # Receivable side
    bank: Optional[str] = None
    due_date: Optional[date] = None
    payment_date: Optional[date] = None
    payment_status: Optional[str] = None
    notes: Optional[str] = None
    receivable_id: Optional[str] = None

    # Freight side
    document: Optional[str] = None
    contact: Optional[str] = None
    carrier: Optional[str] = None
    freight_value: Optional[Decimal] = None
    pickup_date: Optional[date] = None
    destination_city: Optional[str] = None
    expected_delivery: Optional[date] = None
    delivery_status: Optional[str] = None
    freight_id: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        """Natural key: (invoice number, sales representative)."""
        return (self.invoice_number, self.sales_rep)

