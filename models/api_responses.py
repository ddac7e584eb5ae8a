"""
API Response Models for the vendas consolidation service.

These Pydantic models define the data contracts between the backend API and
the dashboard frontend. They are kept separate from the core models so the
wire shape can evolve without touching the merge engine.

Hierarchy:
- InvoiceResponse: one consolidated invoice plus its derived status
- DashboardResponse: dashboard totals, optionally month-scoped
- MonthlyReportResponse: paid invoices for one month
- SyncResponse: outcome of a consolidation cycle
- HealthResponse: liveness plus last sync info and metrics
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from typing_extensions import Annotated

from consolidation.status import resolve_status
from core.models.canonical import ConsolidatedInvoice, DisplayStatus, Provenance

# Amounts are Decimal internally and plain JSON numbers on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# =============================================================================
# BASE MODELS
# =============================================================================

class ResponseBase(BaseModel):
    """Base class for all API responses."""
    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(ResponseBase):
    """Error body for 401/503 responses."""
    error: str
    detail: str


# =============================================================================
# INVOICE MODELS
# =============================================================================

class InvoiceResponse(ResponseBase):
    """Consolidated invoice as shown in the table view."""
    invoice_number: str = Field(..., description="Invoice number (numero_nf)")
    provenance: Provenance = Field(..., description="Source that won the merge")
    status: DisplayStatus = Field(..., description="Derived display status")
    sales_rep: str
    priority: int
    issue_date: Optional[date] = None
    value: Money = Decimal("0")
    invoice_type: Optional[str] = None
    client_org: Optional[str] = None

    # Receivable fields
    bank: Optional[str] = None
    due_date: Optional[date] = None
    payment_date: Optional[date] = None
    payment_status: Optional[str] = None
    notes: Optional[str] = None

    # Freight fields
    document: Optional[str] = None
    contact: Optional[str] = None
    carrier: Optional[str] = None
    freight_value: Optional[Money] = None
    pickup_date: Optional[date] = None
    destination_city: Optional[str] = None
    expected_delivery: Optional[date] = None
    delivery_status: Optional[str] = None

    @classmethod
    def from_invoice(cls, invoice: ConsolidatedInvoice) -> "InvoiceResponse":
        data = invoice.model_dump(exclude={"receivable_id", "freight_id"})
        return cls(status=resolve_status(invoice), **data)


# =============================================================================
# REPORTING MODELS
# =============================================================================

class DashboardResponse(ResponseBase):
    """Dashboard cards."""
    total_invoiced: Money = Field(..., description="Sum of every record value")
    total_paid: Money = Field(..., description="Sum of receivable-provenance values")
    total_receivable: Money = Field(..., description="Sum of delivered, unpaid freight values")
    delivered_count: int = Field(..., description="Paid plus delivered records")
    year: Optional[int] = None
    month: Optional[int] = None


class MonthlyReportResponse(ResponseBase):
    """Paid invoices for one month, ascending by payment date."""
    year: int
    month: int
    count: int
    total_paid: Money
    rows: List[InvoiceResponse] = Field(default_factory=list)


# =============================================================================
# SYNC / HEALTH MODELS
# =============================================================================

class SyncResponse(ResponseBase):
    """Outcome of GET /api/sync."""
    success: bool = True
    count: int = Field(..., description="Consolidated records in the new snapshot")
    warnings: List[str] = Field(default_factory=list)
    failed_representatives: List[str] = Field(default_factory=list)
    content_hash: str
    synced_at: datetime
    duration_ms: float = 0.0


class LastSyncInfo(ResponseBase):
    """Summary of the snapshot currently served."""
    synced_at: datetime
    record_count: int
    content_hash: str
    degraded: bool = False
    failed_representatives: List[str] = Field(default_factory=list)


class HealthResponse(ResponseBase):
    """Health check response."""
    status: str
    timestamp: str
    version: str
    last_sync: Optional[LastSyncInfo] = None
    metrics: Dict[str, Any] = Field(default_factory=dict)
