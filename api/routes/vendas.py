"""Vendas endpoints consumed by the dashboard frontend.

Implements:
- GET /api/sync - run (or join) a consolidation cycle
- GET /api/vendas - consolidated invoices for the table view
- GET /api/dashboard - dashboard totals
- GET /api/relatorio - monthly paid report

Every route requires a session token (X-Session-Token). SourceUnavailable
is rendered as 503 by the app, so an outage never looks like an empty list.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_service, require_session
from models.api_responses import (
    DashboardResponse,
    InvoiceResponse,
    MonthlyReportResponse,
    SyncResponse,
)
from sync import SyncService

router = APIRouter(dependencies=[Depends(require_session)])


@router.get("/sync", response_model=SyncResponse)
async def trigger_sync(service: SyncService = Depends(get_service)) -> SyncResponse:
    """Run a consolidation cycle and report what it produced."""
    result = await service.trigger_sync()
    return SyncResponse(
        success=True,
        count=result.record_count,
        warnings=result.warnings,
        failed_representatives=result.failed_representatives,
        content_hash=result.content_hash,
        synced_at=result.synced_at,
        duration_ms=round(result.duration_ms, 1),
    )


@router.get("/vendas", response_model=List[InvoiceResponse])
async def list_vendas(
    year: Optional[int] = Query(None, ge=1, description="Issue year (requires month)"),
    month: Optional[int] = Query(None, ge=1, le=12, description="Issue month (requires year)"),
    search: Optional[str] = Query(None, description="Invoice number or client substring"),
    status: Optional[str] = Query(None, description="Display status filter"),
    sort_by: str = Query("issue_date", description="issue_date or payment_date"),
    descending: bool = Query(False),
    service: SyncService = Depends(get_service),
) -> List[InvoiceResponse]:
    """List consolidated invoices with their derived status."""
    try:
        records = await service.query(
            year=year,
            month=month,
            search_text=search,
            status=status,
            sort_by=sort_by,
            descending=descending,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [InvoiceResponse.from_invoice(r) for r in records]


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    year: Optional[int] = Query(None, ge=1),
    month: Optional[int] = Query(None, ge=1, le=12),
    service: SyncService = Depends(get_service),
) -> DashboardResponse:
    """Dashboard totals over the whole set or one issue month."""
    try:
        totals = await service.dashboard_stats(year=year, month=month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return DashboardResponse(
        total_invoiced=totals.total_invoiced,
        total_paid=totals.total_paid,
        total_receivable=totals.total_receivable,
        delivered_count=totals.delivered_count,
        year=year,
        month=month,
    )


@router.get("/relatorio", response_model=MonthlyReportResponse)
async def get_monthly_report(
    year: int = Query(..., ge=1),
    month: int = Query(..., ge=1, le=12),
    search: Optional[str] = Query(None),
    service: SyncService = Depends(get_service),
) -> MonthlyReportResponse:
    """Invoices paid in one month, ascending by payment date."""
    report = await service.monthly_paid_report(year, month, search)
    return MonthlyReportResponse(
        year=report.year,
        month=report.month,
        count=len(report.rows),
        total_paid=report.total_paid,
        rows=[InvoiceResponse.from_invoice(r) for r in report.rows],
    )
