"""Models Package.

API response models for the vendas dashboard. Core record types live in
core.models.
"""

from models.api_responses import (
    Money,
    ResponseBase,
    ErrorResponse,
    InvoiceResponse,
    DashboardResponse,
    MonthlyReportResponse,
    SyncResponse,
    LastSyncInfo,
    HealthResponse,
)

__all__ = [
    "Money",
    "ResponseBase",
    "ErrorResponse",
    "InvoiceResponse",
    "DashboardResponse",
    "MonthlyReportResponse",
    "SyncResponse",
    "LastSyncInfo",
    "HealthResponse",
]
