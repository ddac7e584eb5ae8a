"""Health check endpoints."""

from datetime import datetime
from typing import Dict

from fastapi import APIRouter, Request, Response

from core import __version__
from core.observability.metrics import get_metrics
from models.api_responses import HealthResponse, LastSyncInfo


router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint. Reports the served snapshot without syncing."""
    service = getattr(request.app.state, "service", None)
    snapshot = service.store.snapshot if service is not None else None

    last_sync = None
    status = "healthy"
    if snapshot is not None:
        last_sync = LastSyncInfo(
            synced_at=snapshot.synced_at,
            record_count=snapshot.record_count,
            content_hash=snapshot.content_hash,
            degraded=snapshot.degraded,
            failed_representatives=list(snapshot.failed_representatives),
        )
        if snapshot.degraded:
            status = "degraded"

    return HealthResponse(
        status=status,
        timestamp=datetime.utcnow().isoformat(),
        version=__version__,
        last_sync=last_sync,
        metrics=get_metrics().get_summary(),
    )


@router.get("/live")
async def liveness_check(response: Response) -> Dict[str, str]:
    """Liveness probe."""
    return {"status": "alive"}
