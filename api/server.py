"""FastAPI server for the vendas dashboard.

Main entry point for the API server. The consolidated snapshot lives in
this process: the lifespan builds the sync service, starts the periodic
sync and closes everything at shutdown.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.deps import SESSION_HEADER
from api.routes import health, vendas
from connectors import build_supabase_sources
from core import __version__
from core.config import Settings
from core.errors import SourceUnavailable, Unauthorized
from core.observability.logging import configure_logging, get_logger
from core.security import SessionGate, build_gate
from sync import PeriodicSync, SyncService

logger = get_logger(__name__)


def build_service(settings: Settings):
    """Create the Supabase-backed sync service.

    Returns:
        (service, client) - the client is closed by the lifespan
    """
    freight, receivable, sink, client = build_supabase_sources(settings)
    service = SyncService(
        freight,
        receivable,
        settings.representatives,
        sink=sink,
        source_timeout_seconds=settings.source_timeout_seconds,
        sync_on_read=settings.sync_on_read,
    )
    return service, client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings: Settings = app.state.settings
    client = None
    if app.state.service is None:
        app.state.service, client = build_service(settings)

    scheduler: Optional[PeriodicSync] = None
    if app.state.schedule:
        scheduler = PeriodicSync(app.state.service, settings.sync_interval_seconds)
        scheduler.start()
    app.state.scheduler = scheduler
    logger.info(f"Vendas API starting up for {', '.join(settings.representatives)}")

    yield

    # Shutdown
    logger.info("Vendas API shutting down")
    if scheduler is not None:
        await scheduler.stop()
    await app.state.service.close()
    if client is not None:
        await client.close()


async def _source_unavailable_handler(request: Request, exc: SourceUnavailable) -> JSONResponse:
    logger.error(f"{request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"error": str(exc), "detail": "sync failed"})


async def _unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"error": str(exc), "detail": "unauthorized"},
        headers={"WWW-Authenticate": SESSION_HEADER},
    )


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[SyncService] = None,
    gate: Optional[SessionGate] = None,
    schedule: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Runtime settings (read from the environment by default)
        service: Pre-built sync service; built from Supabase settings at
            startup when omitted
        gate: Session gate; built from settings when omitted
        schedule: Start the periodic sync in the lifespan
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, settings.log_json)

    app = FastAPI(
        title="Vendas API",
        description="Consolidated sales view over freight and receivable records",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.service = service
    app.state.gate = gate or build_gate(settings)
    app.state.schedule = schedule
    app.state.scheduler = None

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SourceUnavailable, _source_unavailable_handler)
    app.add_exception_handler(Unauthorized, _unauthorized_handler)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(vendas.router, prefix="/api", tags=["Vendas"])

    return app


def main() -> None:
    import uvicorn
    settings = Settings.from_env()
    uvicorn.run("api.server:create_app", factory=True, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
