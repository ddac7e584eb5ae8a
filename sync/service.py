"""Sync service: the core boundary consumed by the API layer.

Runs consolidation cycles (fetch -> merge -> swap) and serves reads from
the resulting snapshot:
- trigger_sync() -> SyncResult
- list_invoices() -> List[ConsolidatedInvoice]
- dashboard_stats(year, month) -> DashboardTotals
- monthly_paid_report(year, month, search_text) -> MonthlyPaidReport
- query(...) -> List[ConsolidatedInvoice]

Only one cycle runs at a time. A sync request that arrives while a cycle is
in flight joins that cycle and receives its result.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple, Union

from connectors.source_base import FreightSource, ReceivableSource
from consolidation.engine import RepresentativeBatch, consolidate
from core.errors import SourceUnavailable
from core.models.canonical import ConsolidatedInvoice, DisplayStatus
from core.observability.logging import get_logger, log_source_error, with_correlation
from core.observability.metrics import MetricsCollector, get_metrics
from reporting.aggregation import (
    DashboardTotals,
    MonthlyPaidReport,
    compute_dashboard_totals,
    compute_monthly_paid_report,
    filter_for_month,
)
from reporting.query import query_invoices
from sync.store import ConsolidatedStore, Snapshot, compute_content_hash

logger = get_logger(__name__)


@dataclass
class SyncResult:
    """Outcome of one consolidation cycle."""
    record_count: int
    synced_at: datetime
    content_hash: str
    duration_ms: float = 0.0
    warnings: List[str] = field(default_factory=list)
    failed_representatives: List[str] = field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SyncResult":
        return cls(
            record_count=snapshot.record_count,
            synced_at=snapshot.synced_at,
            content_hash=snapshot.content_hash,
            duration_ms=snapshot.duration_ms,
            warnings=list(snapshot.warnings),
            failed_representatives=list(snapshot.failed_representatives),
        )


class SyncService:
    """Owns the consolidated store and the consolidation cycle."""

    def __init__(
        self,
        freight_source: FreightSource,
        receivable_source: ReceivableSource,
        representatives: Sequence[str],
        store: Optional[ConsolidatedStore] = None,
        sink: Optional[Any] = None,
        source_timeout_seconds: float = 30.0,
        sync_on_read: bool = True,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Initialize the service.

        Args:
            freight_source: Freight table source
            receivable_source: Receivable table source
            representatives: Sales representatives, consolidated in this order
            store: Snapshot store (a new one by default)
            sink: Optional object with `async publish(records)`; called before
                each new snapshot is swapped in
            source_timeout_seconds: Bound on one representative's fetch
            sync_on_read: Run a cycle before every read (otherwise serve the
                cached snapshot, syncing only when none exists)
            metrics: Metrics collector (global singleton by default); also
                bound to sources that have none
        """
        self.freight_source = freight_source
        self.receivable_source = receivable_source
        self.representatives = list(representatives)
        self.store = store or ConsolidatedStore()
        self.sink = sink
        self.source_timeout_seconds = source_timeout_seconds
        self.sync_on_read = sync_on_read
        self.metrics = metrics or get_metrics()
        # Rows skipped while parsing count on the same collector as merge skips
        for source in (freight_source, receivable_source):
            if getattr(source, "metrics", None) is None:
                source.metrics = self.metrics
        self._inflight: Optional["asyncio.Future[SyncResult]"] = None

    # =========================================================================
    # Sync
    # =========================================================================

    async def trigger_sync(self) -> SyncResult:
        """Run one consolidation cycle, or join the one in flight.

        Raises:
            SourceUnavailable: Every representative failed to fetch
        """
        task = self._inflight
        if task is not None and not task.done():
            self.metrics.record_sync_coalesced()
            logger.info("Sync already in flight; joining it")
            return await asyncio.shield(task)

        task = asyncio.ensure_future(self._run_cycle())
        self._inflight = task
        task.add_done_callback(self._on_cycle_done)
        # Shielded: a cancelled caller must not cancel the shared cycle
        return await asyncio.shield(task)

    def _on_cycle_done(self, task: "asyncio.Future[SyncResult]") -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # Mark retrieved; joined callers re-raise it themselves
            task.exception()

    async def _fetch_both(self, representative: str) -> Tuple[list, list]:
        freight = await self.freight_source.fetch_for_representative(representative)
        receivables = await self.receivable_source.fetch_for_representative(representative)
        return freight, receivables

    async def _fetch_representative(self, representative: str) -> RepresentativeBatch:
        start = time.monotonic()
        freight, receivables = await asyncio.wait_for(
            self._fetch_both(representative),
            timeout=self.source_timeout_seconds,
        )
        self.metrics.record_fetch_completed(representative, (time.monotonic() - start) * 1000)
        return RepresentativeBatch(
            representative=representative,
            freight=freight,
            receivables=receivables,
        )

    async def _run_cycle(self) -> SyncResult:
        sync_id = f"sync-{uuid.uuid4().hex[:8]}"
        with with_correlation(sync_id=sync_id, stage="sync"):
            start = time.monotonic()
            self.metrics.record_sync_started()
            logger.info(f"Sync started for {len(self.representatives)} representatives")

            batches: List[RepresentativeBatch] = []
            failed: List[str] = []
            warnings: List[str] = []

            for rep in self.representatives:
                with with_correlation(representative=rep):
                    try:
                        batches.append(await self._fetch_representative(rep))
                    except asyncio.TimeoutError:
                        message = f"timed out after {self.source_timeout_seconds:g}s"
                        log_source_error("sources", rep, message)
                        self.metrics.record_fetch_failed(rep, timed_out=True)
                        failed.append(rep)
                        warnings.append(f"{rep}: source fetch {message}")
                    except SourceUnavailable as e:
                        log_source_error(e.source or "sources", rep, str(e))
                        self.metrics.record_fetch_failed(rep)
                        failed.append(rep)
                        warnings.append(f"{rep}: {e}")

            if self.representatives and not batches:
                self.metrics.record_sync_failed()
                logger.error("Sync failed: no representative could be fetched")
                raise SourceUnavailable(
                    f"All {len(failed)} representatives failed: " + "; ".join(warnings)
                )

            merge_start = time.monotonic()
            result = consolidate(batches)
            self.metrics.record_processing_time("consolidation.merge", (time.monotonic() - merge_start) * 1000)
            warnings.extend(result.warnings)
            if result.skipped_count:
                self.metrics.record_malformed(result.skipped_count)

            if self.sink is not None:
                try:
                    await self.sink.publish(result.records)
                except Exception as e:
                    logger.exception(f"Publishing snapshot failed: {e}")
                    warnings.append(f"publish failed: {e}")

            duration_ms = (time.monotonic() - start) * 1000
            snapshot = Snapshot(
                records=tuple(result.records),
                synced_at=datetime.utcnow(),
                content_hash=compute_content_hash(result.records),
                warnings=tuple(warnings),
                failed_representatives=tuple(failed),
                duration_ms=duration_ms,
            )
            self.store.replace(snapshot)
            self.metrics.record_sync_completed(snapshot.record_count, duration_ms)

            logger.info(
                f"Sync completed: {snapshot.record_count} records",
                extra_fields={
                    "duration_ms": round(duration_ms, 1),
                    "failed_representatives": failed,
                    "warnings": len(warnings),
                },
            )
            return SyncResult.from_snapshot(snapshot)

    # =========================================================================
    # Reads
    # =========================================================================

    async def current_snapshot(self) -> Snapshot:
        """Snapshot to serve a read from, syncing first when configured."""
        if self.sync_on_read or self.store.snapshot is None:
            await self.trigger_sync()
        return self.store.snapshot

    async def list_invoices(self) -> List[ConsolidatedInvoice]:
        """Current consolidated set ordered by invoice number."""
        snapshot = await self.current_snapshot()
        return sorted(snapshot.records, key=lambda r: (r.invoice_number, r.sales_rep))

    async def dashboard_stats(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> DashboardTotals:
        """Dashboard totals, optionally scoped to an issue month."""
        if (year is None) != (month is None):
            raise ValueError("year and month must be given together")
        snapshot = await self.current_snapshot()
        records = snapshot.records
        if year is not None:
            records = filter_for_month(records, year, month)
        return compute_dashboard_totals(records)

    async def monthly_paid_report(
        self,
        year: int,
        month: int,
        search_text: Optional[str] = None,
    ) -> MonthlyPaidReport:
        snapshot = await self.current_snapshot()
        return compute_monthly_paid_report(snapshot.records, year, month, search_text)

    async def query(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        search_text: Optional[str] = None,
        status: Optional[Union[str, DisplayStatus]] = None,
        sort_by: str = "issue_date",
        descending: bool = False,
    ) -> List[ConsolidatedInvoice]:
        """Table view: optional issue-month scope, then search/status/sort."""
        if (year is None) != (month is None):
            raise ValueError("year and month must be given together")
        snapshot = await self.current_snapshot()
        records = snapshot.records
        if year is not None:
            records = filter_for_month(records, year, month)
        return query_invoices(records, search_text, status, sort_by, descending)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self) -> None:
        """Wait for an in-flight cycle, drop the snapshot and close sources."""
        task = self._inflight
        if task is not None and not task.done():
            try:
                await task
            except SourceUnavailable as e:
                logger.warning(f"Sync in flight at shutdown failed: {e}")
        self.store.clear()
        await self.freight_source.close()
        if self.receivable_source is not self.freight_source:
            await self.receivable_source.close()
