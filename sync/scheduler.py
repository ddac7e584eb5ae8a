"""Periodic consolidation.

Runs SyncService.trigger_sync on a fixed interval inside the serving
process. A failed cycle is logged and the loop keeps going; the previous
snapshot stays in place.
"""

import asyncio
from typing import Optional

from core.errors import SourceUnavailable
from core.observability.logging import get_logger
from sync.service import SyncService

logger = get_logger(__name__)


class PeriodicSync:
    """Background task that refreshes the consolidated snapshot."""

    def __init__(self, service: SyncService, interval_seconds: float = 300.0, run_immediately: bool = True):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.service = service
        self.interval_seconds = interval_seconds
        self.run_immediately = run_immediately
        self.cycles = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.ensure_future(self._loop())
        logger.info(f"Periodic sync every {self.interval_seconds:g}s")

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Periodic sync stopped")

    async def run_once(self) -> None:
        """One cycle; errors are logged, never raised."""
        self.cycles += 1
        try:
            await self.service.trigger_sync()
        except SourceUnavailable as e:
            logger.error(f"Scheduled sync failed: {e}")
        except Exception as e:
            logger.exception(f"Scheduled sync crashed: {e}")

    async def _loop(self) -> None:
        if not self.run_immediately:
            await asyncio.sleep(self.interval_seconds)
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)
