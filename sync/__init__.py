"""Sync - consolidation cycles, snapshot store and scheduling."""

from sync.store import ConsolidatedStore, Snapshot, compute_content_hash
from sync.service import SyncResult, SyncService
from sync.scheduler import PeriodicSync

__all__ = [
    "ConsolidatedStore",
    "Snapshot",
    "compute_content_hash",
    "SyncResult",
    "SyncService",
    "PeriodicSync",
]
