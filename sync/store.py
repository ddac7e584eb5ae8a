"""Consolidated snapshot store.

Holds the current consolidated set as one immutable Snapshot. Replacing it
is a single reference assignment, so readers see either the previous
complete snapshot or the new one.
"""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Tuple

from consolidation.status import resolve_status
from core.models.canonical import ConsolidatedInvoice


def _compute_sha256(data: bytes) -> str:
    """Compute SHA256 hash of bytes."""
    return hashlib.sha256(data).hexdigest()


def compute_content_hash(records: Iterable[ConsolidatedInvoice]) -> str:
    """Order-independent fingerprint of a consolidated set.

    Covers every record field plus the derived status, so two syncs over
    unchanged upstream data produce the same hash.
    """
    rows = [
        {**r.model_dump(mode="json"), "status": resolve_status(r).value}
        for r in records
    ]
    rows.sort(key=lambda row: (row["invoice_number"], row["sales_rep"]))
    payload = json.dumps(rows, sort_keys=True, default=str).encode("utf-8")
    return _compute_sha256(payload)


@dataclass(frozen=True)
class Snapshot:
    """One complete consolidation result."""
    records: Tuple[ConsolidatedInvoice, ...]
    synced_at: datetime
    content_hash: str
    warnings: Tuple[str, ...] = ()
    failed_representatives: Tuple[str, ...] = ()
    duration_ms: float = 0.0

    @property
    def record_count(self) -> int:
        return len(self.records)

    @property
    def degraded(self) -> bool:
        """True when at least one representative was skipped."""
        return bool(self.failed_representatives)


@dataclass
class ConsolidatedStore:
    """Owner of the live snapshot. Created at service start."""
    _snapshot: Optional[Snapshot] = field(default=None, repr=False)

    @property
    def snapshot(self) -> Optional[Snapshot]:
        return self._snapshot

    def replace(self, snapshot: Snapshot) -> Optional[Snapshot]:
        """Swap in a new snapshot and return the previous one."""
        previous = self._snapshot
        self._snapshot = snapshot
        return previous

    def clear(self) -> None:
        """Drop the snapshot (service shutdown)."""
        self._snapshot = None
