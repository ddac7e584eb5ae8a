"""
Metrics Collection for the Consolidation Service

Collects and exposes in-memory metrics for:
- Sync cycles (started, completed, failed, coalesced into an in-flight cycle)
- Upstream fetches per representative (completed, failed, timed out)
- Malformed rows skipped during normalization
- Processing times (average, p95) per stage
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Dict, List, Optional, Any


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class SyncMetrics:
    """Metrics for consolidation cycles."""
    started: int = 0
    completed: int = 0
    failed: int = 0
    coalesced: int = 0
    in_progress: int = 0
    last_record_count: int = 0
    last_completed_at: Optional[datetime] = None


@dataclass
class SourceMetrics:
    """Metrics for upstream fetches."""
    completed: int = 0
    failed: int = 0
    timeouts: int = 0
    malformed_records: int = 0

    # By representative
    by_representative: Dict[str, Dict[str, int]] = field(
        default_factory=lambda: defaultdict(lambda: {"completed": 0, "failed": 0, "timeouts": 0})
    )


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    # Raw timing samples (keep last N for percentile calculations)
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: str = None):
        """Add a timing sample."""
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

        if stage:
            self.by_stage[stage].append(duration_ms)
            if len(self.by_stage[stage]) > self.max_samples:
                self.by_stage[stage] = self.by_stage[stage][-self.max_samples:]

    def get_average(self, stage: str = None) -> float:
        """Get average processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: str = None) -> float:
        """Get 95th percentile processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector for the consolidation service.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_sync_started()
        metrics.record_sync_completed(record_count=42, duration_ms=850)
    """

    _instance: Optional["MetricsCollector"] = None
    _instance_lock = Lock()

    def __init__(self):
        self.syncs = SyncMetrics()
        self.sources = SourceMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    # =========================================================================
    # Sync Metrics
    # =========================================================================

    def record_sync_started(self):
        with self._lock:
            self.syncs.started += 1
            self.syncs.in_progress += 1

    def record_sync_completed(self, record_count: int, duration_ms: float = None):
        with self._lock:
            self.syncs.completed += 1
            self.syncs.in_progress = max(0, self.syncs.in_progress - 1)
            self.syncs.last_record_count = record_count
            self.syncs.last_completed_at = datetime.utcnow()
            if duration_ms:
                self.timings.add_sample(duration_ms, "sync.cycle")

    def record_sync_failed(self):
        with self._lock:
            self.syncs.failed += 1
            self.syncs.in_progress = max(0, self.syncs.in_progress - 1)

    def record_sync_coalesced(self):
        """A sync request joined a cycle that was already in flight."""
        with self._lock:
            self.syncs.coalesced += 1

    # =========================================================================
    # Source Metrics
    # =========================================================================

    def record_fetch_completed(self, representative: str, duration_ms: float = None):
        with self._lock:
            self.sources.completed += 1
            self.sources.by_representative[representative]["completed"] += 1
            if duration_ms:
                self.timings.add_sample(duration_ms, "source.fetch")

    def record_fetch_failed(self, representative: str, timed_out: bool = False):
        with self._lock:
            self.sources.failed += 1
            self.sources.by_representative[representative]["failed"] += 1
            if timed_out:
                self.sources.timeouts += 1
                self.sources.by_representative[representative]["timeouts"] += 1

    def record_malformed(self, count: int = 1):
        with self._lock:
            self.sources.malformed_records += count

    # =========================================================================
    # Timing Metrics
    # =========================================================================

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: str = None) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, []) if stage else self.timings.samples),
            }

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            last = self.syncs.last_completed_at
            return {
                "syncs": {
                    "started": self.syncs.started,
                    "completed": self.syncs.completed,
                    "failed": self.syncs.failed,
                    "coalesced": self.syncs.coalesced,
                    "in_progress": self.syncs.in_progress,
                    "last_record_count": self.syncs.last_record_count,
                    "last_completed_at": last.isoformat() if last else None,
                },
                "sources": {
                    "completed": self.sources.completed,
                    "failed": self.sources.failed,
                    "timeouts": self.sources.timeouts,
                    "malformed_records": self.sources.malformed_records,
                    "by_representative": {k: dict(v) for k, v in self.sources.by_representative.items()},
                },
                "timings": {
                    "overall": {
                        "average_ms": self.timings.get_average(),
                        "p95_ms": self.timings.get_p95(),
                    },
                    "by_stage": {
                        stage: {
                            "average_ms": self.timings.get_average(stage),
                            "p95_ms": self.timings.get_p95(stage),
                        }
                        for stage in self.timings.by_stage.keys()
                    },
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_processing_time(stage: str, duration_ms: float):
    """Record a processing time sample."""
    get_metrics().record_processing_time(stage, duration_ms)
