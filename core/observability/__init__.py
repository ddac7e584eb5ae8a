"""
Observability Module for the Consolidation Service

Provides:
- Structured logging with correlation IDs (sync cycle, representative, invoice)
- Metrics collection (sync cycles, upstream fetches, processing times)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    record_processing_time,
)

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "record_processing_time",
    # Logging
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "with_correlation",
]
