"""Abstract upstream source interface.

This module defines the interface the sync service depends on. It is
intentionally backend-agnostic - no Supabase specifics here.

Sources:
1. Are queried one sales representative at a time
2. Return rows ordered by invoice number, already parsed into raw models
3. Raise SourceUnavailable when the backing table cannot be read
4. Never mutate the upstream table
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from core.errors import MalformedRecord
from core.models.canonical import RawFreightRecord, RawReceivableRecord
from core.observability.logging import get_logger
from core.observability.metrics import MetricsCollector, get_metrics

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordSource(ABC, Generic[RecordT]):
    """Read-only upstream table queried per representative."""

    #: Short label used in logs, warnings and errors ("freight", "receivable")
    name: str = "source"

    #: Collector for skipped rows; the sync service binds its own when unset
    metrics: Optional[MetricsCollector] = None

    @abstractmethod
    async def fetch_for_representative(self, representative: str) -> List[RecordT]:
        """Return the representative's rows ordered by invoice number.

        Raises:
            SourceUnavailable: The table could not be read
        """

    async def close(self) -> None:
        """Release any resources held by the source."""
        return None


class FreightSource(RecordSource[RawFreightRecord]):
    """Freight/delivery tracking table."""
    name = "freight"


class ReceivableSource(RecordSource[RawReceivableRecord]):
    """Accounts-receivable table."""
    name = "receivable"


def parse_rows(
    rows: Iterable[Dict[str, Any]],
    model: Type[RecordT],
    source: str,
    metrics: Optional[MetricsCollector] = None,
) -> List[RecordT]:
    """Validate raw upstream rows, skipping and logging the unparseable ones.

    Skipped rows are counted on `metrics` (the global collector by default).
    """
    records: List[RecordT] = []
    skipped = 0
    for row in rows:
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            skipped += 1
            malformed = MalformedRecord(
                f"{e.error_count()} invalid field(s)",
                source=source,
                source_id=str(row.get("id")) if row.get("id") is not None else None,
            )
            logger.warning(f"Skipping malformed record: {malformed.describe()}")
    if skipped:
        (metrics or get_metrics()).record_malformed(skipped)
    return records
