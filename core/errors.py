"""Error taxonomy for the consolidation pipeline.

- SourceUnavailable: an upstream table could not be read for a representative
- MalformedRecord: a raw row cannot be normalized (skipped, never fatal)
- Unauthorized: boundary-layer rejection of a missing/invalid session
"""

from typing import Optional


class VendasError(Exception):
    """Base exception for the vendas consolidation service."""
    pass


class SourceUnavailable(VendasError):
    """An upstream provider could not be reached.

    Raised per representative by the sources, and by the sync service when
    every configured representative failed in the same cycle.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        representative: Optional[str] = None,
    ):
        super().__init__(message)
        self.source = source
        self.representative = representative


class MalformedRecord(VendasError):
    """A raw record is missing the data needed to normalize it."""

    def __init__(self, reason: str, source: Optional[str] = None, source_id: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.source = source
        self.source_id = source_id

    def describe(self) -> str:
        row = self.source_id if self.source_id is not None else "?"
        return f"{self.source or 'unknown'} row {row}: {self.reason}"


class Unauthorized(VendasError):
    """Missing or invalid session credential."""
    pass
