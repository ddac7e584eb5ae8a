"""Upstream Connectors - pluggable freight and receivable sources.

This package contains the abstract source interface and concrete
implementations (Supabase tables, in-memory fixtures).

Key Design Principle:
- The sync service depends ONLY on FreightSource / ReceivableSource
- Sources return raw models (RawFreightRecord, RawReceivableRecord)
- Backend errors surface as SourceUnavailable, never as client exceptions
"""

from typing import Optional

from connectors.source_base import (
    RecordSource,
    FreightSource,
    ReceivableSource,
    parse_rows,
)
from connectors.memory import (
    InMemoryFreightSource,
    InMemoryReceivableSource,
    load_fixture,
)
from core.config import Settings


def build_supabase_sources(settings: Settings):
    """Create Supabase sources (and the optional publish sink) from settings.

    Returns:
        (freight_source, receivable_source, sink_or_None, client)
    """
    from connectors.supabase import (
        PostgrestClient,
        PostgrestConfig,
        SupabaseFreightSource,
        SupabaseReceivableSource,
        SupabaseVendasSink,
    )

    settings.require_supabase()
    client = PostgrestClient(PostgrestConfig(url=settings.supabase_url, api_key=settings.supabase_key))
    freight = SupabaseFreightSource(client, settings.freight_table)
    receivable = SupabaseReceivableSource(client, settings.receivable_table)
    sink: Optional[SupabaseVendasSink] = None
    if settings.publish_table:
        sink = SupabaseVendasSink(client, settings.publish_table)
    return freight, receivable, sink, client


__all__ = [
    "RecordSource",
    "FreightSource",
    "ReceivableSource",
    "parse_rows",
    "InMemoryFreightSource",
    "InMemoryReceivableSource",
    "load_fixture",
    "build_supabase_sources",
]
