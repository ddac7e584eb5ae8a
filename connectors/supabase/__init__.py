"""Supabase Connector.

Reads the freight and receivable tables through PostgREST and optionally
publishes consolidated snapshots back to a `vendas` table.
"""

from connectors.supabase.client import (
    PostgrestClient,
    PostgrestConfig,
    PostgrestError,
    PostgrestAuthError,
    PostgrestRateLimitError,
    RetryConfig,
)
from connectors.supabase.source import SupabaseFreightSource, SupabaseReceivableSource
from connectors.supabase.sink import SupabaseVendasSink, to_vendas_row

__all__ = [
    "PostgrestClient",
    "PostgrestConfig",
    "PostgrestError",
    "PostgrestAuthError",
    "PostgrestRateLimitError",
    "RetryConfig",
    "SupabaseFreightSource",
    "SupabaseReceivableSource",
    "SupabaseVendasSink",
    "to_vendas_row",
]
