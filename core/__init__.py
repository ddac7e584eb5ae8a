"""Core module - source-neutral models, configuration, errors and observability.

Upstream-specific logic (Supabase tables, column names) belongs in /connectors/.
"""

__version__ = "1.0.0"
