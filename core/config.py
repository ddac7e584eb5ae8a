"""Service configuration.

Reads settings from environment variables, loading a `.env` file at the
repo root first if one exists:
- SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY: upstream tables
- VENDAS_REPRESENTATIVES: comma-separated sales representatives
- VENDAS_FREIGHT_TABLE / VENDAS_RECEIVABLE_TABLE / VENDAS_PUBLISH_TABLE
- SYNC_INTERVAL_SECONDS / SOURCE_TIMEOUT_SECONDS / SYNC_ON_READ
- SESSION_TOKENS / DEVELOPMENT_MODE: access gate
- LOG_LEVEL / LOG_JSON / PORT
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

env_path = Path(__file__).resolve().parents[1] / ".env"
if env_path.exists():
    load_dotenv(env_path)


DEFAULT_REPRESENTATIVES = ("ROBERTO", "ISAQUE", "MIGUEL")


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime settings for the consolidation service and API."""
    supabase_url: str = ""
    supabase_key: str = ""
    representatives: List[str] = field(default_factory=lambda: list(DEFAULT_REPRESENTATIVES))
    freight_table: str = "controle_frete"
    receivable_table: str = "contas_receber"
    publish_table: Optional[str] = None
    sync_interval_seconds: float = 300.0
    source_timeout_seconds: float = 30.0
    sync_on_read: bool = True
    session_tokens: List[str] = field(default_factory=list)
    development_mode: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    port: int = 10000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        representatives = _parse_list(os.getenv("VENDAS_REPRESENTATIVES"))
        return cls(
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""),
            representatives=representatives or list(DEFAULT_REPRESENTATIVES),
            freight_table=os.getenv("VENDAS_FREIGHT_TABLE", "controle_frete"),
            receivable_table=os.getenv("VENDAS_RECEIVABLE_TABLE", "contas_receber"),
            publish_table=os.getenv("VENDAS_PUBLISH_TABLE") or None,
            sync_interval_seconds=float(os.getenv("SYNC_INTERVAL_SECONDS", "300")),
            source_timeout_seconds=float(os.getenv("SOURCE_TIMEOUT_SECONDS", "30")),
            sync_on_read=_parse_bool(os.getenv("SYNC_ON_READ"), default=True),
            session_tokens=_parse_list(os.getenv("SESSION_TOKENS")),
            development_mode=_parse_bool(os.getenv("DEVELOPMENT_MODE")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_json=_parse_bool(os.getenv("LOG_JSON")),
            port=int(os.getenv("PORT", "10000")),
        )

    def require_supabase(self) -> None:
        """Fail fast when the upstream tables are not configured."""
        if not self.supabase_url:
            raise ValueError(
                "SUPABASE_URL environment variable not set. "
                "Set to your project URL (e.g., 'https://<project>.supabase.co')"
            )
        if not self.supabase_key:
            raise ValueError(
                "SUPABASE_SERVICE_ROLE_KEY environment variable not set. "
                "Set to the service role key of the project"
            )
