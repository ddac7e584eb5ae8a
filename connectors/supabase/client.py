"""Supabase PostgREST HTTP Client.

Low-level HTTP client for the Supabase REST endpoint (`/rest/v1`).
Handles authentication headers, filters, retries, and error handling.
"""

from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field
import json
import asyncio
import logging

import aiohttp

logger = logging.getLogger(__name__)


class PostgrestError(Exception):
    """Base exception for PostgREST errors."""
    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class PostgrestAuthError(PostgrestError):
    """Authentication failed (401/403)."""
    pass


class PostgrestRateLimitError(PostgrestError):
    """Rate limit exceeded (429)."""
    def __init__(self, message: str, retry_after: int = 60):
        super().__init__(message, 429)
        self.retry_after = retry_after


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    exponential_base: float = 2.0
    retry_on_status: Tuple[int, ...] = (429, 500, 502, 503, 504)

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt (exponential backoff)."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


@dataclass
class PostgrestConfig:
    """Configuration for the PostgREST client."""
    url: str
    api_key: str
    schema: str = "public"
    retry_config: RetryConfig = field(default_factory=RetryConfig)
    timeout_seconds: int = 30
    page_size: int = 1000  # PostgREST default max-rows

    def table_url(self, table: str) -> str:
        return f"{self.url.rstrip('/')}/rest/v1/{table}"


def eq(value: Any) -> str:
    """PostgREST equality filter value."""
    return f"eq.{value}"


def neq(value: Any) -> str:
    """PostgREST inequality filter value."""
    return f"neq.{value}"


class PostgrestClient:
    """HTTP client for Supabase tables.

    Provides:
    - Authenticated table reads with filters and ordering
    - Bulk insert and filtered delete
    - Error handling and retries

    Usage:
        client = PostgrestClient(PostgrestConfig(url, key))
        rows = await client.select("controle_frete", {"vendedor": eq("ROBERTO")}, order="numero_nf.asc")
        await client.close()
    """

    def __init__(self, config: PostgrestConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def _get_headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.config.api_key,
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Accept-Profile": self.config.schema,
            "Content-Profile": self.config.schema,
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        data: Optional[Any] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        """Make an authenticated request with automatic retries.

        Raises:
            PostgrestAuthError: Authentication failed
            PostgrestRateLimitError: Rate limit exceeded
            PostgrestError: Other API errors
        """
        session = await self._get_session()
        url = self.config.table_url(table)
        retry_config = self.config.retry_config
        last_error: Optional[Exception] = None

        for attempt in range(retry_config.max_retries + 1):
            try:
                timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
                async with session.request(
                    method,
                    url,
                    headers=self._get_headers(prefer),
                    params=params,
                    json=data,
                    timeout=timeout,
                ) as response:
                    response_text = await response.text()

                    if response.status < 400:
                        return json.loads(response_text) if response_text else None

                    if response.status in (401, 403):
                        raise PostgrestAuthError(
                            f"Authentication failed: {response_text}",
                            response.status,
                            response_text,
                        )

                    if response.status == 429:
                        retry_after = int(response.headers.get("Retry-After", 5))
                        if attempt < retry_config.max_retries:
                            logger.warning(f"Rate limited on {table}, waiting {retry_after}s...")
                            await asyncio.sleep(min(retry_after, retry_config.max_delay))
                            continue
                        raise PostgrestRateLimitError("Rate limit exceeded", retry_after)

                    if response.status in retry_config.retry_on_status:
                        if attempt < retry_config.max_retries:
                            delay = retry_config.get_delay(attempt)
                            logger.warning(
                                f"Request to {table} failed with {response.status}, "
                                f"retrying in {delay:.1f}s (attempt {attempt + 1}/{retry_config.max_retries})"
                            )
                            await asyncio.sleep(delay)
                            continue

                    raise PostgrestError(
                        f"API error {response.status}: {response_text}",
                        response.status,
                        response_text,
                    )

            except PostgrestError:
                raise
            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                last_error = e
                if attempt < retry_config.max_retries:
                    delay = retry_config.get_delay(attempt)
                    logger.warning(
                        f"Request to {table} failed with {type(e).__name__}: {e}, "
                        f"retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise PostgrestError(f"Request failed after {retry_config.max_retries} retries: {e}")

        raise PostgrestError(f"Request failed: {last_error}")

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, str]] = None,
        order: Optional[str] = None,
        columns: str = "*",
    ) -> List[Dict[str, Any]]:
        """Read every matching row from a table.

        Pages with limit/offset until a short page comes back, so results
        are not cut off at the server's max-rows setting. Pass an order
        with a unique tie-breaker so pages do not overlap.

        Args:
            table: Table name
            filters: Column -> PostgREST filter (e.g. {"vendedor": "eq.ROBERTO"})
            order: Order clause (e.g. "numero_nf.asc,id.asc")
            columns: Column selection
        """
        page_size = self.config.page_size
        rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            params = {"select": columns}
            params.update(filters or {})
            if order:
                params["order"] = order
            params["limit"] = str(page_size)
            params["offset"] = str(offset)

            page = await self._request("GET", table, params=params) or []
            rows.extend(page)
            if len(page) < page_size:
                break
            offset += page_size
            logger.debug(f"Fetched {len(rows)} rows from {table}, requesting next page")
        return rows

    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> None:
        """Insert rows in a single request.

        Sends `columns` with the union of the rows' keys, so rows with
        differing key sets are accepted (missing keys take column defaults).
        """
        if not rows:
            return
        columns = sorted(set().union(*(row.keys() for row in rows)))
        params = {"columns": ",".join(columns)}
        await self._request("POST", table, params=params, data=rows, prefer="return=minimal")

    async def delete(self, table: str, filters: Dict[str, str]) -> None:
        """Delete rows matching filters. PostgREST refuses unfiltered deletes."""
        await self._request("DELETE", table, params=dict(filters), prefer="return=minimal")
