"""Query layer for the invoice table view."""

from datetime import date
from typing import Iterable, List, Optional, Union

from consolidation.status import parse_status_filter, resolve_status
from core.models.canonical import ConsolidatedInvoice, DisplayStatus
from reporting.aggregation import matches_search

SORT_FIELDS = ("issue_date", "payment_date")


def query_invoices(
    records: Iterable[ConsolidatedInvoice],
    search_text: Optional[str] = None,
    status: Optional[Union[str, DisplayStatus]] = None,
    sort_by: str = "issue_date",
    descending: bool = False,
) -> List[ConsolidatedInvoice]:
    """Search, filter by derived status, then stable-sort a (month-scoped) set.

    Records missing the sort date are placed last in either direction.

    Raises:
        ValueError: Unknown status filter or sort field
    """
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Cannot sort by {sort_by!r}; expected one of {SORT_FIELDS}")

    wanted = parse_status_filter(status) if status else None

    rows = [r for r in records if matches_search(r, search_text)]
    if wanted is not None:
        rows = [r for r in rows if resolve_status(r) == wanted]

    dated = [r for r in rows if getattr(r, sort_by) is not None]
    undated = [r for r in rows if getattr(r, sort_by) is None]

    def sort_key(record: ConsolidatedInvoice) -> date:
        return getattr(record, sort_by)

    dated.sort(key=sort_key, reverse=descending)
    return dated + undated
