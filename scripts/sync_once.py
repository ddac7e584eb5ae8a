"""
Run one consolidation cycle and print the dashboard and a monthly report.

Reads from Supabase (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY) or from a
JSON fixture with `controle_frete` and `contas_receber` arrays.

Usage:
    python scripts/sync_once.py --fixture fixtures/sample_vendas.json --year 2024 --month 3
    python scripts/sync_once.py --json
"""

import argparse
import asyncio
import json
from datetime import date
from pathlib import Path
from typing import Optional

import sys
sys.path.append(str(Path(__file__).resolve().parents[1]))

from connectors import build_supabase_sources, load_fixture
from consolidation.status import resolve_status
from core.config import Settings
from core.errors import SourceUnavailable
from core.observability.logging import configure_logging
from sync import SyncService


async def run(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    representatives = args.representatives or settings.representatives
    client = None
    sink = None
    if args.fixture:
        freight, receivable = load_fixture(args.fixture)
    else:
        freight, receivable, sink, client = build_supabase_sources(settings)

    service = SyncService(
        freight,
        receivable,
        representatives,
        sink=sink if args.publish else None,
        source_timeout_seconds=settings.source_timeout_seconds,
        sync_on_read=False,
    )
    try:
        try:
            result = await service.trigger_sync()
        except SourceUnavailable as e:
            print(f"Sync failed: {e}", file=sys.stderr)
            return 2

        totals = await service.dashboard_stats()
        report = await service.monthly_paid_report(args.year, args.month, args.search)

        if args.json:
            invoices = await service.list_invoices()
            print(json.dumps({
                "sync": {
                    "count": result.record_count,
                    "warnings": result.warnings,
                    "failed_representatives": result.failed_representatives,
                    "content_hash": result.content_hash,
                },
                "dashboard": {
                    "total_invoiced": str(totals.total_invoiced),
                    "total_paid": str(totals.total_paid),
                    "total_receivable": str(totals.total_receivable),
                    "delivered_count": totals.delivered_count,
                },
                "invoices": [
                    {**r.model_dump(mode="json"), "status": resolve_status(r).value}
                    for r in invoices
                ],
            }, indent=2))
            return 0

        print("=" * 60)
        print(f"Consolidated {result.record_count} invoices in {result.duration_ms:.0f} ms")
        for warning in result.warnings:
            print(f"  WARN {warning}")
        print("=" * 60)
        print(f"Total invoiced:   {totals.total_invoiced:>14,.2f}")
        print(f"Total paid:       {totals.total_paid:>14,.2f}")
        print(f"Total receivable: {totals.total_receivable:>14,.2f}")
        print(f"Delivered:        {totals.delivered_count:>14}")
        print("-" * 60)
        print(f"Paid in {report.month:02d}/{report.year}: {len(report.rows)} invoices, {report.total_paid:,.2f}")
        for row in report.rows:
            print(f"  {row.payment_date}  {row.invoice_number:<12} {row.client_org or '':<30} {row.value:>12,.2f}")
        return 0
    finally:
        await service.close()
        if client is not None:
            await client.close()


def main(argv: Optional[list] = None) -> int:
    today = date.today()
    parser = argparse.ArgumentParser(description="Run one vendas consolidation cycle")
    parser.add_argument("--fixture", type=Path, help="JSON fixture instead of Supabase")
    parser.add_argument("--rep", dest="representatives", action="append", help="Representative (repeatable)")
    parser.add_argument("--year", type=int, default=today.year, help="Report year")
    parser.add_argument("--month", type=int, default=today.month, help="Report month")
    parser.add_argument("--search", help="Filter the report by invoice number or client")
    parser.add_argument("--publish", action="store_true", help="Publish to VENDAS_PUBLISH_TABLE")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a summary")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
