"""
Tenancy reconciliation report.

Loads the PM export through the tenant matcher, optionally fetches Odoo,
runs the reconciliation and prints a table (or JSON).

Usage:
    python scripts/reconcile.py --data-dir data
    python scripts/reconcile.py --data-dir data --odoo --view highlighted
    python scripts/reconcile.py --odoo --json > report.json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List

sys.path.append(str(Path(__file__).resolve().parents[1]))

from connectors.odoo import OdooClient, OdooConfig, fetch_tenancies
from core.config import Settings, has_odoo_config
from core.models import TenancyRecord
from core.observability.logging import configure_logging
from reconciliation import CombinedRow, ViewMode, drop_hidden_tenants, filter_rows, reconcile, summarize
from sources import filter_banned, load_banned_assets, load_pm_tenants
from tenant_matcher import build_matcher_from_file


def _fmt(value, digits: int = 1) -> str:
    return "-" if value is None else f"{value:+.{digits}f}"


def print_table(rows: List[CombinedRow]) -> None:
    header = f"{'ASSET':<8} {'TENANT':<36} {'AM':<4} {'dSPACE':>10} {'dRENT':>12} {'dWALT':>7}  STATUS"
    print(header)
    print("-" * len(header))
    for row in rows:
        if row.only_pm:
            status = "PM only"
        elif row.only_am:
            status = "Odoo only"
        else:
            status = "FLAG" if row.flagged else "ok"
        print(
            f"{row.asset_ref:<8} {row.tenant[:36]:<36} {row.am_code:<4} "
            f"{_fmt(row.delta_space):>10} {_fmt(row.delta_rent, 2):>12} {_fmt(row.delta_walt, 2):>7}  {status}"
        )


async def fetch_odoo(settings: Settings, banned) -> List[TenancyRecord]:
    async with OdooClient(OdooConfig.from_settings(settings)) as client:
        return await fetch_tenancies(client, banned)


def main():
    parser = argparse.ArgumentParser(description="Reconcile PM tenancies against Odoo")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory with pm_datatenant.csv, tenant_map.json and banlist (default: TENANCY_DATA_DIR)"
    )
    parser.add_argument(
        "--odoo",
        action="store_true",
        help="Fetch tenancies from Odoo (needs ODOO_* variables)"
    )
    parser.add_argument(
        "--view",
        choices=[mode.value for mode in ViewMode],
        default=ViewMode.NONE.value,
        help="Row selection (default: none)"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print rows and summary as JSON"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging"
    )

    args = parser.parse_args()
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    settings = Settings.from_env()
    if args.data_dir is not None:
        settings = settings.model_copy(update={"data_dir": args.data_dir})

    matcher = build_matcher_from_file(settings.tenant_map_path)
    banned = load_banned_assets(settings.data_dir)
    pm = filter_banned(load_pm_tenants(settings.pm_tenants_path, matcher), banned)

    odoo: List[TenancyRecord] = []
    if args.odoo:
        if not has_odoo_config(settings):
            print("Missing Odoo credentials. Set ODOO_URL, ODOO_DB, ODOO_USER and ODOO_API (or ODOO_PWD).")
            sys.exit(1)
        odoo = asyncio.run(fetch_odoo(settings, banned))

    rows = reconcile(drop_hidden_tenants(pm), drop_hidden_tenants(odoo), settings.thresholds)
    selected = filter_rows(rows, mode=ViewMode(args.view), thresholds=settings.thresholds)
    summary = summarize(rows)

    if args.json:
        print(json.dumps({"summary": summary, "rows": [row.to_dict() for row in selected]}, indent=2, ensure_ascii=False))
    else:
        print_table(selected)
        print()
        print(
            f"{summary['total']} rows: {summary['matched']} matched, {summary['only_pm']} PM only, "
            f"{summary['only_am']} Odoo only, {summary['flagged']} flagged"
        )


if __name__ == "__main__":
    main()
