"""File-based sources: PM CSV exports and the banned-asset list."""

from sources.pm_csv import (
    read_csv_text,
    parse_pm_tenants,
    load_pm_tenants,
    load_pm_labels,
    parse_pm_asset_summaries,
    load_pm_asset_summaries,
)
from sources.banlist import (
    parse_ban_list,
    load_banned_assets,
    filter_banned,
)

__all__ = [
    "read_csv_text",
    "parse_pm_tenants",
    "load_pm_tenants",
    "load_pm_labels",
    "parse_pm_asset_summaries",
    "load_pm_asset_summaries",
    "parse_ban_list",
    "load_banned_assets",
    "filter_banned",
]
