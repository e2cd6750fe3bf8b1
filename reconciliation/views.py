"""Presentation views over reconciled rows.

Everything here reads the flags and deltas the engine already computed;
nothing is recomputed.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional

from core.models import TenancyRecord
from reconciliation.models import CombinedRow, ThresholdConfig, DEFAULT_THRESHOLDS
from tenant_matcher.normalize import normalize_for_key


# Vacancy and tax placeholders that are not real tenants
HIDDEN_TENANT_MARKERS = ("leerstand", "vacant", "stpfl", "stfr")

ALL_AM_CODES = "ALL"


class ViewMode(str, Enum):
    NONE = "none"
    HIGHLIGHTED = "highlighted"
    MISSING_RENT = "missing_rent"


def is_hidden_tenant(name: Optional[str]) -> bool:
    folded = normalize_for_key(name or "")
    return any(marker in folded for marker in HIDDEN_TENANT_MARKERS)


def drop_hidden_tenants(records: Iterable[TenancyRecord]) -> List[TenancyRecord]:
    return [record for record in records if not is_hidden_tenant(record.tenant_name)]


def _matches_mode(row: CombinedRow, mode: ViewMode, thresholds: ThresholdConfig) -> bool:
    one_sided = row.only_pm or row.only_am
    if mode == ViewMode.HIGHLIGHTED:
        return row.flagged or one_sided
    if mode == ViewMode.MISSING_RENT:
        return one_sided or (row.delta_rent is not None and abs(row.delta_rent) > thresholds.rent_highlight)
    return True


def filter_rows(
    rows: Iterable[CombinedRow],
    query: str = "",
    am_filter: str = ALL_AM_CODES,
    mode: ViewMode = ViewMode.NONE,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> List[CombinedRow]:
    """Apply the free-text search, AM-code filter and view mode.

    Args:
        rows: Engine output
        query: Text searched in asset, city and tenant (folded like row keys)
        am_filter: "ALL" or an AM code; "" selects rows without a code
        mode: View mode
        thresholds: Highlight thresholds (missing_rent view)
    """
    needle = normalize_for_key(query or "")
    am_filter = ALL_AM_CODES if am_filter is None else am_filter.strip().upper()
    mode = ViewMode(mode)

    selected = []
    for row in rows:
        if am_filter != ALL_AM_CODES and row.am_code != am_filter:
            continue
        if needle:
            haystack = normalize_for_key(f"{row.asset_ref} {row.city} {row.tenant}")
            if needle not in haystack:
                continue
        if not _matches_mode(row, mode, thresholds):
            continue
        selected.append(row)
    return selected


def display_flags(row: CombinedRow, thresholds: ThresholdConfig = DEFAULT_THRESHOLDS) -> Dict[str, bool]:
    """Which deltas are large enough to emphasise."""
    def notable(value: Optional[float], threshold: float) -> bool:
        return value is not None and abs(value) >= threshold

    return {
        "space": notable(row.delta_space, thresholds.space_display),
        "rent": notable(row.delta_rent, thresholds.rent_display),
        "walt": notable(row.delta_walt, thresholds.walt_display),
    }
