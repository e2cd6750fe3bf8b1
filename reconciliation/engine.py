"""Reconciliation engine for PM and Odoo tenancy snapshots.

Exposes high-level functions:
- reconcile(pm_rows, am_rows, thresholds) -> List[CombinedRow]
- summarize(rows) -> Dict[str, int]

Both inputs must already be canonical: PM tenant names passed through the
tenant matcher, Odoo names cleaned at the connector. The engine joins on
row_key, classifies each key and computes AM - PM deltas. It never filters;
views are layered on top (see reconciliation.views).
"""

import time
from typing import Dict, Iterable, List, Optional, Sequence

from core.models import TenancyRecord, normalize_asset_ref
from core.observability.logging import get_logger
from core.observability.metrics import record_reconciliation
from reconciliation.models import (
    CombinedRow,
    ThresholdConfig,
    DEFAULT_THRESHOLDS,
    row_key,
    split_row_key,
)


logger = get_logger(__name__)


# =============================================================================
# Utility Functions
# =============================================================================

def index_records(records: Iterable[TenancyRecord], source: str) -> Dict[str, TenancyRecord]:
    """Index records by row key; a later duplicate replaces the earlier one."""
    index: Dict[str, TenancyRecord] = {}
    for record in records:
        key = row_key(record.asset_ref, record.tenant_name)
        if key in index:
            logger.debug(f"Duplicate {source} row key {key!r}; keeping the later record")
        index[key] = record
    return index


def guess_am_codes(*sources: Sequence[TenancyRecord]) -> Dict[str, str]:
    """First non-empty AM code seen per asset, scanning sources in order."""
    guesses: Dict[str, str] = {}
    for records in sources:
        for record in records:
            if record.am_code:
                guesses.setdefault(normalize_asset_ref(record.asset_ref), record.am_code)
    return guesses


def delta(am_value: Optional[float], pm_value: Optional[float]) -> Optional[float]:
    """AM - PM, or None when either value is missing."""
    if am_value is None or pm_value is None:
        return None
    return am_value - pm_value


def exceeds(value: Optional[float], threshold: float) -> bool:
    return value is not None and abs(value) > threshold


# =============================================================================
# Row Building
# =============================================================================

def combine(
    key: str,
    pm: Optional[TenancyRecord],
    am: Optional[TenancyRecord],
    am_guess: Dict[str, str],
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> CombinedRow:
    """Build the combined row for one key (at least one side present)."""
    asset_segment, tenant_segment = split_row_key(key)

    if pm is not None:
        tenant = pm.tenant_name
        asset_ref = pm.asset_ref
    elif am is not None:
        tenant = am.tenant_name
        asset_ref = am.asset_ref
    else:
        tenant = tenant_segment
        asset_ref = asset_segment

    city = (am.city if am is not None else None) or (pm.city if pm is not None else None) or ""

    am_code = (
        (pm.am_code if pm is not None else "")
        or (am.am_code if am is not None else "")
        or am_guess.get(asset_segment, "")
    )

    delta_space = delta_rent = delta_walt = None
    if pm is not None and am is not None:
        delta_space = delta(am.space, pm.space)
        delta_rent = delta(am.rent, pm.rent)
        delta_walt = delta(am.walt, pm.walt)

    flagged = (
        exceeds(delta_space, thresholds.space_highlight)
        or exceeds(delta_rent, thresholds.rent_highlight)
        or exceeds(delta_walt, thresholds.walt_highlight)
    )

    return CombinedRow(
        key=key,
        asset_ref=asset_ref,
        tenant=tenant,
        city=city,
        am_code=am_code,
        pm_record=pm,
        am_record=am,
        delta_space=delta_space,
        delta_rent=delta_rent,
        delta_walt=delta_walt,
        only_pm=pm is not None and am is None,
        only_am=am is not None and pm is None,
        flagged=flagged,
    )


# =============================================================================
# Main Reconciliation Function
# =============================================================================

def reconcile(
    pm_rows: Sequence[TenancyRecord],
    am_rows: Sequence[TenancyRecord],
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> List[CombinedRow]:
    """Join PM and AM snapshots on row_key and compute deltas.

    Args:
        pm_rows: Canonical PM tenancy records
        am_rows: Canonical Odoo tenancy records
        thresholds: Highlight thresholds used for the flagged column

    Returns:
        One CombinedRow per key in the union of both sources, sorted by
        asset and tenant (case-insensitive)
    """
    start_time = time.time()

    pm_index = index_records(pm_rows, "PM")
    am_index = index_records(am_rows, "AM")
    am_guess = guess_am_codes(pm_rows, am_rows)

    all_keys = set(pm_index) | set(am_index)
    rows = [
        combine(key, pm_index.get(key), am_index.get(key), am_guess, thresholds)
        for key in all_keys
    ]
    rows.sort(key=lambda r: (r.asset_ref.casefold(), r.tenant.casefold(), r.key))

    summary = summarize(rows)
    duration_ms = (time.time() - start_time) * 1000
    record_reconciliation(
        rows=summary["total"],
        flagged=summary["flagged"],
        only_pm=summary["only_pm"],
        only_am=summary["only_am"],
        duration_ms=duration_ms,
    )
    logger.info("Reconciliation complete", extra_fields={**summary, "duration_ms": round(duration_ms, 1)})

    return rows


def summarize(rows: Iterable[CombinedRow]) -> Dict[str, int]:
    """Count rows per classification."""
    summary = {"total": 0, "matched": 0, "only_pm": 0, "only_am": 0, "flagged": 0}
    for row in rows:
        summary["total"] += 1
        summary["matched"] += int(row.matched)
        summary["only_pm"] += int(row.only_pm)
        summary["only_am"] += int(row.only_am)
        summary["flagged"] += int(row.flagged)
    return summary
