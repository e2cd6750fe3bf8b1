"""Odoo property models → canonical records.

Reads `property.tenancy` and `property.property` and converts them into
TenancyRecord / AssetSummary at the source boundary:
- tenancy names follow an "asset - lot - name" convention and are cleaned
- WALT is the remaining lease term in years (365.25-day years)
- the asset manager comes from the main property's salesperson
"""

import re
import time
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from pydantic import ValidationError

from core.models import AssetSummary, TenancyRecord, normalize_asset_ref
from core.observability.logging import get_logger
from core.observability.metrics import get_metrics
from connectors.odoo.client import OdooClient
from reconciliation.am_codes import am_code_for_salesperson


logger = get_logger(__name__)

ODOO_SOURCE = "odoo"

TENANCY_MODEL = "property.tenancy"
PROPERTY_MODEL = "property.property"

TENANCY_FIELDS = ["id", "name", "main_property_id", "total_current_rent", "space", "date_end_display"]
PROPERTY_FIELDS = ["id", "reference_id", "sales_person_id", "city"]

SECONDS_PER_YEAR = 365.25 * 24 * 3600

_LOT_RE = re.compile(r"^[0-9]+$")


# =============================================================================
# Field Helpers
# =============================================================================

def m2o_id(value: Any) -> Optional[int]:
    """Id of a many2one value ([id, name] or False)."""
    if isinstance(value, (list, tuple)) and value and isinstance(value[0], int):
        return value[0]
    return None


def clean_tenancy_name(raw: Optional[str]) -> str:
    """Extract the tenant name from an "asset - lot - name" tenancy label.

    "AA1 - 01 - Netto" -> "Netto"; "AA1 - Kik - Textil" -> "Kik Textil".
    When nothing follows the asset and lot, the last segment is returned.
    """
    parts = [part.strip() for part in str(raw or "").split("-")]
    parts = [part for part in parts if part]
    if not parts:
        return ""

    rest = parts[1:]
    if rest and _LOT_RE.match(rest[0]):
        rest = rest[1:]
    if not rest:
        return parts[-1]
    return " ".join(rest)


def parse_odoo_date(value: Any) -> Optional[datetime]:
    """Parse an Odoo date/datetime field; False and garbage become None."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None


def years_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_YEAR


def walt_years(date_end: Any, now: Optional[datetime] = None) -> Optional[float]:
    """Remaining lease term in years, never negative; None without an end date."""
    end = parse_odoo_date(date_end)
    if end is None:
        return None
    now = now or datetime.now()
    if end.tzinfo is not None:
        end = end.replace(tzinfo=None)
    return max(0.0, years_between(now, end))


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _reference(prop: Dict[str, Any]) -> str:
    ref = prop.get("reference_id")
    return (ref if isinstance(ref, str) and ref.strip() else str(prop["id"])).strip()


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


# =============================================================================
# Fetchers
# =============================================================================

async def _fetch_main_properties(client: OdooClient, main_ids: Iterable[int]) -> Dict[int, Dict[str, Any]]:
    ids = sorted(set(main_ids))
    if not ids:
        return {}
    props = await client.search_read(PROPERTY_MODEL, [["id", "in", ids]], PROPERTY_FIELDS, limit=5000)
    return {prop["id"]: prop for prop in props if isinstance(prop.get("id"), int)}


async def fetch_tenancies(
    client: OdooClient,
    banned: Optional[Set[str]] = None,
    now: Optional[datetime] = None,
) -> List[TenancyRecord]:
    """Fetch every tenancy attached to a main property.

    Args:
        client: Connected Odoo client
        banned: Normalized asset references to skip
        now: Reference time for WALT (defaults to now)

    Returns:
        Canonical tenancy records (names cleaned, not matched)
    """
    metrics = get_metrics()
    metrics.record_source_started(ODOO_SOURCE)
    start_time = time.time()
    banned = banned or set()
    now = now or datetime.now()

    try:
        tenancies = await client.search_read(
            TENANCY_MODEL, [["main_property_id", "!=", False]], TENANCY_FIELDS, limit=5000
        )
        mains = await _fetch_main_properties(
            client, (m2o_id(t.get("main_property_id")) for t in tenancies if m2o_id(t.get("main_property_id")))
        )
    except Exception:
        metrics.record_source_failed(ODOO_SOURCE)
        raise

    records = []
    skipped_banned = 0
    for tenancy in tenancies:
        prop = mains.get(m2o_id(tenancy.get("main_property_id")))
        if prop is None:
            continue

        asset_ref = _reference(prop)
        if normalize_asset_ref(asset_ref) in banned:
            skipped_banned += 1
            continue

        try:
            records.append(TenancyRecord(
                asset_ref=asset_ref,
                tenant_name=clean_tenancy_name(tenancy.get("name")),
                space=_number(tenancy.get("space")),
                rent=_number(tenancy.get("total_current_rent")),
                walt=walt_years(tenancy.get("date_end_display"), now),
                city=_text(prop.get("city")),
                am_code=am_code_for_salesperson(prop.get("sales_person_id")),
            ))
        except ValidationError as e:
            logger.debug(f"Skipping Odoo tenancy {tenancy.get('id')}: {e.error_count()} validation errors")

    duration_ms = (time.time() - start_time) * 1000
    metrics.record_source_completed(ODOO_SOURCE, rows=len(records), duration_ms=duration_ms)
    logger.info(
        f"Fetched {len(records)} Odoo tenancies",
        extra_fields={"skipped_banned": skipped_banned, "duration_ms": round(duration_ms, 1)},
    )
    return records


async def fetch_asset_salespersons(client: OdooClient) -> Dict[str, Any]:
    """{reference_id: salesperson_id} for every property with a reference."""
    props = await client.search_read(
        PROPERTY_MODEL, [["reference_id", "!=", False]], ["reference_id", "sales_person_id"], limit=10000
    )
    mapping = {}
    for prop in props:
        ref = _text(prop.get("reference_id"))
        if ref:
            mapping[ref] = m2o_id(prop.get("sales_person_id"))
    return mapping


async def fetch_asset_summaries(client: OdooClient, now: Optional[datetime] = None) -> List[AssetSummary]:
    """Per main property: GLA (unit area halved), rent total, rent-weighted WALT."""
    now = now or datetime.now()

    units = await client.search_read(
        PROPERTY_MODEL, [["main_property_id", "!=", False]], ["main_property_id", "rentable_area"]
    )
    gla_by_main: Dict[int, float] = defaultdict(float)
    for unit in units:
        main_id = m2o_id(unit.get("main_property_id"))
        if main_id:
            gla_by_main[main_id] += _number(unit.get("rentable_area"))

    tenancies = await client.search_read(
        TENANCY_MODEL, [["main_property_id", "!=", False]], ["main_property_id", "total_current_rent", "date_end_display"]
    )
    rent_by_main: Dict[int, float] = defaultdict(float)
    walt_num: Dict[int, float] = defaultdict(float)
    walt_den: Dict[int, float] = defaultdict(float)
    for tenancy in tenancies:
        main_id = m2o_id(tenancy.get("main_property_id"))
        if not main_id:
            continue
        rent = _number(tenancy.get("total_current_rent"))
        rent_by_main[main_id] += rent
        if rent > 0:
            walt_num[main_id] += rent * (walt_years(tenancy.get("date_end_display"), now) or 0.0)
            walt_den[main_id] += rent

    main_ids = set(gla_by_main) | set(rent_by_main)
    mains = await _fetch_main_properties(client, main_ids)

    summaries = []
    for main_id in main_ids:
        ref = _reference(mains[main_id]) if main_id in mains else str(main_id)
        summaries.append(AssetSummary(
            reference_id=ref,
            gla=gla_by_main.get(main_id, 0.0) / 2,
            rent=rent_by_main.get(main_id, 0.0),
            walt=walt_num[main_id] / walt_den[main_id] if walt_den.get(main_id) else 0.0,
        ))

    summaries.sort(key=lambda s: s.reference_id)
    return summaries
