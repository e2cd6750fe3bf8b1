"""PM (property manager) CSV exports.

Two files are read from the data directory:
- pm_datatenant.csv: header-less, one tenancy per line
  (Asset, City, Tenant, Space, Rent, WALT?)
- pm_data.csv: asset totals with a header row (Asset, GLA, Rent, Walt)

Tenant labels are canonicalized through the tenant matcher here, at the
source boundary, so the reconciliation engine only sees canonical names.
"""

import csv
import io
import time
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from core.models import AssetSummary, TenancyRecord
from core.models.canonical import parse_number
from core.observability.logging import get_logger
from core.observability.metrics import get_metrics
from tenant_matcher.matcher import TenantNameMatcher


logger = get_logger(__name__)

PM_TENANTS_SOURCE = "pm_tenants"
PM_ASSETS_SOURCE = "pm_assets"

MIN_TENANT_COLUMNS = 5


# =============================================================================
# Reading
# =============================================================================

def read_csv_text(path: Union[str, Path]) -> str:
    """Read a CSV file as text.

    UTF-8 (with or without BOM) is tried first; exports that are not valid
    UTF-8 are decoded as Latin-1 so umlauts survive.
    """
    data = Path(path).read_bytes()
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug(f"{Path(path).name} is not valid UTF-8; decoding as Latin-1")
        return data.decode("latin-1")


def _sniff_dialect(text: str):
    sample = text[:4096]
    try:
        return csv.Sniffer().sniff(sample, delimiters=",;\t")
    except csv.Error:
        return csv.excel


def _read_rows(text: str) -> List[List[str]]:
    reader = csv.reader(io.StringIO(text), _sniff_dialect(text))
    return [row for row in reader if any(cell.strip() for cell in row)]


# =============================================================================
# Tenancies
# =============================================================================

def _is_header(row: List[str]) -> bool:
    return parse_number(row[3]) is None and parse_number(row[4]) is None and bool(row[3].strip() or row[4].strip())


def parse_pm_tenants(text: str, matcher: Optional[TenantNameMatcher] = None) -> List[TenancyRecord]:
    """Parse pm_datatenant.csv content into canonical tenancy records."""
    matcher = matcher or TenantNameMatcher.empty()
    records = []

    for line_no, row in enumerate(_read_rows(text), start=1):
        if len(row) < MIN_TENANT_COLUMNS:
            logger.debug(f"Skipping PM line {line_no}: {len(row)} columns")
            continue
        if line_no == 1 and _is_header(row):
            continue

        label = row[2].strip()
        try:
            record = TenancyRecord(
                asset_ref=row[0],
                city=row[1],
                tenant_name=matcher.canonicalize(label),
                space=row[3],
                rent=row[4],
                walt=row[5] if len(row) > 5 else None,
            )
        except ValidationError as e:
            logger.debug(f"Skipping PM line {line_no}: {e.error_count()} validation errors")
            continue
        records.append(record)

    return records


def load_pm_tenants(
    path: Union[str, Path],
    matcher: Optional[TenantNameMatcher] = None,
) -> List[TenancyRecord]:
    """Load PM tenancies; a missing file yields an empty list."""
    path = Path(path)
    if not path.exists():
        logger.warning(f"PM tenant file not found: {path}")
        return []

    metrics = get_metrics()
    metrics.record_source_started(PM_TENANTS_SOURCE)
    start_time = time.time()

    records = parse_pm_tenants(read_csv_text(path), matcher)

    duration_ms = (time.time() - start_time) * 1000
    metrics.record_source_completed(PM_TENANTS_SOURCE, rows=len(records), duration_ms=duration_ms)
    logger.info(
        f"Loaded {len(records)} PM tenancies",
        extra_fields={"file": path.name, "duration_ms": round(duration_ms, 1)},
    )
    return records


def load_pm_labels(path: Union[str, Path]) -> List[str]:
    """Raw tenant labels of pm_datatenant.csv, in file order."""
    path = Path(path)
    if not path.exists():
        return []
    labels = []
    for line_no, row in enumerate(_read_rows(read_csv_text(path)), start=1):
        if len(row) < MIN_TENANT_COLUMNS or (line_no == 1 and _is_header(row)):
            continue
        labels.append(row[2].strip())
    return labels


# =============================================================================
# Asset Summaries
# =============================================================================

def parse_pm_asset_summaries(text: str) -> List[AssetSummary]:
    reader = csv.DictReader(io.StringIO(text), dialect=_sniff_dialect(text))
    summaries = []
    for row in reader:
        try:
            summaries.append(AssetSummary(
                reference_id=row.get("Asset"),
                gla=row.get("GLA"),
                rent=row.get("Rent"),
                walt=row.get("Walt"),
            ))
        except ValidationError:
            logger.debug(f"Skipping PM asset row without reference: {row}")
    return summaries


def load_pm_asset_summaries(path: Union[str, Path]) -> List[AssetSummary]:
    """Load pm_data.csv asset totals; a missing file yields an empty list."""
    path = Path(path)
    if not path.exists():
        logger.warning(f"PM asset file not found: {path}")
        return []

    metrics = get_metrics()
    metrics.record_source_started(PM_ASSETS_SOURCE)
    summaries = parse_pm_asset_summaries(read_csv_text(path))
    metrics.record_source_completed(PM_ASSETS_SOURCE, rows=len(summaries))
    return summaries
