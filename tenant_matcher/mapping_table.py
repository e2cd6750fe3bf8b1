"""Mapping Table Parsing.

Turns the loosely-typed tenant map JSON into validated
CanonicalMappingEntry records. Accepted shapes:

    # flat list, one rule per variant
    [{"pm": "Carrefour GmbH", "am": "Carrefour"},
     {"variant": "Carrefour SA", "canonical": "Carrefour"}]

    # grouped
    {"groups": [{"canonical": "Carrefour",
                 "am": ["Carrefour"],
                 "pm": ["Carrefour GmbH", "Carrefour SA"]}]}

Anything unrecognised is skipped. A missing or unreadable file yields an
empty table: the matcher then matches nothing, which is a valid degraded
state rather than an error.
"""

import json
from pathlib import Path
from typing import Any, Iterator, List, Tuple, Union

from core.observability.logging import get_logger
from tenant_matcher.matcher import TenantNameMatcher, group_pairs
from tenant_matcher.models import (
    CanonicalMappingEntry,
    MatchingConfig,
    DEFAULT_MATCHING_CONFIG,
)


logger = get_logger(__name__)

MAPPING_FILE_NAME = "tenant_map.json"


def _iter_flat_pairs(items: List[Any]) -> Iterator[Tuple[str, str]]:
    for item in items:
        if not isinstance(item, dict):
            continue
        if isinstance(item.get("pm"), str) and isinstance(item.get("am"), str):
            yield item["pm"].strip(), item["am"].strip()
        elif isinstance(item.get("variant"), str) and isinstance(item.get("canonical"), str):
            yield item["variant"].strip(), item["canonical"].strip()


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def _entries_from_groups(groups: List[Any]) -> List[CanonicalMappingEntry]:
    entries = []
    for group in groups:
        if not isinstance(group, dict) or not isinstance(group.get("canonical"), str):
            continue
        canonical = group["canonical"].strip()
        if not canonical:
            continue
        variants = _strings(group.get("am")) + _strings(group.get("pm")) + _strings(group.get("variants"))
        entries.append(CanonicalMappingEntry.build(canonical, variants))
    return entries


def parse_mapping_table(data: Any) -> List[CanonicalMappingEntry]:
    """Parse a decoded tenant map into mapping entries.

    Args:
        data: Decoded JSON (list of rules or {"groups": [...]})

    Returns:
        List of CanonicalMappingEntry (empty when the shape is unrecognised)
    """
    if isinstance(data, list):
        return group_pairs(_iter_flat_pairs(data))

    if isinstance(data, dict) and isinstance(data.get("groups"), list):
        return _entries_from_groups(data["groups"])

    logger.warning(f"Unrecognised tenant map format ({type(data).__name__}); using empty mapping")
    return []


def load_mapping_file(path: Union[str, Path]) -> List[CanonicalMappingEntry]:
    """Read and parse a tenant map JSON file.

    Returns an empty list when the file is missing or not valid JSON.
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Tenant map not found at {path}; matcher will match nothing")
        return []

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Tenant map at {path} is unreadable ({e}); matcher will match nothing")
        return []

    entries = parse_mapping_table(data)
    logger.info(f"Loaded {len(entries)} canonical tenants from {path.name}")
    return entries


def build_matcher_from_file(
    path: Union[str, Path],
    config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
) -> TenantNameMatcher:
    """Load a tenant map file and build a matcher from it."""
    return TenantNameMatcher.from_entries(load_mapping_file(path), config)
