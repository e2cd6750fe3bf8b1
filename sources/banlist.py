"""Banned asset references.

Assets on the ban list are removed from both sources before reconciliation.
banlist.json accepts several shapes:

    ["AD1", "ZZ9"]
    {"assets": ["AD1", "ZZ9"]}          # or "ban" / "list"
    {"assets": [{"asset_ref": "AD1"}]}  # or "reference_id"
    {"AD1": true, "ZZ9": 1}

When the JSON yields nothing, banlist.csv (one reference per line) is read.
"""

import json
from pathlib import Path
from typing import Any, Iterable, List, Set, TypeVar, Union

from core.models import normalize_asset_ref
from core.observability.logging import get_logger


logger = get_logger(__name__)

BANLIST_JSON = "banlist.json"
BANLIST_CSV = "banlist.csv"

_LIST_KEYS = ("assets", "ban", "list")
_REF_KEYS = ("asset_ref", "reference_id")

T = TypeVar("T")


def _ref_of(item: Any) -> str:
    if isinstance(item, dict):
        for key in _REF_KEYS:
            if item.get(key):
                return normalize_asset_ref(item[key])
        return ""
    if isinstance(item, (str, int)) and not isinstance(item, bool):
        return normalize_asset_ref(str(item))
    return ""


def _refs(items: Iterable[Any]) -> Set[str]:
    return {ref for ref in (_ref_of(item) for item in items) if ref}


def parse_ban_list(data: Any) -> Set[str]:
    """Normalized asset references from a decoded ban list."""
    if isinstance(data, list):
        return _refs(data)

    if isinstance(data, dict):
        for key in _LIST_KEYS:
            if isinstance(data.get(key), list):
                return _refs(data[key])
        return {normalize_asset_ref(ref) for ref, banned in data.items() if banned and normalize_asset_ref(ref)}

    logger.warning(f"Unrecognised ban list format ({type(data).__name__}); nothing banned")
    return set()


def parse_ban_csv(text: str) -> Set[str]:
    return {normalize_asset_ref(line) for line in text.splitlines() if line.strip()}


def load_banned_assets(data_dir: Union[str, Path]) -> Set[str]:
    """Read the ban list from banlist.json, falling back to banlist.csv."""
    data_dir = Path(data_dir)
    banned: Set[str] = set()

    json_path = data_dir / BANLIST_JSON
    if json_path.exists():
        try:
            banned = parse_ban_list(json.loads(json_path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Ban list at {json_path} is unreadable ({e}); trying CSV")

    if not banned:
        csv_path = data_dir / BANLIST_CSV
        if csv_path.exists():
            banned = parse_ban_csv(csv_path.read_text(encoding="utf-8-sig"))

    logger.info(f"Loaded {len(banned)} banned assets")
    return banned


def filter_banned(records: Iterable[T], banned: Set[str]) -> List[T]:
    """Drop records (anything with an asset_ref) whose asset is banned."""
    if not banned:
        return list(records)
    return [record for record in records if normalize_asset_ref(record.asset_ref) not in banned]
