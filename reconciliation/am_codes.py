"""Asset-manager code lookup.

Odoo stores the responsible asset manager as a salesperson id on each
property; the business codes are a fixed table.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from core.models import AMCode, TenancyRecord, normalize_asset_ref


SALESPERSON_AM_CODES: Dict[int, AMCode] = {
    12: AMCode.CFR,
    7: AMCode.FKE,
    8: AMCode.BKO,
    9: AMCode.MSC,
}


def am_code_for_salesperson(salesperson_id: Any) -> str:
    """Translate a salesperson id to an AM code ("" when unknown)."""
    if isinstance(salesperson_id, (list, tuple)):
        # many2one fields arrive as [id, display_name]
        salesperson_id = salesperson_id[0] if salesperson_id else None
    try:
        key = int(salesperson_id)
    except (TypeError, ValueError):
        return AMCode.NONE.value
    return SALESPERSON_AM_CODES.get(key, AMCode.NONE).value


class AMCodeResolver:
    """Asset reference → AM code."""

    def __init__(self, codes: Optional[Mapping[str, str]] = None):
        self._codes: Dict[str, str] = {
            normalize_asset_ref(ref): code
            for ref, code in (codes or {}).items()
            if normalize_asset_ref(ref)
        }

    @classmethod
    def from_salesperson_ids(cls, mapping: Mapping[str, Any]) -> "AMCodeResolver":
        """Build from {asset_ref: salesperson_id}."""
        return cls({ref: am_code_for_salesperson(sid) for ref, sid in mapping.items()})

    def resolve(self, asset_ref: str) -> str:
        return self._codes.get(normalize_asset_ref(asset_ref), AMCode.NONE.value)

    def annotate(self, records: Iterable[TenancyRecord]) -> List[TenancyRecord]:
        """Copies of records with empty AM codes filled from the lookup."""
        annotated = []
        for record in records:
            if not record.am_code:
                code = self.resolve(record.asset_ref)
                if code:
                    record = record.model_copy(update={"am_code": code})
            annotated.append(record)
        return annotated

    def __len__(self) -> int:
        return len(self._codes)
