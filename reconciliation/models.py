"""Reconciliation data models.

CombinedRow is the engine output: one row per composite key found in
either source. It is derived and ephemeral; nothing here is persisted.
"""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from core.models import TenancyRecord, normalize_asset_ref
from tenant_matcher.normalize import normalize_for_key


ROW_KEY_SEPARATOR = "@@"


def row_key(asset_ref: str, tenant_name: str) -> str:
    """Composite join key: normalized asset ref + '@@' + folded tenant name."""
    return normalize_asset_ref(asset_ref) + ROW_KEY_SEPARATOR + normalize_for_key(tenant_name)


def split_row_key(key: str) -> Tuple[str, str]:
    """Split a row key into (asset ref, tenant segment)."""
    asset, _, tenant = key.partition(ROW_KEY_SEPARATOR)
    return asset, tenant


class ThresholdConfig(BaseModel):
    """Delta thresholds.

    Highlight thresholds flag a row (|delta| strictly greater). Display
    thresholds only mark a delta as worth showing (|delta| >= threshold).
    """
    model_config = ConfigDict(frozen=True)

    space_highlight: float = Field(default=1.0, ge=0)
    rent_highlight: float = Field(default=5.0, ge=0)
    walt_highlight: float = Field(default=0.5, ge=0)
    space_display: float = Field(default=1.0, ge=0)
    rent_display: float = Field(default=5.0, ge=0)
    walt_display: float = Field(default=0.2, ge=0)


DEFAULT_THRESHOLDS = ThresholdConfig()


class CombinedRow(BaseModel):
    """One reconciled tenancy. Deltas are AM minus PM, None when a side is missing."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    key: str
    asset_ref: str
    tenant: str
    city: str = ""
    am_code: str = Field(default="", alias="am")
    pm_record: Optional[TenancyRecord] = Field(default=None, alias="pm")
    am_record: Optional[TenancyRecord] = Field(default=None, alias="odoo")
    delta_space: Optional[float] = None
    delta_rent: Optional[float] = None
    delta_walt: Optional[float] = None
    only_pm: bool = False
    only_am: bool = False
    flagged: bool = False

    @property
    def matched(self) -> bool:
        return self.pm_record is not None and self.am_record is not None

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
