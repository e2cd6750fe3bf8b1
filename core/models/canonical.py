"""Core canonical data models - source-neutral tenancy records.

Both the PM export and the Odoo ERP are parsed into these records at the
source boundary. The reconciliation engine only ever sees validated
TenancyRecord values, never raw CSV cells or RPC dicts.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


# =============================================================================
# Value Parsers (handle the formats found in PM exports and Odoo payloads)
# =============================================================================

# Dots are thousands separators only next to a decimal comma or when repeated;
# a single dot ("4.125") stays a decimal point.
_GERMAN_NUMBER_RE = re.compile(r"^-?\d{1,3}(?:(?:\.\d{3})+,\d+|(?:\.\d{3}){2,})$")


def parse_number(value) -> Optional[float]:
    """Parse a number, accepting German formatting ("1.234,5", "1234,5").

    Returns None when the value is absent or unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        s = value.strip().replace(" ", "").replace("\u00a0", "")
        if s == "":
            return None
        if _GERMAN_NUMBER_RE.match(s):
            s = s.replace(".", "").replace(",", ".")
        elif "," in s and "." not in s:
            s = s.replace(",", ".")
        elif "," in s:
            # "1,234.5"
            s = s.replace(",", "")
        try:
            number = float(s)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _parse_amount(value) -> float:
    """Non-negative amount; absent or unparseable becomes 0."""
    number = parse_number(value)
    if number is None:
        return 0.0
    return max(0.0, number)


def _parse_walt(value) -> Optional[float]:
    """WALT in years; absent stays absent, negatives clamp to 0."""
    number = parse_number(value)
    if number is None:
        return None
    return max(0.0, number)


def _parse_optional_text(value) -> Optional[str]:
    if value is None or value is False:
        return None
    s = str(value).strip()
    return s or None


def _parse_text(value) -> str:
    if value is None or value is False:
        return ""
    return str(value).strip()


def _parse_am_code(value) -> str:
    if value is None or value is False:
        return ""
    s = str(value).strip().upper()
    return s if s in AMCode.values() else ""


# Annotated types for automatic parsing
AmountValue = Annotated[float, BeforeValidator(_parse_amount)]
WaltValue = Annotated[Optional[float], BeforeValidator(_parse_walt)]
OptionalText = Annotated[Optional[str], BeforeValidator(_parse_optional_text)]
TextValue = Annotated[str, BeforeValidator(_parse_text)]
AMCodeValue = Annotated[str, BeforeValidator(_parse_am_code)]


def normalize_asset_ref(ref: Optional[str]) -> str:
    """Uppercase and strip all whitespace: "aa 1 " -> "AA1"."""
    return re.sub(r"\s+", "", str(ref or "")).upper()


# =============================================================================
# Enums
# =============================================================================

class AMCode(str, Enum):
    """Asset-manager codes. NONE means unknown or unassigned."""
    CFR = "CFR"
    BKO = "BKO"
    FKE = "FKE"
    MSC = "MSC"
    NONE = ""

    @classmethod
    def values(cls):
        return {member.value for member in cls}


# =============================================================================
# Base Model
# =============================================================================

class CanonicalBase(BaseModel):
    """Base model for all canonical data structures."""
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Tenancy
# =============================================================================

class TenancyRecord(CanonicalBase):
    """One tenancy as reported by either source."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    asset_ref: str = Field(min_length=1)
    tenant_name: TextValue = ""
    space: AmountValue = 0.0
    rent: AmountValue = 0.0
    walt: WaltValue = None
    city: OptionalText = None
    am_code: AMCodeValue = Field(default="", alias="am")

    @field_validator("asset_ref", mode="before")
    @classmethod
    def _strip_asset_ref(cls, value):
        return _parse_text(value)

    @property
    def asset_key(self) -> str:
        return normalize_asset_ref(self.asset_ref)


class AssetSummary(CanonicalBase):
    """Asset-level aggregates used by the asset comparison view."""
    reference_id: str = Field(min_length=1)
    gla: AmountValue = 0.0
    rent: AmountValue = 0.0
    walt: WaltValue = None

    @field_validator("reference_id", mode="before")
    @classmethod
    def _strip_reference(cls, value):
        return _parse_text(value)
