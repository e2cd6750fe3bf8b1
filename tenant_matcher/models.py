"""Tenant Matcher Data Models.

This module defines the Pydantic models for tenant-name matching:
- CanonicalMappingEntry: A canonical label with its known variants
- MatchResult: The outcome of matching one free-text label
- MatchingConfig: Tunable thresholds for the matcher
"""

from enum import Enum
from typing import Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class MatchTier(str, Enum):
    """Which lookup tier produced a match."""
    EXACT = "exact"              # normalize_for_key hit
    EXACT_STRIP = "exact_strip"  # hit after legal-form stripping
    TOKEN_SET = "token_set"      # same token set, any order
    JACCARD = "jaccard"          # fuzzy token overlap above threshold
    NO_MATCH = "no_match"


class CanonicalMappingEntry(BaseModel):
    """A canonical tenant label and the raw variants that map onto it.

    The canonical label is always the first member of its own variants.

    Attributes:
        canonical: Controlled-vocabulary label used by the AM source
        variants: Ordered, de-duplicated raw labels (canonical included)
    """
    model_config = ConfigDict(frozen=True)

    canonical: str = Field(..., min_length=1, description="Canonical tenant label")
    variants: Tuple[str, ...] = Field(
        default_factory=tuple,
        validate_default=True,
        description="Known label variants",
    )

    @field_validator("variants")
    @classmethod
    def _include_canonical(cls, variants: Tuple[str, ...], info: ValidationInfo) -> Tuple[str, ...]:
        ordered = []
        seen = set()
        for value in (info.data.get("canonical", ""), *variants):
            value = (value or "").strip()
            if value and value not in seen:
                seen.add(value)
                ordered.append(value)
        return tuple(ordered)

    @classmethod
    def build(cls, canonical: str, variants: Iterable[str] = ()) -> "CanonicalMappingEntry":
        """Create an entry, trimming the canonical and dropping empty variants."""
        return cls(canonical=canonical.strip(), variants=tuple(variants))


class MatchResult(BaseModel):
    """Result of matching a free-text label against the canonical vocabulary.

    Attributes:
        mapped: Canonical label, or None when nothing matched
        reason: "exact", "exact_strip", "token_set", "jaccard_<score>" or "no_match"
    """
    model_config = ConfigDict(frozen=True)

    mapped: Optional[str] = None
    reason: str = MatchTier.NO_MATCH.value

    @property
    def is_match(self) -> bool:
        return self.mapped is not None

    @property
    def tier(self) -> MatchTier:
        if self.reason.startswith("jaccard_"):
            return MatchTier.JACCARD
        return MatchTier(self.reason)


NO_MATCH = MatchResult(mapped=None, reason=MatchTier.NO_MATCH.value)


class MatchingConfig(BaseModel):
    """Configuration for the tenant matching algorithm."""
    model_config = ConfigDict(frozen=True)

    jaccard_threshold: float = Field(
        default=0.85,
        ge=0.0,
        le=1.0,
        description="Min Jaccard similarity for a fuzzy match",
    )


DEFAULT_MATCHING_CONFIG = MatchingConfig()
