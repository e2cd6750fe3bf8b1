"""Tenant-Name Matching Algorithm.

This module maps free-text tenant labels from the PM source onto the
canonical labels used by the AM (Odoo) source. Lookup is tiered, first
hit wins:
1. Exact match after key normalization              → "exact"
2. Exact match after legal-form stripping           → "exact_strip"
3. Same token set, order and duplicates ignored     → "token_set"
4. Best Jaccard token overlap across all variants   → "jaccard_<score>"
   (only when the score reaches the threshold, else "no_match")

A matcher is immutable once built. Rebuild it when the mapping table
changes; share one instance freely between concurrent requests.
"""

import time
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from core.observability.logging import get_logger
from core.observability.metrics import record_match, record_processing_time
from tenant_matcher.models import (
    CanonicalMappingEntry,
    MatchingConfig,
    MatchResult,
    MatchTier,
    NO_MATCH,
    DEFAULT_MATCHING_CONFIG,
)
from tenant_matcher.normalize import (
    jaccard_similarity,
    normalize_for_key,
    normalize_legal_form,
    token_signature,
    tokenize,
)


logger = get_logger(__name__)


def group_pairs(pairs: Iterable[Tuple[str, str]]) -> List[CanonicalMappingEntry]:
    """Group (variant, canonical) pairs into mapping entries.

    Canonicals keep the order of their first appearance; so do the
    variants within each group.
    """
    grouped: Dict[str, List[str]] = {}
    for variant, canonical in pairs:
        canonical = (canonical or "").strip()
        if not canonical:
            continue
        grouped.setdefault(canonical, []).append(variant or "")
    return [CanonicalMappingEntry.build(canonical, variants) for canonical, variants in grouped.items()]


class TenantNameMatcher:
    """Maps arbitrary tenant labels to canonical labels.

    Three indexes are built from every variant of every entry:
    - exact: normalize_for_key(variant) → canonical
    - stripped: normalize_legal_form(variant) → canonical
    - tokens: token_signature(variant) → canonical

    When two canonicals share a normalized variant, the later entry wins.

    Example:
        matcher = TenantNameMatcher.from_pairs([
            ("Carrefour GmbH", "Carrefour"),
            ("Carrefour Deutschland", "Carrefour"),
        ])

        result = matcher.match("CARREFOUR GMBH")
        # MatchResult(mapped="Carrefour", reason="exact")
    """

    def __init__(
        self,
        entries: Iterable[CanonicalMappingEntry] = (),
        config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
    ):
        """Build the matcher indexes.

        Args:
            entries: Canonical mapping entries
            config: Matching configuration
        """
        self.config = config
        self._entries: Tuple[CanonicalMappingEntry, ...] = tuple(entries)

        exact: Dict[str, str] = {}
        stripped: Dict[str, str] = {}
        tokens: Dict[str, str] = {}
        variant_tokens: List[Tuple[str, FrozenSet[str]]] = []

        for entry in self._entries:
            for variant in entry.variants:
                exact_key = normalize_for_key(variant)
                if exact_key:
                    exact[exact_key] = entry.canonical

                stripped_key = normalize_legal_form(variant)
                if stripped_key:
                    stripped[stripped_key] = entry.canonical

                variant_token_list = tokenize(variant)
                signature = " ".join(sorted(set(variant_token_list)))
                if signature:
                    tokens[signature] = entry.canonical

                variant_tokens.append((entry.canonical, frozenset(variant_token_list)))

        self._exact: Mapping[str, str] = MappingProxyType(exact)
        self._stripped: Mapping[str, str] = MappingProxyType(stripped)
        self._tokens: Mapping[str, str] = MappingProxyType(tokens)
        self._variant_tokens: Tuple[Tuple[str, FrozenSet[str]], ...] = tuple(variant_tokens)

        logger.info(
            "Tenant matcher built",
            extra_fields={
                "entries": len(self._entries),
                "variants": len(self._variant_tokens),
                "exact_keys": len(exact),
            },
        )

    # =========================================================================
    # Construction helpers
    # =========================================================================

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[CanonicalMappingEntry],
        config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
    ) -> "TenantNameMatcher":
        return cls(entries, config)

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[Tuple[str, str]],
        config: MatchingConfig = DEFAULT_MATCHING_CONFIG,
    ) -> "TenantNameMatcher":
        """Build from (variant, canonical) pairs."""
        return cls(group_pairs(pairs), config)

    @classmethod
    def empty(cls) -> "TenantNameMatcher":
        """A matcher that matches nothing (missing or broken mapping table)."""
        return cls(())

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def entries(self) -> Tuple[CanonicalMappingEntry, ...]:
        return self._entries

    @property
    def canonicals(self) -> List[str]:
        return [entry.canonical for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    # =========================================================================
    # Matching
    # =========================================================================

    def match(self, label: Optional[str]) -> MatchResult:
        """Map a free-text label to its canonical label.

        Args:
            label: Raw tenant label (e.g. from the PM export)

        Returns:
            MatchResult with the canonical label and the tier that matched,
            or mapped=None with reason "no_match"
        """
        raw = label or ""
        result = self._match(raw)
        record_match(result.tier.value)
        logger.debug("Matched tenant label %r -> %r (%s)", raw, result.mapped, result.reason)
        return result

    def _match(self, raw: str) -> MatchResult:
        hit = self._exact.get(normalize_for_key(raw))
        if hit is not None:
            return MatchResult(mapped=hit, reason=MatchTier.EXACT.value)

        hit = self._stripped.get(normalize_legal_form(raw))
        if hit is not None:
            return MatchResult(mapped=hit, reason=MatchTier.EXACT_STRIP.value)

        hit = self._tokens.get(token_signature(raw))
        if hit is not None:
            return MatchResult(mapped=hit, reason=MatchTier.TOKEN_SET.value)

        return self._fuzzy_match(tokenize(raw))

    def _fuzzy_match(self, label_tokens: List[str]) -> MatchResult:
        """Jaccard fallback against every variant of every entry."""
        if not label_tokens:
            return NO_MATCH

        best_canonical: Optional[str] = None
        best_score = -1.0
        for canonical, variant_tokens in self._variant_tokens:
            score = jaccard_similarity(label_tokens, variant_tokens)
            if score > best_score:
                best_canonical, best_score = canonical, score

        if best_canonical is not None and best_score >= self.config.jaccard_threshold:
            return MatchResult(mapped=best_canonical, reason=f"jaccard_{best_score:.2f}")

        return NO_MATCH

    def canonicalize(self, label: Optional[str]) -> str:
        """Canonical label, or the original label when nothing matched."""
        result = self.match(label)
        return result.mapped if result.mapped is not None else (label or "")

    def match_many(self, labels: Iterable[str]) -> List[Tuple[str, MatchResult]]:
        """Match a batch of labels, keeping input order."""
        start_time = time.time()
        results = [(label, self.match(label)) for label in labels]
        record_processing_time("match_batch", (time.time() - start_time) * 1000)
        return results

    def explain(self, label: str) -> str:
        """Generate a human-readable explanation of how a label matches.

        Args:
            label: Raw tenant label

        Returns:
            Formatted explanation string
        """
        result = self._match(label or "")
        lines = ["=" * 60, "Tenant Match Explanation", "=" * 60]

        lines.append(f"Label:          '{label}'")
        lines.append(f"Key form:       '{normalize_for_key(label)}'")
        lines.append(f"Legal-stripped: '{normalize_legal_form(label)}'")
        lines.append(f"Tokens:         {tokenize(label)}")
        lines.append("")

        if result.is_match:
            lines.append(f"✓ MATCHED to: {result.mapped}")
        else:
            lines.append("✗ NO MATCH")
        lines.append(f"  Reason: {result.reason}")
        lines.append("=" * 60)

        return "\n".join(lines)
