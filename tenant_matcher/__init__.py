"""Tenant Matcher - Canonicalization of free-text tenant labels.

This package maps tenant labels from the property manager (PM) export onto
the controlled vocabulary of tenant names used in Odoo, based on:
- Exact match after diacritic/case/punctuation folding
- Exact match after stripping legal-entity forms (GmbH, KG, AG, ...)
- Token-set match (word order ignored)
- Jaccard token similarity as a fuzzy fallback

Usage:
    from tenant_matcher import build_matcher_from_file

    matcher = build_matcher_from_file("data/tenant_map.json")
    result = matcher.match("Carrefour Deutschland GmbH")

    if result.is_match:
        tenant_name = result.mapped
    else:
        tenant_name = "Carrefour Deutschland GmbH"  # keep the raw label
"""

from tenant_matcher.models import (
    CanonicalMappingEntry,
    MatchResult,
    MatchTier,
    MatchingConfig,
)
from tenant_matcher.matcher import TenantNameMatcher, group_pairs
from tenant_matcher.mapping_table import (
    parse_mapping_table,
    load_mapping_file,
    build_matcher_from_file,
)
from tenant_matcher.normalize import (
    normalize_for_key,
    normalize_legal_form,
    tokenize,
    token_signature,
    jaccard_similarity,
)

__all__ = [
    # Models
    "CanonicalMappingEntry",
    "MatchResult",
    "MatchTier",
    "MatchingConfig",
    # Matcher
    "TenantNameMatcher",
    "group_pairs",
    # Mapping table
    "parse_mapping_table",
    "load_mapping_file",
    "build_matcher_from_file",
    # Normalization
    "normalize_for_key",
    "normalize_legal_form",
    "tokenize",
    "token_signature",
    "jaccard_similarity",
]
