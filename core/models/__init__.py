"""Core data models - source-neutral canonical types.

Records produced by the PM and Odoo source boundaries and consumed by the
reconciliation engine.
"""

from core.models.canonical import (
    # Base
    CanonicalBase,
    AmountValue,
    WaltValue,

    # Tenancy
    AMCode,
    TenancyRecord,
    AssetSummary,
    normalize_asset_ref,
)

__all__ = [
    # Base
    "CanonicalBase",
    "AmountValue",
    "WaltValue",

    # Tenancy
    "AMCode",
    "TenancyRecord",
    "AssetSummary",
    "normalize_asset_ref",
]
