"""API Services Package."""

from api.services.tenancy_data import (
    TenancySnapshot,
    load_tenancy_snapshot,
    load_asset_comparison,
)

__all__ = [
    "TenancySnapshot",
    "load_tenancy_snapshot",
    "load_asset_comparison",
]
