"""Odoo connector - JSON-RPC client and property/tenancy fetchers."""

from connectors.odoo.client import (
    OdooApiError,
    OdooConfigError,
    OdooAuthenticationError,
    OdooRpcError,
    RetryConfig,
    OdooConfig,
    OdooClient,
)
from connectors.odoo.tenancies import (
    clean_tenancy_name,
    years_between,
    walt_years,
    fetch_tenancies,
    fetch_asset_salespersons,
    fetch_asset_summaries,
)

__all__ = [
    "OdooApiError",
    "OdooConfigError",
    "OdooAuthenticationError",
    "OdooRpcError",
    "RetryConfig",
    "OdooConfig",
    "OdooClient",
    "clean_tenancy_name",
    "years_between",
    "walt_years",
    "fetch_tenancies",
    "fetch_asset_salespersons",
    "fetch_asset_summaries",
]
