"""
Snapshot Loading for the Tenancy Views.

Reads both sources for one request: the PM CSV export (through the tenant
matcher) and, when configured, Odoo. Odoo failures do not fail the request;
they are reported as warnings next to whatever data could be loaded.
"""

import asyncio
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from connectors.odoo import (
    OdooApiError,
    OdooClient,
    OdooConfig,
    fetch_asset_salespersons,
    fetch_asset_summaries,
    fetch_tenancies,
)
from core.config import Settings, has_odoo_config
from core.models import AssetSummary, TenancyRecord
from core.observability.logging import get_logger
from reconciliation import AMCodeResolver
from sources import filter_banned, load_banned_assets, load_pm_asset_summaries, load_pm_tenants
from tenant_matcher import TenantNameMatcher


logger = get_logger(__name__)

ODOO_NOT_CONFIGURED = "Odoo not configured on server (missing env vars)"


class TenancySnapshot(BaseModel):
    """Both sources as loaded for one request."""
    pm: List[TenancyRecord] = Field(default_factory=list)
    odoo: List[TenancyRecord] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    debug: Dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "pm": [record.model_dump(mode="json", by_alias=True) for record in self.pm],
            "odoo": [record.model_dump(mode="json", by_alias=True) for record in self.odoo],
            "debug": self.debug,
        }
        if self.warnings:
            data["warnings"] = self.warnings
        return data


async def load_tenancy_snapshot(settings: Settings, matcher: TenantNameMatcher) -> TenancySnapshot:
    """
    Load PM and Odoo tenancies with banned assets removed.

    PM rows get their AM code from Odoo's property salespersons.
    """
    banned = load_banned_assets(settings.data_dir)
    pm_raw = load_pm_tenants(settings.pm_tenants_path, matcher)
    pm = filter_banned(pm_raw, banned)

    snapshot = TenancySnapshot(
        pm=pm,
        debug={
            "ban_count": len(banned),
            "pm_raw_count": len(pm_raw),
            "pm_after_ban_count": len(pm),
        },
    )

    if not has_odoo_config(settings):
        logger.warning(ODOO_NOT_CONFIGURED)
        snapshot.warnings.append(ODOO_NOT_CONFIGURED)
        return snapshot

    async with OdooClient(OdooConfig.from_settings(settings)) as client:
        # One login shared by both fetches
        try:
            await client.authenticate()
        except OdooApiError as e:
            logger.warning(f"Odoo authentication failed: {e}")
            snapshot.warnings.append(f"authenticate error: {e}")
            return snapshot

        tenancies, salespersons = await asyncio.gather(
            fetch_tenancies(client),
            fetch_asset_salespersons(client),
            return_exceptions=True,
        )

    odoo_all: List[TenancyRecord] = []
    if isinstance(tenancies, BaseException):
        logger.warning(f"Odoo tenancy fetch failed: {tenancies}")
        snapshot.warnings.append(f"fetch_tenancies error: {tenancies}")
    else:
        odoo_all = tenancies

    if isinstance(salespersons, BaseException):
        logger.warning(f"Odoo salesperson fetch failed: {salespersons}")
        snapshot.warnings.append(f"fetch_asset_salespersons error: {salespersons}")
    else:
        snapshot.pm = AMCodeResolver.from_salesperson_ids(salespersons).annotate(pm)

    snapshot.odoo = filter_banned(odoo_all, banned)
    snapshot.debug["odoo_all_count"] = len(odoo_all)
    snapshot.debug["odoo_after_ban_count"] = len(snapshot.odoo)
    return snapshot


async def load_asset_comparison(settings: Settings) -> Dict[str, List[AssetSummary]]:
    """
    Asset-level totals from both sources.

    Raises:
        OdooConfigError: Odoo is not configured
        OdooApiError: The Odoo fetch failed
    """
    pm = load_pm_asset_summaries(settings.pm_assets_path)
    async with OdooClient(OdooConfig.from_settings(settings)) as client:
        odoo = await fetch_asset_summaries(client)
    return {"odoo": odoo, "pm": pm}
