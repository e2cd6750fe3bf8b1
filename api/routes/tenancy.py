"""Tenancy reconciliation endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request

from api.deps import get_matcher, get_settings, require_user
from api.services.tenancy_data import load_tenancy_snapshot
from core.config import Settings
from core.observability.logging import get_logger, with_correlation
from reconciliation import (
    ViewMode,
    display_flags,
    drop_hidden_tenants,
    filter_rows,
    reconcile,
    summarize,
)
from sources import load_banned_assets, load_pm_labels
from tenant_matcher import TenantNameMatcher, build_matcher_from_file


logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_user)])


@router.get("")
async def get_tenancy_data(
    settings: Settings = Depends(get_settings),
    matcher: TenantNameMatcher = Depends(get_matcher),
) -> Dict[str, Any]:
    """Both sources after ban filtering: {pm, odoo, warnings?, debug}."""
    snapshot = await load_tenancy_snapshot(settings, matcher)
    return snapshot.to_dict()


@router.get("/rows")
async def get_reconciled_rows(
    q: str = Query("", description="Free-text search over asset, city and tenant"),
    am: str = Query("ALL", description="AM code filter (ALL, CFR, BKO, FKE, MSC)"),
    view: ViewMode = Query(ViewMode.NONE, description="none, highlighted or missing_rent"),
    settings: Settings = Depends(get_settings),
    matcher: TenantNameMatcher = Depends(get_matcher),
) -> Dict[str, Any]:
    """Reconciled rows with per-delta display flags."""
    snapshot = await load_tenancy_snapshot(settings, matcher)

    with with_correlation(stage="reconcile"):
        rows = reconcile(
            drop_hidden_tenants(snapshot.pm),
            drop_hidden_tenants(snapshot.odoo),
            settings.thresholds,
        )
    selected = filter_rows(rows, query=q, am_filter=am, mode=view, thresholds=settings.thresholds)

    response: Dict[str, Any] = {
        "rows": [
            {**row.to_dict(), "display": display_flags(row, settings.thresholds)}
            for row in selected
        ],
        "count": len(selected),
        "summary": summarize(rows),
    }
    if snapshot.warnings:
        response["warnings"] = snapshot.warnings
    return response


@router.get("/mapping-debug")
async def mapping_debug(
    settings: Settings = Depends(get_settings),
    matcher: TenantNameMatcher = Depends(get_matcher),
) -> Dict[str, Any]:
    """How every PM tenant label is mapped."""
    labels = [label for label in load_pm_labels(settings.pm_tenants_path) if label]
    items = [
        {"pm": label, "mapped": result.mapped, "reason": result.reason}
        for label, result in matcher.match_many(labels)
    ]
    return {"items": items}


@router.post("/mapping/reload")
async def reload_mapping(request: Request, settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Rebuild the matcher from the tenant map file."""
    matcher = build_matcher_from_file(settings.tenant_map_path)
    request.app.state.matcher = matcher
    logger.info(f"Tenant matcher reloaded with {len(matcher)} entries")
    return {"entries": len(matcher)}


@router.get("/ban-debug")
async def ban_debug(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    banned = sorted(load_banned_assets(settings.data_dir))
    return {"banned": banned, "count": len(banned)}
