"""Asset-level comparison endpoint."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.deps import get_settings, require_user
from api.services.tenancy_data import load_asset_comparison
from core.config import Settings


router = APIRouter(dependencies=[Depends(require_user)])


@router.get("")
async def compare_assets(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """GLA, rent and WALT per asset from Odoo and the PM export."""
    data = await load_asset_comparison(settings)
    return {
        "odoo": [summary.model_dump(mode="json") for summary in data["odoo"]],
        "pm": [summary.model_dump(mode="json") for summary in data["pm"]],
    }
