"""Health check and metrics endpoints."""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from api.deps import get_settings
from core.config import Settings, has_odoo_config
from core.observability.metrics import get_metrics


router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str
    services: Dict[str, str]


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, settings: Settings = Depends(get_settings)) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow().isoformat(),
        version="1.0.0",
        services={
            "api": "up",
            "odoo": "configured" if has_odoo_config(settings) else "not_configured",
            "tenant_map": f"{len(request.app.state.matcher)} entries",
        }
    )


@router.get("/metrics")
async def metrics_summary() -> Dict[str, Any]:
    """In-memory metrics since process start."""
    return get_metrics().get_summary()
