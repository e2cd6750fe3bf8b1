"""FastAPI server for tenancy reconciliation.

Main entry point for the API server.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import comments, compare, health, tenancy
from comments import init_comments_db
from connectors.odoo import OdooApiError
from core.config import Settings, get_settings
from core.observability.logging import configure_logging, get_logger, with_correlation
from tenant_matcher import build_matcher_from_file


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Explicit settings (tests); read from the environment when None
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        # Startup
        resolved = settings or get_settings()
        configure_logging(getattr(logging, resolved.log_level, logging.INFO), resolved.log_json)

        app.state.settings = resolved
        app.state.matcher = build_matcher_from_file(resolved.tenant_map_path)
        init_comments_db(resolved.comments_db)
        logger.info("Tenancy API starting up", extra_fields={"data_dir": str(resolved.data_dir)})

        yield

        # Shutdown
        logger.info("Tenancy API shutting down")

    app = FastAPI(
        title="Tenancy Reconciliation API",
        description="Reconciles PM tenancy exports against Odoo and surfaces discrepancies",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        with with_correlation(request_id=request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(OdooApiError)
    async def odoo_error_handler(request: Request, exc: OdooApiError) -> JSONResponse:
        logger.error(f"Odoo request failed: {exc}", extra_fields={"status_code": exc.status_code})
        return JSONResponse(status_code=500, content={"error": str(exc)})

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(tenancy.router, prefix="/tenancy/api", tags=["Tenancy"])
    app.include_router(comments.router, prefix="/tenancy/api/comments", tags=["Comments"])
    app.include_router(compare.router, prefix="/compare/api", tags=["Compare"])

    return app


# Default app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=True)
