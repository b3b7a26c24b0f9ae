"""
FastAPI application for the ARV comp engine.

Production deployment configuration via environment variables.
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from utils.config import Config
from web.arv_routes import router as arv_router


logger = logging.getLogger(__name__)

# =============================================================================
# Environment Configuration
# =============================================================================

# Production mode detection
IS_PRODUCTION = os.getenv("RAILWAY_ENVIRONMENT") is not None or os.getenv("PRODUCTION", "").lower() == "true"

APP_VERSION = "1.0.0"


def create_app(config: Config = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()

    # Debug mode - NEVER enabled in production
    debug_mode = config.debug and not IS_PRODUCTION

    allowed_origins = list(config.allowed_origins)
    if not allowed_origins and not IS_PRODUCTION:
        # Development fallback only
        allowed_origins = ["http://localhost:8000", "http://127.0.0.1:8000"]

    app = FastAPI(
        title="ARV Comp Engine",
        description="After-Repair Value estimates from comparable sales",
        version=APP_VERSION,
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=debug_mode,
    )

    # Healthcheck endpoints perform no IO and are registered first
    @app.get("/", include_in_schema=False)
    def root():
        """Root healthcheck. No dependencies, no IO."""
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        """Health endpoint with version and environment."""
        return {
            "status": "healthy",
            "version": APP_VERSION,
            "environment": "production" if IS_PRODUCTION else "development",
        }

    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    app.include_router(arv_router)

    logger.debug("ARV comp engine app created (debug=%s)", debug_mode)
    return app


# Create app instance for uvicorn
app = create_app()
