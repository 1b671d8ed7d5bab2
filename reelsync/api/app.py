"""FastAPI application factory for the render job API."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reelsync import __version__
from reelsync.api.routes import router as api_router
from reelsync.utils.constant import API_BEARER_TOKEN, API_CORS_ORIGINS
from reelsync.utils.logging_config import get_logger

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Create the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="reelsync render API",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        redoc_url="/redoc",
    )

    if not API_BEARER_TOKEN:
        logger.warning("API_BEARER_TOKEN is not set; render API authentication is disabled.")
    app.include_router(api_router)

    origins = [origin.strip() for origin in API_CORS_ORIGINS.split(",") if origin.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Return a minimal health status payload."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, str]:
        """Return service metadata for root requests."""
        return {
            "service": "reelsync-api",
            "docs": "/docs",
            "health": "/health",
        }

    return app
