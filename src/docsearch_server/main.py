"""
Document Search Server Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Deterministic startup
- Centralized router registration
- Structured responses for known search-core errors
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import logging
from fastapi import FastAPI

from .config import settings
from .core.errors import (
    DocSearchError,
    docsearch_exception_handler,
    unhandled_exception_handler,
)

from .api import (
    health_routes,
    workspace_routes,
    project_routes,
    document_routes,
    search_routes,
    index_routes,
)


logger = logging.getLogger("docsearch.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="docsearch-server",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(DocSearchError, docsearch_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(workspace_routes.router)
    app.include_router(project_routes.router)
    app.include_router(document_routes.router)
    app.include_router(search_routes.router)
    app.include_router(index_routes.router)

    # --------------------------------------------------------------
    # Startup / Shutdown Hooks
    # --------------------------------------------------------------

    @app.on_event("startup")
    async def _startup() -> None:
        logger.info("Starting docsearch-server")

        if settings.admin_api_key is None:
            logger.warning("ADMIN_API_KEY is not set; workspace creation is disabled")

        logger.info(
            "Search language '%s', supported file types: %s",
            settings.search_language,
            ", ".join(settings.supported_types),
        )

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        logger.info("Shutting down docsearch-server")

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
