"""
FastAPI application entrypoint.

Creates and configures the FastAPI application with:
  - Lifespan management (store open/close)
  - API router registration
  - CORS middleware
  - Custom exception handlers
  - Health check endpoint
"""

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from credvault.api.dependencies import get_store
from credvault.api.routes import credentials_router, export_router, websites_router
from credvault.core.config import settings
from credvault.core.exceptions import CredVaultError
from credvault.core.lifespan import lifespan
from credvault.core.logging import get_logger
from credvault.infrastructure.db.sqlite import SQLiteStore

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Application factory: creates and configures the FastAPI instance."""

    application = FastAPI(
        title="credvault",
        description=(
            "Ingests credential dumps (JSON, url:user:pass text, CSV) and "
            "website/technology lists, normalises, validates and deduplicates "
            "them, and keeps them in a searchable SQLite store."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # ── Middleware ────────────────────────────────────────────
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routes ───────────────────────────────────────────────
    application.include_router(credentials_router, prefix="/api/v1")
    application.include_router(websites_router, prefix="/api/v1")
    application.include_router(export_router, prefix="/api/v1")

    # ── Health Check ─────────────────────────────────────────
    @application.get(
        "/health",
        tags=["Health"],
        summary="Service health check",
        status_code=status.HTTP_200_OK,
    )
    def health_check(store: SQLiteStore = Depends(get_store)):
        """Return service health status and whether the store is file-backed."""
        return {
            "status": "healthy",
            "service": "credvault",
            "snapshot": str(store.snapshot_path) if store.snapshot_path else None,
        }

    # ── Exception Handlers ───────────────────────────────────
    @application.exception_handler(CredVaultError)
    async def credvault_error_handler(request: Request, exc: CredVaultError):
        """Handle all custom credvault exceptions."""
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": exc.message},
        )

    @application.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Catch-all handler to prevent stack traces from leaking to clients."""
        logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An internal server error occurred."},
        )

    return application


# Create the app instance, referenced by uvicorn as credvault.main:app
app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run("credvault.main:app", host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
