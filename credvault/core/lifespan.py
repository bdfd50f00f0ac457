"""
FastAPI application lifespan management.

Opens the store on startup and closes it on shutdown. The store is
owned by the application instance (``app.state.store``) rather than a
module global.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from credvault.core.config import settings
from credvault.core.logging import setup_logging, get_logger
from credvault.infrastructure.db.sqlite import SQLiteStore

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Manage application lifecycle.

    Startup:
      1. Configure logging
      2. Open the store, loading the snapshot if one exists

    Shutdown:
      1. Close the store
    """
    # ── Startup ──────────────────────────────────────────────
    setup_logging()
    logger.info("Starting credvault...")

    app.state.store = SQLiteStore(
        snapshot_path=settings.snapshot_path or None,
        unique_entries=settings.unique_entries,
    )
    logger.info("Store opened (snapshot=%s)", settings.snapshot_path or "in-memory")

    yield

    # ── Shutdown ─────────────────────────────────────────────
    logger.info("Shutting down credvault...")
    app.state.store.close()
    logger.info("Shutdown complete")
