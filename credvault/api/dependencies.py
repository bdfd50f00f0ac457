"""
FastAPI dependency injection.

Services are built per request around the store owned by the
application (``app.state.store``), so tests can swap in their own
store by overriding ``get_store``.
"""

from fastapi import Depends, Request

from credvault.core.config import settings
from credvault.domain.credential_service import CredentialService
from credvault.domain.website_service import WebsiteService
from credvault.infrastructure.db.repository import CredentialRepository, WebsiteRepository
from credvault.infrastructure.db.sqlite import SQLiteStore


def get_store(request: Request) -> SQLiteStore:
    """Return the store opened during application startup."""
    return request.app.state.store


def get_credential_service(store: SQLiteStore = Depends(get_store)) -> CredentialService:
    repository = CredentialRepository(store, search_limit=settings.search_result_limit)
    return CredentialService(repository=repository)


def get_website_service(store: SQLiteStore = Depends(get_store)) -> WebsiteService:
    return WebsiteService(repository=WebsiteRepository(store))
