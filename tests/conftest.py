"""
Shared test fixtures for the credvault test suite.

Provides:
  - In-memory store and repositories
  - Async test client for FastAPI integration tests
  - Mock repository fixtures
"""

from unittest.mock import MagicMock
from typing import AsyncIterator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from credvault.api.dependencies import get_store
from credvault.infrastructure.db.repository import CredentialRepository, WebsiteRepository
from credvault.infrastructure.db.sqlite import SQLiteStore
from credvault.main import app


@pytest.fixture
def store():
    """Provide a fresh in-memory store."""
    store = SQLiteStore()
    yield store
    store.close()


@pytest.fixture
def unique_store():
    """Provide an in-memory store that rejects repeated credentials."""
    store = SQLiteStore(unique_entries=True)
    yield store
    store.close()


@pytest.fixture
def website_repo(store) -> WebsiteRepository:
    return WebsiteRepository(store)


@pytest.fixture
def credential_repo(store) -> CredentialRepository:
    return CredentialRepository(store)


@pytest_asyncio.fixture
async def async_client(store) -> AsyncIterator[AsyncClient]:
    """
    Provide an async HTTP test client for integration tests.

    The application's store is replaced with the in-memory ``store``
    fixture; lifespan startup is not run.
    """
    app.dependency_overrides[get_store] = lambda: store
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(
            transport=transport, base_url="http://testserver"
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def mock_credential_repository():
    """Provide a mock CredentialRepository."""
    repo = MagicMock()
    repo.add_entries = MagicMock(side_effect=lambda batch: len(list(batch)))
    repo.search_entries = MagicMock(return_value=[])
    repo.get_all_entries = MagicMock(return_value=[])
    repo.delete_entries_by_url = MagicMock(return_value=True)
    repo.delete_all_entries = MagicMock(return_value=True)
    return repo


@pytest.fixture
def mock_website_repository():
    """Provide a mock WebsiteRepository."""
    repo = MagicMock()
    repo.insert_website_technologies = MagicMock(return_value=True)
    repo.search_websites = MagicMock(return_value=[])
    repo.delete_website = MagicMock(return_value=True)
    return repo
