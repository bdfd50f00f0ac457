"""
Credential service: the operations the presentation layer calls.

Wraps the ingestion pipeline and the credential repository. The UI does
no validation or dedup of its own; everything goes through here.
"""

from pydantic import BaseModel

from credvault.core.logging import get_logger
from credvault.domain.ingestion_pipeline import ingest
from credvault.domain.models import (
    CredentialEntry,
    IngestionReport,
    RawRecord,
    RejectionReason,
    SanitizedRecord,
    StoreStats,
)
from credvault.domain.record_validator import validate_record
from credvault.infrastructure.db.repository import CredentialRepository

logger = get_logger(__name__)


class AddEntriesResult(BaseModel):
    """Outcome of persisting a batch."""

    added: int
    invalid: int
    rejection_details: list[str] = []


class CredentialService:
    """Business logic for credential uploads and lookups."""

    def __init__(self, repository: CredentialRepository) -> None:
        self._repo = repository

    def ingest(
        self, content: str | bytes, file_name: str
    ) -> tuple[list[SanitizedRecord], IngestionReport]:
        """Extract credentials from a file without storing them."""
        return ingest(content, file_name)

    def add_entries(self, entries: list[RawRecord]) -> AddEntriesResult:
        """
        Validate and persist a batch of credentials.

        Entries are re-validated before insertion, so callers may pass
        records that did not come out of ``ingest``. The returned
        ``added`` is the persist-time count reported by the store.

        Raises:
            StoreError: If the insert was rolled back.
        """
        valid: list[SanitizedRecord] = []
        details: list[str] = []
        for entry in entries:
            result = validate_record(entry)
            if isinstance(result, RejectionReason):
                details.append(result.format())
            else:
                valid.append(result)

        added = self._repo.add_entries(valid) if valid else 0
        logger.info(
            "Persisted batch: submitted=%d added=%d invalid=%d",
            len(entries),
            added,
            len(details),
        )
        return AddEntriesResult(added=added, invalid=len(details), rejection_details=details)

    def search(self, query: str, field: str = "all") -> list[CredentialEntry]:
        return self._repo.search_entries(query, field)

    def get_all(self) -> list[CredentialEntry]:
        return self._repo.get_all_entries()

    def delete_one(self, url: str) -> bool:
        return self._repo.delete_entries_by_url(url)

    def delete_all(self) -> bool:
        return self._repo.delete_all_entries()

    def stats(self) -> StoreStats:
        return self._repo.get_stats()
