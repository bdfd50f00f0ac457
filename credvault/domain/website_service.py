"""
Website service: website/technology association lists.
"""

from pydantic import BaseModel

from credvault.core.logging import get_logger
from credvault.domain.format_parser import parse_technology_list
from credvault.domain.models import WebsiteTechnologies
from credvault.infrastructure.db.repository import WebsiteRepository

logger = get_logger(__name__)


class ImportResult(BaseModel):
    success: bool
    processed: int
    message: str = ""
    no_data: bool = False


class WebsiteService:
    """Business logic for website ↔ technology records."""

    def __init__(self, repository: WebsiteRepository) -> None:
        self._repo = repository

    def import_list(self, content: str) -> ImportResult:
        """
        Parse an association list and store it in one transaction.

        Lines look like ``example.com [Nginx, React]``. A list without any
        usable line is rejected before touching the store.
        """
        items = parse_technology_list(content)
        if not items:
            return ImportResult(
                success=False,
                processed=0,
                message="No valid data found in the file.",
                no_data=True,
            )
        return self.add(items)

    def add(self, items: list[WebsiteTechnologies]) -> ImportResult:
        if self._repo.insert_website_technologies(items):
            return ImportResult(
                success=True,
                processed=len(items),
                message=f"Processed {len(items)} website records.",
            )
        return ImportResult(
            success=False,
            processed=0,
            message="Failed to insert data into the database.",
        )

    def search(self, query: str, by_technology: bool = False) -> list[WebsiteTechnologies]:
        return self._repo.search_websites(query, by_technology=by_technology)

    def get_all(self) -> list[WebsiteTechnologies]:
        return self._repo.get_all_websites()

    def technologies(self) -> list[str]:
        return self._repo.get_all_technologies()

    def delete(self, url: str) -> bool:
        return self._repo.delete_website(url)

    def delete_all(self) -> bool:
        return self._repo.delete_all_website_technology_data()
