"""
API request/response schemas.

These Pydantic models define the contract between the API layer
and external clients. They are separate from domain models to
allow the API surface to evolve independently.
"""

from typing import Optional

from pydantic import BaseModel, Field

from credvault.domain.models import (
    IngestionReport,
    RawRecord,
    SanitizedRecord,
    WebsiteTechnologies,
)


class ExtractRequest(BaseModel):
    """Request body for POST /credentials/extract."""

    file_name: str = Field(
        ...,
        min_length=1,
        description="Original file name; the extension selects the parser",
        json_schema_extra={"example": "dump.txt"},
    )
    content: str = Field(..., description="Full text content of the file")


class ExtractResponse(BaseModel):
    """Accepted records and the ingestion report for one file."""

    entries: list[SanitizedRecord]
    stats: IngestionReport


class EntryIn(BaseModel):
    """A credential submitted for storage."""

    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    notes: str = ""

    def to_raw(self, index: int) -> RawRecord:
        return RawRecord(
            url=self.url,
            username=self.username,
            password=self.password,
            notes=self.notes,
            source_line=index,
        )


class AddEntriesRequest(BaseModel):
    """Request body for POST /credentials."""

    entries: list[EntryIn]


class AddEntriesResponse(BaseModel):
    added: int = Field(..., description="Rows actually stored")
    invalid: int = Field(..., description="Entries rejected by validation")
    rejection_details: list[str] = Field(default_factory=list)


class WebsitesRequest(BaseModel):
    """Request body for POST /websites."""

    items: list[WebsiteTechnologies]


class TechnologyListRequest(BaseModel):
    """Request body for POST /websites/import."""

    content: str = Field(
        ...,
        description="One website per line, optionally followed by [Tech1, Tech2]",
        json_schema_extra={"example": "example.com [Nginx, React]"},
    )


class OperationResult(BaseModel):
    success: bool
    message: str = ""


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(..., description="Error description")
