"""
Domain models: pure data structures for credvault.

These models have no framework dependencies beyond pydantic and
represent the core entities shared by the pipeline, the store and the
API layer.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class RawRecord:
    """A candidate credential as read from an input file, before validation."""

    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    source_line: Optional[int] = None
    notes: str = ""


class RejectionKind(str, Enum):
    MISSING_FIELD = "MissingField"
    INVALID_URL = "InvalidUrl"
    EMPTY_PASSWORD = "EmptyPassword"
    INVALID_USERNAME = "InvalidUsername"
    PARSE_ERROR = "ParseError"


@dataclass(frozen=True)
class RejectionReason:
    """Why a single input item was not accepted."""

    line_number: Optional[int]
    kind: RejectionKind
    detail: str

    def format(self) -> str:
        """Render the reason as a report line."""
        if self.line_number is None:
            return self.detail
        return f"Line {self.line_number}: {self.detail}"


class SanitizedRecord(BaseModel):
    """A validated credential ready for the store."""

    url: str = Field(..., description="Normalised URL")
    username: str = Field(..., min_length=1, description="Cleaned username")
    password: str = Field(..., min_length=1, description="Cleaned password")
    notes: str = Field(default="", description="Free-form notes")


class IngestionReport(BaseModel):
    """Statistics for one ingestion call."""

    file_name: str
    added: int = Field(
        default=0, description="Records accepted at extraction time"
    )
    duplicates: int = 0
    invalid: int = 0
    processing_time_seconds: float = 0.0
    items_per_second: float = Field(
        default=0.0,
        description="Input bytes processed per second (a throughput proxy)",
    )
    rejection_details: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class CredentialEntry(BaseModel):
    """A credential row as stored in the credential table."""

    id: int
    url: str
    username: str
    password: str
    notes: str = ""
    created_at: Optional[datetime] = None


class WebsiteTechnologies(BaseModel):
    """A website and the technologies detected on it."""

    url: str = Field(..., min_length=1)
    technologies: list[str] = Field(default_factory=list)


class StoreStats(BaseModel):
    """Summary figures for the credential table."""

    total: int = 0
    last_update: Optional[datetime] = None
    unique_users: int = 0
