"""
API routes for credvault.

Thin glue between HTTP and the domain services: credential uploads,
search and deletion, plus website/technology association lists.
Store failures propagate as StoreError and are turned into 500s by the
application's exception handler.
"""

import csv
import io
import tempfile
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse, Response

from credvault.api.dependencies import (
    get_credential_service,
    get_store,
    get_website_service,
)
from credvault.api.schemas import (
    AddEntriesRequest,
    AddEntriesResponse,
    ErrorResponse,
    ExtractRequest,
    ExtractResponse,
    OperationResult,
    TechnologyListRequest,
    WebsitesRequest,
)
from credvault.core.exceptions import InvalidSearchFieldError
from credvault.core.logging import get_logger
from credvault.domain.credential_service import CredentialService
from credvault.domain.models import CredentialEntry, StoreStats, WebsiteTechnologies
from credvault.domain.website_service import ImportResult, WebsiteService
from credvault.infrastructure.db.sqlite import SQLiteStore

logger = get_logger(__name__)

credentials_router = APIRouter(prefix="/credentials", tags=["Credentials"])
websites_router = APIRouter(tags=["Websites"])
export_router = APIRouter(prefix="/export", tags=["Export"])


def _csv_response(header: list[str], rows: list[list], file_name: str) -> PlainTextResponse:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return PlainTextResponse(
        buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


# ── Credentials ──────────────────────────────────────────────


@credentials_router.post(
    "/extract",
    response_model=ExtractResponse,
    summary="Extract credentials from a file",
    description=(
        "Parses, validates and deduplicates the file content and returns the "
        "accepted records with a report. Nothing is stored."
    ),
)
def extract_credentials(
    request: ExtractRequest,
    service: CredentialService = Depends(get_credential_service),
) -> ExtractResponse:
    entries, report = service.ingest(request.content, request.file_name)
    return ExtractResponse(entries=entries, stats=report)


@credentials_router.post(
    "",
    response_model=AddEntriesResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Store a batch of credentials",
    responses={500: {"model": ErrorResponse, "description": "Insert rolled back"}},
)
def add_credentials(
    request: AddEntriesRequest,
    service: CredentialService = Depends(get_credential_service),
) -> AddEntriesResponse:
    raw = [entry.to_raw(index) for index, entry in enumerate(request.entries, start=1)]
    result = service.add_entries(raw)
    return AddEntriesResponse(
        added=result.added,
        invalid=result.invalid,
        rejection_details=result.rejection_details,
    )


@credentials_router.get(
    "",
    response_model=list[CredentialEntry],
    summary="List all stored credentials, newest first",
)
def list_credentials(
    service: CredentialService = Depends(get_credential_service),
) -> list[CredentialEntry]:
    return service.get_all()


@credentials_router.get(
    "/search",
    response_model=list[CredentialEntry],
    summary="Substring search over stored credentials",
    responses={400: {"model": ErrorResponse, "description": "Unknown field"}},
)
def search_credentials(
    q: str = Query("", description="Substring to look for"),
    field: str = Query(
        "all", description="all, url, username, password, notes or id"
    ),
    service: CredentialService = Depends(get_credential_service),
) -> list[CredentialEntry]:
    try:
        return service.search(q, field)
    except InvalidSearchFieldError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.message,
        ) from exc


@credentials_router.get(
    "/stats",
    response_model=StoreStats,
    summary="Credential table statistics",
)
def credential_stats(
    service: CredentialService = Depends(get_credential_service),
) -> StoreStats:
    return service.stats()


@credentials_router.delete(
    "",
    response_model=OperationResult,
    summary="Delete every credential stored for a url",
    responses={404: {"model": ErrorResponse, "description": "No such url"}},
)
def delete_credential(
    url: str = Query(..., min_length=1, description="Exact stored url"),
    service: CredentialService = Depends(get_credential_service),
) -> OperationResult:
    if not service.delete_one(url):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No credentials stored for '{url}'.",
        )
    return OperationResult(success=True)


@credentials_router.delete(
    "/all",
    response_model=OperationResult,
    summary="Delete all credentials and reset ids",
)
def delete_all_credentials(
    service: CredentialService = Depends(get_credential_service),
) -> OperationResult:
    return OperationResult(success=service.delete_all())


@credentials_router.get(
    "/export",
    response_class=PlainTextResponse,
    summary="Download every stored credential as CSV",
)
def export_credentials(
    service: CredentialService = Depends(get_credential_service),
) -> PlainTextResponse:
    rows = [
        [entry.id, entry.url, entry.username, entry.password, entry.notes, entry.created_at]
        for entry in service.get_all()
    ]
    return _csv_response(
        ["ID", "URL", "Username", "Password", "Notes", "Created At"], rows, "ulp-records.csv"
    )


# ── Websites & technologies ──────────────────────────────────


def _import_response(result: ImportResult) -> ImportResult:
    if not result.success:
        code = (
            status.HTTP_400_BAD_REQUEST
            if result.no_data
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        raise HTTPException(status_code=code, detail=result.message)
    return result


@websites_router.post(
    "/websites",
    response_model=ImportResult,
    status_code=status.HTTP_201_CREATED,
    summary="Store websites and their technologies",
)
def add_websites(
    request: WebsitesRequest,
    service: WebsiteService = Depends(get_website_service),
) -> ImportResult:
    return _import_response(service.add(request.items))


@websites_router.post(
    "/websites/import",
    response_model=ImportResult,
    status_code=status.HTTP_201_CREATED,
    summary="Import a website/technology association list",
)
def import_websites(
    request: TechnologyListRequest,
    service: WebsiteService = Depends(get_website_service),
) -> ImportResult:
    return _import_response(service.import_list(request.content))


@websites_router.get(
    "/websites/search",
    response_model=list[WebsiteTechnologies],
    summary="Search websites by url or technology name",
)
def search_websites(
    q: str = Query("", description="Substring to look for"),
    by_technology: bool = Query(False, description="Match technology names"),
    service: WebsiteService = Depends(get_website_service),
) -> list[WebsiteTechnologies]:
    return service.search(q, by_technology=by_technology)


@websites_router.get(
    "/websites/export",
    response_class=PlainTextResponse,
    summary="Download every website with its technologies as CSV",
)
def export_websites(
    service: WebsiteService = Depends(get_website_service),
) -> PlainTextResponse:
    rows = [[item.url, ",".join(item.technologies)] for item in service.get_all()]
    return _csv_response(["URL", "Technologies"], rows, "all-records.csv")


@websites_router.get(
    "/technologies",
    response_model=list[str],
    summary="All known technology names",
)
def list_technologies(
    service: WebsiteService = Depends(get_website_service),
) -> list[str]:
    return service.technologies()


@websites_router.delete(
    "/websites",
    response_model=OperationResult,
    summary="Delete a website and its technology links",
    responses={404: {"model": ErrorResponse, "description": "No such website"}},
)
def delete_website(
    url: str = Query(..., min_length=1, description="Exact stored url"),
    service: WebsiteService = Depends(get_website_service),
) -> OperationResult:
    if not service.delete(url):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Website '{url}' not found.",
        )
    return OperationResult(success=True)


@websites_router.delete(
    "/websites/all",
    response_model=OperationResult,
    summary="Delete all websites and links, keeping technologies",
    responses={500: {"model": ErrorResponse, "description": "Delete rolled back"}},
)
def delete_all_websites(
    service: WebsiteService = Depends(get_website_service),
) -> OperationResult:
    if not service.delete_all():
        logger.error("Deleting all website data failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete website data from the database.",
        )
    return OperationResult(success=True)


# ── Snapshot ─────────────────────────────────────────────────


@export_router.get(
    "/snapshot",
    summary="Download the whole store as a SQLite database file",
)
def export_snapshot(store: SQLiteStore = Depends(get_store)) -> Response:
    with tempfile.TemporaryDirectory() as tmp:
        path = store.export_snapshot(Path(tmp) / "credvault.sqlite")
        content = path.read_bytes()
    return Response(
        content,
        media_type="application/vnd.sqlite3",
        headers={"Content-Disposition": 'attachment; filename="credvault.sqlite"'},
    )
