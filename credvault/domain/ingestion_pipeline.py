"""
Credential ingestion pipeline.

Orchestrates parsing, validation and in-batch deduplication of one
uploaded file and accumulates the statistics shown to the user. Nothing
is written to the store here; callers persist the accepted records
separately.
"""

import time

from credvault.core.logging import get_logger
from credvault.domain.deduplicator import Deduplicator
from credvault.domain.format_parser import BOM, parse_content
from credvault.domain.models import (
    IngestionReport,
    RejectionReason,
    SanitizedRecord,
)
from credvault.domain.record_validator import validate_record

logger = get_logger(__name__)


def _decode(content: str | bytes) -> tuple[str, int]:
    # a leading byte-order mark is not part of the first record
    if isinstance(content, bytes):
        return content.decode("utf-8-sig", errors="replace"), len(content)
    return content.removeprefix(BOM), len(content.encode("utf-8"))


def ingest(
    content: str | bytes, file_name: str
) -> tuple[list[SanitizedRecord], IngestionReport]:
    """
    Extract credentials from the content of ``file_name``.

    Every input item ends up in exactly one of the ``added``,
    ``duplicates`` or ``invalid`` counters; each invalid item also adds
    one line to ``rejection_details``, in input order.

    ``items_per_second`` is input bytes divided by elapsed seconds, not a
    record rate.

    Args:
        content: File content, as text or raw bytes (decoded as UTF-8).
        file_name: Original file name; its extension selects the parser.

    Returns:
        The accepted records and the report for this call.
    """
    started = time.perf_counter()
    text, byte_length = _decode(content)

    accepted: list[SanitizedRecord] = []
    details: list[str] = []
    duplicates = 0
    invalid = 0

    outcome = parse_content(text, file_name)
    dedup = Deduplicator()

    for item in outcome.items:
        result = item if isinstance(item, RejectionReason) else validate_record(item)

        if isinstance(result, RejectionReason):
            invalid += 1
            details.append(result.format())
            continue

        if not dedup.add(result):
            duplicates += 1
            continue

        accepted.append(result)

    elapsed = time.perf_counter() - started
    report = IngestionReport(
        file_name=file_name,
        added=len(accepted),
        duplicates=duplicates,
        invalid=invalid,
        processing_time_seconds=elapsed,
        items_per_second=byte_length / elapsed if elapsed > 0 else 0.0,
        rejection_details=details,
    )

    if outcome.fatal:
        logger.warning("Could not read %s: %s", file_name, "; ".join(details))
    logger.info(
        "Ingested %s (%s): added=%d duplicates=%d invalid=%d in %.3fs",
        file_name,
        outcome.file_format.value,
        report.added,
        report.duplicates,
        report.invalid,
        elapsed,
    )
    return accepted, report
