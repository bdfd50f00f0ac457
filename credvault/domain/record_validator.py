"""
Per-record validation.

Checks run in a fixed order and stop at the first failure, so a given
bad record always produces the same rejection message:

  1. all of url / username / password present
  2. url passes validation
  3. username survives sanitisation
  4. password survives sanitisation
  5. url is normalised
"""

from credvault.core.exceptions import UrlValidationError
from credvault.domain.models import (
    RawRecord,
    RejectionKind,
    RejectionReason,
    SanitizedRecord,
)
from credvault.utils.field_sanitizer import sanitize_field
from credvault.utils.url_normalizer import normalize_url, validate_url


def _reject(raw: RawRecord, kind: RejectionKind, detail: str) -> RejectionReason:
    return RejectionReason(line_number=raw.source_line, kind=kind, detail=detail)


def validate_record(raw: RawRecord) -> SanitizedRecord | RejectionReason:
    """Return a sanitised record, or the reason ``raw`` was rejected."""
    missing = [
        label
        for label, value in (
            ("URL", raw.url),
            ("username", raw.username),
            ("password", raw.password),
        )
        if not value
    ]
    if missing:
        named = "".join(f" ({label})" for label in missing)
        return _reject(raw, RejectionKind.MISSING_FIELD, f"Missing required fields{named}")

    try:
        validate_url(raw.url)
    except UrlValidationError:
        return _reject(raw, RejectionKind.INVALID_URL, f"Invalid URL format - {raw.url}")

    username = sanitize_field(raw.username, is_username=True)
    if not username:
        return _reject(
            raw,
            RejectionKind.INVALID_USERNAME,
            f"Username cannot be empty or invalid for URL: {raw.url}",
        )

    password = sanitize_field(raw.password, is_username=False)
    if not password:
        return _reject(
            raw,
            RejectionKind.EMPTY_PASSWORD,
            f"Password cannot be empty for URL: {raw.url}",
        )

    return SanitizedRecord(
        url=normalize_url(raw.url),
        username=username,
        password=password,
        notes=raw.notes or "",
    )
