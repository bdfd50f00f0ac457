"""
URL validation and normalisation utilities.

Ensures the same logical site always maps to the same key, so that
variants like these dedupe and store together:
  - http://Example.COM          →  http://example.com/
  - https://www.example.com:443 →  https://example.com/
  - https://example.com/path/#x →  https://example.com/path

Only absolute http/https URLs with a registrable-looking hostname are
accepted; raw IPs, localhost and single-label hosts are rejected.
"""

import re
import unicodedata
from urllib.parse import urlsplit, SplitResult

from credvault.core.exceptions import UrlValidationError

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_IPV4_RE = re.compile(r"^(\d{1,3}\.){3}\d{1,3}$")
# Characters no hostname can contain
_BAD_HOST_CHARS = set(" \t\r\n<>\"{}|\\^`%")

MAX_HOSTNAME_LENGTH = 255
DEFAULT_PORTS = {"http": 80, "https": 443}


def _with_scheme(url: str) -> str:
    if not _SCHEME_RE.match(url):
        return f"https://{url}"
    return url


def _split(url: str) -> tuple[SplitResult, str, int | None]:
    """Split a URL and resolve its hostname and port, or raise ValueError."""
    parsed = urlsplit(url)
    hostname = (parsed.hostname or "").lower()
    port = parsed.port  # raises ValueError on a malformed port
    return parsed, hostname, port


def validate_url(url: str) -> None:
    """
    Check that a raw URL is an acceptable credential site.

    A missing scheme is treated as https. Rejected values:
      - empty or whitespace-only input
      - anything containing ``javascript:``
      - schemes other than http/https
      - ``localhost`` and dotted-quad IPv4 hostnames
      - hostnames containing ``..``, lacking a dot, or longer than 255 chars
      - hostnames whose TLD is shorter than two characters

    Raises:
        UrlValidationError: With the offending value and the failed rule.
    """
    if not url or not isinstance(url, str) or not url.strip():
        raise UrlValidationError(str(url or ""), "URL cannot be empty")

    candidate = _with_scheme(url.strip())
    if "javascript:" in candidate.lower():
        raise UrlValidationError(url, "JavaScript URLs are not allowed")

    try:
        parsed, hostname, _ = _split(candidate)
    except ValueError as exc:
        raise UrlValidationError(url, f"Unparseable URL: {exc}") from exc

    if parsed.scheme.lower() not in DEFAULT_PORTS:
        raise UrlValidationError(url, f"Unsupported scheme '{parsed.scheme}'")
    if not hostname:
        raise UrlValidationError(url, "Missing hostname")
    if any(
        ch in _BAD_HOST_CHARS or unicodedata.category(ch) in ("Cc", "Cf")
        for ch in hostname
    ):
        raise UrlValidationError(url, "Hostname contains invalid characters")
    if hostname == "localhost":
        raise UrlValidationError(url, "localhost is not allowed")
    if _IPV4_RE.match(hostname):
        raise UrlValidationError(url, "Raw IP addresses are not allowed")
    if ".." in hostname:
        raise UrlValidationError(url, "Hostname contains '..'")
    if "." not in hostname:
        raise UrlValidationError(url, "Hostname must contain a dot")
    if len(hostname) > MAX_HOSTNAME_LENGTH:
        raise UrlValidationError(url, "Hostname is too long")

    tld = hostname.rsplit(".", 1)[-1]
    if len(tld) < 2:
        raise UrlValidationError(url, "Top-level domain is too short")


def is_valid_url(url: str) -> bool:
    """Boolean form of :func:`validate_url`."""
    try:
        validate_url(url)
    except UrlValidationError:
        return False
    return True


def normalize_url(url: str) -> str:
    """
    Normalise a URL to its canonical form.

    Transformations applied:
      1. Ensure scheme is present (default to https)
      2. Lowercase scheme and hostname
      3. Strip leading ``www.`` labels
      4. Remove default ports (80 for http, 443 for https)
      5. Remove trailing slashes on path (down to root "/")
      6. Keep the query string verbatim, drop fragment and userinfo

    The result is stable under repeated normalisation. Values that cannot
    be parsed at all are returned unchanged; call :func:`validate_url`
    first to reject them.

    Args:
        url: The raw URL string.

    Returns:
        The normalised URL string.
    """
    candidate = _with_scheme(url.strip())
    try:
        parsed, hostname, port = _split(candidate)
    except ValueError:
        return url

    scheme = parsed.scheme.lower()

    # Keep at least one dot so "www.com" is not reduced to "com"
    while hostname.startswith("www.") and "." in hostname[4:]:
        hostname = hostname[4:]

    if port == DEFAULT_PORTS.get(scheme):
        port = None

    netloc = hostname
    if port is not None:
        netloc = f"{hostname}:{port}"

    path = parsed.path.rstrip("/") or "/"
    query = f"?{parsed.query}" if parsed.query else ""

    return f"{scheme}://{netloc}{path}{query}"
