"""
Username / password cleanup.

Dumps are full of JSON debris, quoting artefacts and placeholder
usernames. ``sanitize_field`` strips those, while leaving passwords that
look pre-hashed or encoded untouched so their bytes survive.
"""

import math
import re
from collections import Counter

RESERVED_USERNAMES = frozenset(
    {
        "android",
        "user",
        "username",
        "login",
        "email",
        "admin",
        "test",
        "guest",
        "anonymous",
        "system",
        "root",
    }
)

MIN_USERNAME_LENGTH = 2
MAX_USERNAME_LENGTH = 100

ENTROPY_MIN_LENGTH = 20
ENTROPY_THRESHOLD = 3.5

_ENCODED_PATTERNS = (
    re.compile(r"\A[A-Za-z0-9+/=]{24,}\Z"),  # base64 alphabet
    re.compile(r"\A(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?\Z"),
    re.compile(r"\A[0-9a-fA-F]{32,}\Z"),  # long hex digest
    re.compile(r"\A(?:0x)?[0-9a-fA-F]+\Z"),
    re.compile(r"\\x[0-9a-fA-F]{2}", re.IGNORECASE),
    re.compile(r"\$[1-6]\$[a-zA-Z0-9./]+\$[a-zA-Z0-9./]+"),  # crypt(3)
    re.compile(r"\$2[ayb]\$[0-9]{2}\$[A-Za-z0-9./]{53}"),  # bcrypt
)

_WHITESPACE_RE = re.compile(r"\s+")
_JSON_DEBRIS_RE = re.compile(r"['\"{}\[\]]")
_ESCAPED_NEWLINE_RE = re.compile(r"\\n|\\r")
_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E]")
_TRAILING_COMMA_RE = re.compile(r",\Z")
_SURROUNDING_QUOTES_RE = re.compile(r'\A"|"\Z')


def shannon_entropy(value: str) -> float:
    """Shannon entropy of ``value`` in bits per character."""
    if not value:
        return 0.0
    length = len(value)
    return -sum(
        (count / length) * math.log2(count / length)
        for count in Counter(value).values()
    )


def is_likely_encrypted(value: str) -> bool:
    """
    Heuristically decide whether ``value`` is already hashed or encoded.

    Matches base64, hex, crypt(3) and bcrypt shapes, plus any string of
    20+ characters whose entropy exceeds 3.5 bits/char. This is a guess:
    short plaintext passwords made only of hex or base64 characters are
    classified as encoded too.
    """
    if not value or not isinstance(value, str):
        return False
    if any(pattern.search(value) for pattern in _ENCODED_PATTERNS):
        return True
    return len(value) >= ENTROPY_MIN_LENGTH and shannon_entropy(value) > ENTROPY_THRESHOLD


def _clean(value: str) -> str:
    cleaned = value.strip()
    cleaned = _WHITESPACE_RE.sub(" ", cleaned)
    cleaned = _JSON_DEBRIS_RE.sub("", cleaned)
    cleaned = _ESCAPED_NEWLINE_RE.sub("", cleaned)
    cleaned = _NON_PRINTABLE_RE.sub("", cleaned)
    cleaned = _TRAILING_COMMA_RE.sub("", cleaned)
    cleaned = _SURROUNDING_QUOTES_RE.sub("", cleaned)
    return cleaned.strip()


def _acceptable_username(username: str) -> bool:
    if username.lower() in RESERVED_USERNAMES:
        return False
    if not MIN_USERNAME_LENGTH <= len(username) <= MAX_USERNAME_LENGTH:
        return False
    return not any(marker in username for marker in ("://", "www.", "/"))


def sanitize_field(value: str | None, is_username: bool = False) -> str:
    """
    Clean a username or password taken from a dump.

    Passwords that look pre-encoded are returned unchanged. Usernames that
    end up too short or long, look like a URL or path, or are a reserved
    placeholder such as ``admin`` are rejected by returning ``""``.
    """
    if not value or not isinstance(value, str):
        return ""

    if not is_username and is_likely_encrypted(value):
        return value

    cleaned = _clean(value)
    if is_username and not _acceptable_username(cleaned):
        return ""
    return cleaned
