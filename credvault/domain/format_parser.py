"""
Input file parsing.

Turns the text of an uploaded dump into an ordered stream of candidate
records and per-line parse errors. The format is chosen once from the
file extension:

  - ``.json``: an array of objects with URL/Username/Password keys
  - ``.txt``:  ``url:username:password`` per line
  - ``.csv``:  ``url,username,password[,...]`` per line, quote aware

Records are not validated here; that is the record validator's job.
"""

import csv
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from credvault.domain.models import (
    RawRecord,
    RejectionKind,
    RejectionReason,
    WebsiteTechnologies,
)

ParsedItem = Union[RawRecord, RejectionReason]

BOM = "\ufeff"

_TEXT_LINE_RE = re.compile(r"^((?:https?://)?[^:]+):([^:]+):(.+)$", re.IGNORECASE)
_TECH_LINE_RE = re.compile(r"^(\S+?)(?:\s*\[(.*)\])?$")
_LINE_BREAK_RE = re.compile(r"\r?\n")

_JSON_KEYS = {
    "url": ("URL", "url"),
    "username": ("Username", "username"),
    "password": ("Password", "password"),
    "notes": ("Notes", "notes"),
}


class FileFormat(str, Enum):
    JSON = "json"
    TEXT = "txt"
    CSV = "csv"
    UNSUPPORTED = "unsupported"


@dataclass
class ParseOutcome:
    """
    Result of parsing one file.

    ``items`` keeps input order. ``fatal`` is set when the file as a whole
    could not be read; ``items`` then holds the single file-level error.
    """

    file_format: FileFormat
    items: list[ParsedItem] = field(default_factory=list)
    fatal: bool = False


def file_extension(file_name: str) -> str:
    if "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[-1].lower()


def detect_format(file_name: str) -> FileFormat:
    """Resolve the input format from the file name's extension."""
    try:
        return FileFormat(file_extension(file_name))
    except ValueError:
        return FileFormat.UNSUPPORTED


def _non_blank_lines(content: str) -> list[str]:
    return [line.strip() for line in _LINE_BREAK_RE.split(content) if line.strip()]


def _parse_error(line_number: int | None, detail: str) -> RejectionReason:
    return RejectionReason(
        line_number=line_number, kind=RejectionKind.PARSE_ERROR, detail=detail
    )


def _json_value(item: Any, keys: tuple[str, ...]) -> str | None:
    if not isinstance(item, dict):
        return None
    for key in keys:
        value = item.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_json(content: str) -> ParseOutcome:
    outcome = ParseOutcome(file_format=FileFormat.JSON)
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        outcome.items.append(_parse_error(None, f"JSON parsing error: {exc}"))
        outcome.fatal = True
        return outcome

    if not isinstance(data, list):
        outcome.items.append(_parse_error(None, "Error: JSON must be an array of objects"))
        outcome.fatal = True
        return outcome

    for index, item in enumerate(data, start=1):
        outcome.items.append(
            RawRecord(
                url=_json_value(item, _JSON_KEYS["url"]),
                username=_json_value(item, _JSON_KEYS["username"]),
                password=_json_value(item, _JSON_KEYS["password"]),
                notes=_json_value(item, _JSON_KEYS["notes"]) or "",
                source_line=index,
            )
        )
    return outcome


def parse_text(content: str) -> ParseOutcome:
    outcome = ParseOutcome(file_format=FileFormat.TEXT)
    for line_number, line in enumerate(_non_blank_lines(content), start=1):
        match = _TEXT_LINE_RE.match(line)
        if not match:
            outcome.items.append(
                _parse_error(line_number, "Invalid format, expected URL:username:password")
            )
            continue
        url, username, password = (part.strip() for part in match.groups())
        outcome.items.append(
            RawRecord(url=url, username=username, password=password, source_line=line_number)
        )
    return outcome


def _csv_tokens(line: str) -> list[str]:
    tokens = next(csv.reader([line], skipinitialspace=True), [])
    return [token.lstrip(",").replace('"', "").replace("'", "").strip() for token in tokens]


def parse_csv(content: str) -> ParseOutcome:
    outcome = ParseOutcome(file_format=FileFormat.CSV)
    for line_number, line in enumerate(_non_blank_lines(content), start=1):
        try:
            tokens = _csv_tokens(line)
        except csv.Error as exc:
            outcome.items.append(_parse_error(line_number, f"Invalid CSV format ({exc})"))
            continue
        if len(tokens) < 3:
            outcome.items.append(_parse_error(line_number, "Invalid CSV format"))
            continue
        url, username, password = tokens[:3]
        outcome.items.append(
            RawRecord(url=url, username=username, password=password, source_line=line_number)
        )
    return outcome


def parse_content(content: str, file_name: str) -> ParseOutcome:
    """
    Parse the text of ``file_name`` into candidate records.

    Unsupported extensions yield no records and one fatal ParseError
    naming the extension.
    """
    file_format = detect_format(file_name)

    if file_format is FileFormat.JSON:
        return parse_json(content)
    if file_format is FileFormat.TEXT:
        return parse_text(content)
    if file_format is FileFormat.CSV:
        return parse_csv(content)

    extension = file_extension(file_name) or "(none)"
    return ParseOutcome(
        file_format=FileFormat.UNSUPPORTED,
        items=[_parse_error(None, f"Unsupported file format: {extension}")],
        fatal=True,
    )


def parse_technology_list(content: str) -> list[WebsiteTechnologies]:
    """
    Parse a website/technology association list.

    One website per line, optionally followed by a bracketed,
    comma-separated technology list::

        example.com [Nginx, React]
        another.org

    Lines that do not start with a url are skipped.
    """
    items: list[WebsiteTechnologies] = []
    for line in _non_blank_lines(content.removeprefix(BOM)):
        match = _TECH_LINE_RE.match(line)
        if not match:
            continue
        url, tech_string = match.groups()
        technologies = [t.strip() for t in (tech_string or "").split(",") if t.strip()]
        items.append(WebsiteTechnologies(url=url, technologies=technologies))
    return items
