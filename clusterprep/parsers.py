"""Text parsers turning raw CSV / JSON payloads into typed records.

CSV parsing is best-effort: each line is scanned independently and a
malformed line is collected as a ``ParseIssue`` while the rest continue.
Structured (JSON) parsing is all-or-nothing.

Lines are split on line breaks before quote-aware field splitting, so a
quoted field containing an embedded newline is not supported.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .cleaning_utils import coerce_value, collect_fields, format_value
from .errors import StructuralError

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")
_EXCERPT_LENGTH = 100
MAX_HEADER_LENGTH = 100


@dataclass
class ParseIssue:
    line: Optional[int]
    message: str
    raw: str


@dataclass
class CsvParseResult:
    headers: List[str]
    rows: List[Any]
    errors: List[ParseIssue] = field(default_factory=list)


@dataclass
class StructuredParseResult:
    rows: List[Dict[str, Any]]
    errors: List[ParseIssue] = field(default_factory=list)


def _split_line(line: str, delimiter: str, trim: bool) -> List[str]:
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    if in_quotes:
        raise ValueError("Unterminated quoted field")
    fields.append("".join(current))
    if trim:
        fields = [f.strip() for f in fields]
    return fields


def _check_headers(headers: Sequence[str]) -> None:
    if any(not h for h in headers):
        raise StructuralError("Empty header name", {"headers": list(headers)})
    too_long = [h for h in headers if len(h) > MAX_HEADER_LENGTH]
    if too_long:
        raise StructuralError(
            f"Header name exceeds {MAX_HEADER_LENGTH} characters",
            {"headers": too_long},
        )
    duplicates = sorted({h for h in headers if headers.count(h) > 1})
    if duplicates:
        raise StructuralError(
            f"Duplicate headers found: {', '.join(duplicates)}",
            {"duplicates": duplicates},
        )


def parse_csv(
    text: str,
    *,
    delimiter: str = ",",
    has_header: bool = True,
    skip_empty_lines: bool = True,
    trim: bool = True,
    generate_headers: bool = False,
) -> CsvParseResult:
    """Parse delimited text into records.

    Parameters
    ----------
    text : str
        Raw delimited text.
    delimiter : str
        Single field separator character.
    has_header : bool
        Consume the first line as field names.
    skip_empty_lines : bool
        Ignore whitespace-only lines and lines whose fields are all empty.
    trim : bool
        Strip whitespace around fields.
    generate_headers : bool
        Without a header line, key rows as ``Column_1..Column_N`` instead of
        returning them as plain value lists.

    Returns
    -------
    CsvParseResult with headers, rows (records, or value lists when there are
    no headers) and the per-line errors that were skipped.
    """
    if not isinstance(text, str):
        raise StructuralError("CSV payload must be text", {"type": type(text).__name__})

    if not text.strip():
        return CsvParseResult(headers=[], rows=[], errors=[])

    lines: List[Tuple[int, str]] = [
        (number, line)
        for number, line in enumerate(_LINE_BREAK.split(text), start=1)
        if not skip_empty_lines or line.strip()
    ]
    # A trailing newline leaves one empty line that is never data.
    if len(lines) > 1 and lines[-1][1] == "":
        lines.pop()

    headers: List[str] = []
    if has_header:
        number, header_line = lines.pop(0)
        try:
            headers = _split_line(header_line, delimiter, trim=True)
        except ValueError as exc:
            raise StructuralError(
                f"Malformed header line: {exc}", {"line": number, "raw": header_line}
            ) from exc
        _check_headers(headers)

    rows: List[Any] = []
    errors: List[ParseIssue] = []
    for number, line in lines:
        try:
            values = _split_line(line, delimiter, trim)
        except ValueError as exc:
            errors.append(ParseIssue(line=number, message=str(exc), raw=line))
            continue
        # Rows of empty fields only (",,") are blank lines too.
        if skip_empty_lines and not any(v.strip() for v in values):
            continue

        if not headers and generate_headers:
            headers = [f"Column_{i + 1}" for i in range(len(values))]

        if headers:
            if len(values) > len(headers):
                errors.append(
                    ParseIssue(
                        line=number,
                        message=f"Expected {len(headers)} fields, found {len(values)}",
                        raw=line,
                    )
                )
                continue
            values += [""] * (len(headers) - len(values))
            rows.append(
                {h: coerce_value(v, trim=trim) for h, v in zip(headers, values)}
            )
        else:
            rows.append([coerce_value(v, trim=trim) for v in values])

    if errors:
        logger.warning("Skipped %d malformed CSV line(s)", len(errors))
    logger.debug("Parsed %d CSV rows with %d columns", len(rows), len(headers))
    return CsvParseResult(headers=headers, rows=rows, errors=errors)


def _coerce_record(item: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(key): coerce_value(value) for key, value in item.items()}


def parse_structured(text: str) -> StructuredParseResult:
    """Parse a JSON array of objects (or a single object) into records."""
    excerpt = text[:_EXCERPT_LENGTH] if isinstance(text, str) else repr(text)[:_EXCERPT_LENGTH]
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError) as exc:
        logger.warning("Structured payload rejected: %s", exc)
        return StructuredParseResult(
            rows=[], errors=[ParseIssue(None, f"JSON parsing error: {exc}", excerpt)]
        )

    if isinstance(parsed, dict):
        parsed = [parsed]
    if not isinstance(parsed, list) or not all(isinstance(i, dict) for i in parsed):
        message = "Invalid JSON structure: expected an array of objects or an object"
        logger.warning("Structured payload rejected: %s", message)
        return StructuredParseResult(rows=[], errors=[ParseIssue(None, message, excerpt)])

    return StructuredParseResult(rows=[_coerce_record(item) for item in parsed])


def _quote_field(text: str, delimiter: str) -> str:
    if delimiter in text or '"' in text or "\n" in text or "\r" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def serialize_csv(
    records: Sequence[Mapping[str, Any]],
    headers: Optional[Sequence[str]] = None,
    delimiter: str = ",",
) -> str:
    """Render records as delimited text readable by ``parse_csv``."""
    columns = list(headers) if headers is not None else collect_fields(records)
    lines = [delimiter.join(_quote_field(h, delimiter) for h in columns)]
    for record in records:
        lines.append(
            delimiter.join(
                _quote_field(format_value(record.get(c)), delimiter) for c in columns
            )
        )
    return "\n".join(lines)
