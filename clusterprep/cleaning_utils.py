"""Value-level helpers shared by the parsers, profiler and preprocessing stages.

Only the pieces every stage relies on live here:
  - Token coercion (coerce_value) with a fixed check order: null, bool, number, date, text
  - Missing/numeric predicates (is_missing, is_number, is_numeric_like, to_number)
  - Column helpers (collect_fields, column_values, numeric_values)
  - Rendering and hashing of values (format_value, value_key)
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Sequence

import numpy as np
import pandas as pd

NUMERIC_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")
DATE_PREFIX_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")
_BOOL_TOKENS = {"true": True, "false": False}


def _parse_number(token: str):
    if "." in token:
        return float(token)
    return int(token)


def _parse_date(token: str):
    if not DATE_PREFIX_PATTERN.match(token):
        return None
    parsed = pd.to_datetime(token, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def coerce_value(token: Any, trim: bool = True) -> Any:
    """Convert a raw text token to a typed value.

    Non-string input is returned unchanged so already-typed values (for
    example JSON numbers) pass through.
    """
    if not isinstance(token, str):
        return token
    stripped = token.strip()
    if not stripped:
        return None
    lowered = stripped.lower()
    if lowered in _BOOL_TOKENS:
        return _BOOL_TOKENS[lowered]
    # Numbers must be tried before dates: "2024" is a year-like number, not a date.
    if NUMERIC_PATTERN.match(stripped):
        return _parse_number(stripped)
    parsed_date = _parse_date(stripped)
    if parsed_date is not None:
        return parsed_date
    return stripped if trim else token


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float):
        return math.isnan(value)
    return False


def is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return not math.isnan(value)


def is_numeric_like(value: Any) -> bool:
    if is_number(value):
        return True
    return isinstance(value, str) and bool(NUMERIC_PATTERN.match(value.strip()))


def to_number(value: Any):
    if is_number(value):
        return value
    if is_numeric_like(value):
        return _parse_number(value.strip())
    return None


def value_key(value: Any):
    """Hashable key that keeps bools apart from numbers and 1 equal to 1.0."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ("null", None)
    if isinstance(value, bool):
        return ("bool", value)
    if is_number(value):
        return ("number", float(value))
    try:
        hash(value)
    except TypeError:
        return (type(value).__name__, repr(value))
    return (type(value).__name__, value)


def format_value(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float) and math.isfinite(value):
        # Positional notation only: the numeric grammar has no exponents.
        return np.format_float_positional(value, trim="-")
    if isinstance(value, datetime):
        if value.tzinfo is None and value.time() == datetime.min.time():
            return value.date().isoformat()
        return value.isoformat()
    return str(value)


def collect_fields(records: Iterable[Mapping[str, Any]]) -> List[str]:
    """Union of field names across records, in first-seen order."""
    seen: Dict[str, None] = {}
    for record in records:
        for key in record:
            seen.setdefault(key, None)
    return list(seen)


def column_values(records: Sequence[Mapping[str, Any]], column: str) -> List[Any]:
    return [record.get(column) for record in records]


def numeric_values(values: Iterable[Any]) -> np.ndarray:
    return np.array([float(v) for v in values if is_number(v)], dtype=float)


__all__ = [
    "NUMERIC_PATTERN",
    "DATE_PREFIX_PATTERN",
    "coerce_value",
    "is_missing",
    "is_number",
    "is_numeric_like",
    "to_number",
    "value_key",
    "format_value",
    "collect_fields",
    "column_values",
    "numeric_values",
]
