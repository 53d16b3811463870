import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from .cleaning_utils import (
    collect_fields,
    format_value,
    is_missing,
    is_number,
    to_number,
    value_key,
)
from .errors import EncodingError, InvalidConfigError
from .preprocessing import Record, ensure_records

logger = logging.getLogger(__name__)

ENCODE_METHODS = ("onehot", "label", "ordinal")


@dataclass
class EncodingResult:
    data: List[Record]
    encodings: Dict[str, Any] = field(default_factory=dict)


def _distinct_values(data: List[Record], column: str) -> List[Any]:
    """Non-missing values of a column in first-seen order."""
    seen: Dict[Any, Any] = {}
    for record in data:
        value = record.get(column)
        if not is_missing(value):
            seen.setdefault(value_key(value), value)
    return list(seen.values())


def _ordinal_key(value: Any):
    if is_number(value):
        return (0, float(value), "")
    return (1, 0.0, format_value(value))


def _onehot(processed: List[Record], column: str, values: List[Any]) -> None:
    existing = set(collect_fields(processed)) - {column}
    names: Dict[str, Any] = {}
    for value in values:
        name = f"{column}_{format_value(value)}"
        if name in names or name in existing:
            raise EncodingError(
                f"One-hot column '{name}' collides with an existing field",
                {"column": column, "indicator": name},
            )
        names[name] = value_key(value)

    for record in processed:
        source = value_key(record.get(column))
        for name, key in names.items():
            record[name] = 1 if source == key else 0
        record.pop(column, None)


def encode_categorical(
    data: List[Record], columns: Sequence[str], method: str = "onehot"
) -> EncodingResult:
    """Encode categorical columns as indicators or integer codes.

    Values without a code (including missing cells) map to 0, the same code
    given to the first category.
    """
    ensure_records(data)
    if method not in ENCODE_METHODS:
        raise InvalidConfigError(
            f"Unknown encoding method: {method}", {"allowed": list(ENCODE_METHODS)}
        )

    processed = [dict(record) for record in data]
    encodings: Dict[str, Any] = {}
    for column in columns:
        values = _distinct_values(processed, column)
        if method == "onehot":
            _onehot(processed, column, values)
            encodings[column] = values
            continue

        if method == "ordinal":
            values = sorted(values, key=_ordinal_key)
        codes = {value_key(v): code for code, v in enumerate(values)}
        encodings[column] = {format_value(v): code for code, v in enumerate(values)}
        for record in processed:
            record[column] = codes.get(value_key(record.get(column)), 0)

    logger.debug("Encoded %d column(s) with %s", len(encodings), method)
    return EncodingResult(data=processed, encodings=encodings)


def extract_clustering_features(
    data: List[Record],
    *,
    numeric_columns: Sequence[str] = (),
    categorical_columns: Sequence[str] = (),
    exclude_columns: Sequence[str] = (),
) -> List[Dict[str, Any]]:
    """Build numeric feature rows, each tagged with its source row ``index``."""
    ensure_records(data)
    excluded = set(exclude_columns)
    processed = [
        {k: v for k, v in record.items() if k not in excluded} for record in data
    ]

    for record in processed:
        for column in numeric_columns:
            converted = to_number(record.get(column))
            if converted is not None:
                record[column] = converted

    categorical = [c for c in categorical_columns if c not in excluded]
    if categorical:
        processed = encode_categorical(processed, categorical, "onehot").data

    features = []
    for index, record in enumerate(processed):
        feature: Dict[str, Any] = {"index": index}
        feature.update(
            (k, v) for k, v in record.items() if k != "index" and is_number(v)
        )
        features.append(feature)
    return features
