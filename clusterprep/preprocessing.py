"""Preprocessing stages: normalization, missing values, outliers and sampling.

Every function is a pure transform: the input list and its records are never
modified, a new list of new dicts is returned together with the statistics
the stage computed.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .cleaning_utils import (
    collect_fields,
    column_values,
    is_missing,
    is_number,
    numeric_values,
    value_key,
)
from .errors import InvalidConfigError, StructuralError

logger = logging.getLogger(__name__)

NORMALIZE_METHODS = ("zscore", "minmax", "robust")
MISSING_METHODS = ("mean", "median", "mode", "forward_fill", "remove")
OUTLIER_METHODS = ("iqr", "zscore", "percentile")
SAMPLE_METHODS = ("random", "systematic", "stratified")

Record = Dict[str, Any]


@dataclass
class NormalizeResult:
    data: List[Record]
    stats: Dict[str, Dict[str, float]] = field(default_factory=dict)


@dataclass
class MissingValueResult:
    data: List[Record]
    fill_values: Dict[str, Any] = field(default_factory=dict)
    rows_removed: int = 0


@dataclass
class OutlierResult:
    data: List[Record]
    bounds: Dict[str, Dict[str, float]] = field(default_factory=dict)
    rows_removed: int = 0


@dataclass
class SampleResult:
    data: List[Record]
    method: str
    strata_column: Optional[str] = None


def ensure_records(data: Any) -> List[Record]:
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise StructuralError("Data must be a sequence of records")
    return data


def _check_method(method: str, allowed: Sequence[str], kind: str) -> None:
    if method not in allowed:
        raise InvalidConfigError(
            f"Unknown {kind} method: {method}", {"allowed": list(allowed)}
        )


def _median(values: np.ndarray) -> float:
    return float(np.median(values))


def _mad(values: np.ndarray, median: float) -> float:
    return float(np.median(np.abs(values - median)))


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _column_stats(values: np.ndarray, method: str) -> Dict[str, float]:
    stats = {
        "mean": float(values.mean()),
        "std": float(values.std()),
        "min": float(values.min()),
        "max": float(values.max()),
    }
    if method == "robust":
        stats["median"] = _median(values)
        stats["mad"] = _mad(values, stats["median"])
    return stats


def _scaler(stats: Dict[str, float], method: str):
    # A constant column has no spread; rounding in mean/std must not leak through.
    if stats["max"] == stats["min"]:
        return lambda v: 0.0
    if method == "zscore":
        center, scale = stats["mean"], stats["std"]
    elif method == "minmax":
        center, scale = stats["min"], stats["max"] - stats["min"]
    else:
        center, scale = stats["median"], stats["mad"]
    if scale == 0 or not math.isfinite(scale):
        return lambda v: 0.0
    return lambda v: (v - center) / scale


def normalize(
    data: List[Record], columns: Sequence[str], method: str = "zscore"
) -> NormalizeResult:
    """Rescale the numeric cells of each target column."""
    ensure_records(data)
    _check_method(method, NORMALIZE_METHODS, "normalization")

    processed = [dict(record) for record in data]
    stats: Dict[str, Dict[str, float]] = {}
    for column in columns:
        values = numeric_values(column_values(data, column))
        if values.size == 0:
            continue
        stats[column] = _column_stats(values, method)
        scale = _scaler(stats[column], method)
        for record in processed:
            if is_number(record.get(column)):
                record[column] = float(scale(record[column]))

    logger.debug("Normalized %d column(s) with %s", len(stats), method)
    return NormalizeResult(data=processed, stats=stats)


# ---------------------------------------------------------------------------
# Missing values
# ---------------------------------------------------------------------------


def _mode(values: List[Any]) -> Any:
    counts = Counter(value_key(v) for v in values)
    first_seen: Dict[Any, Any] = {}
    for v in values:
        first_seen.setdefault(value_key(v), v)
    # most_common keeps first-encountered order among equal counts
    key, _ = counts.most_common(1)[0]
    return first_seen[key]


def _fill_value(values: List[Any], method: str) -> Any:
    numbers = numeric_values(values)
    if method == "mean":
        return float(numbers.mean()) if numbers.size else None
    if method == "median":
        return _median(numbers) if numbers.size else None
    return _mode(values)


def handle_missing(
    data: List[Record], method: str = "mean", columns: Optional[Sequence[str]] = None
) -> MissingValueResult:
    """Impute, forward-fill or drop missing cells.

    ``columns=None`` targets every field seen in the dataset. With ``remove``
    each column's filter applies to the rows left by the previous column.
    """
    ensure_records(data)
    _check_method(method, MISSING_METHODS, "missing-value")

    targets = list(columns) if columns is not None else collect_fields(data)
    processed = [dict(record) for record in data]
    fill_values: Dict[str, Any] = {}

    for column in targets:
        if method == "remove":
            processed = [r for r in processed if not is_missing(r.get(column))]
            continue

        if method == "forward_fill":
            last_valid = None
            seen_valid = False
            for record in processed:
                if not is_missing(record.get(column)):
                    last_valid = record[column]
                    seen_valid = True
                elif seen_valid:
                    record[column] = last_valid
            continue

        present = [v for v in column_values(processed, column) if not is_missing(v)]
        if not present:
            continue
        fill = _fill_value(present, method)
        if fill is None:
            continue
        fill_values[column] = fill
        for record in processed:
            if is_missing(record.get(column)):
                record[column] = fill

    rows_removed = len(data) - len(processed)
    logger.debug(
        "Handled missing values with %s on %d column(s), %d row(s) removed",
        method,
        len(targets),
        rows_removed,
    )
    return MissingValueResult(
        data=processed, fill_values=fill_values, rows_removed=rows_removed
    )


# ---------------------------------------------------------------------------
# Outliers
# ---------------------------------------------------------------------------


def _bounds(values: np.ndarray, method: str, threshold: float) -> Dict[str, float]:
    if method == "iqr":
        q1, q3 = np.percentile(values, [25, 75])
        iqr = q3 - q1
        return {"lower": float(q1 - threshold * iqr), "upper": float(q3 + threshold * iqr)}
    if method == "zscore":
        mean, std = values.mean(), values.std()
        return {"lower": float(mean - threshold * std), "upper": float(mean + threshold * std)}
    lower, upper = np.percentile(values, [threshold, 100 - threshold])
    return {"lower": float(lower), "upper": float(upper)}


def remove_outliers(
    data: List[Record],
    columns: Sequence[str],
    method: str = "iqr",
    threshold: float = 1.5,
) -> OutlierResult:
    """Drop rows whose numeric value falls outside the computed bounds.

    Columns are processed in order and each column's bounds are computed on
    the rows that survived the previous columns. Non-numeric cells never
    cause a row to be dropped.
    """
    ensure_records(data)
    _check_method(method, OUTLIER_METHODS, "outlier")
    if threshold < 0 or (method == "percentile" and threshold > 50):
        raise InvalidConfigError(
            f"Threshold {threshold} is out of range for method '{method}'",
            {"threshold": threshold, "method": method},
        )

    filtered = list(data)
    bounds: Dict[str, Dict[str, float]] = {}
    for column in columns:
        values = numeric_values(column_values(filtered, column))
        if values.size == 0:
            continue
        column_bounds = _bounds(values, method, threshold)
        bounds[column] = column_bounds
        lower, upper = column_bounds["lower"], column_bounds["upper"]
        filtered = [
            r
            for r in filtered
            if not is_number(r.get(column)) or lower <= r[column] <= upper
        ]

    rows_removed = len(data) - len(filtered)
    logger.debug("Removed %d outlier row(s) using %s", rows_removed, method)
    return OutlierResult(
        data=[dict(r) for r in filtered], bounds=bounds, rows_removed=rows_removed
    )


# ---------------------------------------------------------------------------
# Sampling
# ---------------------------------------------------------------------------


def _random_sample(
    rows: List[Record], size: int, rng: np.random.Generator
) -> List[Record]:
    if len(rows) <= size:
        return list(rows)
    picked = np.sort(rng.choice(len(rows), size=size, replace=False))
    return [rows[i] for i in picked]


def _strata_column(data: List[Record]) -> Optional[str]:
    for column in collect_fields(data):
        distinct = {value_key(v) for v in column_values(data, column)}
        if len(distinct) < len(data) * 0.5:
            return column
    return None


def sample(
    data: List[Record],
    sample_size: int,
    method: str = "random",
    seed: Optional[int] = None,
) -> SampleResult:
    """Reduce the dataset to at most ``sample_size`` rows.

    Random picks keep their original relative order. Stratified sampling
    groups rows by the first low-cardinality field, concatenates the groups
    in first-seen order and falls back to random sampling when no such field
    exists.
    """
    ensure_records(data)
    _check_method(method, SAMPLE_METHODS, "sampling")
    if not isinstance(sample_size, int) or isinstance(sample_size, bool) or sample_size <= 0:
        raise InvalidConfigError(
            f"sample_size must be a positive integer, got {sample_size!r}"
        )

    if len(data) <= sample_size:
        return SampleResult(data=[dict(r) for r in data], method=method)

    rng = np.random.default_rng(seed)
    strata_column = None
    if method == "systematic":
        stride = len(data) // sample_size
        picked = [r for i, r in enumerate(data) if i % stride == 0][:sample_size]
    elif method == "stratified":
        strata_column = _strata_column(data)
        if strata_column is None:
            picked = _random_sample(data, sample_size, rng)
        else:
            groups: Dict[Any, List[Record]] = {}
            for record in data:
                groups.setdefault(value_key(record.get(strata_column)), []).append(record)
            per_group = math.ceil(sample_size / len(groups))
            picked = []
            for rows in groups.values():
                picked.extend(_random_sample(rows, per_group, rng))
            picked = picked[:sample_size]
    else:
        picked = _random_sample(data, sample_size, rng)

    logger.debug(
        "Sampled %d of %d rows (%s%s)",
        len(picked),
        len(data),
        method,
        f", strata={strata_column}" if strata_column else "",
    )
    return SampleResult(
        data=[dict(r) for r in picked], method=method, strata_column=strata_column
    )
