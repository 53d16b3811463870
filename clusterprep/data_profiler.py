import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence

import numpy as np

from .cleaning_utils import (
    collect_fields,
    column_values,
    is_missing,
    is_numeric_like,
    to_number,
    value_key,
)

logger = logging.getLogger(__name__)

NUMERIC_SHARE_THRESHOLD = 0.8
SMALL_DATASET_ROWS = 10
LARGE_DATASET_ROWS = 10000


@dataclass
class ColumnProfile:
    name: str
    data_type: Literal["numeric", "categorical"]
    missing_count: int
    missing_percentage: float
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    unique_count: Optional[int] = None
    total_count: Optional[int] = None


@dataclass
class Recommendation:
    level: Literal["warning", "info"]
    message: str
    suggestion: str


@dataclass
class DiagnosticReport:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    statistics: Dict[str, ColumnProfile] = field(default_factory=dict)
    recommendations: List[Recommendation] = field(default_factory=list)
    row_count: int = 0
    column_count: int = 0

    def fail(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False


def _profile_column(name: str, values: List[Any]) -> ColumnProfile:
    """Classify a column and compute its range or cardinality."""

    present = [v for v in values if not is_missing(v)]
    missing_count = len(values) - len(present)
    missing_percentage = missing_count / len(values) * 100 if values else 0.0

    numeric = [float(to_number(v)) for v in present if is_numeric_like(v)]
    if present and len(numeric) / len(present) >= NUMERIC_SHARE_THRESHOLD:
        arr = np.array(numeric, dtype=float)
        return ColumnProfile(
            name=name,
            data_type="numeric",
            missing_count=missing_count,
            missing_percentage=missing_percentage,
            min=float(arr.min()),
            max=float(arr.max()),
            mean=float(arr.mean()),
        )

    return ColumnProfile(
        name=name,
        data_type="categorical",
        missing_count=missing_count,
        missing_percentage=missing_percentage,
        unique_count=len({value_key(v) for v in present}),
        total_count=len(present),
    )


def _generate_recommendations(
    statistics: Dict[str, ColumnProfile], row_count: int
) -> List[Recommendation]:
    """Threshold-driven data quality hints; never affect validity."""

    recommendations: List[Recommendation] = []
    for name, profile in statistics.items():
        pct = profile.missing_percentage
        if pct > 50:
            recommendations.append(
                Recommendation(
                    "warning",
                    f"Column '{name}' has {pct:.1f}% missing values",
                    "Consider removing this column or imputing missing values",
                )
            )
        elif pct > 20:
            recommendations.append(
                Recommendation(
                    "info",
                    f"Column '{name}' has {pct:.1f}% missing values",
                    "Consider imputing missing values before clustering",
                )
            )

    for name, profile in statistics.items():
        if (
            profile.data_type == "categorical"
            and profile.total_count
            and profile.unique_count == profile.total_count
        ):
            recommendations.append(
                Recommendation(
                    "warning",
                    f"Column '{name}' has unique values for each row",
                    "This column may be an identifier and not useful for clustering",
                )
            )

    if row_count < SMALL_DATASET_ROWS:
        recommendations.append(
            Recommendation(
                "warning",
                "Very small dataset for clustering",
                "Consider collecting more data for meaningful clusters",
            )
        )
    elif row_count > LARGE_DATASET_ROWS:
        recommendations.append(
            Recommendation(
                "info",
                "Large dataset detected",
                "Consider sampling for faster clustering performance",
            )
        )
    return recommendations


def validate_dataset(
    data: Any,
    *,
    min_rows: int = 1,
    max_rows: int = 100000,
    required_columns: Sequence[str] = (),
    numeric_columns: Sequence[str] = (),
) -> DiagnosticReport:
    """Check dataset structure and profile every column.

    Only structural problems (wrong shape, too few rows, missing required
    columns) make the report invalid. Statistics are computed for whatever
    rows are present even when the report is invalid.
    """

    report = DiagnosticReport()

    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        report.fail("Data must be a sequence of records")
        return report

    report.row_count = len(data)
    if len(data) < min_rows:
        report.fail(
            f"Insufficient data: {len(data)} rows, minimum {min_rows} required"
        )
    if len(data) > max_rows:
        report.warnings.append(
            f"Large dataset: {len(data)} rows, consider sampling for performance"
        )
    if not data:
        return report

    columns = collect_fields(data)
    report.column_count = len(columns)

    for column in required_columns:
        if column not in columns:
            report.fail(f"Missing required column: {column}")

    for column in numeric_columns:
        if column not in columns:
            continue
        non_numeric = sum(
            1
            for v in column_values(data, column)
            if not is_missing(v) and not is_numeric_like(v)
        )
        if non_numeric:
            report.warnings.append(
                f"Column '{column}' contains {non_numeric} non-numeric values"
            )

    report.statistics = {c: _profile_column(c, column_values(data, c)) for c in columns}
    report.recommendations = _generate_recommendations(report.statistics, len(data))

    logger.debug(
        "Validated %d rows x %d columns: valid=%s, %d error(s), %d warning(s)",
        report.row_count,
        report.column_count,
        report.is_valid,
        len(report.errors),
        len(report.warnings),
    )
    return report
