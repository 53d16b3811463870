"""Dataset ingestion and preprocessing for clustering workloads.

Public entry points:
    handle_request(request) / dispatch(request, emit)
        request = {operation, payload, config, correlationId}
    run_pipeline(records, config)

Operations:
    parse_csv, parse_structured   -> typed records from raw text
    validate                      -> diagnostic report with per-column profiles
    normalize, handle_missing,
    remove_outliers, sample       -> preprocessing stages
    encode_categorical,
    extract_features              -> categorical encoding and feature rows
    run_pipeline                  -> configured sequence of the stages above
"""

from .cleaning_utils import coerce_value  # noqa: F401
from .data_profiler import validate_dataset  # noqa: F401
from .dispatcher import Request, dispatch, handle_request  # noqa: F401
from .parsers import parse_csv, parse_structured, serialize_csv  # noqa: F401
from .pipeline import run_pipeline  # noqa: F401
from .preprocessing import handle_missing, normalize, remove_outliers, sample  # noqa: F401
from .transform import encode_categorical, extract_clustering_features  # noqa: F401

__all__ = [
    "Request",
    "dispatch",
    "handle_request",
    "run_pipeline",
    "coerce_value",
    "parse_csv",
    "parse_structured",
    "serialize_csv",
    "validate_dataset",
    "normalize",
    "handle_missing",
    "remove_outliers",
    "sample",
    "encode_categorical",
    "extract_clustering_features",
]
