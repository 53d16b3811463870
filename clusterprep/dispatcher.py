"""Request dispatcher: one typed request in, a correlated message sequence out.

Each request produces exactly one ``start`` message followed by exactly one
terminal message, ``complete`` or ``error``, all carrying the request's
correlation id. Requests run synchronously; there is no timeout or
cancellation, a caller that needs one must stop the executing worker.
"""

import dataclasses
import logging
import time
import traceback
from typing import Any, Callable, Dict, List, Literal, Mapping

from pydantic import Field, ValidationError

from .config import (
    CsvOptions,
    EncodeOptions,
    FeatureOptions,
    MissingValueOptions,
    NormalizeOptions,
    OptionsModel,
    OutlierOptions,
    PipelineConfig,
    SampleOptions,
    ValidationOptions,
)
from .data_profiler import validate_dataset
from .errors import ClusterPrepError
from .parsers import parse_csv, parse_structured
from .pipeline import run_pipeline
from .preprocessing import handle_missing, normalize, remove_outliers, sample
from .transform import encode_categorical, extract_clustering_features

logger = logging.getLogger(__name__)

Operation = Literal[
    "parse_csv",
    "parse_structured",
    "validate",
    "normalize",
    "handle_missing",
    "remove_outliers",
    "sample",
    "encode_categorical",
    "extract_features",
    "run_pipeline",
]

Message = Dict[str, Any]


class Request(OptionsModel):
    operation: Operation
    payload: Any = None
    config: Dict[str, Any] = Field(default_factory=dict)
    correlation_id: Any = None


def _parse_csv(payload, config):
    return parse_csv(payload, **CsvOptions.model_validate(config).model_dump())


def _parse_structured(payload, config):
    return parse_structured(payload)


def _validate(payload, config):
    return validate_dataset(payload, **ValidationOptions.model_validate(config).model_dump())


def _normalize(payload, config):
    opts = NormalizeOptions.model_validate(config)
    return normalize(payload, opts.columns, opts.method)


def _handle_missing(payload, config):
    opts = MissingValueOptions.model_validate(config)
    return handle_missing(payload, opts.method, opts.columns)


def _remove_outliers(payload, config):
    opts = OutlierOptions.model_validate(config)
    return remove_outliers(payload, opts.columns, opts.method, opts.threshold)


def _sample(payload, config):
    opts = SampleOptions.model_validate(config)
    return sample(payload, opts.sample_size, opts.method, opts.seed)


def _encode_categorical(payload, config):
    opts = EncodeOptions.model_validate(config)
    return encode_categorical(payload, opts.columns, opts.method)


def _extract_features(payload, config):
    return extract_clustering_features(
        payload, **FeatureOptions.model_validate(config).model_dump()
    )


def _run_pipeline(payload, config):
    return run_pipeline(payload, PipelineConfig.model_validate(config))


HANDLERS: Dict[str, Callable[[Any, Dict[str, Any]], Any]] = {
    "parse_csv": _parse_csv,
    "parse_structured": _parse_structured,
    "validate": _validate,
    "normalize": _normalize,
    "handle_missing": _handle_missing,
    "remove_outliers": _remove_outliers,
    "sample": _sample,
    "encode_categorical": _encode_categorical,
    "extract_features": _extract_features,
    "run_pipeline": _run_pipeline,
}


def _to_plain(result: Any) -> Any:
    if dataclasses.is_dataclass(result) and not isinstance(result, type):
        return dataclasses.asdict(result)
    return result


def _describe_error(exc: Exception) -> Dict[str, Any]:
    if isinstance(exc, ClusterPrepError):
        details = exc.details
    elif isinstance(exc, ValidationError):
        details = {"errors": exc.errors(include_url=False, include_context=False)}
    else:
        details = {}
    return {
        "message": str(exc),
        "type": type(exc).__name__,
        "details": details,
        "traceback": traceback.format_exc(),
    }


def _message(kind: str, operation: Any, correlation_id: Any, **body: Any) -> Message:
    message: Message = {"type": kind, "operation": operation}
    message.update(body)
    message["correlationId"] = correlation_id
    message["timestamp"] = int(time.time() * 1000)
    return message


def dispatch(request: Any, emit: Callable[[Message], None]) -> Message:
    """Run one request, emitting ``start`` then ``complete`` or ``error``.

    Never raises for failures inside the operation; they are reported as an
    ``error`` message. Returns the terminal message.
    """
    if isinstance(request, Request):
        operation, correlation_id = request.operation, request.correlation_id
    elif isinstance(request, Mapping):
        operation = request.get("operation")
        correlation_id = request.get("correlationId", request.get("correlation_id"))
    else:
        operation = correlation_id = None

    emit(_message("start", operation, correlation_id))
    try:
        parsed = (
            request if isinstance(request, Request) else Request.model_validate(request)
        )
        result = _to_plain(HANDLERS[parsed.operation](parsed.payload, parsed.config))
    except Exception as exc:
        logger.exception("Operation %s failed (correlationId=%s)", operation, correlation_id)
        terminal = _message("error", operation, correlation_id, error=_describe_error(exc))
    else:
        terminal = _message("complete", operation, correlation_id, result=result)
    emit(terminal)
    return terminal


def handle_request(request: Any) -> List[Message]:
    """Convenience wrapper collecting the emitted messages in a list."""
    messages: List[Message] = []
    dispatch(request, messages.append)
    return messages
