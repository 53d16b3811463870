from typing import Any, Dict, List, Optional


class ClusterPrepError(Exception):
    """Base exception for dataset preparation errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class StructuralError(ClusterPrepError):
    """Input is not a sequence of records or violates a required shape."""


class InvalidConfigError(ClusterPrepError, ValueError):
    """Unknown method, out-of-range parameter or unresolved stage columns."""


class EncodingError(ClusterPrepError):
    """Categorical encoding would produce colliding field names."""


class PipelineStageError(ClusterPrepError):
    """A pipeline stage failed; remaining stages were not run."""

    def __init__(
        self, stage: str, cause: BaseException, completed_steps: List[str]
    ):
        self.stage = stage
        self.cause = cause
        self.completed_steps = list(completed_steps)
        details: Dict[str, Any] = {
            "stage": stage,
            "completed_steps": self.completed_steps,
            "cause": type(cause).__name__,
        }
        if isinstance(cause, ClusterPrepError) and cause.details:
            details["cause_details"] = cause.details
        super().__init__(f"Pipeline stage '{stage}' failed: {cause}", details)
