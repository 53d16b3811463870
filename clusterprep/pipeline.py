import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .config import PipelineConfig
from .errors import PipelineStageError
from .preprocessing import (
    Record,
    ensure_records,
    handle_missing,
    normalize,
    remove_outliers,
    sample,
)
from .transform import encode_categorical

logger = logging.getLogger(__name__)

STAGE_ORDER = (
    "handle_missing",
    "remove_outliers",
    "encode_categorical",
    "normalize",
    "sample",
)


class PipelineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class PipelineResult:
    data: List[Record]
    steps: List[str] = field(default_factory=list)
    stage_stats: Dict[str, Dict[str, Any]] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Stage adapters: config -> (new data, auxiliary output)
# ---------------------------------------------------------------------------


def _run_handle_missing(data, config: PipelineConfig):
    stage = config.handle_missing
    result = handle_missing(data, stage.method, stage.columns)
    return result.data, {
        "fill_values": result.fill_values,
        "rows_removed": result.rows_removed,
    }


def _run_remove_outliers(data, config: PipelineConfig):
    stage = config.remove_outliers
    result = remove_outliers(
        data, config.columns_for("remove_outliers"), stage.method, stage.threshold
    )
    return result.data, {"bounds": result.bounds, "rows_removed": result.rows_removed}


def _run_encode_categorical(data, config: PipelineConfig):
    stage = config.encode_categorical
    result = encode_categorical(data, config.columns_for("encode_categorical"), stage.method)
    return result.data, {"encodings": result.encodings}


def _run_normalize(data, config: PipelineConfig):
    stage = config.normalize
    result = normalize(data, config.columns_for("normalize"), stage.method)
    return result.data, {"stats": result.stats}


def _run_sample(data, config: PipelineConfig):
    stage = config.sample
    result = sample(data, stage.sample_size, stage.method, stage.seed)
    return result.data, {"strata_column": result.strata_column}


_STAGES: Dict[str, Callable[[List[Record], PipelineConfig], Tuple[List[Record], Dict[str, Any]]]] = {
    "handle_missing": _run_handle_missing,
    "remove_outliers": _run_remove_outliers,
    "encode_categorical": _run_encode_categorical,
    "normalize": _run_normalize,
    "sample": _run_sample,
}


class PipelineRunner:
    """Runs the enabled stages of one pipeline config, fail-fast.

    A runner serves a single run; its state moves IDLE -> RUNNING ->
    COMPLETE or FAILED.
    """

    def __init__(self, config: PipelineConfig):
        self.config = config
        self.state = PipelineState.IDLE
        self.current_stage: Optional[str] = None
        self.steps: List[str] = []

    def run(self, data: List[Record]) -> PipelineResult:
        if self.state is not PipelineState.IDLE:
            raise RuntimeError(f"Pipeline runner already used (state={self.state.value})")
        ensure_records(data)
        self.state = PipelineState.RUNNING
        current = data
        stage_stats: Dict[str, Dict[str, Any]] = {}

        for name in STAGE_ORDER:
            if not getattr(self.config, name).enabled:
                continue
            self.current_stage = name
            logger.debug("Running pipeline stage %s on %d rows", name, len(current))
            try:
                current, stats = _STAGES[name](current, self.config)
            except Exception as exc:
                self.state = PipelineState.FAILED
                logger.warning("Pipeline stage %s failed: %s", name, exc)
                raise PipelineStageError(name, exc, self.steps) from exc
            stage_stats[name] = stats
            self.steps.append(name)

        self.current_stage = None
        self.state = PipelineState.COMPLETE
        if not self.steps:
            current = [dict(record) for record in data]
        return PipelineResult(data=current, steps=list(self.steps), stage_stats=stage_stats)


def run_pipeline(
    data: List[Record], config: Union[PipelineConfig, Dict[str, Any], None] = None
) -> PipelineResult:
    """Primary orchestrator: handle_missing -> remove_outliers -> encode -> normalize -> sample.

    Parameters
    ----------
    data : list of dict
        Records to process; never modified.
    config : PipelineConfig or dict, optional
        Stage toggles and parameters. Disabled stages are skipped.

    Returns
    -------
    PipelineResult with the final records, the names of the stages that ran
    (in order) and each stage's auxiliary output.
    """
    if not isinstance(config, PipelineConfig):
        config = PipelineConfig.model_validate(config or {})
    return PipelineRunner(config).run(data)
