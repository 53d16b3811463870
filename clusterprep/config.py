"""Operation and pipeline configuration models.

Every model accepts snake_case or camelCase keys (``has_header`` or
``hasHeader``) and ignores keys it does not know about.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

NormalizeMethod = Literal["zscore", "minmax", "robust"]
MissingMethod = Literal["mean", "median", "mode", "forward_fill", "remove"]
OutlierMethod = Literal["iqr", "zscore", "percentile"]
SampleMethod = Literal["random", "systematic", "stratified"]
EncodeMethod = Literal["onehot", "label", "ordinal"]


class OptionsModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class CsvOptions(OptionsModel):
    delimiter: str = ","
    has_header: bool = True
    skip_empty_lines: bool = True
    trim: bool = True
    generate_headers: bool = False

    @field_validator("delimiter")
    @classmethod
    def _single_character(cls, value: str) -> str:
        if len(value) != 1 or value in ('"', "\n", "\r"):
            raise ValueError("delimiter must be a single character other than a quote or line break")
        return value


class ValidationOptions(OptionsModel):
    min_rows: int = 1
    max_rows: int = 100000
    required_columns: List[str] = Field(default_factory=list)
    numeric_columns: List[str] = Field(default_factory=list)


class NormalizeOptions(OptionsModel):
    columns: List[str]
    method: NormalizeMethod = "zscore"


class MissingValueOptions(OptionsModel):
    method: MissingMethod = "mean"
    columns: Optional[List[str]] = None


class OutlierOptions(OptionsModel):
    columns: List[str]
    method: OutlierMethod = "iqr"
    threshold: float = Field(default=1.5, ge=0)


class SampleOptions(OptionsModel):
    sample_size: int = Field(gt=0)
    method: SampleMethod = "random"
    seed: Optional[int] = None


class EncodeOptions(OptionsModel):
    columns: List[str]
    method: EncodeMethod = "onehot"


class FeatureOptions(OptionsModel):
    numeric_columns: List[str] = Field(default_factory=list)
    categorical_columns: List[str] = Field(default_factory=list)
    exclude_columns: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------------


class StageConfig(OptionsModel):
    enabled: bool = False


class MissingValueStage(StageConfig):
    method: MissingMethod = "mean"
    columns: Optional[List[str]] = None


class OutlierStage(StageConfig):
    method: OutlierMethod = "iqr"
    threshold: float = Field(default=1.5, ge=0)
    columns: Optional[List[str]] = None


class EncodeStage(StageConfig):
    method: EncodeMethod = "onehot"
    columns: Optional[List[str]] = None


class NormalizeStage(StageConfig):
    method: NormalizeMethod = "zscore"
    columns: Optional[List[str]] = None


class SampleStage(StageConfig):
    sample_size: Optional[int] = Field(default=None, gt=0)
    method: SampleMethod = "random"
    seed: Optional[int] = None


class PipelineConfig(OptionsModel):
    """Declarative description of which stages run and with what parameters.

    ``numeric_columns`` is the default target of outlier removal and
    normalization; ``categorical_columns`` the default target of encoding.
    """

    numeric_columns: List[str] = Field(default_factory=list)
    categorical_columns: List[str] = Field(default_factory=list)
    handle_missing: MissingValueStage = Field(default_factory=MissingValueStage)
    remove_outliers: OutlierStage = Field(default_factory=OutlierStage)
    encode_categorical: EncodeStage = Field(default_factory=EncodeStage)
    normalize: NormalizeStage = Field(default_factory=NormalizeStage)
    sample: SampleStage = Field(default_factory=SampleStage)

    @model_validator(mode="after")
    def _check_enabled_stages(self) -> "PipelineConfig":
        for name, fallback in (
            ("remove_outliers", self.numeric_columns),
            ("encode_categorical", self.categorical_columns),
            ("normalize", self.numeric_columns),
        ):
            stage = getattr(self, name)
            if stage.enabled and not (stage.columns or fallback):
                raise ValueError(f"stage '{name}' is enabled but has no target columns")
        if self.sample.enabled and self.sample.sample_size is None:
            raise ValueError("stage 'sample' is enabled but sample_size is not set")
        return self

    def columns_for(self, stage_name: str) -> List[str]:
        stage = getattr(self, stage_name)
        if stage.columns:
            return list(stage.columns)
        if stage_name == "encode_categorical":
            return list(self.categorical_columns)
        return list(self.numeric_columns)
