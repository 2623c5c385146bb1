"""YAML schema validation and config loading.

Provides centralized validation for the pipeline configuration using pydantic:
    - Pipeline schema (pipeline.v1.yaml): flattening tolerance and strategy,
      loader policy, viewport locals, output location, logging

All entrypoints must load configs through these validators for fail-fast
error detection with actionable messages (offending keys, expected ranges).

Units:
    - Geometry: document units (SVG user units, 1 px = 1 unit)

Usage:
    from pathgpu.utils import validators

    cfg = validators.load_pipeline_config("configs/pipeline_v1.yaml")
    cfg = validators.PipelineV1()  # all defaults
"""

import math
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


# ============================================================================
# PIPELINE SCHEMA V1
# ============================================================================

class FlattenConfig(BaseModel):
    """Curve flattening parameters."""
    tolerance: float = Field(0.1, gt=0.0, description="Max curve/polyline deviation (document units)")
    method: Literal["subdivision", "uniform"] = Field("subdivision", description="Flattening strategy")
    max_depth: int = Field(16, ge=1, le=30, description="Subdivision recursion cap")
    max_segments: int = Field(4096, ge=1, description="Uniform sampling cap per curve")

    @field_validator('tolerance')
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"Tolerance must be finite, got {v}")
        return v

    def flattener_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for the selected flattener's constructor."""
        if self.method == "subdivision":
            return {"max_depth": self.max_depth}
        return {"max_segments": self.max_segments}


class LoaderConfig(BaseModel):
    """Document loader policy."""
    include_hidden: bool = Field(False, description="Keep display:none / visibility:hidden shapes")


class ViewportConfig(BaseModel):
    """Rasterizer locals written next to the buffers."""
    num_tiles: Tuple[int, int] = Field((1024, 32), description="Tile grid (x, y)")
    extent: Optional[Tuple[float, float]] = Field(
        None, description="Viewport size; None uses the document viewport"
    )

    @field_validator('num_tiles')
    @classmethod
    def validate_tiles(cls, v: Tuple[int, int]) -> Tuple[int, int]:
        if v[0] < 1 or v[1] < 1:
            raise ValueError(f"num_tiles must be >= 1 on both axes, got {v}")
        return v

    @field_validator('extent')
    @classmethod
    def validate_extent(cls, v: Optional[Tuple[float, float]]) -> Optional[Tuple[float, float]]:
        if v is not None and (v[0] <= 0 or v[1] <= 0):
            raise ValueError(f"Viewport extent must be positive, got {v}")
        return v


class OutputConfig(BaseModel):
    """Export location."""
    directory: str = Field("outputs/gpu_data", description="Directory for buffers + manifest")
    name: Optional[str] = Field(None, description="File prefix; None uses the document stem")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and (not v or '/' in v or '\\' in v):
            raise ValueError(f"Output name must be a plain file prefix, got {v!r}")
        return v


class LoggingConfig(BaseModel):
    """Arguments forwarded to logging_config.setup_logging()."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: Optional[str] = None
    json_format: bool = Field(False, alias="json")
    color: bool = True

    model_config = ConfigDict(populate_by_name=True)

    def setup_kwargs(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "file": self.file,
            "json": self.json_format,
            "color": self.color,
        }


class PipelineV1(BaseModel):
    """Pipeline configuration (pipeline.v1.yaml schema)."""
    schema_version: str = Field("pipeline.v1", alias="schema", description="Schema version")
    flatten: FlattenConfig = Field(default_factory=FlattenConfig)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "pipeline.v1":
            raise ValueError(f"Expected schema 'pipeline.v1', got '{v}'")
        return v

    @model_validator(mode='after')
    def validate_uniform_cap(self) -> 'PipelineV1':
        """A uniform cap of 1 segment only makes sense for straight input."""
        if self.flatten.method == "uniform" and self.flatten.max_segments < 2:
            raise ValueError("flatten.max_segments must be >= 2 for the uniform method")
        return self

    def with_overrides(
        self,
        tolerance: Optional[float] = None,
        method: Optional[str] = None,
        output_dir: Optional[str] = None,
        name: Optional[str] = None,
        log_level: Optional[str] = None,
        json_logs: Optional[bool] = None,
    ) -> 'PipelineV1':
        """Return a re-validated copy with CLI overrides applied."""
        data = self.model_dump(by_alias=True)
        if tolerance is not None:
            data["flatten"]["tolerance"] = tolerance
        if method is not None:
            data["flatten"]["method"] = method
        if output_dir is not None:
            data["output"]["directory"] = output_dir
        if name is not None:
            data["output"]["name"] = name
        if log_level is not None:
            data["logging"]["level"] = log_level.upper()
        if json_logs is not None:
            data["logging"]["json"] = json_logs
        return PipelineV1(**data)


def load_pipeline_config(path: Union[str, Path]) -> PipelineV1:
    """Load and validate pipeline config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to pipeline.v1 YAML file

    Returns
    -------
    PipelineV1
        Validated pipeline configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pipeline config not found: {path}")

    try:
        data = fs.load_yaml(path)
    except yaml.YAMLError as e:
        raise ValueError(f"Pipeline config at {path} is not valid YAML: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Pipeline config at {path} must be a mapping, got {type(data).__name__}")
    try:
        return PipelineV1(**data)
    except (ValidationError, TypeError) as e:
        raise ValueError(f"Pipeline config validation failed at {path}: {e}") from e
