"""YAML schema validation and config loading.

Provides centralized validation for every file the package reads, using pydantic:
    - Tracer config (epicycle_tracer.v1): edge detection, thinning, ordering,
      spectral thresholds, preview and logging settings
    - Result file (epicycles.v1): ranked epicycles plus the ordered point path

All modules load configs through these validators for fail-fast error detection
with actionable messages (offending keys, expected ranges).

Units:
    - Coordinates: pixels, image-centered (origin at image midpoint)
    - Phase: radians in (-π, π]
    - Frequency: signed integer rotations per traversal

Usage:
    from epicycle_tracer.utils import validators

    cfg = validators.load_epicycle_tracer_config("configs/epicycle_tracer_v1.yaml")
    result = validators.load_epicycles("outputs/shape_0_epicycles.yaml")
"""

import math
from pathlib import Path
from typing import List, Literal, Optional, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from . import fs


# ============================================================================
# TRACER CONFIG SCHEMA V1
# ============================================================================

class EdgeDetectionConfig(BaseModel):
    """Edge mask collaborator settings (blur → Canny → dilate)."""
    blur_sigma: float = Field(1.4, ge=0.0, le=10.0, description="Gaussian sigma before Canny, 0 disables")
    canny_low: float = Field(50.0, ge=0.0, le=1000.0, description="Canny hysteresis low threshold")
    canny_high: float = Field(100.0, ge=0.0, le=1000.0, description="Canny hysteresis high threshold")
    dilate_radius: int = Field(2, ge=0, le=10, description="L∞ dilation radius merging double edges")

    @model_validator(mode='after')
    def validate_thresholds(self) -> 'EdgeDetectionConfig':
        if self.canny_high <= self.canny_low:
            raise ValueError(
                f"canny_high ({self.canny_high}) must be greater than canny_low ({self.canny_low})"
            )
        return self


class ThinningConfig(BaseModel):
    """Skeleton thinner settings."""
    foreground_threshold: int = Field(0, ge=0, le=254, description="Pixel is foreground when value > threshold")


class OrderingConfig(BaseModel):
    """Path ordering strategy."""
    strategy: Literal["greedy", "kdtree"] = Field("greedy", description="Nearest-neighbor implementation")
    kdtree_initial_k: int = Field(16, ge=1, le=1024, description="First neighbor count queried per step")


class SpectralConfig(BaseModel):
    """Epicycle selection thresholds."""
    min_amplitude: float = Field(0.001, ge=0.0, description="Epicycles need amplitude strictly above this")
    max_terms: int = Field(500, ge=1, description="Maximum number of epicycles kept")
    allow_empty: bool = Field(False, description="Return an empty list instead of raising when all bins are filtered")


class PreviewConfig(BaseModel):
    """Static preview render settings."""
    enabled: bool = Field(True, description="Write a preview PNG next to the result")
    samples: int = Field(1200, ge=2, le=100_000, description="Time samples over one period")
    edge_point_radius: int = Field(1, ge=0, le=10, description="Skeleton dot radius (px)")
    path_line_width: int = Field(2, ge=1, le=10, description="Reconstructed path width (px)")


class LoggingSection(BaseModel):
    """Arguments forwarded to logging_config.setup_logging()."""
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_file: Optional[str] = Field(None, description="Log file path, null for console only")
    json_format: bool = Field(False, alias="json", description="JSON lines in the log file")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_level(cls, v):
        return v.upper() if isinstance(v, str) else v


class EpicycleTracerV1(BaseModel):
    """Tracer configuration (epicycle_tracer.v1 schema).

    Every section is optional in YAML; omitted sections take their defaults.
    """
    schema_version: str = Field("epicycle_tracer.v1", alias="schema", description="Schema version")
    edge_detection: EdgeDetectionConfig = Field(default_factory=EdgeDetectionConfig)
    thinning: ThinningConfig = Field(default_factory=ThinningConfig)
    ordering: OrderingConfig = Field(default_factory=OrderingConfig)
    spectral: SpectralConfig = Field(default_factory=SpectralConfig)
    preview: PreviewConfig = Field(default_factory=PreviewConfig)
    logging: LoggingSection = Field(default_factory=LoggingSection)

    model_config = ConfigDict(populate_by_name=True, extra='forbid')

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "epicycle_tracer.v1":
            raise ValueError(f"Expected schema 'epicycle_tracer.v1', got '{v}'")
        return v


# ============================================================================
# RESULT SCHEMA V1
# ============================================================================

class EpicycleEntry(BaseModel):
    """One rotating component: amplitude · e^{i(frequency·t + phase)}."""
    frequency: int = Field(..., description="Signed harmonic index")
    amplitude: float = Field(..., ge=0.0, description="Radius in pixels")
    phase: float = Field(..., ge=-math.pi, le=math.pi, description="Phase at t=0 (radians)")


class EpicyclesFileV1(BaseModel):
    """Pipeline result (epicycles.v1 schema)."""
    schema_version: str = Field("epicycles.v1", alias="schema", description="Schema version")
    image_size: Tuple[int, int] = Field(..., description="Mask (width, height) in pixels")
    n_points: int = Field(..., ge=0, description="Number of skeleton points")
    mask_sha256: Optional[str] = Field(None, description="Provenance hash of the input mask")
    source_sha256: Optional[str] = Field(None, description="Hash of the source image file, when traced from one")
    epicycles: List[EpicycleEntry] = Field(..., description="Ranked epicycles, largest first")
    points: List[Tuple[float, float]] = Field(..., description="Ordered path, image-centered")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "epicycles.v1":
            raise ValueError(f"Expected schema 'epicycles.v1', got '{v}'")
        return v

    @field_validator('mask_sha256', 'source_sha256')
    @classmethod
    def validate_hash(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        if v is not None and len(v) != 64:
            raise ValueError(f"{info.field_name} must be a 64-char hex digest, got {len(v)} chars")
        return v

    @model_validator(mode='after')
    def validate_consistency(self) -> 'EpicyclesFileV1':
        if self.n_points != len(self.points):
            raise ValueError(
                f"n_points={self.n_points} but {len(self.points)} points are listed"
            )
        amps = [e.amplitude for e in self.epicycles]
        if any(a < b for a, b in zip(amps, amps[1:])):
            raise ValueError("epicycles must be sorted by amplitude, largest first")
        return self


# ============================================================================
# LOADERS
# ============================================================================

def load_epicycle_tracer_config(path: Union[str, Path]) -> EpicycleTracerV1:
    """Load and validate tracer config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to epicycle_tracer.v1 YAML file

    Returns
    -------
    EpicycleTracerV1
        Validated tracer configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If the file is not valid YAML or validation fails (with actionable
        error message)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Tracer config not found: {path}")

    try:
        data = fs.load_yaml(path)
    except yaml.YAMLError as e:
        raise ValueError(f"Tracer config is not valid YAML at {path}: {e}") from e

    try:
        return EpicycleTracerV1(**data)
    except Exception as e:
        raise ValueError(f"Tracer config validation failed at {path}: {e}") from e


def load_epicycles(path: Union[str, Path]) -> EpicyclesFileV1:
    """Load and validate an epicycles.v1 result file.

    Parameters
    ----------
    path : Union[str, Path]
        Path to result YAML

    Returns
    -------
    EpicyclesFileV1
        Validated result

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If the file is not valid YAML or validation fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Epicycles file not found: {path}")

    try:
        data = fs.load_yaml(path)
    except yaml.YAMLError as e:
        raise ValueError(f"Epicycles file is not valid YAML at {path}: {e}") from e

    try:
        return EpicyclesFileV1(**data)
    except Exception as e:
        raise ValueError(f"Epicycles file validation failed at {path}: {e}") from e
