"""
Configuration management for pointcloud-filters.

Provides typed pydantic models for every filter's parameters and a YAML loader
for filter chains with sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Literal, List, Any, Dict

from pydantic import BaseModel, Field, ValidationError
import yaml


# -----------------------
# Filter parameters
# -----------------------


class IdentityParams(BaseModel):
    pass


class MaxDistParams(BaseModel):
    dim: int = Field(
        default=3,
        ge=0,
        description="Axis to filter on; the homogeneous row index (3 for 3D clouds) means Euclidean norm",
    )
    max_dist: float = Field(default=1.0, description="Points at or beyond this distance are removed")


class MinDistParams(BaseModel):
    dim: int = Field(
        default=3,
        ge=0,
        description="Axis to filter on; the homogeneous row index (3 for 3D clouds) means Euclidean norm",
    )
    min_dist: float = Field(default=1.0, description="Points at or below this distance are removed")


class MaxQuantileOnAxisParams(BaseModel):
    dim: int = Field(default=0, ge=0, description="Axis whose quantile is computed")
    ratio: float = Field(default=0.5, gt=0.0, lt=1.0, description="Quantile below which points are kept")


class UniformizeDensityParams(BaseModel):
    ratio: float = Field(default=0.5, gt=0.0, le=1.0, description="Target fraction of points to retain")
    nb_bin: int = Field(default=1000, ge=2, description="Number of radial histogram bins")
    seed: Optional[int] = Field(default=None, description="Seed for the sampling RNG")


class SurfaceNormalParams(BaseModel):
    knn: int = Field(default=5, ge=1, description="Neighbours used for each local estimation")
    epsilon: float = Field(default=0.0, ge=0.0, description="Approximation factor of the kd-tree search")
    keep_normals: bool = Field(default=True)
    keep_densities: bool = Field(default=False)
    keep_eigen_values: bool = Field(default=False)
    keep_eigen_vectors: bool = Field(default=False)
    keep_matched_ids: bool = Field(default=False)


class SamplingSurfaceNormalParams(BaseModel):
    bin_size: int = Field(default=7, ge=1, description="Maximum number of points fused into one output point")
    average_existing_descriptors: bool = Field(
        default=True,
        description="Average the input descriptors of each fused leaf into the output",
    )
    keep_normals: bool = Field(default=True)
    keep_densities: bool = Field(default=False)
    keep_eigen_values: bool = Field(default=False)
    keep_eigen_vectors: bool = Field(default=False)


class OrientNormalsParams(BaseModel):
    pass


class RandomSamplingParams(BaseModel):
    prob: float = Field(default=0.75, ge=0.0, le=1.0, description="Probability to keep a point")
    seed: Optional[int] = Field(default=None, description="Seed for the sampling RNG")


class FixstepSamplingParams(BaseModel):
    start_step: float = Field(default=10.0, ge=1.0, description="Initial step between kept points")
    end_step: float = Field(default=10.0, ge=1.0, description="Step reached after repeated calls")
    step_mult: float = Field(default=1.0, gt=0.0, description="Multiplier applied to the step after each call")
    seed: Optional[int] = Field(default=None, description="Seed for the random phase")


# -----------------------
# Application config
# -----------------------


class FilterSpec(BaseModel):
    name: str = Field(description="Registered filter name, e.g. 'SamplingSurfaceNormalDataPointsFilter'")
    params: Dict[str, Any] = Field(default_factory=dict)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    file: Optional[str] = Field(default=None)


class RandomConfig(BaseModel):
    seed: Optional[int] = Field(
        default=None,
        description="Seed spawning per-filter RNG seeds for filters that do not set their own",
    )


class AppConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    random: RandomConfig = Field(default_factory=RandomConfig)
    filters: List[FilterSpec] = Field(default_factory=list)


# -----------------------
# Loader
# -----------------------


def _project_root() -> Path:
    """
    Resolve the repository root directory.

    File is at: repo_root/src/pointcloud_filters/utils/config.py
    parents sequence:
      0 -> .../src/pointcloud_filters/utils
      1 -> .../src/pointcloud_filters
      2 -> .../src
      3 -> repo_root
    """
    return Path(__file__).resolve().parents[3]


def load_config(path: Optional[str | Path] = None, *, allow_missing: bool = True) -> AppConfig:
    """
    Load configuration from YAML into a typed AppConfig.

    Search order when path is None:
    1) repo_root/config/default.yaml
    2) if missing and allow_missing=True: return default AppConfig()

    Relative paths that do not exist from the working directory are resolved
    against the repository root.

    Args:
        path: Explicit YAML file path.
        allow_missing: If True, returns defaults when file missing; otherwise raises.

    Returns:
        AppConfig instance
    """
    cfg_path: Path
    if path is None:
        cfg_path = _project_root() / "config" / "default.yaml"
    else:
        cfg_path = Path(path)
        if not cfg_path.is_absolute() and not cfg_path.exists():
            cfg_path = _project_root() / cfg_path

    if not cfg_path.exists():
        if allow_missing:
            return AppConfig()
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    with cfg_path.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        # Re-raise with context to help users fix the YAML
        raise ValueError(f"Invalid configuration in {cfg_path}: {e}")
