"""Configuration settings for Polyprep."""

import math
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field


class ToleranceConfig(BaseModel):
    """Numeric tolerances for ring validation and boolean operations.

    Ring epsilons are derived from each ring's bounding box, so most
    comparisons are scale-invariant. The values here are the floors and
    factors used in that derivation plus a few fixed slops.
    """

    global_min_epsilon: float = Field(
        default=1e-12,
        gt=0.0,
        description="Lower bound for any ring epsilon",
    )
    epsilon_scale: float = Field(
        default=0.001,
        gt=0.0,
        le=0.1,
        description="Fraction of the smaller bounding box side used as ring epsilon",
    )
    angular_slop: float = Field(
        default=2.0 / (180.0 * math.pi),
        gt=0.0,
        description="Adjacent edges closer to parallel than this (radians) are rejected",
    )
    linear_slop: float = Field(
        default=0.005,
        gt=0.0,
        description="Default distance tolerance for merging parallel edges",
    )
    max_polygon_vertices: int = Field(
        default=100000,
        ge=3,
        description="Largest ring accepted by the pipeline",
    )
    vertex_code_precision: int = Field(
        default=9,
        ge=1,
        le=15,
        description="Decimal digits kept when hashing vertex coordinates",
    )
    same_polygon_epsilon: float = Field(
        default=0.01,
        gt=0.0,
        description="Per-vertex tolerance when comparing two holes for equality",
    )


class ProcessingConfig(BaseModel):
    """Configuration for the preprocessing pipeline."""

    simplify_bias: float = Field(
        default=0.0,
        ge=0.0,
        description="Vertices closer than this to their predecessor are dropped",
    )
    merge_parallel_tolerance: float | None = Field(
        default=None,
        ge=0.0,
        description="Merge nearly parallel edges with this tolerance (None = off)",
    )
    split_self_intersections: bool = Field(
        default=True,
        description="Decompose self-intersecting rings instead of rejecting them",
    )
    max_workers: int | None = Field(
        default=None,
        description="Max worker processes for batch runs (None = auto)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class PolyprepSettings(BaseModel):
    """Main application settings."""

    tolerance: ToleranceConfig = Field(default_factory=ToleranceConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache(maxsize=1)
def get_default_settings() -> PolyprepSettings:
    """Get default application settings."""
    return PolyprepSettings()
