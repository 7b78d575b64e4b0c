"""Configuration management for polyprep.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- ToleranceConfig: Numeric tolerances used by the geometry core
- ProcessingConfig: Preprocessing pipeline settings
- LoggingConfig: Logging settings
- PolyprepSettings: Main application settings
"""

from polyprep.config.settings import (
    LoggingConfig,
    PolyprepSettings,
    ProcessingConfig,
    ToleranceConfig,
    get_default_settings,
)

__all__ = [
    "LoggingConfig",
    "PolyprepSettings",
    "ProcessingConfig",
    "ToleranceConfig",
    "get_default_settings",
]
