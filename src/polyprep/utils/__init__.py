"""Utility functions for polyprep.

This module provides utility functions including:

- Structured logging setup and configuration
- Per-shape processing statistics
"""

from polyprep.utils.logging import (
    ProcessingLogger,
    ProcessingStats,
    configure_logging,
)

__all__ = [
    "ProcessingLogger",
    "ProcessingStats",
    "configure_logging",
]
