"""Logging utilities for Polyprep."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from polyprep.exceptions import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_installed_handlers: list[logging.Handler] = []


@dataclass
class ProcessingStats:
    """Statistics from a preprocessing run."""

    processed_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    rings_split: int = 0
    holes_merged: int = 0
    constraints_emitted: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    shape_timings_ms: list[float] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None
    was_cancelled: bool = False
    cancelled_count: int = 0

    @property
    def duration_seconds(self) -> float:
        """Calculate processing duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0


def _parse_level(name: str) -> int:
    level = name.upper()
    if level not in LOG_LEVELS:
        raise ConfigurationError(f"Unknown log level '{name}', expected one of {', '.join(LOG_LEVELS)}")
    return int(getattr(logging, level))


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "WARNING",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure structured logging over the standard library.

    Args:
        log_file: Path to log file (no file output if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output

    Returns:
        Configured structlog logger

    Raises:
        ConfigurationError: If a level name is not a standard logging level
    """
    console_level_value = _parse_level(console_level)
    file_level_value = _parse_level(file_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Reconfiguring replaces the handlers installed by an earlier call
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level_value)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        root_logger.addHandler(file_handler)
        _installed_handlers.append(file_handler)

    if not quiet:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level_value)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(console_handler)
        _installed_handlers.append(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("polyprep")
    logger.info(
        "Logging initialized",
        log_file=str(log_file) if log_file else None,
        level=file_level,
    )

    return logger


class ProcessingLogger:
    """Logger for tracking shape processing progress and statistics."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        stats: ProcessingStats | None = None,
    ) -> None:
        self._logger = logger
        self._stats = stats if stats is not None else ProcessingStats()

    def log_shape_start(self, shape_name: str) -> None:
        """Log start of shape processing."""
        self._logger.debug("Processing shape", shape=shape_name)

    def log_shape_complete(
        self,
        shape_name: str,
        contours: int,
        constraints: int,
        duration_ms: float,
    ) -> None:
        """Log successful shape processing."""
        self._logger.info(
            "Shape processed",
            shape=shape_name,
            contours=contours,
            constraints=constraints,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.processed_count += 1
        self._stats.constraints_emitted += constraints

    def log_ring_skipped(self, shape_name: str, ring: str, reason: str) -> None:
        """Log a ring dropped by validation."""
        self._logger.warning("Ring skipped", shape=shape_name, ring=ring, reason=reason)
        self._stats.skipped_count += 1

    def log_ring_split(self, shape_name: str, ring: str, pieces: int) -> None:
        """Log a self-intersecting ring decomposed into simple rings."""
        self._logger.debug("Ring split", shape=shape_name, ring=ring, pieces=pieces)
        self._stats.rings_split += 1

    def log_holes_resolved(
        self,
        shape_name: str,
        merged: int,
        nested: int,
        duplicates: int,
    ) -> None:
        """Log hole tree resolution results."""
        self._logger.debug(
            "Holes resolved",
            shape=shape_name,
            merged=merged,
            nested=nested,
            duplicates=duplicates,
        )
        self._stats.holes_merged += merged

    def log_shape_error(
        self,
        shape_name: str,
        error: Exception,
        traceback: str | None = None,
    ) -> None:
        """Log shape processing error."""
        self._logger.error(
            "Shape processing failed",
            shape=shape_name,
            error=str(error),
            error_type=type(error).__name__,
            traceback=traceback,
        )
        self._stats.error_count += 1
        self._stats.errors.append((shape_name, str(error)))

    @property
    def stats(self) -> ProcessingStats:
        """Get current processing statistics."""
        return self._stats
