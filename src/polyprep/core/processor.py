"""Preprocessing pipeline orchestration.

This module runs raw polygon input through ring repair, validation,
self-intersection splitting and hole resolution, producing contours and
triangulation constraints. Batches of shapes are processed in parallel with
ProcessPoolExecutor.

Key components:
- process_polygon: Top-level picklable function for parallel execution
- PolygonPreprocessor: Pipeline for one shape or a batch of shapes
- PreparedPolygon: Pipeline output
"""

import time
import traceback
from collections.abc import Callable, Iterable
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

import structlog

from polyprep.config import PolyprepSettings, get_default_settings
from polyprep.core.geometry import polygon_contains_polygon
from polyprep.core.holes import HoleResolver
from polyprep.core.splitter import SelfIntersectionSplitter
from polyprep.domain import (
    ConstraintSet,
    Contour,
    Point,
    PointRing,
    PolygonError,
    Shape,
    WindingOrder,
    describe_polygon_error,
)
from polyprep.exceptions import SplitGraphError
from polyprep.utils import ProcessingLogger, ProcessingStats

# Flags that make a ring unusable for triangulation
_FATAL_ERRORS = (
    PolygonError.NOT_ENOUGH_VERTICES | PolygonError.AREA_TOO_SMALL | PolygonError.NOT_SIMPLE
)


def polygon_error_names(error: PolygonError) -> list[str]:
    """Names of the individual flags set in a validation result."""
    return [flag.name for flag in PolygonError if flag.value and flag in error]


def polygon_error_from_names(names: Iterable[str]) -> PolygonError:
    """Combine flag names back into a validation result."""
    error = PolygonError.NONE
    for name in names:
        error |= PolygonError[name]
    return error


@dataclass(frozen=True)
class RingIssue:
    """A validation problem found on one input ring.

    Attributes:
        ring: Ring label, e.g. "outer" or "hole[2]/part[1]"
        error: Validation flags
        skipped: Whether the ring was dropped from the output
    """

    ring: str
    error: PolygonError
    skipped: bool

    @property
    def message(self) -> str:
        return describe_polygon_error(self.error)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "ring": self.ring,
            "errors": polygon_error_names(self.error),
            "skipped": self.skipped,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RingIssue":
        """Deserialize from dictionary."""
        return cls(
            ring=data["ring"],
            error=polygon_error_from_names(data.get("errors", [])),
            skipped=bool(data.get("skipped", False)),
        )


@dataclass
class PreparedPolygon:
    """Result of preprocessing one shape.

    Attributes:
        name: Shape name
        contours: Outer contours (anti-clockwise) with their hole trees;
            winding alternates with depth
        constraints: Boundary edges of every contour in the tree
        issues: Validation problems, including rings that were dropped
        split_count: Self-intersecting rings that were decomposed
        holes_merged: Overlapping hole pairs that were merged
    """

    name: str
    contours: list[Contour]
    constraints: ConstraintSet
    issues: list[RingIssue] = field(default_factory=list)
    split_count: int = 0
    holes_merged: int = 0

    @property
    def hole_count(self) -> int:
        """Number of contours bounding empty space."""
        return sum(len(contour.get_actual_holes()) for contour in self.contours)

    @property
    def skipped_rings(self) -> list[str]:
        return [issue.ring for issue in self.issues if issue.skipped]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "name": self.name,
            "contours": [contour.to_dict() for contour in self.contours],
            "constraints": self.constraints.to_list(),
            "precision": self.constraints.precision,
            "issues": [issue.to_dict() for issue in self.issues],
            "split_count": self.split_count,
            "holes_merged": self.holes_merged,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PreparedPolygon":
        """Deserialize from dictionary."""
        precision = data.get("precision", 9)
        return cls(
            name=data["name"],
            contours=[Contour.from_dict(c) for c in data.get("contours", [])],
            constraints=ConstraintSet.from_list(data.get("constraints", []), precision),
            issues=[RingIssue.from_dict(i) for i in data.get("issues", [])],
            split_count=data.get("split_count", 0),
            holes_merged=data.get("holes_merged", 0),
        )


def process_polygon(shape_dict: dict[str, Any], settings_dict: dict[str, Any]) -> dict[str, Any]:
    """Preprocess a single shape.

    Top-level function designed to be picklable for use with ProcessPoolExecutor.
    Deserializes the shape, runs the pipeline, and returns the result.

    Args:
        shape_dict: Serialized shape (from Shape.to_dict())
        settings_dict: Serialized settings (from PolyprepSettings.model_dump())

    Returns:
        Dictionary containing either:
        - Success: {"prepared": prepared_dict, "duration_ms": float}
        - Error: {"error": str, "shape_name": str, "traceback": str, "duration_ms": float}
    """
    start_time = time.time()

    try:
        shape = Shape.from_dict(shape_dict)
        settings = PolyprepSettings.model_validate(settings_dict)
        preprocessor = PolygonPreprocessor(settings)
        prepared = preprocessor.prepare_shape(shape)

        duration_ms = (time.time() - start_time) * 1000
        return {
            "prepared": prepared.to_dict(),
            "duration_ms": duration_ms,
        }

    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        tb = traceback.format_exc()
        return {
            "error": str(e),
            "shape_name": shape_dict.get("name", "unknown"),
            "traceback": tb,
            "duration_ms": duration_ms,
        }


class PolygonPreprocessor:
    """Turns raw polygon input into contours ready for triangulation.

    For each shape:
    1. Repair rings (duplicate neighbours, simplification, parallel edges)
    2. Validate; split self-intersecting rings, drop unusable ones
    3. Build outer contours and attach each hole to the contour containing it
    4. Emit outer boundary constraints and resolve each hole tree
    5. Normalize winding (solid anti-clockwise, holes clockwise)

    Example:
        preprocessor = PolygonPreprocessor()
        prepared = preprocessor.prepare(outer_points, [hole_points])
        len(prepared.constraints)
    """

    def __init__(
        self,
        config: PolyprepSettings | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the preprocessor.

        Args:
            config: Settings (defaults to the global settings)
            logger: Structured logger (defaults to the "polyprep" logger)
        """
        self.config = config if config is not None else get_default_settings()
        self.logger = logger if logger is not None else structlog.get_logger("polyprep")
        self.processing_logger = ProcessingLogger(self.logger)
        self.splitter = SelfIntersectionSplitter(self.config.tolerance)

    def prepare_shape(self, shape: Shape) -> PreparedPolygon:
        """Preprocess a Shape."""
        return self.prepare(shape.outer, shape.holes, name=shape.name)

    def prepare(
        self,
        outer: Iterable[Point],
        holes: Iterable[Iterable[Point]] | None = None,
        name: str = "polygon",
    ) -> PreparedPolygon:
        """Preprocess one polygon with holes.

        Args:
            outer: Outer boundary points, any winding
            holes: Hole boundaries, any winding
            name: Shape name for logs and output

        Returns:
            PreparedPolygon with contours, constraints and ring issues

        Raises:
            HoleResolutionError: If overlapping holes cannot be merged
        """
        start_time = time.time()
        self.processing_logger.log_shape_start(name)
        tolerance = self.config.tolerance
        result = PreparedPolygon(
            name=name,
            contours=[],
            constraints=ConstraintSet(tolerance.vertex_code_precision),
        )

        for ring in self._prepare_ring(outer, "outer", result):
            contour = Contour(ring)
            contour.winding_order = WindingOrder.ANTI_CLOCKWISE
            result.contours.append(contour)

        for index, hole_points in enumerate(holes or []):
            label = f"hole[{index}]"
            for ring in self._prepare_ring(hole_points, label, result):
                self._attach_hole(Contour(ring), label, result)

        resolver = HoleResolver(tolerance)
        for contour in result.contours:
            contour.emit_constraints(result.constraints)
            resolver.initialize_holes(contour, result.constraints)
        result.holes_merged = resolver.merge_count
        self.processing_logger.log_holes_resolved(
            name, resolver.merge_count, resolver.nest_count, resolver.duplicate_count
        )

        for contour in result.contours:
            for node, depth in contour.iter_tree():
                node.winding_order = (
                    WindingOrder.ANTI_CLOCKWISE if depth % 2 == 0 else WindingOrder.CLOCKWISE
                )

        duration_ms = (time.time() - start_time) * 1000
        self.processing_logger.log_shape_complete(
            name, len(result.contours), len(result.constraints), duration_ms
        )
        return result

    def _prepare_ring(
        self, points: Iterable[Point], label: str, result: PreparedPolygon
    ) -> list[PointRing]:
        """Repair and validate one input ring.

        Returns:
            Zero or more simple rings; more than one if the ring was split
        """
        processing = self.config.processing
        ring = PointRing(points, tolerance=self.config.tolerance)
        ring.remove_duplicate_neighbor_points(ring.epsilon)
        ring.simplify(processing.simplify_bias)
        if processing.merge_parallel_tolerance is not None:
            ring.merge_parallel_edges(processing.merge_parallel_tolerance)

        error = ring.check_polygon()
        if PolygonError.NOT_SIMPLE in error:
            if not processing.split_self_intersections:
                self._record(result, label, error, skipped=True)
                return []
            try:
                pieces = self.splitter.split(ring)
            except SplitGraphError as e:
                self.logger.warning("Ring split failed", shape=result.name, ring=label, error=str(e))
                self._record(result, label, error, skipped=True)
                return []
            result.split_count += 1
            self.processing_logger.log_ring_split(result.name, label, len(pieces))
            if not pieces:
                self._record(result, label, error, skipped=True)
            rings: list[PointRing] = []
            for part_index, piece in enumerate(pieces):
                rings.extend(self._validated(piece, f"{label}/part[{part_index}]", result))
            return rings

        return self._validated(ring, label, result, error)

    def _validated(
        self,
        ring: PointRing,
        label: str,
        result: PreparedPolygon,
        error: PolygonError | None = None,
    ) -> list[PointRing]:
        if error is None:
            error = ring.check_polygon()
        if error & _FATAL_ERRORS:
            self._record(result, label, error, skipped=True)
            return []
        if error:
            self._record(result, label, error, skipped=False)
        return [ring]

    def _record(
        self, result: PreparedPolygon, label: str, error: PolygonError, skipped: bool
    ) -> None:
        result.issues.append(RingIssue(label, error, skipped))
        if skipped:
            self.processing_logger.log_ring_skipped(
                result.name, label, ", ".join(polygon_error_names(error))
            )
        else:
            self.logger.debug(
                "Ring has validation warnings",
                shape=result.name,
                ring=label,
                errors=polygon_error_names(error),
            )

    def _attach_hole(self, hole: Contour, label: str, result: PreparedPolygon) -> None:
        """Attach a hole to the smallest outer contour containing it."""
        containers = [
            contour
            for contour in result.contours
            if polygon_contains_polygon(contour, hole, check_crossing=False)
        ]
        if not containers:
            self.logger.warning("Hole lies outside every outer ring", shape=result.name, ring=label)
            self._record(result, label, PolygonError.UNKNOWN, skipped=True)
            return
        min(containers, key=lambda contour: contour.area()).add_hole(hole)

    def prepare_batch(
        self,
        shapes: list[Shape],
        max_workers: int | None = None,
        progress_callback: Callable[[int, int, str, bool], None] | None = None,
    ) -> tuple[list[PreparedPolygon], ProcessingStats]:
        """Preprocess shapes in parallel worker processes.

        Shapes are independent, so each runs in its own call with no shared
        state. A single worker runs the shapes in-process.

        Args:
            shapes: Shapes to process
            max_workers: Maximum worker processes (None = config default)
            progress_callback: Optional callback(completed, total, shape_name, success)
                for progress updates

        Returns:
            Prepared polygons in input order (failed shapes omitted) and
            run statistics

        Raises:
            KeyboardInterrupt: If processing is cancelled by user
        """
        stats = ProcessingStats()
        stats.start_time = time.time()
        batch_logger = ProcessingLogger(self.logger, stats)

        if max_workers is None:
            max_workers = self.config.processing.max_workers

        settings_dict = self.config.model_dump(mode="json")
        tasks = {index: shape.to_dict() for index, shape in enumerate(shapes)}
        results: dict[int, PreparedPolygon] = {}
        total = len(tasks)

        self.logger.info("Starting batch processing", shape_count=total, max_workers=max_workers)

        if max_workers == 1:
            for completed, (index, shape_dict) in enumerate(tasks.items(), start=1):
                shape_name = shapes[index].name
                result = process_polygon(shape_dict, settings_dict)
                success = self._collect(index, shape_name, result, results, batch_logger)
                if progress_callback is not None:
                    progress_callback(completed, total, shape_name, success)
        else:
            self._process_parallel(
                tasks, shapes, settings_dict, max_workers, results, batch_logger, progress_callback
            )

        stats.end_time = time.time()
        self.logger.info(
            "Batch processing complete",
            processed=stats.processed_count,
            errors=stats.error_count,
            rings_split=stats.rings_split,
            holes_merged=stats.holes_merged,
            duration_seconds=round(stats.duration_seconds, 2),
        )
        return [results[index] for index in sorted(results)], stats

    def _process_parallel(
        self,
        tasks: dict[int, dict[str, Any]],
        shapes: list[Shape],
        settings_dict: dict[str, Any],
        max_workers: int | None,
        results: dict[int, PreparedPolygon],
        batch_logger: ProcessingLogger,
        progress_callback: Callable[[int, int, str, bool], None] | None,
    ) -> None:
        total = len(tasks)
        completed = 0
        pending_futures: dict = {}

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            for index, shape_dict in tasks.items():
                future = executor.submit(process_polygon, shape_dict, settings_dict)
                pending_futures[future] = index

            try:
                for future in as_completed(pending_futures):
                    index = pending_futures.pop(future)
                    shape_name = shapes[index].name
                    success = False

                    try:
                        success = self._collect(
                            index, shape_name, future.result(), results, batch_logger
                        )
                    except Exception as e:
                        # Executor-level error
                        batch_logger.log_shape_error(
                            shape_name=shape_name,
                            error=e,
                            traceback=traceback.format_exc(),
                        )

                    completed += 1
                    if progress_callback is not None:
                        progress_callback(completed, total, shape_name, success)

            except KeyboardInterrupt:
                self.logger.info("Cancellation requested by user")
                for f in pending_futures:
                    f.cancel()
                batch_logger.stats.was_cancelled = True
                batch_logger.stats.cancelled_count = len(pending_futures)
                executor.shutdown(wait=True, cancel_futures=True)
                raise

    def _collect(
        self,
        index: int,
        shape_name: str,
        result: dict[str, Any],
        results: dict[int, PreparedPolygon],
        batch_logger: ProcessingLogger,
    ) -> bool:
        """Fold one worker result into the batch results and statistics.

        The batch logger counts processed shapes, constraints and errors;
        the ring-level counters come from the prepared result.
        """
        if "error" in result:
            batch_logger.log_shape_error(
                shape_name=result.get("shape_name", shape_name),
                error=Exception(result["error"]),
                traceback=result.get("traceback"),
            )
            return False

        prepared = PreparedPolygon.from_dict(result["prepared"])
        results[index] = prepared
        duration_ms = result.get("duration_ms", 0.0)
        stats = batch_logger.stats
        stats.skipped_count += len(prepared.skipped_rings)
        stats.rings_split += prepared.split_count
        stats.holes_merged += prepared.holes_merged
        stats.shape_timings_ms.append(duration_ms)
        batch_logger.log_shape_complete(
            shape_name, len(prepared.contours), len(prepared.constraints), duration_ms
        )
        return True
