"""Tests for the preprocessing pipeline and batch orchestration."""

from unittest.mock import MagicMock, Mock

import pytest

from polyprep.config import PolyprepSettings, ProcessingConfig
from polyprep.core.processor import (
    PolygonPreprocessor,
    PreparedPolygon,
    RingIssue,
    polygon_error_from_names,
    polygon_error_names,
    process_polygon,
)
from polyprep.domain import Point, PolygonError, Shape, WindingOrder
from polyprep.utils import ProcessingLogger, ProcessingStats


def points(*coords: tuple[float, float]) -> list[Point]:
    """Build a point list from coordinate pairs."""
    return [Point(x, y) for x, y in coords]


def box(x0: float, y0: float, x1: float, y1: float) -> list[Point]:
    """Axis-aligned anti-clockwise rectangle."""
    return points((x0, y0), (x1, y0), (x1, y1), (x0, y1))


@pytest.fixture
def preprocessor() -> PolygonPreprocessor:
    """Preprocessor with default settings and a mock logger."""
    return PolygonPreprocessor(logger=MagicMock())


@pytest.fixture
def frame() -> Shape:
    """A 10x10 square with a square hole."""
    return Shape(name="frame", outer=box(0, 0, 10, 10), holes=[box(2, 2, 4, 4)])


@pytest.fixture
def bow_tie() -> Shape:
    """A self-intersecting outer ring."""
    return Shape(name="bow-tie", outer=points((0, 0), (4, 4), (4, 0), (0, 4)))


class TestErrorNames:
    """Tests for flag name conversion."""

    def test_names(self) -> None:
        """Test individual flags are listed in definition order."""
        error = PolygonError.DEGENERATE | PolygonError.NOT_SIMPLE
        assert polygon_error_names(error) == ["NOT_SIMPLE", "DEGENERATE"]
        assert polygon_error_names(PolygonError.NONE) == []

    def test_round_trip(self) -> None:
        """Test names convert back into the same flags."""
        error = PolygonError.AREA_TOO_SMALL | PolygonError.TOO_THIN
        assert polygon_error_from_names(polygon_error_names(error)) == error

    def test_ring_issue_serialization(self) -> None:
        """Test ring issues survive serialization."""
        issue = RingIssue("hole[1]", PolygonError.AREA_TOO_SMALL, skipped=True)
        assert issue.to_dict() == {"ring": "hole[1]", "errors": ["AREA_TOO_SMALL"], "skipped": True}
        assert RingIssue.from_dict(issue.to_dict()) == issue
        assert issue.message.startswith("AreaTooSmall")


class TestPrepare:
    """Tests for single-shape preprocessing."""

    def test_square_with_hole(self, preprocessor: PolygonPreprocessor, frame: Shape) -> None:
        """Test a frame yields one contour, one hole and eight constraints."""
        result = preprocessor.prepare_shape(frame)

        assert result.name == "frame"
        assert len(result.contours) == 1
        assert len(result.constraints) == 8
        assert result.hole_count == 1
        assert result.issues == []

        outer = result.contours[0]
        assert outer.winding_order is WindingOrder.ANTI_CLOCKWISE
        assert outer.signed_area() > 0
        hole = outer.holes[0]
        assert hole.winding_order is WindingOrder.CLOCKWISE
        assert hole.signed_area() < 0

    def test_clockwise_outer_is_normalized(self, preprocessor: PolygonPreprocessor) -> None:
        """Test a clockwise outer ring comes out anti-clockwise."""
        result = preprocessor.prepare(points((0, 0), (0, 4), (4, 4), (4, 0)))
        assert result.contours[0].signed_area() == pytest.approx(16.0)

    def test_repairs_duplicates_and_collinear_points(
        self, preprocessor: PolygonPreprocessor
    ) -> None:
        """Test duplicate and mid-edge vertices are removed before validation."""
        result = preprocessor.prepare(
            points((0, 0), (0, 0), (2, 0), (4, 0), (4, 4), (0, 4), (0, 0))
        )
        assert len(result.contours[0]) == 4
        assert len(result.constraints) == 4
        assert result.issues == []

    def test_overlapping_holes_are_merged(self, preprocessor: PolygonPreprocessor) -> None:
        """Test crossing holes become one hole with a solid overlap."""
        result = preprocessor.prepare(box(0, 0, 10, 10), [box(1, 1, 5, 5), box(3, 3, 7, 7)])

        assert result.holes_merged == 1
        assert len(result.constraints) == 16
        assert result.hole_count == 1
        merged = result.contours[0].holes[0]
        assert merged.winding_order is WindingOrder.CLOCKWISE
        assert merged.holes[0].winding_order is WindingOrder.ANTI_CLOCKWISE

    def test_self_intersecting_outer_is_split(
        self, preprocessor: PolygonPreprocessor, bow_tie: Shape
    ) -> None:
        """Test a bow-tie becomes two contours."""
        result = preprocessor.prepare_shape(bow_tie)

        assert result.split_count == 1
        assert len(result.contours) == 2
        assert len(result.constraints) == 6
        assert sum(contour.area() for contour in result.contours) == pytest.approx(8.0)
        assert result.skipped_rings == []

    def test_split_disabled_drops_ring(self, bow_tie: Shape) -> None:
        """Test self-intersecting rings are dropped when splitting is off."""
        settings = PolyprepSettings(processing=ProcessingConfig(split_self_intersections=False))
        preprocessor = PolygonPreprocessor(settings, logger=MagicMock())
        result = preprocessor.prepare_shape(bow_tie)

        assert result.contours == []
        assert result.skipped_rings == ["outer"]
        assert PolygonError.NOT_SIMPLE in result.issues[0].error

    def test_tiny_hole_is_skipped(self, preprocessor: PolygonPreprocessor) -> None:
        """Test a hole with too little area is dropped."""
        result = preprocessor.prepare(
            box(0, 0, 10, 10), [points((5, 5), (5.001, 5), (5, 5.001))]
        )
        assert result.skipped_rings == ["hole[0]"]
        assert PolygonError.AREA_TOO_SMALL in result.issues[0].error
        assert result.contours[0].num_holes == 0

    def test_hole_outside_outer_is_skipped(self, preprocessor: PolygonPreprocessor) -> None:
        """Test a hole outside every outer ring is dropped."""
        result = preprocessor.prepare(box(0, 0, 10, 10), [box(20, 20, 22, 22)])
        assert result.issues == [RingIssue("hole[0]", PolygonError.UNKNOWN, skipped=True)]
        assert len(result.constraints) == 4

    def test_too_few_points(self, preprocessor: PolygonPreprocessor) -> None:
        """Test an outer ring below 3 points yields nothing."""
        result = preprocessor.prepare(points((0, 0), (1, 1)))
        assert result.contours == []
        assert result.issues[0].error == PolygonError.NOT_ENOUGH_VERTICES

    def test_warnings_keep_ring(self, preprocessor: PolygonPreprocessor) -> None:
        """Test non-fatal flags are reported without dropping the ring."""
        result = preprocessor.prepare(
            points((0, 0), (1000, 0), (2000, 1), (2000, 100), (0, 100))
        )
        assert len(result.contours) == 1
        assert len(result.issues) == 1
        assert not result.issues[0].skipped
        assert PolygonError.SIDES_TOO_CLOSE_TO_PARALLEL in result.issues[0].error

    def test_serialization(self, preprocessor: PolygonPreprocessor, frame: Shape) -> None:
        """Test prepared polygons survive serialization."""
        result = preprocessor.prepare_shape(frame)
        restored = PreparedPolygon.from_dict(result.to_dict())

        assert restored.name == "frame"
        assert len(restored.constraints) == 8
        assert restored.hole_count == 1
        assert restored.contours[0].holes[0].winding_order is WindingOrder.CLOCKWISE


class TestProcessPolygon:
    """Tests for the worker entry point."""

    def test_success(self, frame: Shape) -> None:
        """Test a valid shape returns the prepared dictionary."""
        result = process_polygon(frame.to_dict(), PolyprepSettings().model_dump(mode="json"))
        assert "error" not in result
        assert result["prepared"]["name"] == "frame"
        assert len(result["prepared"]["constraints"]) == 8
        assert result["duration_ms"] >= 0

    def test_malformed_shape(self) -> None:
        """Test exceptions come back as an error dictionary."""
        result = process_polygon({"name": "broken"}, PolyprepSettings().model_dump(mode="json"))
        assert result["shape_name"] == "broken"
        assert "outer" in result["error"]
        assert "Traceback" in result["traceback"]


class TestPrepareBatch:
    """Tests for batch preprocessing in-process."""

    def test_results_in_input_order(
        self, preprocessor: PolygonPreprocessor, frame: Shape, bow_tie: Shape
    ) -> None:
        """Test results follow input order and statistics add up."""
        callback = Mock()
        prepared, stats = preprocessor.prepare_batch(
            [bow_tie, frame], max_workers=1, progress_callback=callback
        )

        assert [p.name for p in prepared] == ["bow-tie", "frame"]
        assert stats.processed_count == 2
        assert stats.error_count == 0
        assert stats.rings_split == 1
        assert stats.constraints_emitted == 14
        assert len(stats.shape_timings_ms) == 2
        assert callback.call_count == 2
        callback.assert_called_with(2, 2, "frame", True)

    def test_skipped_rings_counted(self, preprocessor: PolygonPreprocessor) -> None:
        """Test dropped rings are counted in the statistics."""
        shape = Shape(name="lonely", outer=box(0, 0, 10, 10), holes=[box(20, 20, 22, 22)])
        _, stats = preprocessor.prepare_batch([shape], max_workers=1)
        assert stats.skipped_count == 1

    def test_empty_batch(self, preprocessor: PolygonPreprocessor) -> None:
        """Test an empty batch returns no results."""
        prepared, stats = preprocessor.prepare_batch([], max_workers=1)
        assert prepared == []
        assert stats.processed_count == 0
        assert stats.duration_seconds >= 0

    def test_worker_error_counted_once(
        self, monkeypatch: pytest.MonkeyPatch, preprocessor: PolygonPreprocessor, frame: Shape
    ) -> None:
        """Test a failed shape adds exactly one error to the batch statistics."""
        monkeypatch.setattr(
            "polyprep.core.processor.process_polygon",
            lambda shape_dict, settings_dict: {
                "error": "boom",
                "shape_name": shape_dict["name"],
                "traceback": "Traceback",
                "duration_ms": 0.0,
            },
        )
        prepared, stats = preprocessor.prepare_batch([frame], max_workers=1)

        assert prepared == []
        assert stats.error_count == 1
        assert stats.errors == [("frame", "boom")]
        assert stats.processed_count == 0


class TestProcessingLogger:
    """Tests for statistics kept by the processing logger."""

    def test_writes_into_given_stats(self) -> None:
        """Test events are counted in the statistics passed in."""
        stats = ProcessingStats()
        processing_logger = ProcessingLogger(MagicMock(), stats)

        processing_logger.log_shape_complete("frame", contours=1, constraints=8, duration_ms=1.0)
        processing_logger.log_shape_error("broken", ValueError("bad ring"))

        assert processing_logger.stats is stats
        assert stats.processed_count == 1
        assert stats.constraints_emitted == 8
        assert stats.error_count == 1
        assert stats.errors == [("broken", "bad ring")]

    def test_prepare_counts_on_own_logger(self, preprocessor: PolygonPreprocessor) -> None:
        """Test single-shape runs accumulate on the preprocessor's logger."""
        preprocessor.prepare(box(0, 0, 10, 10), [box(20, 20, 22, 22)], name="lonely")
        preprocessor.prepare(box(0, 0, 4, 4), name="plain")

        stats = preprocessor.processing_logger.stats
        assert stats.processed_count == 2
        assert stats.skipped_count == 1
        assert stats.constraints_emitted == 8
