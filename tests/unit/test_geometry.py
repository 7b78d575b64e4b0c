"""Unit tests for geometry predicates and ring-level operations."""

import math

import pytest

from polyprep.core.geometry import (
    Orientation,
    clip_polygon_to_polygon,
    distance_to_segment,
    orient2d,
    point_in_polygon,
    point_in_polygon_angle,
    point_on_boundary,
    polygon_contains_polygon,
    polygons_are_same,
    polygons_intersect,
    segment_contacts,
    signed_area,
    vector_angle,
)
from polyprep.domain import Point, PointRing


def make_ring(*coords: tuple[float, float]) -> PointRing:
    """Build a ring from coordinate pairs."""
    return PointRing([Point(x, y) for x, y in coords])


@pytest.fixture
def square() -> PointRing:
    """Anti-clockwise 4x4 square at the origin."""
    return make_ring((0, 0), (4, 0), (4, 4), (0, 4))


@pytest.fixture
def u_shape() -> PointRing:
    """A U open at the top, with a notch between x=2 and x=4."""
    return make_ring((0, 0), (6, 0), (6, 6), (4, 6), (4, 2), (2, 2), (2, 6), (0, 6))


class TestPrimitives:
    """Tests for point and segment predicates."""

    def test_orientation(self) -> None:
        """Test turn classification."""
        a, b = Point(0, 0), Point(1, 0)
        assert orient2d(a, b, Point(1, 1)) is Orientation.ANTI_CLOCKWISE
        assert orient2d(a, b, Point(1, -1)) is Orientation.CLOCKWISE
        assert orient2d(a, b, Point(2, 0)) is Orientation.COLLINEAR

    def test_distance_to_segment_clamps(self) -> None:
        """Test distances beyond the endpoints measure to the endpoint."""
        assert distance_to_segment(Point(2, 1), Point(0, 0), Point(4, 0)) == 1.0
        assert distance_to_segment(Point(7, 4), Point(0, 0), Point(4, 0)) == 5.0

    def test_signed_area_sign(self) -> None:
        """Test shoelace sign follows the winding."""
        pts = [Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1)]
        assert signed_area(pts) == 1.0
        assert signed_area(pts[::-1]) == -1.0
        assert signed_area(pts[:2]) == 0.0

    def test_vector_angle_range(self) -> None:
        """Test signed angles between vectors."""
        assert vector_angle(Point(1, 0), Point(0, 1)) == pytest.approx(math.pi / 2)
        assert vector_angle(Point(0, 1), Point(1, 0)) == pytest.approx(-math.pi / 2)

    def test_point_in_polygon(self, square: PointRing) -> None:
        """Test ray casting and the angle-sum variant agree away from edges."""
        pts = square.points
        for point, expected in ((Point(2, 2), True), (Point(5, 2), False), (Point(-1, -1), False)):
            assert point_in_polygon(point, pts) is expected
            assert point_in_polygon_angle(point, pts) is expected

    def test_point_on_boundary(self, square: PointRing) -> None:
        """Test boundary detection with tolerance."""
        assert point_on_boundary(Point(2, 0), square.points, 1e-9)
        assert point_on_boundary(Point(4.0005, 2), square.points, 0.001)
        assert not point_on_boundary(Point(2, 2), square.points, 0.001)


class TestSegmentContacts:
    """Tests for segment contact detection."""

    def test_proper_crossing(self) -> None:
        """Test an X crossing reports the crossing point."""
        contacts = segment_contacts(Point(0, 0), Point(2, 2), Point(0, 2), Point(2, 0), 1e-9)
        assert contacts == [Point(1, 1)]

    def test_touch_snaps_to_endpoint(self) -> None:
        """Test a T contact returns the touching endpoint instance."""
        tip = Point(2, 0)
        contacts = segment_contacts(Point(0, 0), Point(4, 0), tip, Point(2, 3), 1e-9)
        assert len(contacts) == 1
        assert contacts[0] is tip

    def test_collinear_overlap(self) -> None:
        """Test overlapping collinear segments report the overlap ends."""
        contacts = segment_contacts(Point(0, 0), Point(4, 0), Point(2, 0), Point(6, 0), 1e-9)
        assert set(contacts) == {Point(4, 0), Point(2, 0)}

    def test_parallel_apart(self) -> None:
        """Test parallel segments on different lines never touch."""
        assert segment_contacts(Point(0, 0), Point(4, 0), Point(0, 1), Point(4, 1), 1e-9) == []

    def test_disjoint(self) -> None:
        """Test segments whose lines cross outside both segments."""
        assert segment_contacts(Point(0, 0), Point(1, 0), Point(3, -1), Point(3, 1), 1e-9) == []

    def test_zero_length(self) -> None:
        """Test a degenerate segment has no contacts."""
        assert segment_contacts(Point(1, 0), Point(1, 0), Point(0, 0), Point(2, 0), 1e-9) == []


class TestPolygonsAreSame:
    """Tests for ring equality up to rotation and direction."""

    def test_rotated_start(self, square: PointRing) -> None:
        """Test a different start vertex still matches."""
        other = make_ring((4, 4), (0, 4), (0, 0), (4, 0))
        assert polygons_are_same(square, other)

    def test_reversed(self, square: PointRing) -> None:
        """Test the opposite direction still matches."""
        other = make_ring((4, 0), (0, 0), (0, 4), (4, 4))
        assert polygons_are_same(square, other)

    def test_within_epsilon(self, square: PointRing) -> None:
        """Test vertices within epsilon match."""
        other = make_ring((0.005, 0), (4, 0), (4, 4), (0, 4))
        assert not polygons_are_same(square, other)
        assert polygons_are_same(square, other, epsilon=0.01)

    def test_different_count(self, square: PointRing) -> None:
        """Test rings of different sizes never match."""
        assert not polygons_are_same(square, make_ring((0, 0), (4, 0), (4, 4)))

    def test_different_order(self, square: PointRing) -> None:
        """Test the same vertices in a crossing order do not match."""
        other = make_ring((0, 0), (4, 4), (4, 0), (0, 4))
        assert not polygons_are_same(square, other)


class TestPolygonRelations:
    """Tests for boundary intersection and containment."""

    def test_overlapping_squares_intersect(self, square: PointRing) -> None:
        """Test crossing boundaries."""
        assert polygons_intersect(square, make_ring((2, 2), (6, 2), (6, 6), (2, 6)))

    def test_nested_squares_do_not_intersect(self, square: PointRing) -> None:
        """Test a strictly nested ring has no boundary contact."""
        assert not polygons_intersect(square, make_ring((1, 1), (3, 1), (3, 3), (1, 3)))

    def test_touching_squares_intersect(self, square: PointRing) -> None:
        """Test a shared edge counts as contact."""
        assert polygons_intersect(square, make_ring((4, 0), (8, 0), (8, 4), (4, 4)))

    def test_far_apart(self, square: PointRing) -> None:
        """Test disjoint bounding boxes short-circuit."""
        assert not polygons_intersect(square, make_ring((10, 10), (12, 10), (12, 12)))

    def test_contains_nested(self, square: PointRing) -> None:
        """Test strict containment."""
        inner = make_ring((1, 1), (3, 1), (3, 3), (1, 3))
        assert polygon_contains_polygon(square, inner)
        assert not polygon_contains_polygon(inner, square)

    def test_contains_rejects_overlap(self, square: PointRing) -> None:
        """Test partial overlap is not containment."""
        assert not polygon_contains_polygon(square, make_ring((2, 2), (6, 2), (6, 6), (2, 6)))

    def test_contains_crossing_check(self, u_shape: PointRing) -> None:
        """Test a bar spanning the notch has every vertex inside but crosses."""
        bar = make_ring((1, 4), (5, 4), (5, 5), (1, 5))
        assert not polygon_contains_polygon(u_shape, bar)
        assert polygon_contains_polygon(u_shape, bar, check_crossing=False)


class TestClipPolygon:
    """Tests for convex clipping."""

    def test_clip_overlap(self, square: PointRing) -> None:
        """Test clipping by a shifted square keeps the overlap."""
        clip = make_ring((2, 0), (6, 0), (6, 4), (2, 4))
        result = clip_polygon_to_polygon(square, clip)
        assert result.area() == pytest.approx(8.0)
        assert result.points == [Point(2, 0), Point(4, 0), Point(4, 4), Point(2, 4)]

    def test_clip_with_clockwise_inputs(self, square: PointRing) -> None:
        """Test clockwise inputs are normalized before clipping."""
        square.winding_order = square.winding_order.reversed()
        clip = make_ring((2, 4), (6, 4), (6, 0), (2, 0))
        result = clip_polygon_to_polygon(square, clip)
        assert result.area() == pytest.approx(8.0)
        assert result.signed_area() > 0

    def test_clip_disjoint(self, square: PointRing) -> None:
        """Test nothing remains when the rings are apart."""
        clip = make_ring((10, 0), (12, 0), (12, 2), (10, 2))
        assert len(clip_polygon_to_polygon(square, clip)) == 0

    def test_clip_contained(self, square: PointRing) -> None:
        """Test a subject inside the clip is unchanged."""
        big = make_ring((-1, -1), (5, -1), (5, 5), (-1, 5))
        result = clip_polygon_to_polygon(square, big)
        assert result.area() == pytest.approx(16.0)
        assert len(result) == 4
