"""Unit tests for contours, hole trees and constraint emission."""

import pytest

from polyprep.core.holes import HoleResolver
from polyprep.domain import ConstraintSet, Contour, Point, WindingOrder


def make_contour(*coords: tuple[float, float]) -> Contour:
    """Build a contour from coordinate pairs."""
    return Contour([Point(x, y) for x, y in coords])


def box(x0: float, y0: float, x1: float, y1: float) -> Contour:
    """Axis-aligned anti-clockwise rectangle."""
    return make_contour((x0, y0), (x1, y0), (x1, y1), (x0, y1))


@pytest.fixture
def outer() -> Contour:
    """10x10 outer contour."""
    return box(0, 0, 10, 10)


class TestHoleTree:
    """Tests for hole bookkeeping."""

    def test_add_and_remove_hole(self, outer: Contour) -> None:
        """Test holes are re-parented on add and detached by identity."""
        hole = box(2, 2, 4, 4)
        outer.add_hole(hole)
        assert hole.parent is outer
        assert outer.num_holes == 1

        twin = box(2, 2, 4, 4)
        assert outer.remove_hole(twin) is False
        assert outer.remove_hole(hole) is True
        assert hole.parent is None
        assert outer.num_holes == 0

    def test_holes_property_is_a_copy(self, outer: Contour) -> None:
        """Test the holes list cannot be mutated from outside."""
        outer.holes.append(box(1, 1, 2, 2))
        assert outer.num_holes == 0

    def test_count_and_collect_holes(self, outer: Contour) -> None:
        """Test polarity alternates with depth."""
        hole = box(1, 1, 9, 9)
        island = box(3, 3, 7, 7)
        hole.add_hole(island)
        outer.add_hole(hole)

        assert outer.count_holes() == 2
        assert outer.get_actual_holes() == [hole]
        assert [depth for _, depth in outer.iter_tree()] == [0, 1, 2]

    def test_point_inside_contour(self, outer: Contour) -> None:
        """Test points in holes are not in the solid region."""
        outer.add_hole(box(4, 4, 6, 6))
        assert outer.is_point_inside_contour(Point(1, 1))
        assert not outer.is_point_inside_contour(Point(5, 5))
        assert not outer.is_point_inside_contour(Point(11, 5))

    def test_find_point_in_contour_uses_centroid(self, outer: Contour) -> None:
        """Test the centroid is returned when it is solid."""
        point = outer.find_point_in_contour()
        assert point is not None
        assert point.x == pytest.approx(5.0)
        assert point.y == pytest.approx(5.0)

    def test_find_point_in_contour_samples(self, outer: Contour) -> None:
        """Test sampling finds a solid point when the centroid is in a hole."""
        outer.add_hole(box(4, 4, 6, 6))
        point = outer.find_point_in_contour(seed=7)
        assert point is not None
        assert outer.is_point_inside_contour(point)

    def test_find_point_in_tiny_contour(self) -> None:
        """Test contours below 3 points have no inside."""
        assert make_contour((0, 0), (1, 1)).find_point_in_contour() is None

    def test_copy_drops_holes(self, outer: Contour) -> None:
        """Test copies carry only the ring."""
        outer.add_hole(box(2, 2, 4, 4))
        clone = outer.copy()
        assert isinstance(clone, Contour)
        assert clone.num_holes == 0
        assert clone.points == outer.points

    def test_serialization(self, outer: Contour) -> None:
        """Test the hole tree survives serialization."""
        hole = box(1, 1, 9, 9)
        hole.add_hole(box(3, 3, 5, 5))
        outer.add_hole(hole)

        restored = Contour.from_dict(outer.to_dict())
        assert restored.num_holes == 1
        assert restored.holes[0].num_holes == 1
        assert restored.holes[0].parent is restored
        assert restored.holes[0].holes[0].points == [
            Point(3, 3),
            Point(5, 3),
            Point(5, 5),
            Point(3, 5),
        ]


class TestEmitConstraints:
    """Tests for constraint registration."""

    def test_emits_every_edge(self, outer: Contour) -> None:
        """Test each boundary edge becomes a constraint."""
        constraints = ConstraintSet()
        assert outer.emit_constraints(constraints) == 4
        assert len(constraints) == 4

    def test_second_emit_adds_nothing(self, outer: Contour) -> None:
        """Test emitting twice is idempotent."""
        constraints = ConstraintSet()
        outer.emit_constraints(constraints)
        assert outer.emit_constraints(constraints) == 0

    def test_shared_edge_and_vertices(self) -> None:
        """Test adjacent contours share the edge and the vertex instances."""
        constraints = ConstraintSet()
        left = make_contour((0, 0), (2, 0), (2, 2), (0, 2))
        right = make_contour((2, 0), (4, 0), (4, 2), (2, 2))

        assert left.emit_constraints(constraints) == 4
        assert right.emit_constraints(constraints) == 3
        assert len(constraints) == 7
        assert right[0] is left[1]
        assert right[3] is left[2]


class TestInitializeHoles:
    """Tests for hole resolution through the contour."""

    def test_duplicate_holes_collapse(self, outer: Contour) -> None:
        """Test the same hole listed twice (once reversed) is kept once."""
        outer.add_hole(box(2, 2, 4, 4))
        outer.add_hole(make_contour((4, 2), (2, 2), (2, 4), (4, 4)))
        constraints = ConstraintSet()
        outer.initialize_holes(constraints)

        assert outer.num_holes == 1
        assert len(constraints) == 4

    def test_nested_holes(self, outer: Contour) -> None:
        """Test a hole inside another hole is moved under it."""
        big = box(1, 1, 9, 9)
        small = box(3, 3, 5, 5)
        outer.add_hole(small)
        outer.add_hole(big)
        constraints = ConstraintSet()
        outer.initialize_holes(constraints)

        assert outer.holes == [big]
        assert big.holes == [small]
        assert small.parent is big
        assert len(constraints) == 8

    def test_disjoint_holes(self, outer: Contour) -> None:
        """Test separate holes stay siblings."""
        outer.add_hole(box(1, 1, 3, 3))
        outer.add_hole(box(5, 5, 7, 7))
        constraints = ConstraintSet()
        outer.initialize_holes(constraints)

        assert outer.num_holes == 2
        assert len(constraints) == 8

    def test_overlapping_holes_merge(self, outer: Contour) -> None:
        """Test crossing holes become their union with the overlap as a sub-hole."""
        outer.add_hole(box(1, 1, 5, 5))
        outer.add_hole(box(3, 3, 7, 7))
        constraints = ConstraintSet()
        outer.initialize_holes(constraints)

        assert outer.num_holes == 1
        merged = outer.holes[0]
        assert merged.parent is outer
        assert merged.area() == pytest.approx(28.0)
        assert merged.winding_order is WindingOrder.ANTI_CLOCKWISE
        assert merged.num_holes == 1
        assert merged.holes[0].area() == pytest.approx(4.0)
        assert len(constraints) == 12
        assert outer.is_point_inside_contour(Point(4, 4))
        assert not outer.is_point_inside_contour(Point(2, 2))


class TestHoleResolver:
    """Tests for the resolver counters and passes."""

    def test_counters(self, outer: Contour) -> None:
        """Test each pass counts its changes."""
        outer.add_hole(box(1, 1, 5, 5))
        outer.add_hole(box(3, 3, 7, 7))
        outer.add_hole(box(1, 1, 5, 5))
        outer.add_hole(box(8, 8, 9, 9))
        resolver = HoleResolver()
        resolver.initialize_holes(outer, ConstraintSet())

        assert resolver.duplicate_count == 1
        assert resolver.merge_count == 1
        assert outer.num_holes == 2

    def test_remove_duplicates_keeps_order(self) -> None:
        """Test the first of two equal holes survives."""
        first = box(1, 1, 2, 2)
        second = box(1, 1, 2, 2)
        third = box(3, 3, 4, 4)
        kept = HoleResolver().remove_duplicates([first, second, third])
        assert kept == [first, third]

    def test_resolve_overlaps_nests_contained(self, outer: Contour) -> None:
        """Test a contained sibling is nested regardless of order."""
        small = box(3, 3, 4, 4)
        big = box(2, 2, 6, 6)
        resolver = HoleResolver()
        settled = resolver.resolve_overlaps([small, big], outer)
        assert settled == [big]
        assert big.holes == [small]
        assert resolver.nest_count == 1
