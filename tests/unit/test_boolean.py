"""Unit tests for boolean operations on rings."""

import pytest

from polyprep.core.boolean import (
    BooleanOpEngine,
    EdgeSide,
    OperationContext,
    PolyOperation,
    PolyUnionError,
    TraceState,
    should_hop,
)
from polyprep.domain import Point, PointRing, WindingOrder
from polyprep.exceptions import OperationContextError


def make_ring(*coords: tuple[float, float]) -> PointRing:
    """Build a ring from coordinate pairs."""
    return PointRing([Point(x, y) for x, y in coords])


@pytest.fixture
def engine() -> BooleanOpEngine:
    """Engine with default tolerances."""
    return BooleanOpEngine()


@pytest.fixture
def left_square() -> PointRing:
    """4x4 square at the origin."""
    return make_ring((0, 0), (4, 0), (4, 4), (0, 4))


@pytest.fixture
def right_square() -> PointRing:
    """4x4 square shifted right by 2, sharing parts of the top and bottom edges."""
    return make_ring((2, 0), (6, 0), (6, 4), (2, 4))


class TestTraceState:
    """Tests for the trace state machine."""

    def test_hop_keeps_direction(self) -> None:
        """Test a plain hop switches rings only."""
        assert TraceState.POLY1_FORWARD.hop() is TraceState.POLY2_FORWARD
        assert TraceState.POLY2_FORWARD.hop() is TraceState.POLY1_FORWARD
        assert TraceState.POLY1_BACKWARD.hop() is TraceState.POLY2_BACKWARD
        assert TraceState.POLY2_BACKWARD.hop() is TraceState.POLY1_BACKWARD

    def test_hop_reversing_direction(self) -> None:
        """Test a reversing hop switches rings and direction."""
        assert TraceState.POLY1_FORWARD.hop(True) is TraceState.POLY2_BACKWARD
        assert TraceState.POLY2_BACKWARD.hop(True) is TraceState.POLY1_FORWARD
        assert TraceState.POLY1_BACKWARD.hop(True) is TraceState.POLY2_FORWARD
        assert TraceState.POLY2_FORWARD.hop(True) is TraceState.POLY1_BACKWARD

    def test_state_properties(self) -> None:
        """Test ring and direction accessors."""
        assert TraceState.POLY1_BACKWARD.on_poly1
        assert not TraceState.POLY1_BACKWARD.forward
        assert TraceState.POLY2_FORWARD.forward
        assert not TraceState.POLY2_FORWARD.on_poly1


class TestEdgeSide:
    """Tests for edge side values."""

    def test_reversed(self) -> None:
        """Test only shared sides change when walked backwards."""
        assert EdgeSide.SHARED.reversed() is EdgeSide.SHARED_REVERSED
        assert EdgeSide.SHARED_REVERSED.reversed() is EdgeSide.SHARED
        assert EdgeSide.INSIDE.reversed() is EdgeSide.INSIDE
        assert EdgeSide.OUTSIDE.reversed() is EdgeSide.OUTSIDE

    def test_unknown_is_sentinel(self) -> None:
        """Test the memo sentinel value."""
        assert EdgeSide.UNKNOWN == -1


class TestShouldHop:
    """Tests for the hop decision at contact points."""

    def test_union_hops_onto_outside(self) -> None:
        """Test an outside edge on the other ring always wins for union."""
        assert should_hop(
            PolyOperation.UNION,
            TraceState.POLY1_FORWARD,
            EdgeSide.OUTSIDE,
            TraceState.POLY2_FORWARD,
            EdgeSide.OUTSIDE,
        )

    def test_union_stays_on_outside(self) -> None:
        """Test union keeps walking an outside edge when offered an inside one."""
        assert not should_hop(
            PolyOperation.UNION,
            TraceState.POLY1_FORWARD,
            EdgeSide.OUTSIDE,
            TraceState.POLY2_FORWARD,
            EdgeSide.INSIDE,
        )

    def test_union_leaves_inside_for_shared(self) -> None:
        """Test an unwanted current edge yields to a wanted shared one."""
        assert should_hop(
            PolyOperation.UNION,
            TraceState.POLY1_FORWARD,
            EdgeSide.INSIDE,
            TraceState.POLY2_FORWARD,
            EdgeSide.SHARED,
        )

    def test_intersect_hops_onto_inside(self) -> None:
        """Test intersect prefers inside edges."""
        assert should_hop(
            PolyOperation.INTERSECT,
            TraceState.POLY1_FORWARD,
            EdgeSide.OUTSIDE,
            TraceState.POLY2_FORWARD,
            EdgeSide.INSIDE,
        )
        assert not should_hop(
            PolyOperation.INTERSECT,
            TraceState.POLY1_FORWARD,
            EdgeSide.INSIDE,
            TraceState.POLY2_FORWARD,
            EdgeSide.OUTSIDE,
        )

    def test_subtract_walks_poly2_backward_inside(self) -> None:
        """Test subtract hops onto the inside part of the second ring."""
        assert should_hop(
            PolyOperation.SUBTRACT,
            TraceState.POLY1_FORWARD,
            EdgeSide.INSIDE,
            TraceState.POLY2_BACKWARD,
            EdgeSide.INSIDE,
        )


class TestOperationContext:
    """Tests for context setup."""

    def test_rejects_short_rings(self, left_square: PointRing) -> None:
        """Test rings with fewer than 3 points raise."""
        context = OperationContext()
        with pytest.raises(OperationContextError):
            context.init(left_square, make_ring((0, 0), (1, 1)))

    def test_init_splices_contacts(
        self, left_square: PointRing, right_square: PointRing
    ) -> None:
        """Test contacts are found and spliced into both rings."""
        context = OperationContext()
        assert context.init(left_square, right_square)
        assert context.error is PolyUnionError.NONE
        assert context.intersections
        assert Point(2, 0) in context.poly1
        assert Point(4, 4) in context.poly2
        assert len(context.poly1_edge_sides) == len(context.poly1)

    def test_init_normalizes_winding(self, right_square: PointRing) -> None:
        """Test clockwise input is reversed in the working copy only."""
        cw = make_ring((0, 0), (0, 4), (4, 4), (4, 0))
        context = OperationContext()
        context.init(cw, right_square)
        assert context.poly1.winding_order is WindingOrder.ANTI_CLOCKWISE
        assert cw.winding_order is WindingOrder.CLOCKWISE
        assert context.original_polygon1 is cw

    def test_edge_sides_are_memoized(
        self, left_square: PointRing, right_square: PointRing
    ) -> None:
        """Test a classified edge keeps its value."""
        context = OperationContext()
        context.init(left_square, right_square)
        side = context.edge_side(True, 0)
        assert side is not EdgeSide.UNKNOWN
        assert context.poly1_edge_sides[0] is side

    def test_run_rejects_combined_operation(
        self, left_square: PointRing, right_square: PointRing
    ) -> None:
        """Test run takes one operation at a time."""
        context = OperationContext()
        context.init(left_square, right_square)
        with pytest.raises(OperationContextError):
            context.run(PolyOperation.UNION | PolyOperation.INTERSECT)


    def test_runaway_trace_reports_infinite_loop(
        self,
        monkeypatch: pytest.MonkeyPatch,
        left_square: PointRing,
        right_square: PointRing,
    ) -> None:
        """Test a trace that never returns to its start is cut off."""
        context = OperationContext()
        assert context.init(left_square, right_square)
        # Contacts on poly2 no longer lead back, so the walk circles poly2 forever
        context._poly2_contacts.clear()
        monkeypatch.setattr("polyprep.core.boolean.should_hop", lambda *args: True)

        error = context.run(PolyOperation.UNION)

        assert error is PolyUnionError.INFINITE_LOOP
        assert len(context.union) == 0
        assert context.result(PolyOperation.UNION).error is PolyUnionError.INFINITE_LOOP


class TestBooleanOpEngine:
    """Tests for union, intersect and subtract."""

    def test_union(
        self, engine: BooleanOpEngine, left_square: PointRing, right_square: PointRing
    ) -> None:
        """Test union of overlapping squares covers both."""
        ring, error = engine.union(left_square, right_square)
        assert error is PolyUnionError.NONE
        assert ring.area() == pytest.approx(24.0)
        assert ring.signed_area() > 0
        assert (ring.bounds.min_x, ring.bounds.max_x) == (0, 6)

    def test_intersect(
        self, engine: BooleanOpEngine, left_square: PointRing, right_square: PointRing
    ) -> None:
        """Test intersection of overlapping squares is the middle band."""
        ring, error = engine.intersect(left_square, right_square)
        assert error is PolyUnionError.NONE
        assert ring.area() == pytest.approx(8.0)
        assert (ring.bounds.min_x, ring.bounds.max_x) == (2, 4)

    def test_subtract(
        self, engine: BooleanOpEngine, left_square: PointRing, right_square: PointRing
    ) -> None:
        """Test subtraction keeps the uncovered band of the first ring."""
        ring, error = engine.subtract(left_square, right_square)
        assert error is PolyUnionError.NONE
        assert ring.area() == pytest.approx(8.0)
        assert (ring.bounds.min_x, ring.bounds.max_x) == (0, 2)

        ring, error = engine.subtract(right_square, left_square)
        assert error is PolyUnionError.NONE
        assert ring.area() == pytest.approx(8.0)
        assert (ring.bounds.min_x, ring.bounds.max_x) == (4, 6)

    def test_union_of_diagonal_overlap(self, engine: BooleanOpEngine) -> None:
        """Test squares overlapping at a corner merge into an 8-gon."""
        a = make_ring((1, 1), (5, 1), (5, 5), (1, 5))
        b = make_ring((3, 3), (7, 3), (7, 7), (3, 7))
        ring, error = engine.union(a, b)
        assert error is PolyUnionError.NONE
        assert ring.area() == pytest.approx(28.0)
        assert set(ring.points) == {
            Point(1, 1),
            Point(5, 1),
            Point(5, 3),
            Point(7, 3),
            Point(7, 7),
            Point(3, 7),
            Point(3, 5),
            Point(1, 5),
        }

        ring, error = engine.intersect(a, b)
        assert error is PolyUnionError.NONE
        assert ring.area() == pytest.approx(4.0)

    def test_clockwise_operands(
        self, engine: BooleanOpEngine, left_square: PointRing, right_square: PointRing
    ) -> None:
        """Test operand winding does not change the result."""
        left_square.winding_order = WindingOrder.CLOCKWISE
        ring, error = engine.union(left_square, right_square)
        assert error is PolyUnionError.NONE
        assert ring.area() == pytest.approx(24.0)

    def test_no_intersections(self, engine: BooleanOpEngine, left_square: PointRing) -> None:
        """Test rings without contact give empty results."""
        inner = make_ring((1, 1), (2, 1), (2, 2), (1, 2))
        for operation in (engine.union, engine.intersect, engine.subtract):
            ring, error = operation(inner, left_square)
            assert error is PolyUnionError.NO_INTERSECTIONS
            assert len(ring) == 0

    def test_poly1_inside_poly2(self, engine: BooleanOpEngine) -> None:
        """Test a touching inner ring falls back to whole-ring results."""
        small = make_ring((0, 0), (2, 0), (2, 2), (0, 2))
        big = make_ring((0, 0), (4, 0), (4, 4), (0, 4))

        ring, error = engine.union(small, big)
        assert error is PolyUnionError.POLY1_INSIDE_POLY2
        assert ring.area() == pytest.approx(16.0)

        ring, error = engine.intersect(small, big)
        assert error is PolyUnionError.POLY1_INSIDE_POLY2
        assert ring.area() == pytest.approx(4.0)

        ring, error = engine.subtract(small, big)
        assert error is PolyUnionError.POLY1_INSIDE_POLY2
        assert len(ring) == 0

    def test_operate_shares_context(
        self, engine: BooleanOpEngine, left_square: PointRing, right_square: PointRing
    ) -> None:
        """Test several operations run on one context."""
        context = engine.operate(
            PolyOperation.UNION | PolyOperation.INTERSECT, left_square, right_square
        )
        union = context.result(PolyOperation.UNION)
        intersect = context.result(PolyOperation.INTERSECT)
        assert union.error is PolyUnionError.NONE
        assert union.ring.area() == pytest.approx(24.0)
        assert intersect.ring.area() == pytest.approx(8.0)
        assert len(context.subtract) == 0
        assert PolyOperation.SUBTRACT not in context.operation_errors

    def test_inputs_untouched(
        self, engine: BooleanOpEngine, left_square: PointRing, right_square: PointRing
    ) -> None:
        """Test operands are not modified."""
        before = left_square.points
        engine.union(left_square, right_square)
        assert left_square.points == before
        assert len(right_square) == 4
