"""Polygon boolean operations by edge-intersection tracing.

Union, intersection and subtraction of two simple rings are computed by
splicing every boundary contact into both rings, then walking the
boundaries and hopping between rings at contact points. Which way to go at
a contact is decided by classifying the outgoing edge of each ring against
the other ring, memoized per edge for the lifetime of one context.

Key components:
- OperationContext: Call-scoped working state (spliced rings, contacts, memo tables)
- TraceState: The four walking states and their hop transition table
- BooleanOpEngine: Public union / intersect / subtract entry points
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum, Flag, IntEnum, auto
from typing import NamedTuple

from polyprep.config import ToleranceConfig, get_default_settings
from polyprep.domain import DEFAULT_WINDING_ORDER, Point, PointRing
from polyprep.domain.primitives import (
    distance_to_line,
    point_in_polygon_angle,
    point_on_segment,
    segment_contacts,
)
from polyprep.exceptions import OperationContextError

logger = logging.getLogger(__name__)


class PolyOperation(Flag):
    """Boolean operations; several can run on one context."""

    NONE = 0
    UNION = auto()
    INTERSECT = auto()
    SUBTRACT = auto()


class PolyUnionError(Enum):
    """Outcome codes of a boolean operation."""

    NONE = "none"
    NO_INTERSECTIONS = "no_intersections"
    POLY1_INSIDE_POLY2 = "poly1_inside_poly2"
    INFINITE_LOOP = "infinite_loop"


@dataclass(frozen=True, slots=True)
class Edge:
    """A directed ring edge."""

    start: Point
    end: Point

    @property
    def direction(self) -> Point:
        return self.end - self.start

    @property
    def midpoint(self) -> Point:
        return Point((self.start.x + self.end.x) / 2.0, (self.start.y + self.end.y) / 2.0)


@dataclass(frozen=True, slots=True)
class EdgeIntersectInfo:
    """One contact between an edge of each input ring.

    Attributes:
        edge_one: Edge of the first ring
        edge_two: Edge of the second ring
        intersection_point: Canonical contact point instance
    """

    edge_one: Edge
    edge_two: Edge
    intersection_point: Point


class EdgeSide(IntEnum):
    """Memoized position of a ring edge relative to the other ring.

    UNKNOWN marks a memo slot that has not been computed yet. SHARED edges
    run along the other ring's boundary in the same direction,
    SHARED_REVERSED in the opposite direction.
    """

    UNKNOWN = -1
    OUTSIDE = 0
    INSIDE = 1
    SHARED = 2
    SHARED_REVERSED = 3

    def reversed(self) -> "EdgeSide":
        """Side as seen when the edge is walked backwards."""
        if self is EdgeSide.SHARED:
            return EdgeSide.SHARED_REVERSED
        if self is EdgeSide.SHARED_REVERSED:
            return EdgeSide.SHARED
        return self


class TraceState(Enum):
    """Which ring the trace is on and which way it walks."""

    POLY1_FORWARD = auto()
    POLY1_BACKWARD = auto()
    POLY2_FORWARD = auto()
    POLY2_BACKWARD = auto()

    @property
    def on_poly1(self) -> bool:
        return self in (TraceState.POLY1_FORWARD, TraceState.POLY1_BACKWARD)

    @property
    def forward(self) -> bool:
        return self in (TraceState.POLY1_FORWARD, TraceState.POLY2_FORWARD)

    def hop(self, reverse_direction: bool = False) -> "TraceState":
        """State after moving to the other ring.

        Args:
            reverse_direction: Also flip the walking direction (subtract)

        Returns:
            The next state from the transition table
        """
        return _HOP_TABLE[(self, reverse_direction)]


_HOP_TABLE: dict[tuple[TraceState, bool], TraceState] = {
    (TraceState.POLY1_FORWARD, False): TraceState.POLY2_FORWARD,
    (TraceState.POLY2_FORWARD, False): TraceState.POLY1_FORWARD,
    (TraceState.POLY1_BACKWARD, False): TraceState.POLY2_BACKWARD,
    (TraceState.POLY2_BACKWARD, False): TraceState.POLY1_BACKWARD,
    (TraceState.POLY1_FORWARD, True): TraceState.POLY2_BACKWARD,
    (TraceState.POLY2_BACKWARD, True): TraceState.POLY1_FORWARD,
    (TraceState.POLY1_BACKWARD, True): TraceState.POLY2_FORWARD,
    (TraceState.POLY2_FORWARD, True): TraceState.POLY1_BACKWARD,
}

# Outgoing edge sides each operation prefers to stay on, and the subset
# that forces a hop when the other ring offers it.
_UNION_WANTED = frozenset({EdgeSide.OUTSIDE, EdgeSide.SHARED})
_UNION_STRICT = frozenset({EdgeSide.OUTSIDE})
_INTERSECT_WANTED = frozenset({EdgeSide.INSIDE, EdgeSide.SHARED})
_INTERSECT_STRICT = frozenset({EdgeSide.INSIDE})
_SUBTRACT_FORWARD_WANTED = frozenset({EdgeSide.OUTSIDE, EdgeSide.SHARED_REVERSED})
_SUBTRACT_FORWARD_STRICT = frozenset({EdgeSide.OUTSIDE})
_SUBTRACT_BACKWARD_WANTED = frozenset({EdgeSide.INSIDE})
_SUBTRACT_BACKWARD_STRICT = frozenset({EdgeSide.INSIDE})


def _hop_rules(
    operation: PolyOperation, state: TraceState
) -> tuple[frozenset[EdgeSide], frozenset[EdgeSide]]:
    """Return (wanted, strict) edge sides for a state under an operation."""
    if operation is PolyOperation.UNION:
        return _UNION_WANTED, _UNION_STRICT
    if operation is PolyOperation.INTERSECT:
        return _INTERSECT_WANTED, _INTERSECT_STRICT
    if state.forward:
        return _SUBTRACT_FORWARD_WANTED, _SUBTRACT_FORWARD_STRICT
    return _SUBTRACT_BACKWARD_WANTED, _SUBTRACT_BACKWARD_STRICT


def should_hop(
    operation: PolyOperation,
    state: TraceState,
    current_side: EdgeSide,
    candidate: TraceState,
    candidate_side: EdgeSide,
) -> bool:
    """Decide whether to leave the current ring at a contact point.

    Args:
        operation: Operation being traced
        state: Current trace state
        current_side: Side of the edge the current ring would walk next
        candidate: State after a hop
        candidate_side: Side of the edge the other ring would walk next

    Returns:
        True to hop onto the other ring
    """
    _, candidate_strict = _hop_rules(operation, candidate)
    if candidate_side in candidate_strict:
        return True
    current_wanted, _ = _hop_rules(operation, state)
    candidate_wanted, _ = _hop_rules(operation, candidate)
    return current_side not in current_wanted and candidate_side in candidate_wanted


class OperationResult(NamedTuple):
    """Result ring of one operation and its outcome code."""

    ring: PointRing
    error: PolyUnionError


class OperationContext:
    """Working state for boolean operations on one pair of rings.

    Holds winding-normalized copies of both rings with every contact point
    spliced in, the contact list, one edge-side memo table per ring, the
    initialization error and one output ring per operation kind. A context
    lives for one engine call and is never shared.
    """

    def __init__(self, tolerance: ToleranceConfig | None = None) -> None:
        self.tolerance = tolerance if tolerance is not None else get_default_settings().tolerance
        self.original_polygon1: PointRing | None = None
        self.original_polygon2: PointRing | None = None
        self.poly1 = PointRing(tolerance=self.tolerance)
        self.poly2 = PointRing(tolerance=self.tolerance)
        self.intersections: list[EdgeIntersectInfo] = []
        self.poly1_edge_sides: list[EdgeSide] = []
        self.poly2_edge_sides: list[EdgeSide] = []
        self.error = PolyUnionError.NONE
        self.epsilon = self.tolerance.global_min_epsilon
        self.union = PointRing(tolerance=self.tolerance)
        self.intersect = PointRing(tolerance=self.tolerance)
        self.subtract = PointRing(tolerance=self.tolerance)
        self.operation_errors: dict[PolyOperation, PolyUnionError] = {}
        self._poly1_contacts: dict[int, int] = {}
        self._poly2_contacts: dict[int, int] = {}
        self._start_index = -1

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def init(self, poly1: PointRing, poly2: PointRing) -> bool:
        """Prepare both rings for tracing.

        Args:
            poly1: First operand
            poly2: Second operand

        Returns:
            True if tracing can proceed; otherwise error holds
            NO_INTERSECTIONS or POLY1_INSIDE_POLY2

        Raises:
            OperationContextError: If either ring has fewer than 3 points
        """
        if len(poly1) < 3 or len(poly2) < 3:
            raise OperationContextError(
                "invalid_input",
                f"rings need at least 3 points (got {len(poly1)} and {len(poly2)})",
            )

        self.original_polygon1 = poly1
        self.original_polygon2 = poly2
        work1 = poly1.copy()
        work1.winding_order = DEFAULT_WINDING_ORDER
        work2 = poly2.copy()
        work2.winding_order = DEFAULT_WINDING_ORDER
        self.epsilon = min(work1.epsilon, work2.epsilon)

        splits1: dict[int, list[Point]] = defaultdict(list)
        splits2: dict[int, list[Point]] = defaultdict(list)
        found: list[Point] = []
        for i, (a_start, a_end) in enumerate(work1.edges()):
            for j, (b_start, b_end) in enumerate(work2.edges()):
                for contact in segment_contacts(a_start, a_end, b_start, b_end, self.epsilon):
                    canonical = self._canonical_contact(contact, found)
                    self.intersections.append(
                        EdgeIntersectInfo(Edge(a_start, a_end), Edge(b_start, b_end), canonical)
                    )
                    splits1[i].append(canonical)
                    splits2[j].append(canonical)

        if not self.intersections:
            self.poly1 = work1
            self.poly2 = work2
            self.error = PolyUnionError.NO_INTERSECTIONS
            logger.debug("Boolean context: rings do not intersect")
            return False

        self.poly1 = self._splice(work1, splits1)
        self.poly2 = self._splice(work2, splits2)
        self.poly1_edge_sides = [EdgeSide.UNKNOWN] * len(self.poly1)
        self.poly2_edge_sides = [EdgeSide.UNKNOWN] * len(self.poly2)

        for i, point in enumerate(self.poly1):
            if any(point.equals(contact, self.epsilon) for contact in found):
                j = self.poly2.index_of(point, self.epsilon)
                if j >= 0:
                    self._poly1_contacts[i] = j
                    self._poly2_contacts[j] = i

        logger.debug(
            "Boolean context: %d contacts, %d unique, rings spliced to %d and %d points",
            len(self.intersections),
            len(found),
            len(self.poly1),
            len(self.poly2),
        )

        self._start_index = self._first_edge(True, (EdgeSide.OUTSIDE,))
        if self._start_index < 0:
            self.error = PolyUnionError.POLY1_INSIDE_POLY2
            return False
        return True

    def _canonical_contact(self, contact: Point, found: list[Point]) -> Point:
        for existing in found:
            if existing.equals(contact, self.epsilon):
                return existing
        found.append(contact)
        return contact

    def _splice(self, ring: PointRing, splits: dict[int, list[Point]]) -> PointRing:
        """Insert contact points after the start vertex of the edge they lie on.

        Several contacts on one edge are inserted in order of distance from
        the edge start, so each one starts the sub-segment the next one cuts.
        Points already present in the ring are not inserted twice.
        """
        spliced: list[Point] = []
        original = ring.points
        for i, point in enumerate(original):
            spliced.append(point)
            contacts = sorted(splits.get(i, []), key=point.distance_to)
            for contact in contacts:
                if any(contact.equals(existing, self.epsilon) for existing in original):
                    continue
                if any(contact.equals(existing, self.epsilon) for existing in spliced):
                    continue
                spliced.append(contact)
        return PointRing(spliced, DEFAULT_WINDING_ORDER, tolerance=ring.tolerance)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ring(self, on_poly1: bool) -> PointRing:
        """Working ring for a trace state."""
        return self.poly1 if on_poly1 else self.poly2

    def matching_index(self, on_poly1: bool, index: int) -> int | None:
        """Index of the same contact point on the other ring, if this is a contact."""
        contacts = self._poly1_contacts if on_poly1 else self._poly2_contacts
        return contacts.get(index)

    def edge_side(self, on_poly1: bool, index: int) -> EdgeSide:
        """Memoized side of the edge starting at index, relative to the other ring."""
        sides = self.poly1_edge_sides if on_poly1 else self.poly2_edge_sides
        if sides[index] is EdgeSide.UNKNOWN:
            sides[index] = self._classify_edge(self.ring(on_poly1), self.ring(not on_poly1), index)
        return sides[index]

    def _classify_edge(self, ring: PointRing, other: PointRing, index: int) -> EdgeSide:
        edge = Edge(ring[index], ring[ring.next_index(index)])
        midpoint = edge.midpoint
        for o_start, o_end in other.edges():
            if (
                point_on_segment(midpoint, o_start, o_end, self.epsilon)
                and distance_to_line(edge.start, o_start, o_end) <= self.epsilon
                and distance_to_line(edge.end, o_start, o_end) <= self.epsilon
            ):
                if edge.direction.dot(o_end - o_start) > 0:
                    return EdgeSide.SHARED
                return EdgeSide.SHARED_REVERSED
        if point_in_polygon_angle(midpoint, other.points):
            return EdgeSide.INSIDE
        return EdgeSide.OUTSIDE

    def _first_edge(self, on_poly1: bool, sides: tuple[EdgeSide, ...]) -> int:
        for i in range(len(self.ring(on_poly1))):
            if self.edge_side(on_poly1, i) in sides:
                return i
        return -1

    def _outgoing_side(self, state: TraceState, index: int) -> EdgeSide:
        if state.forward:
            return self.edge_side(state.on_poly1, index)
        ring = self.ring(state.on_poly1)
        return self.edge_side(state.on_poly1, ring.previous_index(index)).reversed()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def run(self, operation: PolyOperation) -> PolyUnionError:
        """Compute one operation into its output ring.

        Args:
            operation: UNION, INTERSECT or SUBTRACT

        Returns:
            Outcome code for this operation
        """
        if operation is PolyOperation.UNION:
            ring, error = self._run_union()
            self.union = ring
        elif operation is PolyOperation.INTERSECT:
            ring, error = self._run_intersect()
            self.intersect = ring
        elif operation is PolyOperation.SUBTRACT:
            ring, error = self._run_subtract()
            self.subtract = ring
        else:
            raise OperationContextError(operation.name or "NONE", "expected a single operation")
        self.operation_errors[operation] = error
        return error

    def result(self, operation: PolyOperation) -> OperationResult:
        """Output ring and outcome code of a single operation."""
        if operation is PolyOperation.UNION:
            ring = self.union
        elif operation is PolyOperation.INTERSECT:
            ring = self.intersect
        else:
            ring = self.subtract
        return OperationResult(ring, self.operation_errors.get(operation, self.error))

    def _empty(self) -> PointRing:
        return PointRing(tolerance=self.tolerance)

    def _run_union(self) -> tuple[PointRing, PolyUnionError]:
        if self.error is PolyUnionError.NO_INTERSECTIONS:
            return self._empty(), self.error
        if self.error is PolyUnionError.POLY1_INSIDE_POLY2:
            return self.poly2.copy(), self.error
        return self._trace(PolyOperation.UNION, self._start_index)

    def _run_intersect(self) -> tuple[PointRing, PolyUnionError]:
        if self.error is PolyUnionError.NO_INTERSECTIONS:
            return self._empty(), self.error
        if self.error is PolyUnionError.POLY1_INSIDE_POLY2:
            return self.poly1.copy(), self.error

        start = self._first_edge(True, (EdgeSide.INSIDE, EdgeSide.SHARED))
        if start < 0:
            # poly1 only touches poly2 from outside, or poly2 lies inside poly1
            inside = (EdgeSide.INSIDE, EdgeSide.SHARED)
            if all(self.edge_side(False, i) in inside for i in range(len(self.poly2))):
                return self.poly2.copy(), PolyUnionError.NONE
            return self._empty(), PolyUnionError.NONE
        return self._trace(PolyOperation.INTERSECT, start)

    def _run_subtract(self) -> tuple[PointRing, PolyUnionError]:
        if self.error is PolyUnionError.NO_INTERSECTIONS:
            return self._empty(), self.error
        if self.error is PolyUnionError.POLY1_INSIDE_POLY2:
            return self._empty(), self.error
        return self._trace(PolyOperation.SUBTRACT, self._start_index)

    def _trace(self, operation: PolyOperation, start_index: int) -> tuple[PointRing, PolyUnionError]:
        """Walk the boundaries from a vertex of poly1 until it comes around again.

        Subtract reverses direction on every hop, so it walks poly1 forward
        and poly2 backward. The result can never legitimately hold more
        points than both rings together; exceeding that aborts the walk.
        """
        reverse_on_hop = operation is PolyOperation.SUBTRACT
        state = TraceState.POLY1_FORWARD
        ring = self.ring(state.on_poly1)
        index = start_index
        start_point = ring[index]
        points = [start_point]
        limit = len(self.poly1) + len(self.poly2)

        while True:
            index = ring.next_index(index) if state.forward else ring.previous_index(index)
            point = ring[index]
            if point.equals(start_point, self.epsilon):
                break

            points.append(point)
            if len(points) > limit:
                logger.debug(
                    "Boolean %s trace exceeded %d points, aborting", operation.name, limit
                )
                return self._empty(), PolyUnionError.INFINITE_LOOP

            partner = self.matching_index(state.on_poly1, index)
            if partner is None:
                continue

            candidate = state.hop(reverse_on_hop)
            current_side = self._outgoing_side(state, index)
            candidate_side = self._outgoing_side(candidate, partner)
            if should_hop(operation, state, current_side, candidate, candidate_side):
                state = candidate
                ring = self.ring(state.on_poly1)
                index = partner

        return PointRing(points, tolerance=self.tolerance), PolyUnionError.NONE


class BooleanOpEngine:
    """Union, intersection and subtraction of simple rings.

    Results are anti-clockwise. Rings whose boundaries never touch report
    NO_INTERSECTIONS with an empty result. When the first ring lies inside
    the second, POLY1_INSIDE_POLY2 is reported with a fallback result:
    the second ring for union, the first ring for intersect and an empty
    ring for subtract.

    Example:
        engine = BooleanOpEngine()
        ring, error = engine.union(square_a, square_b)
    """

    def __init__(self, tolerance: ToleranceConfig | None = None) -> None:
        self._tolerance = tolerance if tolerance is not None else get_default_settings().tolerance

    def union(self, poly1: PointRing, poly2: PointRing) -> OperationResult:
        """Combined area of both rings."""
        return self._single(PolyOperation.UNION, poly1, poly2)

    def intersect(self, poly1: PointRing, poly2: PointRing) -> OperationResult:
        """Area common to both rings."""
        return self._single(PolyOperation.INTERSECT, poly1, poly2)

    def subtract(self, poly1: PointRing, poly2: PointRing) -> OperationResult:
        """Area of poly1 not covered by poly2."""
        return self._single(PolyOperation.SUBTRACT, poly1, poly2)

    def operate(
        self, operations: PolyOperation, poly1: PointRing, poly2: PointRing
    ) -> OperationContext:
        """Run several operations on one shared context.

        Args:
            operations: Combination of UNION, INTERSECT and SUBTRACT
            poly1: First operand
            poly2: Second operand

        Returns:
            The context, holding one output ring and outcome per operation
        """
        context = OperationContext(self._tolerance)
        context.init(poly1, poly2)
        for operation in (PolyOperation.UNION, PolyOperation.INTERSECT, PolyOperation.SUBTRACT):
            if operation in operations:
                context.run(operation)
        return context

    def _single(
        self, operation: PolyOperation, poly1: PointRing, poly2: PointRing
    ) -> OperationResult:
        return self.operate(operation, poly1, poly2).result(operation)
