"""Validated, winding-aware point ring.

A ring is an ordered, implicitly closed sequence of points. It keeps its
bounding box and a scale-relative epsilon in sync with every mutation, and
tracks a winding order that is preserved by reversing the point order
rather than drifting when a conflicting order is requested.
"""

import math
from collections.abc import Iterable, Iterator
from enum import Enum, Flag, auto
from typing import Any, overload

from polyprep.config import ToleranceConfig, get_default_settings
from polyprep.domain.point import Point
from polyprep.domain.primitives import is_collinear, segments_intersect, signed_area
from polyprep.domain.rect import Rect
from polyprep.exceptions import RingError


class WindingOrder(Enum):
    """Rotational direction of a ring's vertices."""

    CLOCKWISE = "clockwise"
    ANTI_CLOCKWISE = "anti_clockwise"
    UNKNOWN = "unknown"

    def reversed(self) -> "WindingOrder":
        """Return the opposite order (UNKNOWN stays UNKNOWN)."""
        if self is WindingOrder.CLOCKWISE:
            return WindingOrder.ANTI_CLOCKWISE
        if self is WindingOrder.ANTI_CLOCKWISE:
            return WindingOrder.CLOCKWISE
        return WindingOrder.UNKNOWN


# Winding every boolean operation and hole merge normalizes to.
DEFAULT_WINDING_ORDER = WindingOrder.ANTI_CLOCKWISE


class PolygonError(Flag):
    """Validation failures reported by PointRing.check_polygon."""

    NONE = 0
    NOT_ENOUGH_VERTICES = auto()
    NOT_CONVEX = auto()
    NOT_SIMPLE = auto()
    AREA_TOO_SMALL = auto()
    SIDES_TOO_CLOSE_TO_PARALLEL = auto()
    TOO_THIN = auto()
    DEGENERATE = auto()
    UNKNOWN = auto()


_ERROR_MESSAGES: dict[PolygonError, str] = {
    PolygonError.NOT_ENOUGH_VERTICES: "NotEnoughVertices: must have between 3 and {max_vertices} vertices.",
    PolygonError.NOT_CONVEX: "NotConvex: Polygon is not convex.",
    PolygonError.NOT_SIMPLE: "NotSimple: Polygon is not simple (i.e. it intersects itself).",
    PolygonError.AREA_TOO_SMALL: "AreaTooSmall: Polygon's area is too small.",
    PolygonError.SIDES_TOO_CLOSE_TO_PARALLEL: (
        "SidesTooCloseToParallel: Polygon's sides are too close to parallel."
    ),
    PolygonError.TOO_THIN: "TooThin: Polygon is too thin.",
    PolygonError.DEGENERATE: (
        "Degenerate: Polygon is degenerate (contains collinear points or "
        "duplicate coincident points)."
    ),
    PolygonError.UNKNOWN: "Unknown: Unknown polygon error.",
}


def describe_polygon_error(error: PolygonError, max_vertices: int | None = None) -> str:
    """Render validation flags as human readable text, one line per flag.

    Args:
        error: Flags returned by check_polygon
        max_vertices: Vertex limit quoted in the NotEnoughVertices message

    Returns:
        Multi-line description, or "No errors." for PolygonError.NONE
    """
    if not error:
        return "No errors."
    if max_vertices is None:
        max_vertices = get_default_settings().tolerance.max_polygon_vertices
    lines = [
        message.format(max_vertices=max_vertices)
        for flag, message in _ERROR_MESSAGES.items()
        if flag in error
    ]
    return "\n".join(lines)


class PointRing:
    """Ordered, mutable ring of 2D points.

    Insertion order is boundary order; the ring is implicitly closed (the
    last point connects back to the first). Bounding box and epsilon are
    recomputed after every mutation. Epsilon is
    max(min(width, height) * epsilon_scale, global_min_epsilon), so all
    tolerance checks scale with the ring.

    Example:
        ring = PointRing([Point(0, 0), Point(4, 0), Point(4, 4), Point(0, 4)])
        ring.winding_order  # WindingOrder.ANTI_CLOCKWISE
        ring.winding_order = WindingOrder.CLOCKWISE  # reverses the points
    """

    def __init__(
        self,
        points: Iterable[Point] | None = None,
        winding_order: WindingOrder = WindingOrder.UNKNOWN,
        tolerance: ToleranceConfig | None = None,
    ) -> None:
        """Create a ring.

        Args:
            points: Initial points in boundary order
            winding_order: Winding the initial points are known to have, if any
            tolerance: Tolerance settings (defaults to the global settings)
        """
        self._tolerance = tolerance if tolerance is not None else get_default_settings().tolerance
        self._points: list[Point] = []
        self._bounds = Rect()
        self._winding_order = WindingOrder.UNKNOWN
        self._epsilon = self._tolerance.global_min_epsilon
        if points is not None:
            self.add_range(points, winding_order)

    # ------------------------------------------------------------------
    # Sequence protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._points)

    @overload
    def __getitem__(self, index: int) -> Point: ...

    @overload
    def __getitem__(self, index: slice) -> list[Point]: ...

    def __getitem__(self, index: int | slice) -> Point | list[Point]:
        return self._points[index]

    def __setitem__(self, index: int, point: Point) -> None:
        self._points[index] = point
        self._recalculate_bounds()

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)

    def __contains__(self, point: object) -> bool:
        return point in self._points

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({len(self._points)} points, "
            f"{self._winding_order.value}, epsilon={self._epsilon:g})"
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def points(self) -> list[Point]:
        """Copy of the points in boundary order."""
        return list(self._points)

    @property
    def bounds(self) -> Rect:
        return self._bounds

    @property
    def epsilon(self) -> float:
        """Scale-relative tolerance for this ring."""
        return self._epsilon

    @property
    def tolerance(self) -> ToleranceConfig:
        return self._tolerance

    @property
    def winding_order(self) -> WindingOrder:
        return self._winding_order

    @winding_order.setter
    def winding_order(self, value: WindingOrder) -> None:
        """Set the winding, reversing the points if it differs from the held order.

        A ring without area has no order to reverse, so only the tag changes.
        """
        if self._winding_order is WindingOrder.UNKNOWN:
            self._winding_order = self.calculate_winding_order()
        if (
            self._winding_order is not WindingOrder.UNKNOWN
            and value is not WindingOrder.UNKNOWN
            and value is not self._winding_order
        ):
            self._points.reverse()
        self._winding_order = value

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, point: Point) -> None:
        """Append a point."""
        self.insert(len(self._points), point)

    def insert(self, index: int, point: Point) -> None:
        """Insert a point before the given index."""
        self._points.insert(index, point)
        self._bounds = self._bounds.add_point(point)
        if self._winding_order is WindingOrder.UNKNOWN:
            self._winding_order = self.calculate_winding_order()
        self._epsilon = self.calculate_epsilon()

    def add_range(
        self,
        points: Iterable[Point],
        winding_order: WindingOrder = WindingOrder.UNKNOWN,
    ) -> None:
        """Append several points.

        When both this ring and the incoming points have a known winding and
        the two differ, the incoming points are read in reverse so the
        held winding is preserved.

        Args:
            points: Points to append (a PointRing contributes its own winding)
            winding_order: Known winding of the incoming points
        """
        if isinstance(points, PointRing) and winding_order is WindingOrder.UNKNOWN:
            winding_order = points.winding_order
        incoming = list(points)

        if self._winding_order is WindingOrder.UNKNOWN and not self._points:
            self._winding_order = winding_order
        reverse_read = (
            self._winding_order is not WindingOrder.UNKNOWN
            and winding_order is not WindingOrder.UNKNOWN
            and self._winding_order is not winding_order
        )
        if reverse_read:
            incoming.reverse()

        for point in incoming:
            self._points.append(point)
            self._bounds = self._bounds.add_point(point)

        if self._winding_order is WindingOrder.UNKNOWN:
            self._winding_order = self.calculate_winding_order()
        self._epsilon = self.calculate_epsilon()

    def remove(self, point: Point) -> bool:
        """Remove the first occurrence of a point.

        Returns:
            True if the point was found and removed
        """
        try:
            self._points.remove(point)
        except ValueError:
            return False
        self._recalculate_bounds()
        return True

    def remove_at(self, index: int) -> None:
        """Remove the point at an index.

        Raises:
            IndexError: If the index is out of range
        """
        if index < 0 or index >= len(self._points):
            raise IndexError(f"Ring index {index} out of range for {len(self._points)} points")
        del self._points[index]
        self._recalculate_bounds()

    def remove_range(self, start: int, count: int) -> None:
        """Remove count points starting at start."""
        if start < 0 or start >= len(self._points) or count <= 0:
            return
        del self._points[start : start + count]
        self._recalculate_bounds()

    def clear(self) -> None:
        """Remove all points and reset winding and epsilon."""
        self._points.clear()
        self._bounds = Rect()
        self._epsilon = self._tolerance.global_min_epsilon
        self._winding_order = WindingOrder.UNKNOWN

    def copy(self) -> "PointRing":
        """Shallow copy sharing the point instances."""
        ring = PointRing(tolerance=self._tolerance)
        ring._points = list(self._points)
        ring._bounds = self._bounds
        ring._epsilon = self._epsilon
        ring._winding_order = self._winding_order
        return ring

    def _recalculate_bounds(self) -> None:
        self._bounds = Rect.from_points(self._points)
        self._epsilon = self.calculate_epsilon()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def index_of(self, point: Point, epsilon: float | None = None) -> int:
        """Find the index of a point.

        Args:
            point: Point to look for
            epsilon: Match within this tolerance instead of exact equality

        Returns:
            Index of the first match, or -1 if absent
        """
        for i, candidate in enumerate(self._points):
            if candidate is point:
                return i
            if epsilon is None:
                if candidate == point:
                    return i
            elif candidate.equals(point, epsilon):
                return i
        return -1

    def next_index(self, index: int) -> int:
        """Index after the given one, wrapping at the end."""
        if index == len(self._points) - 1:
            return 0
        return index + 1

    def previous_index(self, index: int) -> int:
        """Index before the given one, wrapping at the start."""
        if index == 0:
            return len(self._points) - 1
        return index - 1

    def calculate_epsilon(self) -> float:
        """Derive the ring tolerance from the bounding box."""
        scaled = min(self._bounds.width, self._bounds.height) * self._tolerance.epsilon_scale
        return max(scaled, self._tolerance.global_min_epsilon)

    def calculate_winding_order(self) -> WindingOrder:
        """Winding implied by the sign of the shoelace area."""
        area = self.signed_area()
        if area < 0.0:
            return WindingOrder.CLOCKWISE
        if area > 0.0:
            return WindingOrder.ANTI_CLOCKWISE
        return WindingOrder.UNKNOWN

    def signed_area(self) -> float:
        """Shoelace area; positive for anti-clockwise point order."""
        return signed_area(self._points)

    def area(self) -> float:
        """Unsigned area."""
        return abs(self.signed_area())

    def edges(self) -> Iterator[tuple[Point, Point]]:
        """Iterate over (start, end) point pairs, including the closing edge."""
        n = len(self._points)
        for i in range(n):
            yield self._points[i], self._points[(i + 1) % n]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def is_degenerate(self) -> bool:
        """Check for coincident neighbours or three collinear consecutive vertices."""
        n = len(self._points)
        if n < 3:
            return False
        for k in range(n):
            j = self.previous_index(k)
            if self._points[j].equals(self._points[k], self._epsilon):
                return True
            i = self.previous_index(j)
            if is_collinear(self._points[i], self._points[j], self._points[k], self._epsilon):
                return True
        return False

    def is_convex(self) -> bool:
        """Check that every vertex turns the same way.

        Assumes the ring is simple.
        """
        n = len(self._points)
        is_positive = False
        for i in range(n):
            lower = self._points[self.previous_index(i)]
            middle = self._points[i]
            upper = self._points[self.next_index(i)]
            cross = (middle - lower).cross(upper - middle)
            new_is_positive = cross >= 0
            if i == 0:
                is_positive = new_is_positive
            elif is_positive != new_is_positive:
                return False
        return True

    def is_simple(self) -> bool:
        """Check that no two non-adjacent edges touch (O(n^2))."""
        n = len(self._points)
        for i in range(n):
            a_start = self._points[i]
            a_end = self._points[self.next_index(i)]
            for j in range(i + 2, n):
                if i == 0 and j == n - 1:
                    continue
                b_start = self._points[j]
                b_end = self._points[self.next_index(j)]
                if segments_intersect(a_start, a_end, b_start, b_end, self._epsilon):
                    return False
        return True

    def check_polygon(self, check_convexity: bool = False) -> PolygonError:
        """Run all validation checks.

        Args:
            check_convexity: Also report NOT_CONVEX

        Returns:
            Bit-set of every failed check, PolygonError.NONE if valid
        """
        error = PolygonError.NONE
        n = len(self._points)
        if n < 3 or n > self._tolerance.max_polygon_vertices:
            return PolygonError.NOT_ENOUGH_VERTICES

        if self.is_degenerate():
            error |= PolygonError.DEGENERATE
        if check_convexity and not self.is_convex():
            error |= PolygonError.NOT_CONVEX
        if not self.is_simple():
            error |= PolygonError.NOT_SIMPLE
        if self.area() < self._epsilon:
            error |= PolygonError.AREA_TOO_SMALL

        # Angle checks are meaningless for a self-crossing ring
        if PolygonError.NOT_SIMPLE not in error:
            normals = [
                (self._points[self.next_index(i)] - self._points[i]).perpendicular().normalized()
                for i in range(n)
            ]
            for i in range(n):
                cross = normals[self.previous_index(i)].cross(normals[i])
                cross = max(-1.0, min(1.0, cross))
                if abs(math.asin(cross)) <= self._tolerance.angular_slop:
                    error |= PolygonError.SIDES_TOO_CLOSE_TO_PARALLEL
                    break

        return error

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------

    def remove_duplicate_neighbor_points(self, epsilon: float = 0.0) -> int:
        """Drop points equal to their predecessor, including across the wrap.

        Args:
            epsilon: Tolerance for equality (0 = exact)

        Returns:
            Number of points removed
        """
        if len(self._points) < 2:
            return 0
        kept: list[Point] = []
        for point in self._points:
            if kept and kept[-1].equals(point, epsilon):
                continue
            kept.append(point)
        while len(kept) > 1 and kept[-1].equals(kept[0], epsilon):
            kept.pop()

        removed = len(self._points) - len(kept)
        if removed:
            self._points = kept
            self._recalculate_bounds()
        return removed

    def simplify(self, bias: float = 0.0) -> None:
        """Remove vertices that are too close to their predecessor or collinear.

        Passes repeat until nothing changes. The ring is never contracted
        below 3 vertices. Not safe on self-intersecting rings, where a
        crossing vertex can look collinear.

        Args:
            bias: Vertices within this distance of the previous vertex are joined
        """
        bias_squared = bias * bias
        changed = True
        while changed and len(self._points) > 3:
            changed = False
            current_index = 0
            while current_index < len(self._points) and len(self._points) > 3:
                prev = self._points[self.previous_index(current_index)]
                current = self._points[current_index]
                nxt = self._points[self.next_index(current_index)]

                if (prev - current).magnitude_squared() <= bias_squared or is_collinear(
                    prev, current, nxt, self._epsilon
                ):
                    self.remove_at(current_index)
                    changed = True
                    continue

                current_index += 1

    def merge_parallel_edges(self, tolerance: float | None = None) -> None:
        """Merge consecutive edges pointing in nearly the same direction.

        A vertex is removed when the unit directions of its two edges have a
        cross product below tolerance and a positive dot product.
        Coincident neighbours are merged as well. Triangles are left alone
        and the result never drops below 3 vertices.

        Args:
            tolerance: Cross-product threshold (defaults to linear_slop)
        """
        if tolerance is None:
            tolerance = self._tolerance.linear_slop
        n = len(self._points)
        if n <= 3:
            return

        merge = [False] * n
        remaining = n
        for i in range(n):
            lower = self._points[self.previous_index(i)]
            middle = self._points[i]
            upper = self._points[self.next_index(i)]
            d0 = middle - lower
            d1 = upper - middle
            norm0 = d0.magnitude()
            norm1 = d1.magnitude()

            if norm0 == 0.0 or norm1 == 0.0:
                if remaining > 3:
                    merge[i] = True
                    remaining -= 1
                continue

            d0 = d0 * (1.0 / norm0)
            d1 = d1 * (1.0 / norm1)
            if abs(d0.cross(d1)) < tolerance and d0.dot(d1) > 0 and remaining > 3:
                merge[i] = True
                remaining -= 1

        if remaining == n:
            return

        self._points = [point for i, point in enumerate(self._points) if not merge[i]]
        self._winding_order = self.calculate_winding_order()
        self._recalculate_bounds()

    # ------------------------------------------------------------------
    # Measures and transforms
    # ------------------------------------------------------------------

    def centroid(self) -> Point:
        """Area-weighted centroid via a triangle fan from the first vertex.

        Falls back to the vertex average when the ring has no area.

        Raises:
            RingError: If the ring is empty
        """
        n = len(self._points)
        if n == 0:
            raise RingError("Cannot compute the centroid of an empty ring")

        origin = self._points[0]
        area = 0.0
        cx = 0.0
        cy = 0.0
        for i in range(1, n - 1):
            p2 = self._points[i]
            p3 = self._points[i + 1]
            triangle_area = 0.5 * (p2 - origin).cross(p3 - origin)
            area += triangle_area
            cx += triangle_area * (origin.x + p2.x + p3.x) / 3.0
            cy += triangle_area * (origin.y + p2.y + p3.y) / 3.0

        if abs(area) <= self._tolerance.global_min_epsilon:
            return Point(
                sum(p.x for p in self._points) / n,
                sum(p.y for p in self._points) / n,
            )
        return Point(cx / area, cy / area)

    def translate(self, vector: Point) -> None:
        """Move every vertex by a vector."""
        self._points = [p + vector for p in self._points]
        self._recalculate_bounds()

    def scale(self, factor: Point | float) -> None:
        """Scale every vertex about the origin.

        Args:
            factor: Uniform factor, or per-axis factors as a Point
        """
        if isinstance(factor, Point):
            fx, fy = factor.x, factor.y
        else:
            fx = fy = float(factor)
        self._points = [Point(p.x * fx, p.y * fy) for p in self._points]
        if self._winding_order is not WindingOrder.UNKNOWN:
            self._winding_order = self.calculate_winding_order()
        self._recalculate_bounds()

    def rotate(self, radians: float) -> None:
        """Rotate every vertex about the origin."""
        cos_r = math.cos(radians)
        sin_r = math.sin(radians)
        self._points = [
            Point(p.x * cos_r - p.y * sin_r, p.x * sin_r + p.y * cos_r) for p in self._points
        ]
        self._recalculate_bounds()

    def project_to_axis(self, axis: Point) -> tuple[float, float]:
        """Project the ring onto an axis.

        Returns:
            (min, max) of the dot products of the vertices with the axis

        Raises:
            RingError: If the ring is empty
        """
        if not self._points:
            raise RingError("Cannot project an empty ring")
        products = [axis.dot(p) for p in self._points]
        return min(products), max(products)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "points": [p.to_dict() for p in self._points],
            "winding_order": self._winding_order.value,
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], tolerance: ToleranceConfig | None = None
    ) -> "PointRing":
        """Deserialize from dictionary."""
        return cls(
            [Point.from_dict(p) for p in data["points"]],
            WindingOrder(data.get("winding_order", WindingOrder.UNKNOWN.value)),
            tolerance=tolerance,
        )
