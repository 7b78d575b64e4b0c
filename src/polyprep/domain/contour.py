"""Hole-aware ring.

A Contour is a PointRing that owns a tree of child holes. Polarity
alternates with depth: the holes of a hole are solid again. Parent links
are back-references only; ownership flows from parent to child.
"""

import random
from collections.abc import Iterable
from typing import Any

from polyprep.config import ToleranceConfig
from polyprep.domain.constraint import ConstraintSet, TriangulationConstraint
from polyprep.domain.point import Point
from polyprep.domain.primitives import point_in_polygon
from polyprep.domain.ring import PointRing, WindingOrder


class Contour(PointRing):
    """A ring with nested hole contours.

    Example:
        outer = Contour([Point(0, 0), Point(10, 0), Point(10, 10), Point(0, 10)])
        outer.add_hole(Contour([Point(2, 2), Point(4, 2), Point(4, 4)]))
        outer.initialize_holes(ConstraintSet())
    """

    def __init__(
        self,
        points: Iterable[Point] | None = None,
        winding_order: WindingOrder = WindingOrder.UNKNOWN,
        parent: "Contour | None" = None,
        tolerance: ToleranceConfig | None = None,
    ) -> None:
        if tolerance is None and isinstance(points, PointRing):
            tolerance = points.tolerance
        super().__init__(points, winding_order, tolerance)
        self._holes: list[Contour] = []
        self.parent = parent

    @property
    def holes(self) -> list["Contour"]:
        """Direct child holes."""
        return list(self._holes)

    @property
    def num_holes(self) -> int:
        """Number of direct child holes."""
        return len(self._holes)

    def add_hole(self, hole: "Contour") -> None:
        """Attach a hole without any validity checks.

        initialize_holes resolves duplicates and overlaps afterwards.
        """
        hole.parent = self
        self._holes.append(hole)

    def remove_hole(self, hole: "Contour") -> bool:
        """Detach a direct hole (matched by identity)."""
        for i, candidate in enumerate(self._holes):
            if candidate is hole:
                del self._holes[i]
                hole.parent = None
                return True
        return False

    def set_holes(self, holes: list["Contour"]) -> None:
        """Replace the direct holes, re-parenting each one."""
        self._holes = []
        for hole in holes:
            self.add_hole(hole)

    def count_holes(self, parent_is_hole: bool = False) -> int:
        """Count contours in this subtree that are not holes of a hole's parent.

        Each level contributes 1 when it is examined with parent_is_hole
        False, and the flag alternates on the way down.
        """
        own = 0 if parent_is_hole else 1
        return own + sum(hole.count_holes(not parent_is_hole) for hole in self._holes)

    def get_actual_holes(
        self,
        parent_is_hole: bool = False,
        holes: "list[Contour] | None" = None,
    ) -> list["Contour"]:
        """Collect every contour in the tree that bounds empty space.

        Args:
            parent_is_hole: Whether this contour itself is a hole
            holes: Accumulator for the recursion

        Returns:
            Hole contours at odd depth below the starting contour
        """
        if holes is None:
            holes = []
        if parent_is_hole:
            holes.append(self)
        for hole in self._holes:
            hole.get_actual_holes(not parent_is_hole, holes)
        return holes

    def iter_tree(self, depth: int = 0) -> "list[tuple[Contour, int]]":
        """Flatten the tree into (contour, depth) pairs, parents first."""
        result: list[tuple[Contour, int]] = [(self, depth)]
        for hole in self._holes:
            result.extend(hole.iter_tree(depth + 1))
        return result

    def is_point_inside_contour(self, point: Point) -> bool:
        """Check if a point is in the solid region (inside, but not in a hole)."""
        if point_in_polygon(point, self._points):
            return all(not hole.is_point_inside_contour(point) for hole in self._holes)
        return False

    def find_point_in_contour(
        self, max_attempts: int = 1000, seed: int | None = None
    ) -> Point | None:
        """Find a point in the solid region of the contour.

        Tries the centroid first, then samples the bounding box.

        Args:
            max_attempts: Number of random samples before giving up
            seed: Seed for the sampler, for reproducible results

        Returns:
            A point inside the contour, or None if none was found
        """
        if len(self._points) < 3:
            return None

        candidate = self.centroid()
        if self.is_point_inside_contour(candidate):
            return candidate

        rng = random.Random(seed)
        bounds = self.bounds
        for _ in range(max_attempts):
            candidate = Point(
                rng.uniform(bounds.min_x, bounds.max_x),
                rng.uniform(bounds.min_y, bounds.max_y),
            )
            if self.is_point_inside_contour(candidate):
                return candidate
        return None

    def emit_constraints(self, constraints: ConstraintSet) -> int:
        """Register every boundary edge as a constraint.

        Existing constraints with the same edge key are reused, and this
        contour's vertices are rewritten to the canonical point instances so
        shared vertices are the same object across contours.

        Args:
            constraints: Shared constraint set

        Returns:
            Number of constraints newly added
        """
        added = 0
        n = len(self._points)
        for i in range(n):
            j = self.next_index(i)
            p_i = self._points[i]
            p_j = self._points[j]
            code = constraints.code_for(p_i, p_j)
            tc = constraints.try_get_constraint(code)
            if tc is None:
                tc = constraints.add_constraint(
                    TriangulationConstraint.create(p_i, p_j, constraints.precision)
                )
                added += 1

            precision = constraints.precision
            for canonical in (tc.p, tc.q):
                key = canonical.vertex_code(precision)
                if p_i.vertex_code(precision) == key:
                    self._points[i] = canonical
                elif p_j.vertex_code(precision) == key:
                    self._points[j] = canonical
        return added

    def initialize_holes(self, constraints: ConstraintSet) -> None:
        """Resolve the hole tree and emit hole constraints.

        Removes duplicate holes, nests contained holes, merges overlapping
        holes, registers the boundary edges of surviving holes, then recurses
        into each hole.

        Args:
            constraints: Shared constraint set

        Raises:
            HoleResolutionError: If overlapping holes cannot be merged
        """
        from polyprep.core.holes import HoleResolver

        HoleResolver(self.tolerance).initialize_holes(self, constraints)

    def copy(self) -> "Contour":
        """Copy of the ring points; holes are not copied."""
        contour = Contour(tolerance=self.tolerance)
        contour._points = list(self._points)
        contour._bounds = self._bounds
        contour._epsilon = self._epsilon
        contour._winding_order = self._winding_order
        return contour

    def to_dict(self) -> dict[str, Any]:
        """Serialize the contour and its hole tree."""
        data = super().to_dict()
        data["holes"] = [hole.to_dict() for hole in self._holes]
        return data

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], tolerance: ToleranceConfig | None = None
    ) -> "Contour":
        """Deserialize a contour and its hole tree."""
        contour = cls(
            [Point.from_dict(p) for p in data["points"]],
            WindingOrder(data.get("winding_order", WindingOrder.UNKNOWN.value)),
            tolerance=tolerance,
        )
        for hole_data in data.get("holes", []):
            contour.add_hole(cls.from_dict(hole_data, tolerance))
        return contour
