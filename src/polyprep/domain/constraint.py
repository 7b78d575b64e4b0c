"""Triangulation constraint edges.

A constraint edge is a boundary segment the downstream triangulator must
keep intact. Constraints are keyed by an order-independent edge code, and
the set canonicalizes endpoint instances so that adjacent contours end up
sharing the very same Point objects at common vertices.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from polyprep.domain.point import Point

VertexCode = tuple[float, float]
ConstraintCode = tuple[VertexCode, VertexCode]


def constraint_code(p: Point, q: Point, precision: int = 9) -> ConstraintCode:
    """Order-independent key of the edge between two points."""
    a = p.vertex_code(precision)
    b = q.vertex_code(precision)
    return (a, b) if a <= b else (b, a)


@dataclass(frozen=True, slots=True)
class TriangulationConstraint:
    """An edge the triangulator must preserve.

    Endpoints are ordered so that p is the lower point (smaller y, then
    smaller x); q is the upper one.

    Attributes:
        p: Lower endpoint
        q: Upper endpoint
        code: Order-independent edge key
    """

    p: Point
    q: Point
    code: ConstraintCode = field(compare=False)

    @classmethod
    def create(cls, p1: Point, p2: Point, precision: int = 9) -> "TriangulationConstraint":
        """Build a constraint, ordering the endpoints.

        Args:
            p1: One endpoint
            p2: Other endpoint
            precision: Decimal digits used for the edge key

        Returns:
            TriangulationConstraint instance
        """
        if (p1.y, p1.x) > (p2.y, p2.x):
            p1, p2 = p2, p1
        return cls(p1, p2, constraint_code(p1, p2, precision))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"p": self.p.to_dict(), "q": self.q.to_dict()}


class ConstraintSet:
    """Shared registry of constraint edges and their canonical points.

    Example:
        cps = ConstraintSet()
        tc = cps.add_constraint(TriangulationConstraint.create(a, b))
        cps.try_get_constraint(tc.code) is tc  # True
    """

    def __init__(self, precision: int = 9) -> None:
        self._precision = precision
        self._constraints: dict[ConstraintCode, TriangulationConstraint] = {}
        self._points: dict[VertexCode, Point] = {}

    @property
    def precision(self) -> int:
        return self._precision

    def __len__(self) -> int:
        return len(self._constraints)

    def __iter__(self) -> Iterator[TriangulationConstraint]:
        return iter(self._constraints.values())

    def __contains__(self, code: object) -> bool:
        return code in self._constraints

    @property
    def points(self) -> list[Point]:
        """Canonical endpoint instances in registration order."""
        return list(self._points.values())

    def code_for(self, p: Point, q: Point) -> ConstraintCode:
        """Edge key for two points at this set's precision."""
        return constraint_code(p, q, self._precision)

    def canonical_point(self, point: Point) -> Point:
        """Return the registered instance at this position, registering it if new."""
        return self._points.setdefault(point.vertex_code(self._precision), point)

    def try_get_constraint(self, code: ConstraintCode) -> TriangulationConstraint | None:
        """Look up a constraint by edge key."""
        return self._constraints.get(code)

    def add_constraint(self, constraint: TriangulationConstraint) -> TriangulationConstraint:
        """Register a constraint.

        Endpoints are replaced by the canonical instances already known at
        the same positions. An existing constraint with the same key wins.

        Args:
            constraint: Constraint to register

        Returns:
            The constraint stored in the set
        """
        existing = self._constraints.get(constraint.code)
        if existing is not None:
            return existing
        stored = TriangulationConstraint(
            self.canonical_point(constraint.p),
            self.canonical_point(constraint.q),
            constraint.code,
        )
        self._constraints[stored.code] = stored
        return stored

    def to_list(self) -> list[dict[str, Any]]:
        """Serialize all constraints."""
        return [c.to_dict() for c in self._constraints.values()]

    @classmethod
    def from_list(cls, data: list[dict[str, Any]], precision: int = 9) -> "ConstraintSet":
        """Rebuild a set from serialized constraints."""
        cps = cls(precision)
        for item in data:
            cps.add_constraint(
                TriangulationConstraint.create(
                    Point.from_dict(item["p"]), Point.from_dict(item["q"]), precision
                )
            )
        return cps
