"""Domain models for polyprep.

This module contains the value and container types the geometry core works
on. Value types are immutable (frozen dataclasses); rings are mutable
containers that keep their derived data in sync.

Key classes:
- Point: A 2D point or vector
- Rect: Axis-aligned bounding box
- PointRing: Validated, winding-aware ring of points
- Contour: A ring owning a tree of holes
- TriangulationConstraint / ConstraintSet: Constraint edges for the triangulator
- Shape: Raw polygon input
"""

from polyprep.domain.constraint import ConstraintSet, TriangulationConstraint, constraint_code
from polyprep.domain.contour import Contour
from polyprep.domain.point import Point
from polyprep.domain.rect import Rect
from polyprep.domain.ring import (
    DEFAULT_WINDING_ORDER,
    PointRing,
    PolygonError,
    WindingOrder,
    describe_polygon_error,
)
from polyprep.domain.shape import Shape

__all__: list[str] = [
    # Enums
    "PolygonError",
    "WindingOrder",
    "DEFAULT_WINDING_ORDER",
    # Core types
    "Point",
    "Rect",
    "PointRing",
    "Contour",
    "Shape",
    "TriangulationConstraint",
    "ConstraintSet",
    # Functions
    "constraint_code",
    "describe_polygon_error",
]
