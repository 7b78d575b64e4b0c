"""Axis-aligned bounding rectangle."""

import math
from dataclasses import dataclass

from polyprep.domain.point import Point


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned bounding box.

    An empty rectangle has inverted infinite bounds, so adding the first
    point collapses it onto that point.
    """

    min_x: float = math.inf
    min_y: float = math.inf
    max_x: float = -math.inf
    max_y: float = -math.inf

    @classmethod
    def from_points(cls, points: "list[Point] | tuple[Point, ...]") -> "Rect":
        """Build the bounding box of a point sequence."""
        rect = cls()
        for point in points:
            rect = rect.add_point(point)
        return rect

    def add_point(self, point: Point) -> "Rect":
        """Return a rectangle grown to include the point."""
        return Rect(
            min(self.min_x, point.x),
            min(self.min_y, point.y),
            max(self.max_x, point.x),
            max(self.max_y, point.y),
        )

    @property
    def is_empty(self) -> bool:
        """True if no point has been added."""
        return self.min_x > self.max_x or self.min_y > self.max_y

    @property
    def width(self) -> float:
        if self.is_empty:
            return 0.0
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        if self.is_empty:
            return 0.0
        return self.max_y - self.min_y

    @property
    def center(self) -> Point:
        return Point((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    def intersects(self, other: "Rect") -> bool:
        """Check if two rectangles overlap or touch."""
        if self.is_empty or other.is_empty:
            return False
        return not (
            other.min_x > self.max_x
            or other.max_x < self.min_x
            or other.min_y > self.max_y
            or other.max_y < self.min_y
        )

    def contains_point(self, point: Point, epsilon: float = 0.0) -> bool:
        """Check if a point lies inside or on the rectangle."""
        return (
            self.min_x - epsilon <= point.x <= self.max_x + epsilon
            and self.min_y - epsilon <= point.y <= self.max_y + epsilon
        )
