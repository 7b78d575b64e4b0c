"""2D point value type.

Points are immutable values. Rings hold references to them, and several
rings may hold the same instance when intersection points or constraint
endpoints are canonicalized.
"""

import math
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Point:
    """A point (or vector) in 2D space.

    Immutable and hashable for use in sets/dicts.

    Attributes:
        x: X coordinate
        y: Y coordinate
    """

    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> "Point":
        return Point(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> "Point":
        return Point(-self.x, -self.y)

    def dot(self, other: "Point") -> float:
        """Dot product with another vector."""
        return self.x * other.x + self.y * other.y

    def cross(self, other: "Point") -> float:
        """Z component of the cross product with another vector."""
        return self.x * other.y - self.y * other.x

    def magnitude(self) -> float:
        """Length of the vector."""
        return math.hypot(self.x, self.y)

    def magnitude_squared(self) -> float:
        """Squared length of the vector."""
        return self.x * self.x + self.y * self.y

    def normalized(self) -> "Point":
        """Unit vector in the same direction.

        Returns the zero vector unchanged.
        """
        length = self.magnitude()
        if length == 0.0:
            return self
        return Point(self.x / length, self.y / length)

    def perpendicular(self) -> "Point":
        """Vector rotated 90 degrees clockwise (the right-hand normal)."""
        return Point(self.y, -self.x)

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def equals(self, other: "Point", epsilon: float) -> bool:
        """Check equality with a per-axis tolerance.

        Args:
            other: Point to compare against
            epsilon: Maximum allowed difference on each axis

        Returns:
            True if both coordinates are within epsilon
        """
        return abs(self.x - other.x) <= epsilon and abs(self.y - other.y) <= epsilon

    def vertex_code(self, precision: int = 9) -> tuple[float, float]:
        """Key identifying this vertex position.

        Coordinates are rounded so that points produced by different
        computations for the same location map to the same key.

        Args:
            precision: Number of decimal digits kept

        Returns:
            Hashable key for dictionaries of vertices
        """
        return (round(self.x, precision) + 0.0, round(self.y, precision) + 0.0)

    def to_tuple(self) -> tuple[float, float]:
        """Convert to simple (x, y) tuple."""
        return (self.x, self.y)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC.

        Returns:
            Dictionary with x and y fields
        """
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Point":
        """Deserialize from dictionary.

        Args:
            data: Dictionary with x and y fields

        Returns:
            Point instance
        """
        return cls(x=float(data["x"]), y=float(data["y"]))
