"""Raw input shape: one outer ring plus holes."""

from dataclasses import dataclass, field
from typing import Any

from polyprep.domain.point import Point


@dataclass
class Shape:
    """Unprocessed polygon input.

    Attributes:
        name: Identifier used in logs and output
        outer: Outer boundary points (any winding, may self-intersect)
        holes: Hole boundaries (any winding, may overlap each other)
    """

    name: str
    outer: list[Point]
    holes: list[list[Point]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "name": self.name,
            "outer": [p.to_dict() for p in self.outer],
            "holes": [[p.to_dict() for p in hole] for hole in self.holes],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Shape":
        """Deserialize from dictionary."""
        return cls(
            name=data["name"],
            outer=[Point.from_dict(p) for p in data["outer"]],
            holes=[[Point.from_dict(p) for p in hole] for hole in data.get("holes", [])],
        )
