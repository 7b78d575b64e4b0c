"""Converters between document models and domain models.

This module handles the conversion between the pydantic document models
and our domain models (Shape, Contour, PreparedPolygon).
"""

from polyprep.core.processor import PreparedPolygon
from polyprep.domain import Contour, Point, PointRing, Shape
from polyprep.io.models import (
    ContourModel,
    Coordinate,
    PreparedShapeModel,
    RingIssueModel,
    ShapeModel,
)


def _to_points(coordinates: list[Coordinate]) -> list[Point]:
    return [Point(x, y) for x, y in coordinates]


def _to_coordinates(points: list[Point] | PointRing) -> list[Coordinate]:
    return [point.to_tuple() for point in points]


def model_to_shape(model: ShapeModel) -> Shape:
    """Convert a document shape to a domain Shape."""
    return Shape(
        name=model.name,
        outer=_to_points(model.outer),
        holes=[_to_points(hole) for hole in model.holes],
    )


def shape_to_model(shape: Shape) -> ShapeModel:
    """Convert a domain Shape to a document shape."""
    return ShapeModel(
        name=shape.name,
        outer=_to_coordinates(shape.outer),
        holes=[_to_coordinates(hole) for hole in shape.holes],
    )


def contour_to_model(contour: Contour) -> ContourModel:
    """Convert a contour and its hole tree."""
    return ContourModel(
        points=_to_coordinates(contour),
        winding_order=contour.winding_order.value,
        holes=[contour_to_model(hole) for hole in contour.holes],
    )


def prepared_to_model(prepared: PreparedPolygon) -> PreparedShapeModel:
    """Convert a pipeline result to its document form.

    Constraint edges are written as (lower, upper) coordinate pairs.
    """
    return PreparedShapeModel(
        name=prepared.name,
        contours=[contour_to_model(contour) for contour in prepared.contours],
        constraints=[(c.p.to_tuple(), c.q.to_tuple()) for c in prepared.constraints],
        issues=[RingIssueModel(**issue.to_dict()) for issue in prepared.issues],
        split_count=prepared.split_count,
        holes_merged=prepared.holes_merged,
    )
