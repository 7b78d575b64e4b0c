"""Pydantic models for polygon JSON documents.

Input documents list raw shapes:

    {"shapes": [{"name": "a", "outer": [[x, y], ...], "holes": [[[x, y], ...]]}]}

Output documents list prepared shapes with their contour trees and
constraint edges.
"""

from pydantic import BaseModel, Field

Coordinate = tuple[float, float]


class ShapeModel(BaseModel):
    """One raw input shape."""

    name: str = Field(min_length=1)
    outer: list[Coordinate]
    holes: list[list[Coordinate]] = Field(default_factory=list)


class PolygonDocument(BaseModel):
    """Input document: a list of shapes."""

    shapes: list[ShapeModel] = Field(default_factory=list)


class ContourModel(BaseModel):
    """A contour and its nested holes."""

    points: list[Coordinate]
    winding_order: str
    holes: list["ContourModel"] = Field(default_factory=list)


class RingIssueModel(BaseModel):
    """A validation problem on one input ring."""

    ring: str
    errors: list[str]
    skipped: bool


class PreparedShapeModel(BaseModel):
    """One preprocessed shape."""

    name: str
    contours: list[ContourModel]
    constraints: list[tuple[Coordinate, Coordinate]]
    issues: list[RingIssueModel] = Field(default_factory=list)
    split_count: int = 0
    holes_merged: int = 0


class PreparedDocument(BaseModel):
    """Output document: a list of prepared shapes."""

    version: str
    shapes: list[PreparedShapeModel] = Field(default_factory=list)
