"""Core processing algorithms for polyprep.

This module contains the core algorithms for:

- Geometry operations (orientation, segment contacts, point-in-polygon,
  polygon sameness and containment)
- Boolean operations on simple rings (union, intersect, subtract)
- Self-intersection splitting
- Hole tree resolution
- The preprocessing pipeline

Key classes:
- BooleanOpEngine: Union / intersect / subtract by boundary tracing
- OperationContext: Working state of one boolean call
- SelfIntersectionSplitter: Decomposes self-intersecting rings
- HoleResolver: Dedups, nests and merges holes, emits their constraints
- PolygonPreprocessor: End-to-end pipeline for shapes
"""

from polyprep.core.boolean import (
    BooleanOpEngine,
    EdgeIntersectInfo,
    EdgeSide,
    OperationContext,
    OperationResult,
    PolyOperation,
    PolyUnionError,
    TraceState,
)
from polyprep.core.geometry import (
    clip_polygon_to_polygon,
    point_in_polygon,
    polygon_contains_polygon,
    polygons_are_same,
    polygons_intersect,
    segment_contacts,
    signed_area,
)
from polyprep.core.holes import HoleResolver
from polyprep.core.processor import (
    PolygonPreprocessor,
    PreparedPolygon,
    RingIssue,
    polygon_error_names,
    process_polygon,
)
from polyprep.core.splitter import SelfIntersectionSplitter, SplitGraph

__all__ = [
    # Boolean operations
    "BooleanOpEngine",
    "EdgeIntersectInfo",
    "EdgeSide",
    "OperationContext",
    "OperationResult",
    "PolyOperation",
    "PolyUnionError",
    "TraceState",
    # Hole resolution
    "HoleResolver",
    # Pipeline
    "PolygonPreprocessor",
    "PreparedPolygon",
    "RingIssue",
    "polygon_error_names",
    "process_polygon",
    # Splitting
    "SelfIntersectionSplitter",
    "SplitGraph",
    # Geometry functions
    "clip_polygon_to_polygon",
    "point_in_polygon",
    "polygon_contains_polygon",
    "polygons_are_same",
    "polygons_intersect",
    "segment_contacts",
    "signed_area",
]
