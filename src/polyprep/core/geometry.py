"""Ring-level geometric operations.

This module provides polygon-versus-polygon utilities used by hole
resolution and the pipeline:
- Shape equality up to start-vertex rotation and traversal direction
- Boundary intersection and containment tests
- Convex clipping (Sutherland-Hodgman)

The point and segment predicates they are built on live in
polyprep.domain.primitives and are re-exported here.
"""

from polyprep.domain import Point, PointRing
from polyprep.domain.primitives import (
    Orientation,
    distance_to_segment,
    is_collinear,
    orient2d,
    point_in_polygon,
    point_in_polygon_angle,
    point_on_boundary,
    point_on_segment,
    segment_contacts,
    segments_intersect,
    signed_area,
    vector_angle,
)

__all__ = [
    "Orientation",
    "clip_polygon_to_polygon",
    "distance_to_segment",
    "is_collinear",
    "orient2d",
    "point_in_polygon",
    "point_in_polygon_angle",
    "point_on_boundary",
    "point_on_segment",
    "polygon_contains_polygon",
    "polygons_are_same",
    "polygons_intersect",
    "segment_contacts",
    "segments_intersect",
    "signed_area",
    "vector_angle",
]


def _shared_epsilon(ring1: PointRing, ring2: PointRing, epsilon: float | None) -> float:
    if epsilon is not None:
        return epsilon
    return min(ring1.epsilon, ring2.epsilon)


def polygons_are_same(ring1: PointRing, ring2: PointRing, epsilon: float | None = None) -> bool:
    """Check if two rings describe the same polygon.

    The rings may start at different vertices and may be listed in opposite
    directions; every vertex must match within epsilon.

    Args:
        ring1: First ring
        ring2: Second ring
        epsilon: Vertex tolerance (defaults to the smaller ring epsilon)

    Returns:
        True if the rings match vertex for vertex
    """
    n = len(ring1)
    if n != len(ring2) or n == 0:
        return False
    eps = _shared_epsilon(ring1, ring2, epsilon)

    start = ring2.index_of(ring1[0], eps)
    if start < 0:
        return False

    forward = all(ring1[i].equals(ring2[(start + i) % n], eps) for i in range(n))
    if forward:
        return True
    return all(ring1[i].equals(ring2[(start - i) % n], eps) for i in range(n))


def polygons_intersect(ring1: PointRing, ring2: PointRing, epsilon: float | None = None) -> bool:
    """Check if the boundaries of two rings touch or cross anywhere.

    Rings nested without touching do not intersect.
    """
    if not ring1.bounds.intersects(ring2.bounds):
        return False
    eps = _shared_epsilon(ring1, ring2, epsilon)
    for a_start, a_end in ring1.edges():
        for b_start, b_end in ring2.edges():
            if segments_intersect(a_start, a_end, b_start, b_end, eps):
                return True
    return False


def polygon_contains_polygon(
    outer: PointRing,
    inner: PointRing,
    epsilon: float | None = None,
    check_crossing: bool = True,
) -> bool:
    """Check if one ring lies entirely within another.

    Args:
        outer: Candidate container
        inner: Candidate contained ring
        epsilon: Boundary tolerance (defaults to the smaller ring epsilon)
        check_crossing: Also require that the boundaries never touch, which
            rejects rings that overlap while all their vertices are inside

    Returns:
        True if every vertex of inner is inside outer (and, when checked,
        the boundaries are disjoint)
    """
    if len(outer) < 3 or len(inner) < 3:
        return False
    if not outer.bounds.intersects(inner.bounds):
        return False
    bounds = outer.bounds
    inner_bounds = inner.bounds
    if (
        inner_bounds.min_x < bounds.min_x
        or inner_bounds.max_x > bounds.max_x
        or inner_bounds.min_y < bounds.min_y
        or inner_bounds.max_y > bounds.max_y
    ):
        return False

    outer_points = outer.points
    for point in inner:
        if not point_in_polygon(point, outer_points):
            return False

    if check_crossing and polygons_intersect(outer, inner, epsilon):
        return False
    return True


def clip_polygon_to_polygon(subject: PointRing, clip: PointRing) -> PointRing:
    """Clip a ring against a convex clip ring (Sutherland-Hodgman).

    Args:
        subject: Ring to clip (any shape)
        clip: Convex clipping ring

    Returns:
        The clipped ring, anti-clockwise; empty if nothing remains
    """
    clip_points = clip.points
    if signed_area(clip_points) < 0:
        clip_points.reverse()

    output: list[Point] = subject.points
    if signed_area(output) < 0:
        output.reverse()

    n = len(clip_points)
    for i in range(n):
        if not output:
            break
        edge_start = clip_points[i]
        edge_end = clip_points[(i + 1) % n]
        edge = edge_end - edge_start

        def inside(p: Point, start: Point = edge_start, direction: Point = edge) -> bool:
            return direction.cross(p - start) >= 0.0

        source = output
        output = []
        previous = source[-1]
        for current in source:
            if inside(current):
                if not inside(previous):
                    output.append(_line_crossing(previous, current, edge_start, edge_end))
                output.append(current)
            elif inside(previous):
                output.append(_line_crossing(previous, current, edge_start, edge_end))
            previous = current

    return PointRing(output, tolerance=subject.tolerance)


def _line_crossing(a: Point, b: Point, c: Point, d: Point) -> Point:
    """Intersection of segment a-b with the infinite line c-d."""
    ab = b - a
    cd = d - c
    denom = ab.cross(cd)
    if denom == 0.0:
        return b
    t = (c - a).cross(cd) / denom
    return Point(a.x + t * ab.x, a.y + t * ab.y)
