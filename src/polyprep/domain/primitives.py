"""Epsilon-aware predicates on points and segments.

This module holds the low-level math shared by rings, the boolean engine and
the self-intersection splitter:
- Orientation and collinearity of point triples
- Segment contacts (proper crossings, touches and collinear overlaps)
- Point-to-segment distance
- Shoelace area of a point sequence
- Point-in-polygon by crossing number and by summed turn angle

All functions are pure and take the tolerance explicitly so callers can pass
a ring-scaled epsilon.
"""

import math
from collections.abc import Sequence
from enum import Enum, auto

from polyprep.domain.point import Point

# Floor used when no ring-scaled epsilon is available.
EPSILON = 1e-12


class Orientation(Enum):
    """Turn direction of an ordered point triple."""

    CLOCKWISE = auto()
    ANTI_CLOCKWISE = auto()
    COLLINEAR = auto()


def orient2d(a: Point, b: Point, c: Point, epsilon: float = EPSILON) -> Orientation:
    """Classify the turn a -> b -> c.

    Args:
        a: First point
        b: Second point
        c: Third point
        epsilon: Determinant magnitude treated as zero

    Returns:
        Orientation of the triple
    """
    det = (b - a).cross(c - a)
    if -epsilon < det < epsilon:
        return Orientation.COLLINEAR
    if det > 0:
        return Orientation.ANTI_CLOCKWISE
    return Orientation.CLOCKWISE


def distance_to_segment(point: Point, seg_start: Point, seg_end: Point) -> float:
    """Distance from a point to the closest point of a segment.

    Projects the point onto the infinite line, then clamps to the segment endpoints.
    """
    seg = seg_end - seg_start
    length_sq = seg.magnitude_squared()
    if length_sq == 0.0:
        return point.distance_to(seg_start)

    t = (point - seg_start).dot(seg) / length_sq
    t = max(0.0, min(1.0, t))
    nearest = Point(seg_start.x + t * seg.x, seg_start.y + t * seg.y)
    return point.distance_to(nearest)


def distance_to_line(point: Point, line_start: Point, line_end: Point) -> float:
    """Distance from a point to the infinite line through two points."""
    direction = line_end - line_start
    length = direction.magnitude()
    if length == 0.0:
        return point.distance_to(line_start)
    return abs(direction.cross(point - line_start)) / length


def is_collinear(prev: Point, current: Point, nxt: Point, epsilon: float) -> bool:
    """Check if the middle point of a triple lies on the line of its neighbours.

    Also true when the triple doubles back on itself (a spike), since the
    middle point then adds no area either.
    """
    return distance_to_line(current, prev, nxt) <= epsilon


def point_on_segment(point: Point, seg_start: Point, seg_end: Point, epsilon: float) -> bool:
    """Check if a point lies on a segment within tolerance."""
    return distance_to_segment(point, seg_start, seg_end) <= epsilon


def _snap(point: Point, candidates: Sequence[Point], epsilon: float) -> Point:
    for candidate in candidates:
        if point.equals(candidate, epsilon):
            return candidate
    return point


def segment_contacts(
    a_start: Point,
    a_end: Point,
    b_start: Point,
    b_end: Point,
    epsilon: float,
) -> list[Point]:
    """Find every point where two segments touch.

    Non-parallel segments have at most one contact. Collinear segments that
    overlap report the endpoints of each segment lying on the other one.
    Contacts within epsilon of a segment endpoint are snapped to that
    endpoint instance so callers can detect shared vertices by identity.

    Args:
        a_start: Start of segment A
        a_end: End of segment A
        b_start: Start of segment B
        b_end: End of segment B
        epsilon: Distance tolerance

    Returns:
        Contact points, without duplicates. Empty if the segments are apart
        or either segment has zero length.
    """
    r = a_end - a_start
    s = b_end - b_start
    len_r = r.magnitude()
    len_s = s.magnitude()
    if len_r <= epsilon or len_s <= epsilon:
        return []

    endpoints = (a_start, a_end, b_start, b_end)
    denom = r.cross(s)
    offset = b_start - a_start

    if abs(denom) <= epsilon * min(len_r, len_s):
        # Parallel: only collinear overlaps touch
        if abs(r.cross(offset)) / len_r > epsilon:
            return []
        contacts: list[Point] = []
        for candidate, seg_start, seg_end in (
            (a_start, b_start, b_end),
            (a_end, b_start, b_end),
            (b_start, a_start, a_end),
            (b_end, a_start, a_end),
        ):
            if point_on_segment(candidate, seg_start, seg_end, epsilon) and not any(
                candidate.equals(existing, epsilon) for existing in contacts
            ):
                contacts.append(candidate)
        return contacts

    t = offset.cross(s) / denom
    u = offset.cross(r) / denom
    tol_t = epsilon / len_r
    tol_u = epsilon / len_s
    if -tol_t <= t <= 1.0 + tol_t and -tol_u <= u <= 1.0 + tol_u:
        hit = Point(a_start.x + t * r.x, a_start.y + t * r.y)
        return [_snap(hit, endpoints, epsilon)]
    return []


def segments_intersect(
    a_start: Point,
    a_end: Point,
    b_start: Point,
    b_end: Point,
    epsilon: float,
) -> bool:
    """Check if two segments touch anywhere."""
    return bool(segment_contacts(a_start, a_end, b_start, b_end, epsilon))


def signed_area(points: Sequence[Point]) -> float:
    """Calculate signed area of a polygon using the shoelace formula.

    Positive for anti-clockwise rings, negative for clockwise rings.

    Examples:
        >>> square = [Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1)]
        >>> signed_area(square)
        1.0
        >>> signed_area(square[::-1])
        -1.0
    """
    n = len(points)
    if n < 3:
        return 0.0

    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += points[i].x * points[j].y
        area -= points[j].x * points[i].y

    return area / 2.0


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Determine if a point is inside a polygon using ray casting.

    Casts a horizontal ray from the point to the right and counts crossings
    with polygon edges. Odd number of crossings = inside, even = outside.
    Points exactly on the boundary may go either way.
    """
    n = len(polygon)
    if n < 3:
        return False

    inside = False
    x, y = point.x, point.y
    j = n - 1

    for i in range(n):
        xi, yi = polygon[i].x, polygon[i].y
        xj, yj = polygon[j].x, polygon[j].y

        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside

        j = i

    return inside


def vector_angle(v1: Point, v2: Point) -> float:
    """Signed angle turning from v1 to v2, in (-pi, pi]."""
    theta = math.atan2(v2.y, v2.x) - math.atan2(v1.y, v1.x)
    while theta > math.pi:
        theta -= 2.0 * math.pi
    while theta <= -math.pi:
        theta += 2.0 * math.pi
    return theta


def point_in_polygon_angle(point: Point, polygon: Sequence[Point]) -> bool:
    """Determine if a point is inside a polygon by summing turn angles.

    The angles subtended at the point by consecutive polygon vertices add up
    to about +/-2*pi for an inside point and about 0 for an outside point,
    so pi is used as the threshold. The result is undefined for points on
    the boundary; callers test those separately.
    """
    n = len(polygon)
    if n < 3:
        return False

    total = 0.0
    for i in range(n):
        v1 = polygon[i] - point
        v2 = polygon[(i + 1) % n] - point
        total += vector_angle(v1, v2)

    return abs(total) >= math.pi


def point_on_boundary(point: Point, polygon: Sequence[Point], epsilon: float) -> bool:
    """Check if a point lies on any edge of a closed polygon."""
    n = len(polygon)
    for i in range(n):
        if point_on_segment(point, polygon[i], polygon[(i + 1) % n], epsilon):
            return True
    return False
