"""
2D geometry kernel for coverage hulls.

Everything here is a pure function over `(x, y)` tuples: no state, no RNG, no time.
The hull job, the scheduler and the overlay all share these helpers so that a point
counted as "inside" during validation is also "inside" for containment queries.

Conventions:
- Polygons are ordered vertex lists, first vertex NOT repeated at the end.
- Boundary counts as inside.
- Touching or overlapping segments count as intersecting (keeps hull tracing conservative).
"""

from __future__ import annotations

import functools
import math
from enum import IntEnum
from typing import Iterable, Optional, Sequence

from mapper.sim.contracts import Point
from mapper.sim.hull_tunables import RAY_EPSILON, TWO_PI


class Orientation(IntEnum):
    """Turn direction of an ordered point triplet (sign of the cross product)."""

    CW = -1
    COLLINEAR = 0
    CCW = 1


def cross(o: Point, a: Point, b: Point) -> float:
    """Cross product of OA x OB."""
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def dist2(a: Point, b: Point) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


def orientation(a: Point, b: Point, c: Point) -> Orientation:
    v = cross(a, b, c)
    if v > 0:
        return Orientation.CCW
    if v < 0:
        return Orientation.CW
    return Orientation.COLLINEAR


def on_segment(a: Point, b: Point, p: Point) -> bool:
    """True if `p` lies in the bounding box of segment ab (collinearity is the caller's job)."""
    return (
        min(a[0], b[0]) <= p[0] <= max(a[0], b[0])
        and min(a[1], b[1]) <= p[1] <= max(a[1], b[1])
    )


def segments_intersect(a: Point, b: Point, c: Point, d: Point) -> bool:
    """Proper and collinear (touching/overlapping) intersection test for ab vs cd."""
    o1 = orientation(a, b, c)
    o2 = orientation(a, b, d)
    o3 = orientation(c, d, a)
    o4 = orientation(c, d, b)

    if o1 != o2 and o3 != o4:
        return True

    if o1 == Orientation.COLLINEAR and on_segment(a, b, c):
        return True
    if o2 == Orientation.COLLINEAR and on_segment(a, b, d):
        return True
    if o3 == Orientation.COLLINEAR and on_segment(c, d, a):
        return True
    if o4 == Orientation.COLLINEAR and on_segment(c, d, b):
        return True

    return False


def point_in_polygon(polygon: Sequence[Point], p: Point) -> bool:
    """
    Ray-casting containment with an explicit boundary check.

    A point exactly on an edge (or vertex) is inside. Horizontal edges never
    divide by zero: their denominator is replaced with a tiny epsilon.
    """
    n = len(polygon)
    if n == 0:
        return False

    inside = False
    j = n - 1
    for i in range(n):
        a = polygon[i]
        b = polygon[j]

        if orientation(a, b, p) == Orientation.COLLINEAR and on_segment(a, b, p):
            return True

        if (a[1] > p[1]) != (b[1] > p[1]):
            dy = b[1] - a[1]
            if dy == 0:
                dy = RAY_EPSILON
            if p[0] < (b[0] - a[0]) * (p[1] - a[1]) / dy + a[0]:
                inside = not inside
        j = i

    return inside


def lowest_point_index(points: Sequence[Point]) -> int:
    """Index of the lowest point (smallest y, ties broken by smallest x)."""
    idx = 0
    for i in range(1, len(points)):
        p = points[i]
        q = points[idx]
        if p[1] < q[1] or (p[1] == q[1] and p[0] < q[0]):
            idx = i
    return idx


def angle_ccw(prev_dir: Point, frm: Point, to: Point) -> float:
    """Counter-clockwise angle in [0, 2*pi) from `prev_dir` to the vector frm -> to."""
    a1 = math.atan2(prev_dir[1], prev_dir[0])
    a2 = math.atan2(to[1] - frm[1], to[0] - frm[0])
    da = a2 - a1
    while da < 0:
        da += TWO_PI
    while da >= TWO_PI:
        da -= TWO_PI
    return da


def convex_hull(points: Iterable[Point]) -> list[Point]:
    """
    Graham scan.

    Output is CCW without a repeated closing vertex. Collinear points along an edge
    are reduced to the extreme endpoints. Fewer than 3 points are returned as-is (copied).
    """
    pts = [(float(p[0]), float(p[1])) for p in points]
    n = len(pts)
    if n < 3:
        return pts

    # 1. Pivot (lowest y, then lowest x) goes first.
    pivot_idx = lowest_point_index(pts)
    pts[0], pts[pivot_idx] = pts[pivot_idx], pts[0]
    pivot = pts[0]

    # 2. Sort the rest by polar angle around the pivot; closer first when collinear.
    def _by_angle(a: Point, b: Point) -> int:
        c = cross(pivot, a, b)
        if c == 0:
            da = dist2(pivot, a)
            db = dist2(pivot, b)
            return -1 if da < db else (1 if da > db else 0)
        return -1 if c > 0 else 1

    rest = sorted(pts[1:], key=functools.cmp_to_key(_by_angle))

    # 3. Collapse collinear runs, keeping the farthest point of each.
    filtered = [pivot]
    for p in rest:
        if len(filtered) >= 2 and cross(filtered[-2], filtered[-1], p) == 0:
            if dist2(filtered[-2], p) > dist2(filtered[-2], filtered[-1]):
                filtered[-1] = p
            continue
        filtered.append(p)

    if len(filtered) < 3:
        return filtered

    # 4. Monotonic stack: pop while the last three are not a strict CCW turn.
    hull = filtered[:3]
    for p in filtered[3:]:
        while len(hull) >= 2 and cross(hull[-2], hull[-1], p) <= 0:
            hull.pop()
        hull.append(p)

    return hull


def polygon_area(polygon: Sequence[Point]) -> float:
    """Signed shoelace area (positive for CCW)."""
    n = len(polygon)
    if n < 3:
        return 0.0
    s = 0.0
    for i in range(n):
        x1, y1 = polygon[i]
        x2, y2 = polygon[(i + 1) % n]
        s += x1 * y2 - x2 * y1
    return s * 0.5


def polygon_center(polygon: Sequence[Point]) -> Optional[Point]:
    """Area centroid; falls back to the vertex mean for degenerate (zero-area) input."""
    n = len(polygon)
    if n == 0:
        return None

    area = polygon_area(polygon)
    if abs(area) < 1e-9:
        sx = sum(p[0] for p in polygon)
        sy = sum(p[1] for p in polygon)
        return sx / n, sy / n

    cx = 0.0
    cy = 0.0
    for i in range(n):
        x1, y1 = polygon[i]
        x2, y2 = polygon[(i + 1) % n]
        f = x1 * y2 - x2 * y1
        cx += (x1 + x2) * f
        cy += (y1 + y2) * f
    k = 1.0 / (6.0 * area)
    return cx * k, cy * k


def ensure_ccw(polygon: Sequence[Point]) -> list[Point]:
    """Return the polygon wound CCW, keeping its first vertex first."""
    out = list(polygon)
    if len(out) >= 3 and polygon_area(out) < 0:
        out = [out[0]] + out[:0:-1]
    return out


def distance_to_segment(p: Point, a: Point, b: Point) -> float:
    vx = b[0] - a[0]
    vy = b[1] - a[1]
    seg2 = vx * vx + vy * vy
    if seg2 <= 0:
        return math.sqrt(dist2(p, a))
    t = ((p[0] - a[0]) * vx + (p[1] - a[1]) * vy) / seg2
    t = max(0.0, min(1.0, t))
    proj = (a[0] + t * vx, a[1] + t * vy)
    return math.sqrt(dist2(p, proj))


def contains_point_buffered(polygon: Sequence[Point], p: Point, margin: float) -> bool:
    """Inside-or-on, or within `margin` world units of any edge."""
    if point_in_polygon(polygon, p):
        return True
    if margin <= 0:
        return False
    n = len(polygon)
    for i in range(n):
        if distance_to_segment(p, polygon[i], polygon[(i + 1) % n]) <= margin:
            return True
    return False


def polygons_intersect(a: Sequence[Point], b: Sequence[Point]) -> bool:
    """True if any edges cross/touch or one polygon holds a vertex of the other."""
    if not a or not b:
        return False
    na = len(a)
    nb = len(b)
    for i in range(na):
        p1 = a[i]
        p2 = a[(i + 1) % na]
        for j in range(nb):
            if segments_intersect(p1, p2, b[j], b[(j + 1) % nb]):
                return True
    return point_in_polygon(a, b[0]) or point_in_polygon(b, a[0])
