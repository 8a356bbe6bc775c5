import math
from dataclasses import dataclass
from typing import List, Tuple

from .common import cross2

Point = Tuple[float, float]


def _orient(a: Point, b: Point, c: Point) -> float:
    """Twice the signed area of (a, b, c); > 0 when counter-clockwise."""
    return cross2(b[0] - a[0], b[1] - a[1], c[0] - a[0], c[1] - a[1])


def _on_segment(a: Point, b: Point, p: Point) -> bool:
    """p collinear with a-b lies within its bounding box."""
    return min(a[0], b[0]) <= p[0] <= max(a[0], b[0]) and min(a[1], b[1]) <= p[1] <= max(a[1], b[1])


def segments_intersect(p1: Point, p2: Point, q1: Point, q2: Point) -> bool:
    """Closed segments p1-p2 and q1-q2 share at least one point."""
    d1 = _orient(q1, q2, p1)
    d2 = _orient(q1, q2, p2)
    d3 = _orient(p1, p2, q1)
    d4 = _orient(p1, p2, q2)
    if ((d1 > 0 and d2 < 0) or (d1 < 0 and d2 > 0)) and ((d3 > 0 and d4 < 0) or (d3 < 0 and d4 > 0)):
        return True
    if d1 == 0 and _on_segment(q1, q2, p1):
        return True
    if d2 == 0 and _on_segment(q1, q2, p2):
        return True
    if d3 == 0 and _on_segment(p1, p2, q1):
        return True
    if d4 == 0 and _on_segment(p1, p2, q2):
        return True
    return False


def _point_segment_distance(a: Point, b: Point, p: Point) -> float:
    ex = b[0] - a[0]
    ey = b[1] - a[1]
    l2 = ex * ex + ey * ey
    if l2 == 0.0:
        return math.hypot(p[0] - a[0], p[1] - a[1])
    t = max(0.0, min(1.0, ((p[0] - a[0]) * ex + (p[1] - a[1]) * ey) / l2))
    return math.hypot(p[0] - a[0] - t * ex, p[1] - a[1] - t * ey)


@dataclass(frozen=True)
class Triangle2D:
    """
    Bounding triangle of a clothoid arc.

    p1 and p2 are the (offset) end points of the arc and p3 the intersection of
    the end tangents. The triangle may be degenerate for a straight arc.
    """

    p1: Point
    p2: Point
    p3: Point

    @property
    def vertices(self) -> List[Point]:
        return [self.p1, self.p2, self.p3]

    def edges(self) -> List[Tuple[Point, Point]]:
        return [(self.p1, self.p2), (self.p2, self.p3), (self.p3, self.p1)]

    def signed_area(self) -> float:
        return 0.5 * _orient(self.p1, self.p2, self.p3)

    def bbox(self) -> Tuple[float, float, float, float]:
        xs = (self.p1[0], self.p2[0], self.p3[0])
        ys = (self.p1[1], self.p2[1], self.p3[1])
        return min(xs), min(ys), max(xs), max(ys)

    def contains(self, x: float, y: float, tol: float = 0.0) -> bool:
        """Point inside the closed triangle, or within `tol` of it."""
        p = (x, y)
        area2 = _orient(self.p1, self.p2, self.p3)
        scale = max(
            math.hypot(self.p2[0] - self.p1[0], self.p2[1] - self.p1[1]),
            math.hypot(self.p3[0] - self.p2[0], self.p3[1] - self.p2[1]),
            math.hypot(self.p1[0] - self.p3[0], self.p1[1] - self.p3[1]),
        )
        if abs(area2) <= 1e-14 * scale * scale:
            return min(_point_segment_distance(a, b, p) for a, b in self.edges()) <= tol
        sign = 1.0 if area2 > 0.0 else -1.0
        for a, b in self.edges():
            length = math.hypot(b[0] - a[0], b[1] - a[1])
            if length == 0.0:
                continue
            if sign * _orient(a, b, p) / length < -tol:
                return False
        return True

    def intersect(self, other: "Triangle2D") -> bool:
        """The boundaries of the two triangles cross or touch."""
        for a, b in self.edges():
            for c, d in other.edges():
                if segments_intersect(a, b, c, d):
                    return True
        return False

    def overlap(self, other: "Triangle2D") -> bool:
        """The closed triangles share at least one point."""
        ax0, ay0, ax1, ay1 = self.bbox()
        bx0, by0, bx1, by1 = other.bbox()
        if ax1 < bx0 or bx1 < ax0 or ay1 < by0 or by1 < ay0:
            return False
        if self.intersect(other):
            return True
        # no boundary crossing: either disjoint or one inside the other
        return self.contains(*other.p1) or other.contains(*self.p1)
