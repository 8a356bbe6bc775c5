"""
Curve/curve intersection of (offset) clothoids.

Both curves are split into pieces with bounding triangles; only pairs of
pieces whose triangles overlap are refined, by Newton iteration on
c1(s1) - c2(s2) = 0 restricted to the pieces' arc length ranges.
"""

import logging
import math
from typing import List, Optional, Tuple

from .bounding import bb_split
from .common import cross2
from .params import IntersectParams, SplitParams

logger = logging.getLogger(__name__)

_MAX_HALVINGS = 30


def _chord_guess(c1, offs1: float, c2, offs2: float) -> Tuple[float, float]:
    """Start refinement where the chords of the two pieces cross (midpoints if parallel)."""
    ax, ay = c1.eval(c1.s_min, offs1)
    bx, by = c1.eval(c1.s_max, offs1)
    cx, cy = c2.eval(c2.s_min, offs2)
    dx, dy = c2.eval(c2.s_max, offs2)
    ux, uy = bx - ax, by - ay
    vx, vy = dx - cx, dy - cy
    den = cross2(ux, uy, vx, vy)
    if den == 0.0:
        return 0.5 * (c1.s_min + c1.s_max), 0.5 * (c2.s_min + c2.s_max)
    wx, wy = cx - ax, cy - ay
    u = min(1.0, max(0.0, cross2(wx, wy, vx, vy) / den))
    v = min(1.0, max(0.0, cross2(wx, wy, ux, uy) / den))
    return c1.s_min + u * (c1.s_max - c1.s_min), c2.s_min + v * (c2.s_max - c2.s_min)


def _slack(curve, relative: float) -> float:
    return relative * max(1.0, abs(curve.s_min), abs(curve.s_max))


def intersect_internal(
    c1,
    offs1: float,
    c2,
    offs2: float,
    max_iter: int,
    tolerance: float,
    bounds_slack: float = 1e-9,
) -> Optional[Tuple[float, float]]:
    """
    Refine one crossing of two small pieces.

    Newton steps that leave the pieces' ranges or do not reduce the position
    mismatch are halved. Returns (s1, s2) once the mismatch is <= `tolerance`
    inside both ranges, None if that does not happen within `max_iter` steps.
    """
    lo1 = c1.s_min - _slack(c1, bounds_slack)
    hi1 = c1.s_max + _slack(c1, bounds_slack)
    lo2 = c2.s_min - _slack(c2, bounds_slack)
    hi2 = c2.s_max + _slack(c2, bounds_slack)

    s1, s2 = _chord_guess(c1, offs1, c2, offs2)
    x1, y1 = c1.eval(s1, offs1)
    x2, y2 = c2.eval(s2, offs2)
    fx, fy = x1 - x2, y1 - y2
    res = math.hypot(fx, fy)

    for _ in range(max_iter):
        if res <= tolerance:
            break
        t1x, t1y = c1.eval_d(s1, offs1)
        t2x, t2y = c2.eval_d(s2, offs2)
        # solve d1 * t1 - d2 * t2 = -f
        det = cross2(t1x, t1y, t2x, t2y)
        if det == 0.0 or not math.isfinite(det):
            return None
        d1 = -cross2(fx, fy, t2x, t2y) / det
        d2 = -cross2(fx, fy, t1x, t1y) / det

        lam = 1.0
        for _ in range(_MAX_HALVINGS):
            n1 = s1 + lam * d1
            n2 = s2 + lam * d2
            if lo1 <= n1 <= hi1 and lo2 <= n2 <= hi2:
                x1, y1 = c1.eval(n1, offs1)
                x2, y2 = c2.eval(n2, offs2)
                new_res = math.hypot(x1 - x2, y1 - y2)
                if new_res < res:
                    s1, s2 = n1, n2
                    fx, fy = x1 - x2, y1 - y2
                    res = new_res
                    break
            lam *= 0.5
        else:
            return None

    if res <= tolerance and lo1 <= s1 <= hi1 and lo2 <= s2 <= hi2:
        return s1, s2
    return None


def _is_duplicate(s1: float, s2: float, found1: List[float], found2: List[float], tol: float) -> bool:
    for a, b in zip(found1, found2):
        if abs(a - s1) <= tol and abs(b - s2) <= tol:
            return True
    return False


def intersect_curves(
    c1,
    c2,
    offs1: float = 0.0,
    offs2: float = 0.0,
    max_iter: Optional[int] = None,
    tolerance: Optional[float] = None,
    params: Optional[IntersectParams] = None,
) -> Tuple[List[float], List[float]]:
    """
    All crossings of c1 (offset by offs1) with c2 (offset by offs2).

    Returns parallel lists (s1, s2) in discovery order (by piece of c1, then
    by piece of c2, both along arc length). Detections closer than
    `params.dedup_tolerance` in both arc lengths to an earlier one are dropped.
    """
    params = params or IntersectParams()
    max_iter = params.max_iter if max_iter is None else max_iter
    tolerance = params.tolerance if tolerance is None else tolerance

    pieces1, tris1 = bb_split(c1, params.split_angle, params.split_size_ratio * c1.length, offs1)
    pieces2, tris2 = bb_split(c2, params.split_angle, params.split_size_ratio * c2.length, offs2)

    found1: List[float] = []
    found2: List[float] = []
    candidates = 0
    for p1, t1 in zip(pieces1, tris1):
        for p2, t2 in zip(pieces2, tris2):
            if not t1.overlap(t2):
                continue
            candidates += 1
            hit = intersect_internal(p1, offs1, p2, offs2, max_iter, tolerance, params.bounds_slack)
            if hit is None:
                continue
            s1, s2 = hit
            if _is_duplicate(s1, s2, found1, found2, params.dedup_tolerance):
                continue
            found1.append(s1)
            found2.append(s2)
    logger.debug(
        "intersect: %d x %d pieces, %d candidate pairs, %d crossings",
        len(pieces1),
        len(pieces2),
        candidates,
        len(found1),
    )
    return found1, found2


def approximate_collision(
    c1,
    c2,
    offs1: float = 0.0,
    offs2: float = 0.0,
    max_angle: float = math.pi / 18.0,
    max_size: float = math.inf,
    params: Optional[SplitParams] = None,
) -> bool:
    """
    True as soon as a bounding triangle of c1 overlaps one of c2.

    Never misses a real contact; may report one that is not there.
    """
    _, tris1 = bb_split(c1, max_angle, max_size, offs1, params)
    _, tris2 = bb_split(c2, max_angle, max_size, offs2, params)
    for t1 in tris1:
        for t2 in tris2:
            if t1.overlap(t2):
                return True
    return False
