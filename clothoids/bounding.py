"""
Bounding triangles of clothoid arcs and adaptive subdivision.

An arc whose heading is monotone and turns by less than pi/2 lies inside the
triangle formed by its end points and the intersection of its end tangents.
bb_split halves the arc (after cutting it at the inflection point, if any)
until every piece is small enough and bounds each piece that way.
"""

import logging
import math
from typing import List, Optional, Tuple

from .common import clamp
from .geometry import Triangle2D
from .params import SplitParams

logger = logging.getLogger(__name__)

_MAX_TRIANGLE_ANGLE = 0.5 * math.pi


class SubdivisionDepthError(RuntimeError):
    """bb_split needed more than `max_depth` levels of halving or more than `max_pieces` leaves."""


def _has_inflection(k_min: float, k_max: float) -> bool:
    """Curvature changes sign strictly inside the arc (ignoring round-off at the ends)."""
    if k_min * k_max >= 0.0:
        return False
    return min(abs(k_min), abs(k_max)) > 1e-12 * max(abs(k_min), abs(k_max))


def bb_triangle(curve, offs: float = 0.0, params: Optional[SplitParams] = None) -> Optional[Triangle2D]:
    """
    Triangle containing the arc [s_min, s_max] offset by `offs`.

    Returns None when the heading variation is pi/2 or more, when the
    curvature changes sign inside the arc or when the offset reaches the
    radius of curvature; the caller has to split the arc first.
    """
    params = params or SplitParams()
    s0, s1 = curve.s_min, curve.s_max
    k_min = curve.theta_d(s0)
    k_max = curve.theta_d(s1)
    if _has_inflection(k_min, k_max):
        return None
    if offs != 0.0 and (1.0 - offs * k_min <= 0.0 or 1.0 - offs * k_max <= 0.0):
        return None

    th_min = curve.theta(s0)
    th_max = curve.theta(s1)
    dtheta = abs(th_max - th_min)
    if dtheta >= _MAX_TRIANGLE_ANGLE:
        return None

    p0 = curve.eval(s0, offs)
    p1 = curve.eval(s1, offs)
    t0 = (math.cos(th_min), math.sin(th_min))
    if dtheta > params.small_angle:
        t1 = (math.cos(th_max), math.sin(th_max))
        # p0 + alpha * t0 = p1 + beta * t1
        det = t1[0] * t0[1] - t0[0] * t1[1]
        alpha = ((p1[1] - p0[1]) * t1[0] - (p1[0] - p0[0]) * t1[1]) / det
    else:
        # nearly straight: the chord length is a safe distance to the apex
        alpha = math.hypot(p1[0] - p0[0], p1[1] - p0[1])
    p2 = (p0[0] + alpha * t0[0], p0[1] + alpha * t0[1])
    return Triangle2D(p0, p1, p2)


def _split(curve, angle_limit, split_size, split_offs, params, depth, curves, triangles) -> None:
    if depth > params.max_depth:
        raise SubdivisionDepthError(
            f"bb_split exceeded depth {params.max_depth} on [{curve.s_min}, {curve.s_max}]"
        )
    x_min, y_min = curve.eval(curve.s_min)
    x_max, y_max = curve.eval(curve.s_max)
    chord = math.hypot(x_max - x_min, y_max - y_min)
    dangle = abs(curve.theta(curve.s_max) - curve.theta(curve.s_min))
    if dangle <= angle_limit and chord * math.tan(dangle) <= split_size:
        tri = bb_triangle(curve, split_offs, params)
        if tri is None:
            raise ValueError(
                f"offset {split_offs} reaches the radius of curvature on [{curve.s_min}, {curve.s_max}]"
            )
        if len(curves) >= params.max_pieces:
            raise SubdivisionDepthError(f"bb_split exceeded {params.max_pieces} pieces")
        curves.append(curve)
        triangles.append(tri)
        return

    s_med = 0.5 * (curve.s_min + curve.s_max)
    left = curve.copy()
    left.trim(curve.s_min, s_med)
    right = curve.copy()
    right.trim(s_med, curve.s_max)
    _split(left, angle_limit, split_size, split_offs, params, depth + 1, curves, triangles)
    _split(right, angle_limit, split_size, split_offs, params, depth + 1, curves, triangles)


def bb_split(
    curve,
    split_angle: float,
    split_size: float,
    split_offs: float = 0.0,
    params: Optional[SplitParams] = None,
) -> Tuple[list, List[Triangle2D]]:
    """
    Split `curve` into pieces turning at most `split_angle` with triangle
    height (chord * tan(turning)) at most `split_size`.

    Returns (pieces, triangles), parallel lists ordered by arc length. The
    pieces are independent copies of `curve` trimmed to consecutive
    sub-intervals that cover [s_min, s_max].
    """
    if split_angle <= 0.0:
        raise ValueError("split_angle must be > 0")
    if split_size < 0.0:
        raise ValueError("split_size must be >= 0")
    params = params or SplitParams()
    # strictly below pi/2 so every leaf has a bounding triangle
    angle_limit = min(split_angle, math.nextafter(_MAX_TRIANGLE_ANGLE, 0.0))

    curves: list = []
    triangles: List[Triangle2D] = []
    k_min = curve.theta_d(curve.s_min)
    k_max = curve.theta_d(curve.s_max)
    if _has_inflection(k_min, k_max):
        s_flex = clamp(curve.s_min - k_min / curve.dk, curve.s_min, curve.s_max)
        first = curve.copy()
        first.trim(curve.s_min, s_flex)
        second = curve.copy()
        second.trim(s_flex, curve.s_max)
        _split(first, angle_limit, split_size, split_offs, params, 0, curves, triangles)
        _split(second, angle_limit, split_size, split_offs, params, 0, curves, triangles)
    else:
        _split(curve.copy(), angle_limit, split_size, split_offs, params, 0, curves, triangles)
    logger.debug("bb_split produced %d pieces", len(curves))
    return curves, triangles
