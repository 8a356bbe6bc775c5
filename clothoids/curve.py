import math
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .bounding import bb_split, bb_triangle
from .fresnel import generalized_fresnel_cs1
from .g1 import G1ConvergenceError, G1Solution, build_clothoid, solve_forward
from .geometry import Triangle2D
from .intersection import approximate_collision, intersect_curves
from .params import G1Params, IntersectParams, SplitParams


@dataclass
class ClothoidCurve:
    """
    Clothoid segment: pose (x0, y0, theta0) and curvature k at s = 0, constant
    curvature rate dk, valid arc length range [s_min, s_max].

    Evaluation outside [s_min, s_max] is allowed; nothing is clamped.
    `trim` and `change_origin` are the only in-place edits and both keep the
    described curve.
    """

    x0: float = 0.0
    y0: float = 0.0
    theta0: float = 0.0
    k: float = 0.0
    dk: float = 0.0
    s_min: float = 0.0
    s_max: float = 0.0

    def __post_init__(self):
        if self.s_min > self.s_max:
            raise ValueError(f"s_min ({self.s_min}) must not exceed s_max ({self.s_max})")

    @classmethod
    def from_length(
        cls, x0: float, y0: float, theta0: float, k: float, dk: float, L: float
    ) -> "ClothoidCurve":
        return cls(x0, y0, theta0, k, dk, 0.0, L)

    @classmethod
    def from_g1(
        cls,
        x0: float,
        y0: float,
        theta0: float,
        x1: float,
        y1: float,
        theta1: float,
        params: Optional[G1Params] = None,
    ) -> "ClothoidCurve":
        """Clothoid joining two poses; raises G1ConvergenceError if there is none."""
        sol = build_clothoid(x0, y0, theta0, x1, y1, theta1, params)
        if not sol.converged:
            raise G1ConvergenceError(
                f"no G1 clothoid from ({x0}, {y0}, {theta0}) to ({x1}, {y1}, {theta1}): {sol.status}"
            )
        return cls(x0, y0, theta0, sol.k, sol.dk, 0.0, sol.L)

    def setup(
        self, x0: float, y0: float, theta0: float, k: float, dk: float, s_min: float, s_max: float
    ) -> None:
        if s_min > s_max:
            raise ValueError(f"s_min ({s_min}) must not exceed s_max ({s_max})")
        self.x0, self.y0, self.theta0 = x0, y0, theta0
        self.k, self.dk = k, dk
        self.s_min, self.s_max = s_min, s_max

    def setup_g1(
        self,
        x0: float,
        y0: float,
        theta0: float,
        x1: float,
        y1: float,
        theta1: float,
        params: Optional[G1Params] = None,
    ) -> G1Solution:
        """Refit to the G1 problem; the curve is only changed when the solve converges."""
        sol = build_clothoid(x0, y0, theta0, x1, y1, theta1, params)
        if sol.converged:
            self.setup(x0, y0, theta0, sol.k, sol.dk, 0.0, sol.L)
        return sol

    def setup_forward(
        self,
        x0: float,
        y0: float,
        theta0: float,
        k: float,
        x1: float,
        y1: float,
        tol: float = 1e-8,
        params: Optional[G1Params] = None,
    ) -> bool:
        """
        Keep the initial pose and curvature, pick dk and length to pass
        through (x1, y1). Returns False and leaves the curve unchanged when
        there is no such clothoid.
        """
        sol = solve_forward(x0, y0, theta0, k, x1, y1, tol=tol, params=params)
        if not sol.converged:
            return False
        self.setup(x0, y0, theta0, sol.k, sol.dk, 0.0, sol.L)
        return True

    def copy(self) -> "ClothoidCurve":
        return replace(self)

    @property
    def length(self) -> float:
        return self.s_max - self.s_min

    # --- heading and curvature -------------------------------------------

    def theta(self, s: float) -> float:
        return self.theta0 + s * (self.k + 0.5 * s * self.dk)

    def theta_d(self, s: float) -> float:
        return self.k + s * self.dk

    def theta_dd(self, s: float) -> float:
        return self.dk

    def theta_ddd(self, s: float) -> float:
        return 0.0

    def kappa(self, s: float, offs: float = 0.0) -> float:
        """Curvature of the curve offset by `offs` along the left normal."""
        kappa = self.theta_d(s)
        if offs == 0.0:
            return kappa
        scale = 1.0 - offs * kappa
        if scale == 0.0:
            # cusp of the offset curve
            return math.copysign(math.inf, kappa)
        return kappa / scale

    # --- position and derivatives ----------------------------------------

    def eval(self, s: float, offs: float = 0.0) -> Tuple[float, float]:
        C, S = generalized_fresnel_cs1(self.dk * s * s, self.k * s, self.theta0)
        x = self.x0 + s * C
        y = self.y0 + s * S
        if offs != 0.0:
            th = self.theta(s)
            x -= offs * math.sin(th)
            y += offs * math.cos(th)
        return x, y

    def eval_pose(self, s: float) -> Tuple[float, float, float, float]:
        """(theta, kappa, x, y) at s."""
        x, y = self.eval(s)
        return self.theta(s), self.theta_d(s), x, y

    def eval_d(self, s: float, offs: float = 0.0) -> Tuple[float, float]:
        th = self.theta(s)
        scale = 1.0 - offs * self.theta_d(s)
        return math.cos(th) * scale, math.sin(th) * scale

    def eval_dd(self, s: float, offs: float = 0.0) -> Tuple[float, float]:
        th = self.theta(s)
        C = math.cos(th)
        S = math.sin(th)
        th1 = self.theta_d(s)
        th2 = self.theta_dd(s)
        scale = 1.0 - offs * th1
        return -(S * th1 * scale + offs * C * th2), C * th1 * scale - offs * S * th2

    def eval_ddd(self, s: float, offs: float = 0.0) -> Tuple[float, float]:
        th = self.theta(s)
        C = math.cos(th)
        S = math.sin(th)
        th1 = self.theta_d(s)
        th2 = self.theta_dd(s)
        th3 = self.theta_ddd(s)
        normal = th2 * (1.0 - 3.0 * offs * th1)
        tangent = th1 * th1 * (1.0 - offs * th1) + offs * th3
        return -S * normal - C * tangent, C * normal - S * tangent

    def eval_many(self, s: Sequence[float], offs: float = 0.0) -> Tuple[np.ndarray, np.ndarray]:
        s_arr = np.asarray(s, dtype=float)
        pts = np.array([self.eval(float(v), offs) for v in s_arr.ravel()], dtype=float).reshape(s_arr.shape + (2,))
        return pts[..., 0], pts[..., 1]

    def sample(self, npts: int, offs: float = 0.0) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """`npts` evenly spaced points over [s_min, s_max], both ends included."""
        if npts < 1:
            raise ValueError("npts must be >= 1")
        s = np.linspace(self.s_min, self.s_max, npts)
        x, y = self.eval_many(s, offs)
        return s, x, y

    # --- in-place edits --------------------------------------------------

    def trim(self, s_begin: float, s_end: float) -> None:
        if s_begin > s_end:
            raise ValueError(f"s_begin ({s_begin}) must not exceed s_end ({s_end})")
        self.s_min = s_begin
        self.s_max = s_end

    def change_origin(self, s0: float) -> None:
        """Move arc length zero to s0; the curve and its valid range do not move."""
        theta, kappa, x, y = self.eval_pose(s0)
        self.x0 = x
        self.y0 = y
        self.theta0 = theta
        self.k = kappa
        self.s_min -= s0
        self.s_max -= s0

    # --- bounding geometry and intersection ------------------------------

    def bb_triangle(self, offs: float = 0.0, params: Optional[SplitParams] = None) -> Optional[Triangle2D]:
        return bb_triangle(self, offs, params)

    def bb_split(
        self,
        split_angle: float,
        split_size: float,
        split_offs: float = 0.0,
        params: Optional[SplitParams] = None,
    ) -> Tuple[List["ClothoidCurve"], List[Triangle2D]]:
        return bb_split(self, split_angle, split_size, split_offs, params)

    def intersect(
        self,
        other: "ClothoidCurve",
        offs: float = 0.0,
        other_offs: float = 0.0,
        max_iter: Optional[int] = None,
        tolerance: Optional[float] = None,
        params: Optional[IntersectParams] = None,
    ) -> Tuple[List[float], List[float]]:
        """Arc lengths (s1, s2) of every crossing of the two (offset) curves."""
        return intersect_curves(self, other, offs, other_offs, max_iter, tolerance, params)

    def approximate_collision(
        self,
        other: "ClothoidCurve",
        offs: float = 0.0,
        other_offs: float = 0.0,
        max_angle: float = math.pi / 18.0,
        max_size: float = math.inf,
        params: Optional[SplitParams] = None,
    ) -> bool:
        return approximate_collision(self, other, offs, other_offs, max_angle, max_size, params)


def points_on_clothoid(
    x0: float, y0: float, theta0: float, k: float, dk: float, L: float, npts: int
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sample the clothoid at s_i = i * L / npts, i = 0..npts-1 (the end point
    s = L is not included).
    """
    if npts < 1:
        raise ValueError("npts must be >= 1")
    curve = ClothoidCurve.from_length(x0, y0, theta0, k, dk, L)
    s = np.arange(npts, dtype=float) * (L / npts)
    return curve.eval_many(s)
