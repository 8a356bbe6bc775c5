"""
G1 Hermite interpolation with a single clothoid.

Given (x0, y0, theta0) and (x1, y1, theta1) find curvature k, curvature rate
dk and length L of the clothoid that starts at the first pose and ends at the
second one.

The problem is rotated and scaled so that the chord goes from (0, 0) to
(1, 0). With phi0, phi1 the end angles relative to the chord and
delta = phi1 - phi0, writing the clothoid phase as A t^2 + (delta - A) t + phi0
leaves the single equation

    g(A) = int_0^1 sin(A t^2 + (delta - A) t + phi0) dt = 0

after which L = r / int_0^1 cos(...) dt, k = (delta - A) / L, dk = 2 A / L^2.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from scipy.optimize import brentq

from .common import polar
from .fresnel import generalized_fresnel_cs, generalized_fresnel_cs1
from .params import G1Params

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_DEGENERATE = "degenerate"
STATUS_NOT_CONVERGED = "not_converged"

# Fitted initial guess for A as a function of (phi0, phi1).
_CF = (
    2.989696028701907,
    0.716228953608281,
    -0.458969738821509,
    -0.502821153340377,
    0.261062141752652,
    -0.045854475238709,
)


class G1ConvergenceError(RuntimeError):
    """The G1 problem has no solution or the solver did not converge."""


@dataclass(frozen=True)
class G1Solution:
    """
    Result of the G1 solve.

    `status` is one of "ok", "degenerate" (coincident endpoints) and
    "not_converged"; k, dk and L are only meaningful when `converged`.
    """

    k: float
    dk: float
    L: float
    iterations: int
    status: str

    @property
    def converged(self) -> bool:
        return self.status == STATUS_OK


@dataclass(frozen=True)
class G1Sensitivity:
    """
    G1 solution plus the partial derivatives of (k, dk, L).

    `k_1, dk_1, L_1` are derivatives with respect to theta0 and `k_2, dk_2, L_2`
    with respect to theta1. `jacobian` is the 3x6 matrix of (k, dk, L) with
    respect to (x0, y0, theta0, x1, y1, theta1); it is None when the solve
    did not converge.
    """

    solution: G1Solution
    k_1: float
    dk_1: float
    L_1: float
    k_2: float
    dk_2: float
    L_2: float
    jacobian: Optional[np.ndarray]


def _normalize_angle(angle: float) -> float:
    """Reduce to [-pi, pi], keeping +pi as +pi."""
    return angle - 2.0 * math.pi * round(angle / (2.0 * math.pi))


def _initial_guess(phi0: float, phi1: float) -> float:
    X = phi0 / math.pi
    Y = phi1 / math.pi
    xy = X * Y
    X *= X
    Y *= Y
    return (phi0 + phi1) * (
        _CF[0] + xy * (_CF[1] + xy * _CF[2]) + (_CF[3] + xy * _CF[4]) * (X + Y) + _CF[5] * (X * X + Y * Y)
    )


def _residual(A: float, delta: float, phi0: float) -> float:
    return generalized_fresnel_cs1(2.0 * A, delta - A, phi0)[1]


def _bracketed_root(A0: float, delta: float, phi0: float) -> Optional[float]:
    """
    Scan widening intervals around A0 for a sign change of g with a positive
    length and polish it with Brent's method.
    """
    for width in (0.5, 1.0, 2.0, 4.0, 8.0, 16.0):
        grid = np.linspace(A0 - width, A0 + width, 65)
        values = [_residual(a, delta, phi0) for a in grid]
        brackets: List[Tuple[float, float, float]] = []
        for lo, hi, g_lo, g_hi in zip(grid[:-1], grid[1:], values[:-1], values[1:]):
            if g_lo == 0.0:
                brackets.append((abs(lo - A0), lo, lo))
            elif g_lo * g_hi < 0.0:
                brackets.append((abs(0.5 * (lo + hi) - A0), lo, hi))
        for _, lo, hi in sorted(brackets):
            if lo == hi:
                root = lo
            else:
                root = brentq(_residual, lo, hi, args=(delta, phi0), xtol=1e-15, maxiter=200, disp=False)
            if generalized_fresnel_cs1(2.0 * root, delta - root, phi0)[0] > 0.0:
                return root
    return None


def _solve_normalized(phi0: float, phi1: float, params: G1Params) -> Tuple[float, int, bool]:
    """Newton on g(A), falling back to a bracketed root when it stalls."""
    delta = phi1 - phi0
    if abs(phi0) <= params.angle_tolerance and abs(phi1) <= params.angle_tolerance:
        return 0.0, 0, True

    A = _initial_guess(phi0, phi1)
    g = math.inf
    niter = 0
    while niter < params.max_iter:
        niter += 1
        intC, intS = generalized_fresnel_cs(3, 2.0 * A, delta - A, phi0)
        g = intS[0]
        if abs(g) <= params.tolerance:
            break
        dg = intC[2] - intC[1]
        step = g / dg if dg != 0.0 else math.inf
        if not math.isfinite(step):
            break
        A -= step
    else:
        g = _residual(A, delta, phi0)

    if abs(g) <= params.accept_tolerance and generalized_fresnel_cs1(2.0 * A, delta - A, phi0)[0] > 0.0:
        logger.debug("G1 Newton converged in %d iterations (g=%.3e)", niter, g)
        return A, niter, True

    logger.debug("G1 Newton stalled (g=%.3e after %d iterations), bracketing", g, niter)
    root = _bracketed_root(_initial_guess(phi0, phi1), delta, phi0)
    if root is None:
        return A, niter, False
    return root, niter, True


def _prepare(x0: float, y0: float, theta0: float, x1: float, y1: float, theta1: float):
    r, phi = polar(x1 - x0, y1 - y0)
    phi0 = _normalize_angle(theta0 - phi)
    phi1 = _normalize_angle(theta1 - phi)
    return r, phi, phi0, phi1


def _failed(status: str, niter: int) -> G1Solution:
    return G1Solution(k=0.0, dk=0.0, L=0.0, iterations=niter, status=status)


def _solve(x0, y0, theta0, x1, y1, theta1, params: Optional[G1Params]):
    params = params or G1Params()
    r, phi, phi0, phi1 = _prepare(x0, y0, theta0, x1, y1, theta1)
    if r <= params.degenerate_distance:
        logger.warning("G1 problem with coincident endpoints (%g, %g)", x0, y0)
        return _failed(STATUS_DEGENERATE, 0), None

    A, niter, ok = _solve_normalized(phi0, phi1, params)
    delta = phi1 - phi0
    intC0, _ = generalized_fresnel_cs1(2.0 * A, delta - A, phi0)
    if not ok or intC0 <= 0.0:
        logger.warning(
            "G1 solver did not converge for (%g, %g, %g) -> (%g, %g, %g)", x0, y0, theta0, x1, y1, theta1
        )
        return _failed(STATUS_NOT_CONVERGED, niter), None

    L = r / intC0
    k = (delta - A) / L
    dk = 2.0 * A / (L * L)
    return G1Solution(k=k, dk=dk, L=L, iterations=niter, status=STATUS_OK), (r, phi, phi0, A, delta)


def build_clothoid(
    x0: float,
    y0: float,
    theta0: float,
    x1: float,
    y1: float,
    theta1: float,
    params: Optional[G1Params] = None,
) -> G1Solution:
    """Solve the G1 Hermite problem; check `converged` before using the result."""
    solution, _ = _solve(x0, y0, theta0, x1, y1, theta1, params)
    return solution


def build_clothoid_with_sensitivity(
    x0: float,
    y0: float,
    theta0: float,
    x1: float,
    y1: float,
    theta1: float,
    params: Optional[G1Params] = None,
) -> G1Sensitivity:
    """
    Solve the G1 problem and differentiate the solution.

    The derivatives come from implicit differentiation of g(A; phi0, phi1) = 0
    at the converged A; no extra solve is performed.
    """
    solution, state = _solve(x0, y0, theta0, x1, y1, theta1, params)
    if state is None:
        nan = math.nan
        return G1Sensitivity(solution, nan, nan, nan, nan, nan, nan, None)

    r, phi, phi0, A, delta = state
    k, dk, L = solution.k, solution.dk, solution.L
    intC, intS = generalized_fresnel_cs(3, 2.0 * A, delta - A, phi0)

    # g = int sin(phase), phase = A t^2 + (phi1 - phi0 - A) t + phi0
    dg_dA = intC[2] - intC[1]
    dA_1 = -(intC[0] - intC[1]) / dg_dA
    dA_2 = -intC[1] / dg_dA

    # h = int cos(phase), L = r / h
    h = intC[0]
    dh_dA = -(intS[2] - intS[1])
    dh_1 = -(intS[0] - intS[1]) + dh_dA * dA_1
    dh_2 = -intS[1] + dh_dA * dA_2

    L_1 = -L * dh_1 / h
    L_2 = -L * dh_2 / h
    k_1 = (-1.0 - dA_1) / L - k * L_1 / L
    k_2 = (1.0 - dA_2) / L - k * L_2 / L
    dk_1 = 2.0 * dA_1 / (L * L) - 2.0 * dk * L_1 / L
    dk_2 = 2.0 * dA_2 / (L * L) - 2.0 * dk * L_2 / L

    d_theta0 = np.array([k_1, dk_1, L_1])
    d_theta1 = np.array([k_2, dk_2, L_2])
    # chord angle enters through phi0 = theta0 - phi and phi1 = theta1 - phi
    d_phi = -(d_theta0 + d_theta1)
    d_r = np.array([-k / r, -2.0 * dk / r, L / r])
    dx = x1 - x0
    dy = y1 - y0
    d_x1 = d_r * (dx / r) - d_phi * (dy / (r * r))
    d_y1 = d_r * (dy / r) + d_phi * (dx / (r * r))
    jacobian = np.column_stack([-d_x1, -d_y1, d_theta0, d_x1, d_y1, d_theta1])

    return G1Sensitivity(solution, k_1, dk_1, L_1, k_2, dk_2, L_2, jacobian)


def solve_forward(
    x0: float,
    y0: float,
    theta0: float,
    k: float,
    x1: float,
    y1: float,
    tol: float = 1e-8,
    params: Optional[G1Params] = None,
) -> G1Solution:
    """
    Clothoid from a pose with prescribed initial curvature k through (x1, y1).

    The final heading theta1 is the unknown: Newton on k_G1(theta1) - k using
    dk/dtheta1 from the G1 sensitivities, then a bracketed search over the
    admissible headings if Newton fails.
    """
    params = params or G1Params()
    r, arot = polar(x1 - x0, y1 - y0)
    if r <= params.degenerate_distance:
        return _failed(STATUS_DEGENERATE, 0)

    lo = arot - math.pi + 1e-6
    hi = arot + math.pi - 1e-6

    def mismatch(theta1: float) -> float:
        sol = build_clothoid(x0, y0, theta0, x1, y1, theta1, params)
        return sol.k - k if sol.converged else math.nan

    # circular arc guess: symmetric end angles about the chord
    theta1 = arot - _normalize_angle(theta0 - arot)
    for niter in range(1, 4 * params.max_iter + 1):
        sens = build_clothoid_with_sensitivity(x0, y0, theta0, x1, y1, theta1, params)
        if not sens.solution.converged:
            break
        f = sens.solution.k - k
        if abs(f) <= tol:
            return G1Solution(sens.solution.k, sens.solution.dk, sens.solution.L, niter, STATUS_OK)
        if sens.k_2 == 0.0 or not math.isfinite(sens.k_2):
            break
        step = f / sens.k_2
        step = max(-math.pi / 4.0, min(math.pi / 4.0, step))
        theta1 = min(hi, max(lo, theta1 - step))

    logger.debug("forward problem: Newton failed, scanning final headings")
    grid = np.linspace(lo, hi, 129)
    values = [mismatch(t) for t in grid]
    for a, b, fa, fb in zip(grid[:-1], grid[1:], values[:-1], values[1:]):
        if math.isfinite(fa) and math.isfinite(fb) and fa * fb <= 0.0:
            theta1 = brentq(mismatch, a, b, xtol=1e-14, maxiter=200, disp=False)
            sol = build_clothoid(x0, y0, theta0, x1, y1, theta1, params)
            if sol.converged and abs(sol.k - k) <= max(tol, 1e-8 * abs(k)):
                return sol
    logger.warning("forward clothoid problem has no solution for k=%g to (%g, %g)", k, x1, y1)
    return _failed(STATUS_NOT_CONVERGED, 0)
