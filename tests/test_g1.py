import math

import numpy as np
import pytest

from clothoids import (
    ClothoidCurve,
    G1ConvergenceError,
    G1Params,
    build_clothoid,
    build_clothoid_with_sensitivity,
)
from clothoids import g1
from clothoids.g1 import STATUS_DEGENERATE, STATUS_NOT_CONVERGED, solve_forward


def heading_diff(a, b):
    return (a - b + math.pi) % (2.0 * math.pi) - math.pi


def test_g1_round_trip_random_poses(rng):
    for _ in range(200):
        x0, y0, x1, y1 = rng.uniform(-5.0, 5.0, size=4)
        if math.hypot(x1 - x0, y1 - y0) < 1e-3:
            continue
        chord = math.atan2(y1 - y0, x1 - x0)
        theta0 = chord + rng.uniform(-3.0, 3.0)
        theta1 = chord + rng.uniform(-3.0, 3.0)

        sol = build_clothoid(x0, y0, theta0, x1, y1, theta1)
        assert sol.converged, (x0, y0, theta0, x1, y1, theta1)
        assert sol.L > 0.0

        curve = ClothoidCurve.from_length(x0, y0, theta0, sol.k, sol.dk, sol.L)
        xe, ye = curve.eval(sol.L)
        assert math.hypot(xe - x1, ye - y1) < 1e-7
        assert abs(heading_diff(curve.theta(sol.L), theta1)) < 1e-9


def test_g1_straight_line():
    sol = build_clothoid(0.0, 0.0, 0.0, 3.0, 0.0, 0.0)
    assert sol.converged
    assert sol.k == 0.0
    assert sol.dk == 0.0
    assert sol.L == pytest.approx(3.0, abs=1e-14)


def test_g1_quarter_circle():
    sol = build_clothoid(0.0, 0.0, 0.0, 1.0, 1.0, math.pi / 2)
    assert sol.converged
    assert sol.k == pytest.approx(1.0, abs=1e-12)
    assert sol.dk == pytest.approx(0.0, abs=1e-12)
    assert sol.L == pytest.approx(math.pi / 2, abs=1e-12)


def test_g1_coincident_endpoints_are_degenerate():
    sol = build_clothoid(1.0, 1.0, 0.0, 1.0, 1.0, 0.5)
    assert sol.status == STATUS_DEGENERATE
    assert not sol.converged
    with pytest.raises(G1ConvergenceError):
        ClothoidCurve.from_g1(1.0, 1.0, 0.0, 1.0, 1.0, 0.5)


def test_setup_g1_keeps_curve_on_failure():
    curve = ClothoidCurve.from_length(0.0, 0.0, 0.0, 0.1, 0.0, 2.0)
    before = curve.copy()
    sol = curve.setup_g1(1.0, 1.0, 0.0, 1.0, 1.0, 0.5)
    assert not sol.converged
    assert curve == before

    sol = curve.setup_g1(0.0, 0.0, 0.0, 1.0, 1.0, math.pi / 2)
    assert sol.converged
    assert curve.k == pytest.approx(1.0, abs=1e-12)
    assert curve.length == pytest.approx(math.pi / 2, abs=1e-12)


def test_g1_bracketed_fallback_matches_newton():
    pose = (0.0, 0.0, 1.2, 2.0, 0.5, -1.0)
    newton = build_clothoid(*pose)
    fallback = build_clothoid(*pose, params=G1Params(max_iter=1))
    assert newton.converged and fallback.converged
    assert fallback.k == pytest.approx(newton.k, abs=1e-6)
    assert fallback.dk == pytest.approx(newton.dk, abs=1e-6)
    assert fallback.L == pytest.approx(newton.L, abs=1e-6)


def _kdl(*pose):
    sol = build_clothoid(*pose)
    assert sol.converged
    return np.array([sol.k, sol.dk, sol.L])


@pytest.mark.parametrize(
    "pose",
    [
        (0.0, 0.0, 0.3, 4.0, 1.0, -0.5),
        (1.0, -1.0, 2.0, 3.0, 2.0, -1.0),
        (-2.0, 0.5, -0.7, 1.5, -1.0, 0.9),
    ],
)
def test_sensitivity_matches_finite_differences(pose):
    sens = build_clothoid_with_sensitivity(*pose)
    assert sens.solution.converged
    jac = sens.jacobian
    assert jac.shape == (3, 6)

    h = 1e-5
    fd = np.zeros((3, 6))
    for j in range(6):
        plus = list(pose)
        minus = list(pose)
        plus[j] += h
        minus[j] -= h
        fd[:, j] = (_kdl(*plus) - _kdl(*minus)) / (2.0 * h)

    assert np.allclose(jac, fd, rtol=1e-4, atol=1e-6)
    assert np.allclose(jac[:, 2], [sens.k_1, sens.dk_1, sens.L_1])
    assert np.allclose(jac[:, 5], [sens.k_2, sens.dk_2, sens.L_2])
    # translating both endpoints together changes nothing
    assert np.allclose(jac[:, 0] + jac[:, 3], 0.0)
    assert np.allclose(jac[:, 1] + jac[:, 4], 0.0)


def test_sensitivity_of_degenerate_problem():
    sens = build_clothoid_with_sensitivity(0.0, 0.0, 0.0, 0.0, 0.0, 1.0)
    assert not sens.solution.converged
    assert sens.jacobian is None
    assert math.isnan(sens.k_1)


def test_forward_problem_recovers_known_clothoid():
    target = ClothoidCurve.from_length(0.0, 0.0, 0.2, 0.3, -0.1, 4.0)
    x1, y1 = target.eval(4.0)

    curve = ClothoidCurve()
    assert curve.setup_forward(0.0, 0.0, 0.2, 0.3, x1, y1)
    assert abs(curve.k - 0.3) <= 1e-8
    xe, ye = curve.eval(curve.s_max)
    assert math.hypot(xe - x1, ye - y1) < 1e-7
    assert curve.dk == pytest.approx(-0.1, abs=1e-5)
    assert curve.length == pytest.approx(4.0, abs=1e-5)


def test_forward_problem_straight_line():
    sol = solve_forward(0.0, 0.0, 0.0, 0.0, 5.0, 0.0)
    assert sol.converged
    assert sol.k == pytest.approx(0.0, abs=1e-8)
    assert sol.dk == pytest.approx(0.0, abs=1e-8)
    assert sol.L == pytest.approx(5.0, abs=1e-8)


def test_forward_problem_coincident_points():
    curve = ClothoidCurve.from_length(0.0, 0.0, 0.0, 0.5, 0.0, 1.0)
    before = curve.copy()
    assert not curve.setup_forward(2.0, 2.0, 0.3, 0.1, 2.0, 2.0)
    assert curve == before


def _no_bracket(A0, delta, phi0):
    return None


def test_g1_reports_non_convergence(monkeypatch):
    monkeypatch.setattr(g1, "_bracketed_root", _no_bracket)
    params = G1Params(max_iter=2, accept_tolerance=-1.0)
    pose = (0.0, 0.0, 1.2, 2.0, 0.5, -1.0)

    sol = build_clothoid(*pose, params=params)
    assert sol.status == STATUS_NOT_CONVERGED
    assert not sol.converged

    sens = build_clothoid_with_sensitivity(*pose, params=params)
    assert sens.solution.status == STATUS_NOT_CONVERGED
    assert sens.jacobian is None

    with pytest.raises(G1ConvergenceError):
        ClothoidCurve.from_g1(*pose, params=params)


def test_forward_problem_reports_non_convergence(monkeypatch):
    monkeypatch.setattr(g1, "_bracketed_root", _no_bracket)
    params = G1Params(max_iter=2, accept_tolerance=-1.0)

    sol = solve_forward(0.0, 0.0, 0.2, 0.3, 3.0, 1.0, params=params)
    assert sol.status == STATUS_NOT_CONVERGED

    curve = ClothoidCurve.from_length(0.0, 0.0, 0.0, 0.5, 0.0, 1.0)
    before = curve.copy()
    assert not curve.setup_forward(0.0, 0.0, 0.2, 0.3, 3.0, 1.0, params=params)
    assert curve == before
