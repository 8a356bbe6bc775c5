import math
import unittest

import numpy as np
import pytest

from clothoids import ClothoidCurve, IntersectParams
from clothoids.intersection import _is_duplicate, intersect_internal


def _sorted_pairs(s1, s2):
    assert len(s1) == len(s2)
    return sorted(zip(s1, s2))


def _assert_same_point(c1, s1, offs1, c2, s2, offs2, tol=1e-9):
    x1, y1 = c1.eval(s1, offs1)
    x2, y2 = c2.eval(s2, offs2)
    assert math.hypot(x1 - x2, y1 - y2) <= tol


def test_line_crosses_half_circle(horizontal_line, half_circle):
    line = horizontal_line(1.0)
    s1, s2 = line.intersect(half_circle)
    pairs = _sorted_pairs(s1, s2)
    r3 = math.sqrt(3.0)
    assert len(pairs) == 2
    assert pairs[0] == pytest.approx((5.0 - r3, 5.0 * math.pi / 3.0), abs=1e-8)
    assert pairs[1] == pytest.approx((5.0 + r3, math.pi / 3.0), abs=1e-8)
    for a, b in pairs:
        _assert_same_point(line, a, 0.0, half_circle, b, 0.0)


def test_offset_line_crosses_half_circle(horizontal_line, half_circle):
    # y = 0 shifted by one along its left normal is y = 1
    line = horizontal_line(0.0)
    s1, s2 = line.intersect(half_circle, offs=1.0)
    pairs = _sorted_pairs(s1, s2)
    r3 = math.sqrt(3.0)
    assert len(pairs) == 2
    assert pairs[0] == pytest.approx((5.0 - r3, 5.0 * math.pi / 3.0), abs=1e-8)
    assert pairs[1] == pytest.approx((5.0 + r3, math.pi / 3.0), abs=1e-8)


def test_line_crosses_offset_circle(horizontal_line, half_circle):
    # offset -1 of the radius 2 circle is the radius 3 circle
    line = horizontal_line(1.0)
    s1, s2 = line.intersect(half_circle, other_offs=-1.0)
    pairs = _sorted_pairs(s1, s2)
    phi = math.asin(1.0 / 3.0)
    x = 3.0 * math.cos(phi)
    assert len(pairs) == 2
    assert pairs[0] == pytest.approx((5.0 - x, 2.0 * (math.pi - phi)), abs=1e-8)
    assert pairs[1] == pytest.approx((5.0 + x, 2.0 * phi), abs=1e-8)
    for a, b in pairs:
        _assert_same_point(line, a, 0.0, half_circle, b, -1.0)


def test_line_crosses_spiral_once(horizontal_line):
    spiral = ClothoidCurve.from_length(0.0, -2.0, math.pi / 2, 0.1, 0.05, 4.0)
    line = horizontal_line(0.5)
    s1, s2 = spiral.intersect(line)
    assert len(s1) == len(s2) == 1
    _assert_same_point(spiral, s1[0], 0.0, line, s2[0], 0.0)
    assert spiral.eval(s1[0])[1] == pytest.approx(0.5, abs=1e-9)
    assert spiral.s_min <= s1[0] <= spiral.s_max


def test_intersection_is_symmetric(horizontal_line, half_circle):
    line = horizontal_line(1.0)
    a1, a2 = line.intersect(half_circle)
    b1, b2 = half_circle.intersect(line)
    assert np.allclose(_sorted_pairs(a1, a2), _sorted_pairs(b2, b1), atol=1e-8)


def test_disjoint_curves(horizontal_line, half_circle):
    line = horizontal_line(5.0)
    assert line.intersect(half_circle) == ([], [])
    assert not line.approximate_collision(half_circle)


def test_intersection_is_deterministic(horizontal_line, half_circle):
    line = horizontal_line(0.5)
    params = IntersectParams(split_angle=math.pi / 20)
    first = half_circle.intersect(line, params=params)
    second = half_circle.intersect(line, params=params)
    assert len(first[0]) == 2
    assert first == second


def test_custom_tolerance(horizontal_line, half_circle):
    line = horizontal_line(1.0)
    s1, s2 = line.intersect(half_circle, max_iter=50, tolerance=1e-13)
    assert len(s1) == 2
    for a, b in zip(s1, s2):
        _assert_same_point(line, a, 0.0, half_circle, b, 0.0, tol=1e-12)


def test_duplicate_detection():
    assert _is_duplicate(1.0, 2.0, [0.5, 1.0 + 1e-8], [2.0, 2.0 - 1e-8], 1e-6)
    assert not _is_duplicate(1.0, 2.0, [1.0], [2.1], 1e-6)
    assert not _is_duplicate(1.0, 2.0, [], [], 1e-6)


def test_parallel_pieces_do_not_refine():
    a = ClothoidCurve.from_length(0.0, 0.0, 0.0, 0.0, 0.0, 1.0)
    b = ClothoidCurve.from_length(0.0, 1.0, 0.0, 0.0, 0.0, 1.0)
    assert intersect_internal(a, 0.0, b, 0.0, 20, 1e-10) is None


def test_refinement_stays_inside_pieces():
    a = ClothoidCurve.from_length(0.0, 0.0, 0.0, 0.0, 0.0, 1.0)
    # crossing of the supporting lines is at x = 2, beyond piece a
    b = ClothoidCurve.from_length(2.0, -1.0, math.pi / 2, 0.0, 0.0, 2.0)
    assert intersect_internal(a, 0.0, b, 0.0, 20, 1e-10) is None
    b.setup(0.5, -1.0, math.pi / 2, 0.0, 0.0, 0.0, 2.0)
    hit = intersect_internal(a, 0.0, b, 0.0, 20, 1e-10)
    assert hit == pytest.approx((0.5, 1.0), abs=1e-10)


class TestApproximateCollision(unittest.TestCase):
    def setUp(self):
        self.circle = ClothoidCurve.from_length(2.0, 0.0, math.pi / 2, 0.5, 0.0, 2.0 * math.pi)

    def line(self, h):
        return ClothoidCurve.from_length(-5.0, h, 0.0, 0.0, 0.0, 10.0)

    def test_crossing_is_reported(self):
        self.assertTrue(self.line(1.0).approximate_collision(self.circle))
        self.assertTrue(self.circle.approximate_collision(self.line(1.0)))

    def test_never_misses_a_crossing(self):
        for h in np.linspace(-1.0, 1.95, 12):
            line = self.line(float(h))
            s1, _ = line.intersect(self.circle)
            if s1:
                self.assertTrue(line.approximate_collision(self.circle))

    def test_offsets_are_applied(self):
        line = self.line(3.0)
        self.assertFalse(line.approximate_collision(self.circle))
        self.assertTrue(line.approximate_collision(self.circle, offs=-2.0))
        self.assertTrue(line.approximate_collision(self.circle, other_offs=-1.5))
