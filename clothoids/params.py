import math
from dataclasses import dataclass


@dataclass
class G1Params:
    """Knobs of the G1 Hermite solver."""

    tolerance: float = 1e-12  # Newton residual target
    accept_tolerance: float = 1e-8  # residual still accepted after max_iter
    max_iter: int = 20
    degenerate_distance: float = 1e-14  # endpoints closer than this have no solution
    angle_tolerance: float = 1e-10  # straight line / circular arc detection


@dataclass
class SplitParams:
    max_depth: int = 40
    max_pieces: int = 100_000  # leaves bb_split may produce before giving up
    small_angle: float = 1e-4 * math.pi / 2.0  # flat triangle below this turning


@dataclass
class IntersectParams:
    """
    Defaults used by ClothoidCurve.intersect.

    Leaves are split to `split_angle` turning and to `split_size_ratio` of the
    curve length; refinement stops once the position mismatch is <= `tolerance`.
    """

    split_angle: float = math.pi / 50.0
    split_size_ratio: float = 1.0 / 3.0
    max_iter: int = 20
    tolerance: float = 1e-10
    dedup_tolerance: float = 1e-6
    bounds_slack: float = 1e-9
