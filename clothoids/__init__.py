"""
Clothoid (Euler spiral) arcs: Fresnel integrals, G1 Hermite fitting,
evaluation of the curve and its offsets, bounding triangles and
curve/curve intersection.
Exports:
- ClothoidCurve, Triangle2D
- build_clothoid, build_clothoid_with_sensitivity
- fresnel_cs, generalized_fresnel_cs
"""

import logging

from .bounding import SubdivisionDepthError
from .curve import ClothoidCurve, points_on_clothoid
from .fresnel import (
    fresnel_cs,
    fresnel_cs_derivatives,
    generalized_fresnel_cs,
    generalized_fresnel_cs1,
    lommel_reduced,
)
from .g1 import (
    G1ConvergenceError,
    G1Sensitivity,
    G1Solution,
    build_clothoid,
    build_clothoid_with_sensitivity,
)
from .geometry import Triangle2D
from .params import G1Params, IntersectParams, SplitParams

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ClothoidCurve",
    "Triangle2D",
    "points_on_clothoid",
    "fresnel_cs",
    "fresnel_cs_derivatives",
    "generalized_fresnel_cs",
    "generalized_fresnel_cs1",
    "lommel_reduced",
    "build_clothoid",
    "build_clothoid_with_sensitivity",
    "G1Solution",
    "G1Sensitivity",
    "G1ConvergenceError",
    "SubdivisionDepthError",
    "G1Params",
    "SplitParams",
    "IntersectParams",
]
