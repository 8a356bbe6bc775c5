import sys
from pathlib import Path

import pytest

# Pytest 8 defaults to `--import-mode=importlib`, which does not prepend the
# repository root to `sys.path`. Add it so `import clothoids` works without an
# editable install.
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from clothoids import ClothoidCurve  # noqa: E402


@pytest.fixture
def rng():
    import numpy as np

    return np.random.default_rng(7)


@pytest.fixture
def half_circle() -> ClothoidCurve:
    """Radius 2 around the origin, counter-clockwise from (2, 0) to (-2, 0)."""
    return ClothoidCurve.from_length(2.0, 0.0, 1.5707963267948966, 0.5, 0.0, 6.283185307179586)


@pytest.fixture
def horizontal_line():
    """Returns a factory for straight segments y = h, x in [-5, 5]."""

    def make(h: float) -> ClothoidCurve:
        return ClothoidCurve.from_length(-5.0, h, 0.0, 0.0, 0.0, 10.0)

    return make
