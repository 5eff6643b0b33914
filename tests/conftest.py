from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(params=[False, True], ids=["numpy", "numba"])
def use_numba(request: pytest.FixtureRequest) -> bool:
    """Run a kernel test once on the NumPy path and once on the JIT path."""

    return bool(request.param)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20240611)
