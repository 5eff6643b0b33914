"""Input and post-condition checks shared by the stellar mass kernels."""
from __future__ import annotations

import math
from typing import Dict

import numpy as np

from ..errors import InvalidInputError, NonPhysicalInputError, PhysicalInvariantViolation

# number of offending indices quoted in error messages
_MAX_REPORTED = 5


def _format_indices(mask: np.ndarray) -> str:
    idx = np.flatnonzero(mask)
    shown = ", ".join(str(int(i)) for i in idx[:_MAX_REPORTED])
    if idx.size > _MAX_REPORTED:
        shown += f", ... ({idx.size} total)"
    return shown


def star_arrays(**arrays) -> Dict[str, np.ndarray]:
    """Return float64 copies of per-star arrays after checking their shape.

    Every array must be one-dimensional and all must share the same length.
    """

    out: Dict[str, np.ndarray] = {}
    for name, values in arrays.items():
        arr = np.array(values, dtype=np.float64)
        if arr.ndim != 1:
            raise InvalidInputError(f"{name} must be one-dimensional (got shape {arr.shape})")
        out[name] = arr
    lengths = {name: arr.size for name, arr in out.items()}
    if len(set(lengths.values())) > 1:
        detail = ", ".join(f"{name}={n}" for name, n in lengths.items())
        raise InvalidInputError(f"per-star arrays must have equal length ({detail})")
    return out


def require_finite(name: str, arr: np.ndarray) -> None:
    bad = ~np.isfinite(arr)
    if np.any(bad):
        raise NonPhysicalInputError(f"{name} must be finite (indices {_format_indices(bad)})")


def require_positive(name: str, arr: np.ndarray) -> None:
    bad = ~(np.isfinite(arr) & (arr > 0.0))
    if np.any(bad):
        raise NonPhysicalInputError(
            f"{name} must be finite and positive (indices {_format_indices(bad)})"
        )


def require_non_negative(name: str, arr: np.ndarray) -> None:
    bad = ~(np.isfinite(arr) & (arr >= 0.0))
    if np.any(bad):
        raise NonPhysicalInputError(
            f"{name} must be finite and non-negative (indices {_format_indices(bad)})"
        )


def require_derived_positive(name: str, arr: np.ndarray) -> None:
    """Reject intermediate quantities that overflowed, underflowed to zero or went NaN."""

    bad = ~(np.isfinite(arr) & (arr > 0.0))
    if np.any(bad):
        raise NonPhysicalInputError(
            f"inputs give a non-finite or non-positive {name} (indices {_format_indices(bad)})"
        )


def require_derived_non_negative(name: str, arr: np.ndarray) -> None:
    bad = ~(np.isfinite(arr) & (arr >= 0.0))
    if np.any(bad):
        raise NonPhysicalInputError(
            f"inputs give a non-finite or negative {name} (indices {_format_indices(bad)})"
        )


def positive_scalar(name: str, value: float) -> float:
    val = float(value)
    if not math.isfinite(val) or val <= 0.0:
        raise NonPhysicalInputError(f"{name} must be finite and positive (got {value!r})")
    return val


def timestep_years(value: float) -> float:
    """Validate the timestep duration in years."""

    val = float(value)
    if not math.isfinite(val) or val <= 0.0:
        raise InvalidInputError(f"timestep_duration_yr must be finite and positive (got {value!r})")
    return val


def ensure_positive_masses(new_masses: np.ndarray, where: str) -> None:
    """Raise when any updated mass is zero, negative or NaN."""

    bad = ~(new_masses > 0.0)
    if np.any(bad):
        raise PhysicalInvariantViolation(
            f"{where}: star mass <= 0 after update (indices {_format_indices(bad)})"
        )


__all__ = [
    "star_arrays",
    "require_finite",
    "require_positive",
    "require_non_negative",
    "require_derived_positive",
    "require_derived_non_negative",
    "positive_scalar",
    "timestep_years",
    "ensure_positive_masses",
]
