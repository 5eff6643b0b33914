"""Unit conversions between solar, gravitational-radius and SI units."""
from __future__ import annotations

import math
from typing import Optional

import numpy as np

from . import constants
from .errors import NonPhysicalInputError

__all__ = [
    "r_g_in_meters",
    "si_from_r_g",
    "r_g_from_si",
    "msun_to_kg",
    "kg_to_msun",
    "yr_to_s",
]


def _positive_scalar(value: float, name: str) -> float:
    val = float(value)
    if not math.isfinite(val) or val <= 0.0:
        raise NonPhysicalInputError(f"{name} must be finite and positive (got {value!r})")
    return val


def r_g_in_meters(smbh_mass: float) -> float:
    """Return the gravitational radius ``G M_smbh / c^2`` in metres.

    Parameters
    ----------
    smbh_mass:
        Mass of the supermassive black hole in solar masses.
    """

    mass_kg = _positive_scalar(smbh_mass, "smbh_mass") * constants.M_SUN
    return constants.G * mass_kg / constants.C**2


def _resolve_scale(smbh_mass: float, r_g_defined: Optional[float]) -> float:
    if r_g_defined is None:
        return r_g_in_meters(smbh_mass)
    return _positive_scalar(r_g_defined, "r_g_defined")


def si_from_r_g(smbh_mass: float, distance_rg, r_g_defined: Optional[float] = None):
    """Convert distances in gravitational radii to metres.

    ``r_g_defined`` takes precedence over the value derived from
    ``smbh_mass`` so callers can reuse a precomputed scale.
    """

    scale = _resolve_scale(smbh_mass, r_g_defined)
    if np.ndim(distance_rg) == 0:
        return float(distance_rg) * scale
    return np.asarray(distance_rg, dtype=float) * scale


def r_g_from_si(smbh_mass: float, distance_m, r_g_defined: Optional[float] = None):
    """Convert distances in metres to gravitational radii."""

    scale = _resolve_scale(smbh_mass, r_g_defined)
    if np.ndim(distance_m) == 0:
        return float(distance_m) / scale
    return np.asarray(distance_m, dtype=float) / scale


def msun_to_kg(mass):
    return np.asarray(mass, dtype=float) * constants.M_SUN


def kg_to_msun(mass):
    return np.asarray(mass, dtype=float) / constants.M_SUN


def yr_to_s(duration):
    return np.asarray(duration, dtype=float) * constants.YR_S
