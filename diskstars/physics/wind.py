"""Radiatively driven wind mass loss with smooth Eddington saturation.

Each star loses mass at

``Ṁ = -(L / v_esc²) · (1 + tanh((L - L_edd) / (0.1 L_edd)))``

with the Eddington luminosity ``L_edd = 4π G c M / κ`` evaluated for the
local disk opacity ``κ`` and the surface escape speed
``v_esc = sqrt(2 G M / R)``.  Deep below the Eddington limit the wind
vanishes, at ``L = L_edd`` the rate is ``-L / v_esc²``, and far above it the
rate saturates at twice that value.  The tanh factor is evaluated as
``2 / (1 + exp(-2x))`` so the sub-Eddington tail keeps its relative
precision instead of cancelling against ``1 + tanh``.

Masses are in solar masses, radii and luminosities are given as base-10
logarithms of solar units, opacity is in m² kg⁻¹ and the timestep in years.
"""
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .. import constants, numba_config, units
from ..warnings import NumericalWarning
from . import _validate
from ._numba_kernels import wind_mass_loss_numba

__all__ = [
    "WindMassLossResult",
    "eddington_luminosity",
    "escape_speed",
    "eddington_saturation",
    "wind_mass_loss_rate",
    "star_wind_mass_loss",
]

logger = logging.getLogger(__name__)

# width of the tanh transition as a fraction of L_edd
SATURATION_WIDTH: float = 0.1

_NUMBA_FAILED = False


@dataclass(frozen=True)
class WindMassLossResult:
    """Outcome of one wind mass loss pass.

    Attributes
    ----------
    new_masses:
        Updated stellar masses [M_sun].
    mass_lost:
        Signed per-star mass change [M_sun]; every entry is ``<= 0``.
    """

    new_masses: np.ndarray
    mass_lost: np.ndarray

    @property
    def total_mass_lost(self) -> float:
        """Signed sum of the per-star losses [M_sun]."""

        return float(np.sum(self.mass_lost))


def eddington_luminosity(mass_kg, opacity):
    """Return ``L_edd = 4π G c M / κ`` in watts."""

    return 4.0 * np.pi * constants.G * constants.C * np.asarray(mass_kg, dtype=float) / opacity


def escape_speed(mass_kg, radius_m):
    """Return the surface escape speed ``sqrt(2 G M / R)`` in m s⁻¹."""

    return np.sqrt(2.0 * constants.G * np.asarray(mass_kg, dtype=float) / radius_m)


def eddington_saturation(lum_w, l_edd_w):
    """Return ``1 + tanh((L - L_edd) / (0.1 L_edd))``.

    The result lies in ``[0, 2]`` and equals one at ``L = L_edd``.
    """

    x = (np.asarray(lum_w, dtype=float) - l_edd_w) / (SATURATION_WIDTH * l_edd_w)
    z = 2.0 * x
    e = np.exp(-np.abs(z))
    return np.where(z >= 0.0, 2.0 / (1.0 + e), 2.0 * e / (1.0 + e))


def wind_mass_loss_rate(mass_kg, radius_m, lum_w, opacity):
    """Return the (negative) wind mass loss rate in kg s⁻¹."""

    l_edd = eddington_luminosity(mass_kg, opacity)
    v_esc = escape_speed(mass_kg, radius_m)
    return -(lum_w / v_esc**2) * eddington_saturation(lum_w, l_edd)


def _wind_numpy(
    masses: np.ndarray,
    log_radius: np.ndarray,
    log_lum: np.ndarray,
    opacity: np.ndarray,
    timestep_s: float,
) -> tuple[np.ndarray, np.ndarray]:
    mass_kg = units.msun_to_kg(masses)
    radius_m = 10.0 ** log_radius * constants.R_SUN
    lum_w = 10.0 ** log_lum * constants.L_SUN
    mdot = wind_mass_loss_rate(mass_kg, radius_m, lum_w, opacity)
    mass_lost = units.kg_to_msun(mdot * timestep_s)
    return masses + mass_lost, mass_lost


def _check_wind_scales(
    masses: np.ndarray,
    log_radius: np.ndarray,
    log_lum: np.ndarray,
    opacity: np.ndarray,
    timestep_s: float,
) -> None:
    """Reject inputs whose intermediate scales leave the float64 range."""

    with np.errstate(over="ignore", under="ignore", divide="ignore", invalid="ignore"):
        mass_kg = units.msun_to_kg(masses)
        radius_m = 10.0 ** log_radius * constants.R_SUN
        lum_w = 10.0 ** log_lum * constants.L_SUN
        l_edd = eddington_luminosity(mass_kg, opacity)
        v_esc2 = 2.0 * constants.G * mass_kg / radius_m
        # saturation factor is at most 2
        max_loss = 2.0 * (lum_w / v_esc2) * timestep_s
    _validate.require_derived_positive("stellar radius", radius_m)
    _validate.require_derived_positive("stellar luminosity", lum_w)
    _validate.require_derived_positive("Eddington luminosity", l_edd)
    _validate.require_derived_positive("escape speed squared", v_esc2)
    _validate.require_derived_non_negative("wind mass loss", max_loss)


def star_wind_mass_loss(
    masses: Iterable[float],
    log_radius: Iterable[float],
    log_lum: Iterable[float],
    opacity: Iterable[float],
    timestep_duration_yr: float,
    *,
    use_numba: Optional[bool] = None,
) -> WindMassLossResult:
    """Remove wind mass from every star for one timestep.

    Parameters
    ----------
    masses:
        Stellar masses [M_sun].
    log_radius:
        ``log10`` of the stellar radii [R_sun].
    log_lum:
        ``log10`` of the stellar luminosities [L_sun].
    opacity:
        Disk opacity at each star's location [m² kg⁻¹].
    timestep_duration_yr:
        Length of the timestep [yr].
    use_numba:
        Force (``True``) or bypass (``False``) the JIT kernel.  ``None``
        follows ``DISKSTARS_DISABLE_NUMBA``.

    Returns
    -------
    WindMassLossResult
        New masses and signed per-star losses.  The inputs are not modified.

    Raises
    ------
    InvalidInputError
        If the arrays are not one-dimensional with equal length or the
        timestep is not positive.
    NonPhysicalInputError
        If a mass or opacity is non-positive, a value is not finite, or the
        inputs push the Eddington luminosity, escape speed or mass loss
        outside the float64 range.
    PhysicalInvariantViolation
        If a star would end the step with zero or negative mass.
    """

    global _NUMBA_FAILED

    arrs = _validate.star_arrays(
        masses=masses, log_radius=log_radius, log_lum=log_lum, opacity=opacity
    )
    dt_yr = _validate.timestep_years(timestep_duration_yr)
    m = arrs["masses"]
    if m.size == 0:
        return WindMassLossResult(new_masses=np.empty(0), mass_lost=np.empty(0))

    _validate.require_positive("masses", m)
    _validate.require_finite("log_radius", arrs["log_radius"])
    _validate.require_finite("log_lum", arrs["log_lum"])
    _validate.require_positive("opacity", arrs["opacity"])
    timestep_s = float(units.yr_to_s(dt_yr))
    _check_wind_scales(m, arrs["log_radius"], arrs["log_lum"], arrs["opacity"], timestep_s)

    use_jit = numba_config.resolve_use_numba(use_numba, failed=_NUMBA_FAILED)
    result: tuple[np.ndarray, np.ndarray] | None = None
    if use_jit:
        try:
            result = wind_mass_loss_numba(
                m, arrs["log_radius"], arrs["log_lum"], arrs["opacity"], float(timestep_s)
            )
        except Exception as exc:  # pragma: no cover - fallback path
            _NUMBA_FAILED = True
            result = None
            warnings.warn(
                f"star_wind_mass_loss: numba kernel failed ({exc!r}); falling back to NumPy.",
                NumericalWarning,
            )
    if result is None:
        result = _wind_numpy(m, arrs["log_radius"], arrs["log_lum"], arrs["opacity"], timestep_s)

    new_masses, mass_lost = result
    _validate.ensure_positive_masses(new_masses, "star_wind_mass_loss")
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "star_wind_mass_loss: n_stars=%d dt=%e yr total=%e Msun use_numba=%s",
            m.size,
            dt_yr,
            float(np.sum(mass_lost)),
            use_jit,
        )
    return WindMassLossResult(new_masses=new_masses, mass_lost=mass_lost)
