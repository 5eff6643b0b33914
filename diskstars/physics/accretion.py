"""Bondi/Hill limited gas accretion onto embedded stars.

Each star captures disk gas inside ``R = min(R_B, R_Hill)`` with

``R_B = 2 G M / c_s²`` and ``R_Hill = a (M / (3 (M + M_smbh)))^{1/3}``

and accretes at ``Ṁ = (π / f) ρ c_s R²`` where ``f ≈ 4`` accounts for the
suppression of accretion as the star approaches its Eddington luminosity
(Cantiello et al. 2021; Fabj et al. 2024).

Stars may not grow beyond the initial-mass cutoff.  A star whose
uncapped mass reaches the cutoff becomes *immortal*: its mass is held
at the cutoff and the excess gain is returned to the disk.  Immortal stars
normally re-enter this step slightly below the cutoff because the wind pass
strips a little mass each timestep, so the allowed growth is
``cutoff - M_old`` rather than zero.

The ceiling test is ``M_old + ΔM >= cutoff`` on the unclamped candidate.  A
gain too small to move a star sitting on the cutoff still rounds onto the
ceiling, so it is booked as returned to the disk instead of vanishing from
the ledger.
"""
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .. import constants, numba_config, units
from ..errors import PhysicalInvariantViolation
from ..warnings import NumericalWarning
from . import _validate
from ._numba_kernels import accretion_numba

__all__ = [
    "AccretionResult",
    "bondi_radius",
    "hill_radius_rg",
    "capture_radius",
    "accretion_rate",
    "accrete_star_mass",
]

logger = logging.getLogger(__name__)

DEFAULT_LUMINOSITY_FACTOR: float = 4.0

_NUMBA_FAILED = False


@dataclass(frozen=True)
class AccretionResult:
    """Outcome of one accretion pass.

    Attributes
    ----------
    new_masses:
        Updated masses [M_sun], each at most the initial-mass cutoff.
    mass_gained:
        Uncapped per-star gain ``Ṁ Δt`` [M_sun].
    immortal_mass_lost:
        Per-star gain discarded by the cutoff [M_sun]; zero where the star
        was not clipped.
    immortal:
        Mask of stars whose uncapped mass reached the cutoff.
    """

    new_masses: np.ndarray
    mass_gained: np.ndarray
    immortal_mass_lost: np.ndarray
    immortal: np.ndarray

    @property
    def total_mass_gained(self) -> float:
        return float(np.sum(self.mass_gained))

    @property
    def total_immortal_mass_lost(self) -> float:
        return float(np.sum(self.immortal_mass_lost))


def bondi_radius(mass_msun, sound_speed):
    """Return the Bondi radius ``2 G M / c_s²`` in metres."""

    mass_kg = units.msun_to_kg(mass_msun)
    return 2.0 * constants.G * mass_kg / np.asarray(sound_speed, dtype=float) ** 2


def hill_radius_rg(mass_msun, orbs_a, smbh_mass: float):
    """Return the Hill radius in gravitational radii for orbits ``orbs_a`` [r_g]."""

    m = np.asarray(mass_msun, dtype=float)
    return np.asarray(orbs_a, dtype=float) * (m / (3.0 * (m + smbh_mass))) ** (1.0 / 3.0)


def capture_radius(mass_msun, orbs_a, smbh_mass: float, sound_speed, r_g_in_meters: float):
    """Return ``min(R_B, R_Hill)`` in metres."""

    r_bondi = bondi_radius(mass_msun, sound_speed)
    r_hill = units.si_from_r_g(
        smbh_mass, hill_radius_rg(mass_msun, orbs_a, smbh_mass), r_g_defined=r_g_in_meters
    )
    return np.minimum(r_bondi, r_hill)


def accretion_rate(density, sound_speed, radius_m, luminosity_factor: float = DEFAULT_LUMINOSITY_FACTOR):
    """Return ``(π / f) ρ c_s R²`` in kg s⁻¹."""

    return (np.pi / luminosity_factor) * np.asarray(density, dtype=float) * sound_speed * radius_m**2


def _accretion_numpy(
    masses: np.ndarray,
    orbs_a: np.ndarray,
    luminosity_factor: float,
    cutoff: float,
    smbh_mass: float,
    sound_speed: np.ndarray,
    density: np.ndarray,
    dt_yr: float,
    r_g_in_meters: float,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    radius = capture_radius(masses, orbs_a, smbh_mass, sound_speed, r_g_in_meters)
    mdot = accretion_rate(density, sound_speed, radius, luminosity_factor)
    gained = units.kg_to_msun(mdot * constants.YR_S) * dt_yr
    uncapped = masses + gained
    # decide on the pre-clamp candidate; the clamped value is never compared
    immortal = uncapped >= cutoff
    new_masses = np.where(immortal, cutoff, uncapped)
    lost = np.where(immortal, gained - (cutoff - masses), 0.0)
    return new_masses, gained, lost, immortal


def _check_accretion_scales(
    masses: np.ndarray,
    orbs_a: np.ndarray,
    luminosity_factor: float,
    smbh_mass: float,
    sound_speed: np.ndarray,
    density: np.ndarray,
    dt_yr: float,
    r_g_in_meters: float,
) -> None:
    """Reject inputs whose capture radius or gain leave the float64 range."""

    with np.errstate(over="ignore", under="ignore", divide="ignore", invalid="ignore"):
        radius = capture_radius(masses, orbs_a, smbh_mass, sound_speed, r_g_in_meters)
        mdot = accretion_rate(density, sound_speed, radius, luminosity_factor)
        gained = units.kg_to_msun(mdot * constants.YR_S) * dt_yr
        uncapped = masses + gained
    _validate.require_derived_positive("capture radius", radius)
    _validate.require_derived_non_negative("accreted mass", gained)
    _validate.require_derived_positive("uncapped mass", uncapped)


def accrete_star_mass(
    masses: Iterable[float],
    orbs_a: Iterable[float],
    luminosity_factor: float,
    initial_mass_cutoff: float,
    smbh_mass: float,
    sound_speed: Iterable[float],
    density: Iterable[float],
    timestep_duration_yr: float,
    r_g_in_meters: float,
    *,
    use_numba: Optional[bool] = None,
) -> AccretionResult:
    """Accrete disk gas onto every star for one timestep.

    Parameters
    ----------
    masses:
        Stellar masses at the start of the step [M_sun].
    orbs_a:
        Orbital semi-major axes [r_g].
    luminosity_factor:
        Dimensionless suppression factor ``f`` (≈ 4).
    initial_mass_cutoff:
        Mass ceiling for immortal stars [M_sun].
    smbh_mass:
        Mass of the central black hole [M_sun].
    sound_speed:
        Disk sound speed at each star [m s⁻¹].
    density:
        Disk gas density at each star [kg m⁻³].
    timestep_duration_yr:
        Length of the timestep [yr].
    r_g_in_meters:
        Gravitational radius of the SMBH [m].
    use_numba:
        Force (``True``) or bypass (``False``) the JIT kernel.

    Returns
    -------
    AccretionResult
        Capped masses together with uncapped gains and the excess returned
        to the disk by immortal stars.

    Raises
    ------
    InvalidInputError
        On mismatched array lengths or a non-positive timestep.
    NonPhysicalInputError
        On non-positive masses, radii, sound speeds or scalar parameters,
        negative density, or inputs whose capture radius or gain overflow.
    PhysicalInvariantViolation
        If a clipped star started above the cutoff or any mass ends <= 0.
    """

    global _NUMBA_FAILED

    arrs = _validate.star_arrays(
        masses=masses, orbs_a=orbs_a, sound_speed=sound_speed, density=density
    )
    dt_yr = _validate.timestep_years(timestep_duration_yr)
    f_lum = _validate.positive_scalar("luminosity_factor", luminosity_factor)
    cutoff = _validate.positive_scalar("initial_mass_cutoff", initial_mass_cutoff)
    m_smbh = _validate.positive_scalar("smbh_mass", smbh_mass)
    r_g = _validate.positive_scalar("r_g_in_meters", r_g_in_meters)
    m = arrs["masses"]
    if m.size == 0:
        empty = np.empty(0)
        return AccretionResult(
            new_masses=empty,
            mass_gained=empty.copy(),
            immortal_mass_lost=empty.copy(),
            immortal=np.zeros(0, dtype=bool),
        )

    _validate.require_positive("masses", m)
    _validate.require_positive("orbs_a", arrs["orbs_a"])
    _validate.require_positive("sound_speed", arrs["sound_speed"])
    _validate.require_non_negative("density", arrs["density"])
    _check_accretion_scales(
        m, arrs["orbs_a"], f_lum, m_smbh, arrs["sound_speed"], arrs["density"], dt_yr, r_g
    )

    use_jit = numba_config.resolve_use_numba(use_numba, failed=_NUMBA_FAILED)
    result = None
    if use_jit:
        try:
            result = accretion_numba(
                m,
                arrs["orbs_a"],
                f_lum,
                cutoff,
                m_smbh,
                arrs["sound_speed"],
                arrs["density"],
                dt_yr,
                r_g,
            )
        except Exception as exc:  # pragma: no cover - fallback path
            _NUMBA_FAILED = True
            result = None
            warnings.warn(
                f"accrete_star_mass: numba kernel failed ({exc!r}); falling back to NumPy.",
                NumericalWarning,
            )
    if result is None:
        result = _accretion_numpy(
            m, arrs["orbs_a"], f_lum, cutoff, m_smbh, arrs["sound_speed"], arrs["density"], dt_yr, r_g
        )

    new_masses, gained, lost, immortal = result
    immortal = np.asarray(immortal, dtype=bool)
    entered_above = immortal & (m > cutoff)
    if np.any(entered_above):
        idx = np.flatnonzero(entered_above)
        raise PhysicalInvariantViolation(
            f"accrete_star_mass: {idx.size} star(s) entered above initial_mass_cutoff={cutoff} "
            f"(first index {int(idx[0])}, mass {float(m[idx[0]])})"
        )
    _validate.ensure_positive_masses(new_masses, "accrete_star_mass")
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "accrete_star_mass: n_stars=%d dt=%e yr gained=%e immortal_lost=%e n_immortal=%d use_numba=%s",
            m.size,
            dt_yr,
            float(np.sum(gained)),
            float(np.sum(lost)),
            int(np.count_nonzero(immortal)),
            use_jit,
        )
    return AccretionResult(
        new_masses=new_masses,
        mass_gained=gained,
        immortal_mass_lost=lost,
        immortal=immortal,
    )
