"""Per-timestep driver that sequences the stellar mass passes.

The driver evaluates the disk profiles at each star's orbit, applies the
wind and accretion passes in the configured order and keeps the mass
ledger consistent: across one step

``ΔM_stars = wind_mass_lost + mass_gained - immortal_mass_lost``

where the wind term is negative.  Mass returned to the disk is
``-wind_mass_lost + immortal_mass_lost``.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from .disk import DiskEnvironment
from .errors import InvalidInputError, PhysicalInvariantViolation
from .physics import accrete_star_mass, star_wind_mass_loss
from .physics import _validate
from .population import StarPopulation
from .schema import Config, ORDERS

__all__ = [
    "MASS_BUDGET_TOLERANCE",
    "StarMassParams",
    "StepDiagnostics",
    "MassLedger",
    "EvolutionResult",
    "step_star_masses",
    "evolve",
]

logger = logging.getLogger(__name__)

MASS_BUDGET_TOLERANCE = 1.0e-10


@dataclass(frozen=True)
class StarMassParams:
    """Scalar parameters of the accretion pass."""

    luminosity_factor: float = 4.0
    initial_mass_cutoff: float = 300.0

    @classmethod
    def from_config(cls, cfg: Config) -> "StarMassParams":
        return cls(
            luminosity_factor=cfg.stars.luminosity_factor,
            initial_mass_cutoff=cfg.stars.initial_mass_cutoff,
        )


@dataclass
class StepDiagnostics:
    """Aggregate outputs of one timestep.

    Attributes
    ----------
    wind_mass_lost:
        Signed wind loss summed over stars [M_sun] (``<= 0``).
    mass_gained:
        Uncapped accreted mass [M_sun].
    immortal_mass_lost:
        Accreted mass blown back into the disk at the cutoff [M_sun].
    mass_budget_error:
        Relative mismatch between the population mass change and the
        three totals above.
    """

    step: int
    timestep_yr: float
    n_stars: int
    n_immortal: int
    mass_before: float
    mass_after: float
    wind_mass_lost: float
    mass_gained: float
    immortal_mass_lost: float
    mass_budget_error: float

    @property
    def mass_returned_to_disk(self) -> float:
        return -self.wind_mass_lost + self.immortal_mass_lost

    def as_dict(self) -> Dict[str, float]:
        record = asdict(self)
        record["mass_returned_to_disk"] = self.mass_returned_to_disk
        return record


@dataclass
class MassLedger:
    """Cumulative mass bookkeeping across timesteps [M_sun]."""

    n_steps: int = 0
    elapsed_yr: float = 0.0
    wind_mass_lost: float = 0.0
    mass_gained: float = 0.0
    immortal_mass_lost: float = 0.0
    max_mass_budget_error: float = 0.0

    def record(self, diag: StepDiagnostics) -> None:
        self.n_steps += 1
        self.elapsed_yr += diag.timestep_yr
        self.wind_mass_lost += diag.wind_mass_lost
        self.mass_gained += diag.mass_gained
        self.immortal_mass_lost += diag.immortal_mass_lost
        self.max_mass_budget_error = max(self.max_mass_budget_error, diag.mass_budget_error)

    @property
    def mass_returned_to_disk(self) -> float:
        return -self.wind_mass_lost + self.immortal_mass_lost

    @property
    def net_stellar_mass_change(self) -> float:
        return self.wind_mass_lost + self.mass_gained - self.immortal_mass_lost

    def as_dict(self) -> Dict[str, float]:
        record = asdict(self)
        record["mass_returned_to_disk"] = self.mass_returned_to_disk
        record["net_stellar_mass_change"] = self.net_stellar_mass_change
        return record


def _mass_budget_error(before: float, after: float, wind: float, gained: float, lost: float) -> float:
    expected = before + wind + gained - lost
    baseline = max(abs(before), 1.0e-300)
    return abs(after - expected) / baseline


def step_star_masses(
    population: StarPopulation,
    disk: DiskEnvironment,
    params: StarMassParams,
    timestep_duration_yr: float,
    *,
    order: str = "wind_then_accretion",
    use_numba: Optional[bool] = None,
    enforce_mass_budget: bool = False,
    mass_budget_tolerance: float = MASS_BUDGET_TOLERANCE,
    step: int = 0,
) -> Tuple[StarPopulation, StepDiagnostics]:
    """Advance the population masses by one timestep.

    The disk is sampled once at the start of the step; the second pass
    sees the masses produced by the first.  ``population`` is not modified.

    Raises
    ------
    PhysicalInvariantViolation
        From either kernel, or when ``enforce_mass_budget`` is set and the
        relative budget error exceeds ``mass_budget_tolerance``.
    """

    if order not in ORDERS:
        raise InvalidInputError(f"order must be one of {ORDERS} (got {order!r})")
    dt_yr = _validate.timestep_years(timestep_duration_yr)

    orbs_a = population.orbs_a
    opacity = disk.opacity(orbs_a)
    sound_speed = disk.sound_speed(orbs_a)
    density = disk.density(orbs_a)

    masses = population.masses
    wind_total = 0.0
    gained_total = 0.0
    lost_total = 0.0
    n_immortal = 0
    passes = order.split("_then_")
    for name in passes:
        if name == "wind":
            wind = star_wind_mass_loss(
                masses,
                population.log_radius,
                population.log_lum,
                opacity,
                dt_yr,
                use_numba=use_numba,
            )
            masses = wind.new_masses
            wind_total = wind.total_mass_lost
        else:
            acc = accrete_star_mass(
                masses,
                orbs_a,
                params.luminosity_factor,
                params.initial_mass_cutoff,
                disk.smbh_mass,
                sound_speed,
                density,
                dt_yr,
                disk.r_g_in_meters,
                use_numba=use_numba,
            )
            masses = acc.new_masses
            gained_total = acc.total_mass_gained
            lost_total = acc.total_immortal_mass_lost
            n_immortal = int(np.count_nonzero(acc.immortal))

    new_population = population.with_masses(masses)
    before = population.total_mass
    after = new_population.total_mass
    budget_error = _mass_budget_error(before, after, wind_total, gained_total, lost_total)
    diag = StepDiagnostics(
        step=step,
        timestep_yr=dt_yr,
        n_stars=len(population),
        n_immortal=n_immortal,
        mass_before=before,
        mass_after=after,
        wind_mass_lost=wind_total,
        mass_gained=gained_total,
        immortal_mass_lost=lost_total,
        mass_budget_error=budget_error,
    )
    if budget_error > mass_budget_tolerance:
        logger.warning(
            "step %d: mass budget error %.3e exceeds tolerance %.3e",
            step,
            budget_error,
            mass_budget_tolerance,
        )
        if enforce_mass_budget:
            raise PhysicalInvariantViolation(
                f"step {step}: mass budget error {budget_error:.3e} exceeds {mass_budget_tolerance:.3e}"
            )
    logger.info(
        "step %d: n=%d wind=%.6e gained=%.6e immortal_lost=%.6e n_immortal=%d",
        step,
        diag.n_stars,
        wind_total,
        gained_total,
        lost_total,
        n_immortal,
    )
    return new_population, diag


@dataclass
class EvolutionResult:
    population: StarPopulation
    ledger: MassLedger
    diagnostics: List[StepDiagnostics] = field(default_factory=list)


def evolve(
    population: StarPopulation,
    disk: DiskEnvironment,
    params: StarMassParams,
    timestep_duration_yr: float,
    n_steps: int,
    **step_kwargs,
) -> EvolutionResult:
    """Run ``n_steps`` consecutive timesteps and accumulate the ledger."""

    ledger = MassLedger()
    diagnostics: List[StepDiagnostics] = []
    current = population
    for step in range(int(n_steps)):
        current, diag = step_star_masses(
            current, disk, params, timestep_duration_yr, step=step, **step_kwargs
        )
        ledger.record(diag)
        diagnostics.append(diag)
    return EvolutionResult(population=current, ledger=ledger, diagnostics=diagnostics)
