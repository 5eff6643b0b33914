"""Snapshot container for the embedded star population."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from .errors import InvalidInputError
from .physics import _validate

__all__ = [
    "REQUIRED_COLUMNS",
    "StarPopulation",
    "load_population",
    "population_to_frame",
]

REQUIRED_COLUMNS = ("mass", "log_radius", "log_lum", "orb_a")


@dataclass(frozen=True, eq=False)
class StarPopulation:
    """Parallel per-star arrays describing one population snapshot.

    Parameters
    ----------
    masses:
        Stellar masses [M_sun].
    log_radius:
        ``log10`` stellar radii [R_sun].
    log_lum:
        ``log10`` stellar luminosities [L_sun].
    orbs_a:
        Orbital semi-major axes [r_g].
    ids:
        Optional integer identifiers; defaults to ``0..N-1``.

    The arrays are copied on construction and flagged read-only, so a
    snapshot can be shared between passes without defensive copies.
    """

    masses: np.ndarray
    log_radius: np.ndarray
    log_lum: np.ndarray
    orbs_a: np.ndarray
    ids: Optional[np.ndarray] = field(default=None)

    def __post_init__(self) -> None:
        arrs = _validate.star_arrays(
            masses=self.masses,
            log_radius=self.log_radius,
            log_lum=self.log_lum,
            orbs_a=self.orbs_a,
        )
        n = arrs["masses"].size
        if self.ids is None:
            ids = np.arange(n, dtype=np.int64)
        else:
            ids = np.array(self.ids, dtype=np.int64)
            if ids.shape != (n,):
                raise InvalidInputError(f"ids must have length {n} (got shape {ids.shape})")
        arrs["ids"] = ids
        for name, arr in arrs.items():
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    def __len__(self) -> int:
        return int(self.masses.size)

    @property
    def total_mass(self) -> float:
        return float(np.sum(self.masses))

    def with_masses(self, new_masses: Iterable[float]) -> "StarPopulation":
        """Return a new snapshot sharing everything but the masses."""

        return StarPopulation(
            masses=np.asarray(new_masses, dtype=float),
            log_radius=self.log_radius,
            log_lum=self.log_lum,
            orbs_a=self.orbs_a,
            ids=self.ids,
        )


def load_population(path: Path) -> StarPopulation:
    """Read a population from CSV or Parquet.

    Required columns are ``mass``, ``log_radius``, ``log_lum`` and ``orb_a``;
    an ``id`` column is used when present.
    """

    path = Path(path)
    if path.suffix.lower() in {".parquet", ".pq"}:
        df = pd.read_parquet(path)
    else:
        df = pd.read_csv(path)
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise InvalidInputError(f"{path}: missing population column(s) {missing}")
    ids = df["id"].to_numpy(dtype=np.int64) if "id" in df.columns else None
    return StarPopulation(
        masses=df["mass"].to_numpy(dtype=float),
        log_radius=df["log_radius"].to_numpy(dtype=float),
        log_lum=df["log_lum"].to_numpy(dtype=float),
        orbs_a=df["orb_a"].to_numpy(dtype=float),
        ids=ids,
    )


def population_to_frame(population: StarPopulation) -> pd.DataFrame:
    """Return the population as a :class:`pandas.DataFrame`."""

    return pd.DataFrame(
        {
            "id": population.ids,
            "mass": population.masses,
            "log_radius": population.log_radius,
            "log_lum": population.log_lum,
            "orb_a": population.orbs_a,
        }
    )
