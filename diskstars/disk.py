"""Static disk profiles evaluated at the stars' orbital radii.

The stellar mass kernels only need the disk gas density, sound speed and
opacity at each star.  The profiles here provide those values as functions
of orbital radius in gravitational radii so the driver can run without a
full disk model.  They are deliberately time independent.
"""
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Tuple

import numpy as np
import pandas as pd

from . import units
from .errors import ConfigurationError
from .schema import Config, ProfileSpec
from .warnings import PhysicsWarning

__all__ = [
    "ConstantProfile",
    "PowerLawProfile",
    "TableProfile",
    "DiskEnvironment",
    "build_profile",
    "build_disk_environment",
]

logger = logging.getLogger(__name__)

Profile = Callable[[np.ndarray], np.ndarray]


@dataclass(frozen=True)
class ConstantProfile:
    """Same value at every radius."""

    value: float

    def __call__(self, orbs_a) -> np.ndarray:
        return np.full(np.shape(orbs_a), float(self.value), dtype=float)


@dataclass(frozen=True)
class PowerLawProfile:
    """``value_ref * (r / r_ref_rg) ** index``."""

    value_ref: float
    r_ref_rg: float
    index: float

    def __call__(self, orbs_a) -> np.ndarray:
        r = np.asarray(orbs_a, dtype=float)
        return self.value_ref * (r / self.r_ref_rg) ** self.index


@dataclass
class TableProfile:
    """Log-log interpolation of a tabulated radial profile.

    Values outside the table are held at the nearest tabulated value and a
    :class:`~diskstars.warnings.PhysicsWarning` is emitted.
    """

    r_rg: np.ndarray
    values: np.ndarray

    @classmethod
    def load(cls, path: Path, column: str) -> "TableProfile":
        key = (Path(path), column)
        cached = _TABLE_CACHE.get(key)
        if cached is not None:
            return cached
        df = pd.read_csv(path)
        if "r_rg" not in df.columns or column not in df.columns:
            raise ConfigurationError(f"{path}: disk table needs 'r_rg' and '{column}' columns")
        df = df.sort_values("r_rg")
        r = df["r_rg"].to_numpy(dtype=float)
        vals = df[column].to_numpy(dtype=float)
        if r.size < 2 or np.any(r <= 0.0) or np.any(vals <= 0.0):
            raise ConfigurationError(f"{path}: '{column}' table needs >= 2 rows of positive values")
        table = cls(r, vals)
        _TABLE_CACHE[key] = table
        logger.info("Loaded disk table %s column=%s rows=%d", path, column, r.size)
        return table

    def __call__(self, orbs_a) -> np.ndarray:
        r = np.asarray(orbs_a, dtype=float)
        outside = (r < self.r_rg[0]) | (r > self.r_rg[-1])
        if np.any(outside):
            warnings.warn(
                f"{int(np.count_nonzero(outside))} orbit(s) outside the tabulated range "
                f"[{self.r_rg[0]:g}, {self.r_rg[-1]:g}] r_g; holding the edge values",
                PhysicsWarning,
            )
        log_r = np.log10(r)
        return 10.0 ** np.interp(log_r, np.log10(self.r_rg), np.log10(self.values))


_TABLE_CACHE: Dict[Tuple[Path, str], TableProfile] = {}


@dataclass(frozen=True)
class DiskEnvironment:
    """Disk quantities the kernels consume for one population snapshot."""

    smbh_mass: float
    r_g_in_meters: float
    density: Profile
    sound_speed: Profile
    opacity: Profile


def build_profile(profile: ProfileSpec, column: str) -> Profile:
    """Instantiate the profile described by ``profile``."""

    if profile.mode == "const":
        return ConstantProfile(profile.value)
    if profile.mode == "powerlaw":
        return PowerLawProfile(profile.value, profile.r_ref_rg, profile.index)
    if profile.mode == "table":
        if profile.path is None:
            raise ConfigurationError(f"disk profile for {column} uses mode 'table' without a path")
        return TableProfile.load(profile.path, profile.column or column)
    raise ConfigurationError(f"unknown disk profile mode {profile.mode!r}")  # pragma: no cover


def build_disk_environment(cfg: Config) -> DiskEnvironment:
    """Return the :class:`DiskEnvironment` configured in ``cfg``."""

    smbh_mass = cfg.smbh.mass_msun
    r_g = cfg.smbh.r_g_in_meters
    if r_g is None:
        r_g = units.r_g_in_meters(smbh_mass)
    return DiskEnvironment(
        smbh_mass=smbh_mass,
        r_g_in_meters=float(r_g),
        density=build_profile(cfg.disk.density, "density"),
        sound_speed=build_profile(cfg.disk.sound_speed, "sound_speed"),
        opacity=build_profile(cfg.disk.opacity, "opacity"),
    )
