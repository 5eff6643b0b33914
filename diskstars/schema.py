"""Configuration schema for embedded-star mass evolution runs.

The Pydantic models mirror the YAML configuration consumed by
:mod:`diskstars.run`.  Every block has defaults so a minimal file only needs
to state what differs from a fiducial AGN disk around a 10^8 M_sun black
hole.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .errors import ConfigurationError

ORDERS = ("wind_then_accretion", "accretion_then_wind")


class SMBH(BaseModel):
    """Central supermassive black hole."""

    mass_msun: float = Field(1.0e8, gt=0.0, description="SMBH mass [M_sun]")
    r_g_in_meters: Optional[float] = Field(
        None,
        gt=0.0,
        description="Gravitational radius [m]; derived from mass_msun when omitted.",
    )


class Stars(BaseModel):
    """Parameters of the stellar mass kernels."""

    luminosity_factor: float = Field(
        4.0,
        gt=0.0,
        description="Accretion suppression factor f near the Eddington luminosity.",
    )
    initial_mass_cutoff: float = Field(
        300.0,
        gt=0.0,
        description="Immortal mass ceiling [M_sun]; excess accretion returns to the disk.",
    )


class ProfileSpec(BaseModel):
    """Radial profile of one disk quantity.

    Example:
        density:
          mode: powerlaw
          value: 1.0e-9      # kg m^-3 at r_ref_rg
          r_ref_rg: 1.0e4
          index: -1.5
    """

    mode: Literal["const", "powerlaw", "table"] = "const"
    value: Optional[float] = Field(None, description="Constant value or value at r_ref_rg (SI)")
    r_ref_rg: float = Field(1.0e4, gt=0.0, description="Reference radius for powerlaw [r_g]")
    index: float = Field(0.0, description="Power-law index")
    path: Optional[Path] = Field(None, description="CSV table with an r_rg column")
    column: Optional[str] = Field(None, description="Table column; defaults to the quantity name")

    @model_validator(mode="after")
    def _check_mode_inputs(self) -> "ProfileSpec":
        if self.mode in {"const", "powerlaw"}:
            if self.value is None or not self.value > 0.0:
                raise ConfigurationError(f"profile mode '{self.mode}' requires a positive value")
        elif self.path is None:
            raise ConfigurationError("profile mode 'table' requires path")
        return self


class DiskProfiles(BaseModel):
    """Disk quantities sampled at each star's orbit."""

    density: ProfileSpec = Field(default_factory=lambda: ProfileSpec(value=1.0e-9))
    sound_speed: ProfileSpec = Field(default_factory=lambda: ProfileSpec(value=1.0e4))
    opacity: ProfileSpec = Field(default_factory=lambda: ProfileSpec(value=0.034))


class Timestep(BaseModel):
    duration_yr: float = Field(1.0e4, gt=0.0, description="Timestep length [yr]")


class Numerics(BaseModel):
    """Step sequencing and numerical switches."""

    n_steps: int = Field(1, ge=0, description="Number of timesteps to run")
    order: Literal["wind_then_accretion", "accretion_then_wind"] = Field(
        "wind_then_accretion",
        description="Order of the two mass passes within a timestep.",
    )
    use_numba: Optional[bool] = Field(
        None,
        description="Force the JIT kernels on/off; None follows DISKSTARS_DISABLE_NUMBA.",
    )
    enforce_mass_budget: bool = False
    mass_budget_tolerance: float = Field(
        1.0e-10,
        gt=0.0,
        description="Relative mass budget error tolerated per step.",
    )

    @field_validator("order", mode="before")
    def _normalise_order(cls, value: Any) -> Any:
        text = str(value).strip().lower().replace("-", "_") if value is not None else ORDERS[0]
        if text in {"", "default", "wind_first", "wind"}:
            return "wind_then_accretion"
        if text in {"accretion_first", "accretion"}:
            return "accretion_then_wind"
        if text not in ORDERS:
            raise ConfigurationError(f"numerics.order must be one of {ORDERS}")
        return text


class IO(BaseModel):
    outdir: Path = Path("out")
    step_diagnostics_format: Literal["csv", "jsonl"] = "csv"
    quiet: bool = False


class Config(BaseModel):
    """Top-level configuration object."""

    smbh: SMBH = Field(default_factory=SMBH)
    stars: Stars = Field(default_factory=Stars)
    disk: DiskProfiles = Field(default_factory=DiskProfiles)
    timestep: Timestep = Field(default_factory=Timestep)
    numerics: Numerics = Field(default_factory=Numerics)
    io: IO = Field(default_factory=IO)

    @model_validator(mode="before")
    def _forbid_unknown_sections(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known = set(cls.model_fields)
        unknown = sorted(str(key) for key in data if key not in known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration section(s): {', '.join(unknown)}")
        return data


__all__ = [
    "ORDERS",
    "SMBH",
    "Stars",
    "ProfileSpec",
    "DiskProfiles",
    "Timestep",
    "Numerics",
    "IO",
    "Config",
]
