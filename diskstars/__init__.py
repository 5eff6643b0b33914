"""Per-timestep mass evolution of stars embedded in AGN accretion disks."""
from . import constants, units
from .errors import DiskStarsError
from .physics import accrete_star_mass, star_wind_mass_loss

__all__ = [
    "constants",
    "units",
    "DiskStarsError",
    "accrete_star_mass",
    "star_wind_mass_loss",
]
