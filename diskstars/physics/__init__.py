"""Per-timestep stellar mass kernels: wind loss and gas accretion."""
from . import accretion, wind
from .accretion import AccretionResult, accrete_star_mass
from .wind import WindMassLossResult, star_wind_mass_loss

__all__ = [
    "accretion",
    "wind",
    "AccretionResult",
    "WindMassLossResult",
    "accrete_star_mass",
    "star_wind_mass_loss",
]
