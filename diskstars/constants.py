"""Physical constants shared by the stellar mass kernels.

All values are in SI units and fixed for the lifetime of the process.  The
solar values follow IAU 2015 nominal conversion constants; the year is the
Julian year.
"""
from __future__ import annotations

from dataclasses import dataclass

# Solar mass (kg)
M_SUN: float = 1.9884099e30

# Nominal solar radius (m)
R_SUN: float = 6.957e8

# Nominal solar luminosity (W)
L_SUN: float = 3.828e26

# Gravitational constant (m^3 kg^-1 s^-2)
G: float = 6.67430e-11

# Speed of light in vacuum (m s^-1)
C: float = 299792460.0

# Seconds per Julian year
YR_S: float = 3.15576e7


@dataclass(frozen=True)
class StellarConstants:
    """Immutable bundle of the constants used by the kernels."""

    M_SUN: float = M_SUN
    R_SUN: float = R_SUN
    L_SUN: float = L_SUN
    G: float = G
    C: float = C
    YR_S: float = YR_S
