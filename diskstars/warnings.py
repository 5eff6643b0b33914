"""Structured warning classes for the :mod:`diskstars` package."""
from __future__ import annotations


class DiskStarsWarning(UserWarning):
    """Base warning class for diskstars."""


class PhysicsWarning(DiskStarsWarning):
    """Physical parameter or regime warnings."""


class NumericalWarning(DiskStarsWarning):
    """Numerical stability, accuracy or JIT fallback warnings."""


__all__ = [
    "DiskStarsWarning",
    "PhysicsWarning",
    "NumericalWarning",
]
