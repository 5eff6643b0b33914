"""Custom exceptions for the :mod:`diskstars` package."""
from __future__ import annotations


class DiskStarsError(Exception):
    """Base exception for embedded-star mass evolution errors."""


class InvalidInputError(DiskStarsError, ValueError):
    """Malformed kernel input such as mismatched array lengths."""


class NonPhysicalInputError(DiskStarsError, ValueError):
    """Physical input outside its valid domain (non-positive or non-finite)."""


class PhysicalInvariantViolation(DiskStarsError, RuntimeError):
    """A kernel result broke a physical invariant, e.g. a star mass <= 0."""


class ConfigurationError(DiskStarsError, ValueError):
    """Invalid configuration file or parameter."""


__all__ = [
    "DiskStarsError",
    "InvalidInputError",
    "NonPhysicalInputError",
    "PhysicalInvariantViolation",
    "ConfigurationError",
]
