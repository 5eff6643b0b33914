"""Output helpers for diskstars runs."""
from . import writer

__all__ = ["writer"]
