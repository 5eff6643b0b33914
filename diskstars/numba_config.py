"""Environment switch controlling the Numba-accelerated kernel paths."""
from __future__ import annotations

import os
from typing import Mapping, Optional

_TRUTHY = {"1", "true", "yes", "on", "enable", "enabled"}
_FALSY = {"0", "false", "no", "off", "disable", "disabled"}

DISABLE_ENV_VAR = "DISKSTARS_DISABLE_NUMBA"


def env_flag(value: Optional[str]) -> Optional[bool]:
    """Interpret a boolean-ish environment value; ``None`` when unrecognised."""

    if value is None:
        return None
    text = value.strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    return None


def numba_disabled_env(env: Optional[Mapping[str, str]] = None) -> bool:
    """Return True when Numba is explicitly disabled via the environment."""

    env_map = os.environ if env is None else env
    return bool(env_flag(env_map.get(DISABLE_ENV_VAR)))


def resolve_use_numba(use_numba: Optional[bool], *, failed: bool) -> bool:
    """Decide whether a kernel call should take the JIT path.

    An explicit ``use_numba`` wins.  Otherwise the JIT path is used unless
    it was disabled through ``DISKSTARS_DISABLE_NUMBA`` or an earlier call
    in this process already failed.
    """

    if use_numba is not None:
        return bool(use_numba)
    return not failed and not numba_disabled_env()


__all__ = [
    "DISABLE_ENV_VAR",
    "env_flag",
    "numba_disabled_env",
    "resolve_use_numba",
]
