"""Loading, overriding and logging helpers for run configurations."""
from __future__ import annotations

import logging
import warnings
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from .errors import ConfigurationError
from .schema import Config

logger = logging.getLogger(__name__)

_REPORTED_DISTS = ("numpy", "pandas", "pyarrow", "numba", "pydantic", "ruamel.yaml")

__all__ = [
    "parse_override_value",
    "apply_overrides_dict",
    "read_overrides_file",
    "load_config",
    "configure_logging",
    "package_versions",
]


def parse_override_value(raw: str) -> Any:
    """Parse a CLI override value into a Python scalar."""

    text = raw.strip()
    lower = text.lower()
    if lower in {"true", "false"}:
        return lower == "true"
    if lower in {"none", "null"}:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        pass
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        return text[1:-1]
    return text


def apply_overrides_dict(payload: Dict[str, Any], overrides: Sequence[str]) -> Dict[str, Any]:
    """Apply dotted ``path=value`` overrides to a configuration mapping.

    Intermediate mappings are created as needed, e.g.
    ``stars.initial_mass_cutoff=150`` on an empty payload yields
    ``{"stars": {"initial_mass_cutoff": 150}}``.
    """

    for item in overrides:
        key, sep, value_str = item.partition("=")
        if not sep:
            raise ConfigurationError(f"Invalid override '{item}'; expected path=value")
        parts = [segment for segment in key.strip().split(".") if segment]
        if not parts:
            raise ConfigurationError(f"Invalid override '{item}'; empty path")
        target: Any = payload
        for segment in parts[:-1]:
            if not isinstance(target, dict):
                raise ConfigurationError(
                    f"Cannot traverse into non-mapping for override '{item}' at '{segment}'"
                )
            if target.get(segment) is None:
                target[segment] = {}
            target = target[segment]
        if not isinstance(target, dict):
            raise ConfigurationError(f"Cannot set override '{item}'; target is not a mapping")
        target[parts[-1]] = parse_override_value(value_str)
        logger.debug("override applied: %s", item)
    return payload


def read_overrides_file(path: Path) -> List[str]:
    """Return ``path=value`` lines from ``path``, skipping blanks and ``#`` comments."""

    lines: List[str] = []
    with Path(path).open("r", encoding="utf-8") as fh:
        for raw in fh:
            text = raw.strip()
            if text and not text.startswith("#"):
                lines.append(text)
    return lines


def load_config(path: Optional[Path], overrides: Optional[Iterable[str]] = None) -> Config:
    """Load a YAML configuration file into a :class:`Config` instance.

    ``path=None`` starts from the defaults so overrides alone can describe
    a run.  Schema violations surface as :class:`ConfigurationError` with the
    pydantic report chained as the cause.
    """

    from ruamel.yaml import YAML

    data: Any = {}
    if path is not None:
        yaml = YAML(typ="safe")
        with Path(path).open("r", encoding="utf-8") as fh:
            data = yaml.load(fh)
        if data is None:
            data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: configuration root must be a mapping")
    override_list = list(overrides or [])
    if override_list:
        data = apply_overrides_dict(data, override_list)
    try:
        return Config(**data)
    except ValidationError as exc:
        source = path if path is not None else "<overrides>"
        raise ConfigurationError(f"{source}: invalid configuration\n{exc}") from exc


def configure_logging(level: int, suppress_warnings: bool = False) -> None:
    """Configure root logging and optionally silence Python warnings."""

    logging.basicConfig(level=level)
    root = logging.getLogger()
    root.setLevel(level)
    if suppress_warnings:
        warnings.filterwarnings("ignore")
    logging.captureWarnings(True)


def package_versions(dists: Sequence[str] = _REPORTED_DISTS) -> Dict[str, Optional[str]]:
    """Return installed versions of the numerical stack for run summaries."""

    versions: Dict[str, Optional[str]] = {}
    for name in dists:
        try:
            versions[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            versions[name] = None
    return versions
