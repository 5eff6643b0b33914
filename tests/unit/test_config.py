from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from diskstars import config_utils, schema
from diskstars.errors import ConfigurationError


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_file():
    cfg = config_utils.load_config(None)
    assert cfg.stars.luminosity_factor == 4.0
    assert cfg.stars.initial_mass_cutoff == 300.0
    assert cfg.smbh.r_g_in_meters is None
    assert cfg.numerics.order == "wind_then_accretion"
    assert cfg.disk.opacity.value == pytest.approx(0.034)


def test_load_yaml_with_overrides(tmp_path: Path):
    cfg_path = _write(
        tmp_path / "cfg.yml",
        """
smbh:
  mass_msun: 1.0e7
stars:
  initial_mass_cutoff: 150.0
disk:
  density: {mode: powerlaw, value: 1.0e-9, r_ref_rg: 1.0e3, index: -1.5}
numerics:
  n_steps: 3
""",
    )
    cfg = config_utils.load_config(
        cfg_path,
        ["stars.luminosity_factor=2", "numerics.order=accretion_first", "io.outdir='runs/x'"],
    )
    assert cfg.smbh.mass_msun == 1.0e7
    assert cfg.stars.initial_mass_cutoff == 150.0
    assert cfg.stars.luminosity_factor == 2.0
    assert cfg.disk.density.mode == "powerlaw"
    assert cfg.disk.density.index == -1.5
    assert cfg.numerics.n_steps == 3
    assert cfg.numerics.order == "accretion_then_wind"
    assert cfg.io.outdir == Path("runs/x")


def test_empty_yaml_gives_defaults(tmp_path: Path):
    cfg = config_utils.load_config(_write(tmp_path / "empty.yml", ""))
    assert cfg.timestep.duration_yr == 1.0e4


def test_non_mapping_root_rejected(tmp_path: Path):
    with pytest.raises(ValueError):
        config_utils.load_config(_write(tmp_path / "list.yml", "- 1\n- 2\n"))


@pytest.mark.parametrize(
    "payload",
    [
        {"stars": {"initial_mass_cutoff": 0.0}},
        {"stars": {"luminosity_factor": -4.0}},
        {"timestep": {"duration_yr": 0.0}},
        {"disk": {"density": {"mode": "table"}}},
        {"disk": {"opacity": {"mode": "const", "value": -1.0}}},
        {"numerics": {"order": "sideways"}},
        {"physics": {}},
    ],
)
def test_invalid_configurations_rejected(payload):
    with pytest.raises(ValueError):
        schema.Config(**payload)


@pytest.mark.parametrize(
    "overrides",
    [
        ["stars.initial_mass_cutoff=0"],
        ["numerics.order=sideways"],
        ["disk.density.mode=table"],
        ["physics.mode=full"],
    ],
)
def test_load_config_reports_configuration_error(overrides):
    with pytest.raises(ConfigurationError, match="invalid configuration") as excinfo:
        config_utils.load_config(None, overrides)
    assert isinstance(excinfo.value.__cause__, ValidationError)


def test_parse_override_value():
    assert config_utils.parse_override_value("true") is True
    assert config_utils.parse_override_value("null") is None
    assert config_utils.parse_override_value("12") == 12
    assert config_utils.parse_override_value("1e-3") == pytest.approx(1e-3)
    assert config_utils.parse_override_value('"abc"') == "abc"
    assert config_utils.parse_override_value("csv") == "csv"


def test_override_without_equals_rejected():
    with pytest.raises(ValueError, match="expected path=value"):
        config_utils.apply_overrides_dict({}, ["stars.luminosity_factor"])


def test_override_into_scalar_rejected():
    with pytest.raises(ValueError, match="non-mapping"):
        config_utils.apply_overrides_dict({"stars": 1}, ["stars.luminosity_factor.x=2"])


def test_read_overrides_file(tmp_path: Path):
    path = _write(tmp_path / "ovr.txt", "# comment\n\nnumerics.n_steps=4\n stars.luminosity_factor=3 \n")
    assert config_utils.read_overrides_file(path) == ["numerics.n_steps=4", "stars.luminosity_factor=3"]
