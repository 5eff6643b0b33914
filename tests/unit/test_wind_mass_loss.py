from __future__ import annotations

import math

import numpy as np
import pytest

from diskstars import constants
from diskstars.errors import InvalidInputError, NonPhysicalInputError, PhysicalInvariantViolation
from diskstars.physics import wind
from diskstars.physics.wind import star_wind_mass_loss


def _reference_loss(mass: float, log_radius: float, log_lum: float, kappa: float, dt_yr: float) -> float:
    """Direct scalar evaluation of the wind formulas [M_sun]."""

    m_kg = mass * constants.M_SUN
    r_m = 10.0**log_radius * constants.R_SUN
    l_w = 10.0**log_lum * constants.L_SUN
    l_edd = 4.0 * math.pi * constants.G * constants.C * m_kg / kappa
    v_esc = math.sqrt(2.0 * constants.G * m_kg / r_m)
    x = (l_w - l_edd) / (0.1 * l_edd)
    # 1 + tanh(x) == 2 / (1 + exp(-2x))
    factor = 2.0 / (1.0 + math.exp(-2.0 * x))
    mdot = -(l_w / v_esc**2) * factor
    return mdot * dt_yr * constants.YR_S / constants.M_SUN


def test_single_star_matches_reference(use_numba: bool) -> None:
    res = star_wind_mass_loss([10.0], [0.0], [4.0], [0.034], 1.0e4, use_numba=use_numba)
    expected = _reference_loss(10.0, 0.0, 4.0, 0.034, 1.0e4)

    assert expected < 0.0
    assert res.mass_lost[0] == pytest.approx(expected, rel=1e-9)
    assert res.total_mass_lost == pytest.approx(expected, rel=1e-9)
    assert res.new_masses[0] == pytest.approx(10.0 + expected, rel=1e-9)


def test_saturation_factor_equals_one_plus_tanh() -> None:
    for lum_ratio in (0.5, 0.95, 1.0, 1.05, 1.5):
        got = float(wind.eddington_saturation(lum_ratio, 1.0))
        x = (lum_ratio - 1.0) / 0.1
        assert got == pytest.approx(1.0 + math.tanh(x), rel=1e-6)


def test_saturation_limits_without_overflow() -> None:
    with np.errstate(over="raise", invalid="raise", divide="raise"):
        vals = wind.eddington_saturation(np.array([0.0, 1.0, 1.0e6]), 1.0)
    assert 0.0 < vals[0] < 1.0e-8
    assert vals[1] == pytest.approx(1.0)
    assert vals[2] == pytest.approx(2.0)


def test_at_eddington_luminosity_rate_is_l_over_vesc2(use_numba: bool) -> None:
    mass, log_radius, log_lum, dt_yr = 10.0, 0.5, 4.0, 1.0
    m_kg = mass * constants.M_SUN
    l_w = 10.0**log_lum * constants.L_SUN
    kappa = 4.0 * math.pi * constants.G * constants.C * m_kg / l_w
    r_m = 10.0**log_radius * constants.R_SUN
    v_esc2 = 2.0 * constants.G * m_kg / r_m

    res = star_wind_mass_loss([mass], [log_radius], [log_lum], [kappa], dt_yr, use_numba=use_numba)

    expected = -(l_w / v_esc2) * dt_yr * constants.YR_S / constants.M_SUN
    assert res.mass_lost[0] == pytest.approx(expected, rel=1e-9)


def test_deep_sub_eddington_loses_negligible_mass(use_numba: bool) -> None:
    masses = np.array([5.0, 20.0, 60.0])
    res = star_wind_mass_loss(masses, [0.3, 0.7, 1.0], [0.0, 1.0, 2.0], [0.034] * 3, 1.0e4, use_numba=use_numba)

    assert np.all(res.mass_lost <= 0.0)
    np.testing.assert_allclose(res.new_masses, masses, rtol=1e-12)


def test_super_eddington_saturates_at_twice_l_over_vesc2(use_numba: bool) -> None:
    mass, log_lum = 1.0, 6.0
    m_kg = mass * constants.M_SUN
    l_w = 10.0**log_lum * constants.L_SUN
    v_esc2 = 2.0 * constants.G * m_kg / constants.R_SUN

    res = star_wind_mass_loss([mass], [0.0], [log_lum], [0.034], 1.0, use_numba=use_numba)

    expected = -2.0 * (l_w / v_esc2) * constants.YR_S / constants.M_SUN
    assert res.mass_lost[0] == pytest.approx(expected, rel=1e-12)
    assert 0.0 < res.new_masses[0] < mass


def test_total_is_sum_of_per_star_losses_in_any_order(rng: np.random.Generator, use_numba: bool) -> None:
    n = 64
    masses = rng.uniform(10.0, 100.0, n)
    log_radius = rng.uniform(0.0, 1.5, n)
    log_lum = rng.uniform(3.0, 5.5, n)
    opacity = rng.uniform(0.02, 0.1, n)
    res = star_wind_mass_loss(masses, log_radius, log_lum, opacity, 1.0, use_numba=use_numba)

    assert res.total_mass_lost == pytest.approx(float(np.sum(res.mass_lost)), rel=1e-12)

    perm = rng.permutation(n)
    res_perm = star_wind_mass_loss(
        masses[perm], log_radius[perm], log_lum[perm], opacity[perm], 1.0, use_numba=use_numba
    )
    np.testing.assert_allclose(res_perm.new_masses, res.new_masses[perm], rtol=1e-14)
    assert res_perm.total_mass_lost == pytest.approx(res.total_mass_lost, rel=1e-12)


def test_empty_population(use_numba: bool) -> None:
    res = star_wind_mass_loss([], [], [], [], 1.0e4, use_numba=use_numba)
    assert res.new_masses.shape == (0,)
    assert res.mass_lost.shape == (0,)
    assert res.total_mass_lost == 0.0


def test_inputs_are_not_modified() -> None:
    masses = np.array([10.0, 30.0])
    before = masses.copy()
    res = star_wind_mass_loss(masses, [0.0, 0.5], [5.0, 5.5], [0.034, 0.034], 1.0e3)
    np.testing.assert_array_equal(masses, before)
    assert res.new_masses is not masses


def test_length_mismatch_is_invalid_input() -> None:
    with pytest.raises(InvalidInputError, match="equal length"):
        star_wind_mass_loss([1.0, 2.0], [0.0], [3.0, 3.0], [0.034, 0.034], 1.0)


def test_two_dimensional_input_is_invalid() -> None:
    with pytest.raises(InvalidInputError):
        star_wind_mass_loss([[1.0]], [[0.0]], [[3.0]], [[0.034]], 1.0)


@pytest.mark.parametrize("dt", [0.0, -1.0, float("nan")])
def test_non_positive_timestep_is_invalid_input(dt: float) -> None:
    with pytest.raises(InvalidInputError):
        star_wind_mass_loss([1.0], [0.0], [3.0], [0.034], dt)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"opacity": [0.0]},
        {"opacity": [-0.1]},
        {"masses": [0.0]},
        {"masses": [-1.0]},
        {"log_radius": [float("nan")]},
        {"log_radius": [-400.0]},
        {"log_lum": [float("inf")]},
    ],
)
def test_non_physical_inputs_rejected(kwargs: dict) -> None:
    args = {"masses": [1.0], "log_radius": [0.0], "log_lum": [3.0], "opacity": [0.034]}
    args.update(kwargs)
    with pytest.raises(NonPhysicalInputError):
        star_wind_mass_loss(timestep_duration_yr=1.0, **args)


def test_mass_exhausted_is_invariant_violation(use_numba: bool) -> None:
    with pytest.raises(PhysicalInvariantViolation, match="index|indices"):
        star_wind_mass_loss([1.0, 10.0], [0.0, 0.0], [6.0, 3.0], [0.034, 0.034], 1.0e3, use_numba=use_numba)


@pytest.mark.parametrize(
    "kwargs, dt, quantity",
    [
        ({"opacity": [1.0e-320]}, 1.0, "Eddington luminosity"),
        ({}, 1.0e300, "wind mass loss"),
        ({"log_radius": [-320.0]}, 1.0, "escape speed squared"),
    ],
)
def test_overflowing_scales_are_non_physical(kwargs: dict, dt: float, quantity: str, use_numba: bool) -> None:
    args = {"masses": [10.0], "log_radius": [0.0], "log_lum": [4.0], "opacity": [0.034]}
    args.update(kwargs)
    with pytest.raises(NonPhysicalInputError, match=quantity):
        star_wind_mass_loss(timestep_duration_yr=dt, use_numba=use_numba, **args)
