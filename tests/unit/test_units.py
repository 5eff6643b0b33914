import numpy as np
import pytest

from diskstars import constants, units
from diskstars.errors import NonPhysicalInputError


def test_gravitational_radius_of_1e8_msun_smbh():
    r_g = units.r_g_in_meters(1.0e8)
    assert r_g == pytest.approx(constants.G * 1.0e8 * constants.M_SUN / constants.C**2, rel=1e-15)
    # ~1 AU for a 10^8 M_sun black hole
    assert r_g == pytest.approx(1.4766e11, rel=1e-3)


def test_si_from_r_g_uses_defined_scale_when_given():
    assert units.si_from_r_g(1.0e8, 10.0, r_g_defined=2.0) == 20.0
    arr = units.si_from_r_g(1.0e8, np.array([1.0, 3.0]), r_g_defined=2.0)
    np.testing.assert_array_equal(arr, [2.0, 6.0])


def test_r_g_from_si_inverts_si_from_r_g():
    metres = units.si_from_r_g(1.0e6, 5.0e3)
    assert units.r_g_from_si(1.0e6, metres) == pytest.approx(5.0e3, rel=1e-15)


@pytest.mark.parametrize("bad", [0.0, -1.0e8, float("nan")])
def test_non_positive_smbh_mass_rejected(bad):
    with pytest.raises(NonPhysicalInputError):
        units.r_g_in_meters(bad)


def test_non_positive_defined_scale_rejected():
    with pytest.raises(NonPhysicalInputError):
        units.si_from_r_g(1.0e8, 1.0, r_g_defined=0.0)


def test_solar_and_year_conversions():
    assert float(units.msun_to_kg(2.0)) == 2.0 * constants.M_SUN
    assert float(units.kg_to_msun(constants.M_SUN)) == 1.0
    assert float(units.yr_to_s(1.0)) == constants.YR_S


def test_constants_bundle_is_frozen():
    bundle = constants.StellarConstants()
    assert bundle.M_SUN == constants.M_SUN
    with pytest.raises(Exception):
        bundle.G = 1.0  # type: ignore[misc]
