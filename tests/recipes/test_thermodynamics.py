"""Tests for temperature and pressure recipes (nonlinear values)."""

import numpy as np
import pytest

pytestmark = pytest.mark.unit

from atmoderive.contracts import ContractViolation, NonlinearOnlyRecipe
from atmoderive.core.field_store import FieldStore
from atmoderive.recipes import constants
from atmoderive.recipes.air_temperature import AirTemperatureA, AirTemperatureB
from atmoderive.recipes.potential_temperature import TempToPTemp
from atmoderive.recipes.pressure import AirPressureLevels, AirPressureToKappa, PressureToDelP
from atmoderive.recipes.virtual_temperature import TempToVTemp
from tests.helpers.fake_fields import make_fields_ds


def run_nl(recipe, ds):
    store = FieldStore(ds)
    if recipe.requires_setup:
        assert recipe.setup(store)
    store.ensure(recipe.product, recipe.product_levels(store))
    return recipe.execute_nl(store)


class TestAirTemperature:
    """Test both air temperature routes."""

    def test_theta_times_exner(self):
        ds = make_fields_ds(theta=[[300.0]], exner=[[0.95]])
        assert run_nl(AirTemperatureA(), ds)
        assert ds["air_temperature"].values[0, 0] == pytest.approx(285.0)

    def test_missing_ingredient_is_contract_violation(self):
        ds = make_fields_ds(theta=[[300.0]], air_temperature=[[0.0]])
        with pytest.raises(ContractViolation, match="exner"):
            AirTemperatureA().execute_nl(FieldStore(ds))

    def test_reference_pressure_gives_theta(self):
        ds = make_fields_ds(potential_temperature=[[300.0, 310.0]],
                            air_pressure=[[1.0e5, 1.0e5]])
        assert run_nl(AirTemperatureB(), ds)
        np.testing.assert_allclose(ds["air_temperature"].values, [[300.0, 310.0]])

    def test_inverse_of_potential_temperature(self):
        ds = make_fields_ds(air_temperature=[[250.0], [290.0]],
                            air_pressure=[[5.0e4], [9.0e4]])
        run_nl(TempToPTemp(), ds)
        back = make_fields_ds(potential_temperature=ds["potential_temperature"].values,
                              air_pressure=ds["air_pressure"].values)
        run_nl(AirTemperatureB(), back)
        np.testing.assert_allclose(back["air_temperature"].values, [[250.0], [290.0]])


class TestPotentialTemperature:
    """Test the Poisson equation."""

    def test_half_reference_pressure(self):
        ds = make_fields_ds(air_temperature=[[300.0]], air_pressure=[[5.0e4]])
        run_nl(TempToPTemp(), ds)
        expected = 300.0 * 2.0 ** (2.0 / 7.0)
        assert ds["potential_temperature"].values[0, 0] == pytest.approx(expected)

    def test_configured_kappa(self):
        ds = make_fields_ds(air_temperature=[[300.0]], air_pressure=[[5.0e4]])
        run_nl(TempToPTemp({"kappa": constants.RD_OVER_CP}), ds)
        expected = 300.0 * 2.0 ** constants.RD_OVER_CP
        assert ds["potential_temperature"].values[0, 0] == pytest.approx(expected)


class TestVirtualTemperature:

    def test_dry_air_unchanged(self):
        ds = make_fields_ds(air_temperature=[[280.0]], specific_humidity=[[0.0]])
        run_nl(TempToVTemp(), ds)
        assert ds["virtual_temperature"].values[0, 0] == 280.0

    def test_moist_air_warmer(self):
        ds = make_fields_ds(air_temperature=[[280.0]], specific_humidity=[[0.01]])
        run_nl(TempToVTemp(), ds)
        expected = 280.0 * (1.0 + constants.C_VIRTUAL * 0.01)
        assert ds["virtual_temperature"].values[0, 0] == pytest.approx(expected)


class TestPressureThickness:
    """Product has one level fewer than its ingredient."""

    def test_setup_fixes_levels(self):
        recipe = PressureToDelP()
        store = FieldStore(make_fields_ds(air_pressure_levels=[[1000.0, 900.0, 750.0]]))
        assert recipe.setup(store)
        assert recipe.product_levels(store) == 2

    def test_differences(self):
        ds = make_fields_ds(air_pressure_levels=[[1000.0, 900.0, 750.0],
                                                 [1010.0, 950.0, 800.0]])
        assert run_nl(PressureToDelP(), ds)
        np.testing.assert_array_equal(ds["air_pressure_thickness"].values,
                                      [[-100.0, -150.0], [-60.0, -150.0]])
        assert ds["air_pressure_thickness"].dims == ("horizontal", "levels_2")

    def test_single_level_setup_fails(self):
        store = FieldStore(make_fields_ds(air_pressure_levels=[[1000.0]]))
        assert not PressureToDelP().setup(store)

    def test_level_count_changed_after_setup(self):
        """Setup fixed two layers, the new state has three."""
        recipe = PressureToDelP()
        assert recipe.setup(FieldStore(make_fields_ds(air_pressure_levels=[[1000.0, 900.0, 750.0]])))

        ds = make_fields_ds(air_pressure_levels=[[1000.0, 900.0, 750.0, 600.0]])
        store = FieldStore(ds)
        store.allocate(recipe.product, recipe.product_levels(store))

        assert recipe.execute_nl(store) is False
        assert recipe.execute_tl(store, store) is False
        assert recipe.execute_ad(store, store) is False
        assert np.all(ds["air_pressure_levels"].values[0] == [1000.0, 900.0, 750.0, 600.0])


class TestAirPressureLevels:
    """Top interface from hydrostatic balance, the rest copied."""

    def make_ds(self, top_height=2500.0):
        return make_fields_ds(
            exner_levels_minus_one=[[1.0, 0.98, 0.95]],
            air_pressure_levels_minus_one=[[100000.0, 93000.0, 83000.0]],
            theta=[[290.0, 295.0, 300.0]],
            height_levels=[[0.0, 600.0, 1500.0, top_height]],
        )

    def test_interfaces(self):
        ds = self.make_ds()
        assert run_nl(AirPressureLevels(), ds)

        exner_top = 0.95 - constants.GRAV * 1000.0 / (constants.CP * 300.0)
        expected_top = constants.P_ZERO * exner_top ** (1.0 / constants.RD_OVER_CP)
        np.testing.assert_allclose(ds["air_pressure_levels"].values,
                                   [[100000.0, 93000.0, 83000.0, expected_top]])
        assert ds["air_pressure_levels"].dims == ("horizontal", "levels_4")

    def test_non_positive_top_floored(self):
        ds = self.make_ds(top_height=1.0e6)
        assert run_nl(AirPressureLevels(), ds)
        assert ds["air_pressure_levels"].values[0, 3] == constants.DEPS

    def test_short_ingredients_fail(self):
        ds = make_fields_ds(
            exner_levels_minus_one=[[1.0, 0.98]],
            air_pressure_levels_minus_one=[[100000.0, 93000.0]],
            theta=[[290.0, 295.0]],
            height_levels=[[0.0, 600.0, 1500.0, 2500.0]],
        )
        assert run_nl(AirPressureLevels(), ds) is False

    def test_no_linear_code(self):
        store = FieldStore(self.make_ds())
        with pytest.raises(NonlinearOnlyRecipe, match="AirPressureLevels_A"):
            AirPressureLevels().execute_ad(store, store)


class TestPressureToKappa:

    def test_power(self):
        ds = make_fields_ds(air_pressure=[[1.0e5, 5.0e4]])
        assert run_nl(AirPressureToKappa(), ds)
        np.testing.assert_allclose(ds["air_pressure_to_kappa"].values,
                                   [[1.0e5 ** constants.RD_OVER_CP,
                                     5.0e4 ** constants.RD_OVER_CP]])

    def test_negative_pressure_fails(self):
        ds = make_fields_ds(air_pressure=[[-1.0]])
        assert run_nl(AirPressureToKappa(), ds) is False

    def test_no_linear_code(self):
        store = FieldStore(make_fields_ds(air_pressure=[[1.0e5]]))
        with pytest.raises(NonlinearOnlyRecipe, match="AirPressureToKappa_A"):
            AirPressureToKappa().execute_tl(store, store)
