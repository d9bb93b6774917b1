"""Pressure recipes: interface pressure, layer thickness and pressure to the power kappa."""

import logging

import numpy as np
from pydantic import Field

from atmoderive.core.recipe import Recipe, RecipeParameters
from atmoderive.recipes import constants

logger = logging.getLogger(__name__)


class PressureToDelP(Recipe):
    """Pressure thickness of each model layer.

    ``air_pressure_thickness[:, k] = p[:, k + 1] - p[:, k]`` for the
    ``air_pressure_levels`` interfaces, so the product has one level fewer
    than its ingredient. The level count is fixed during setup.

    The transform is linear, so TL is the same difference applied to the
    increments and no trajectory fields are read.
    """

    name = "PressureToDelP"
    product = "air_pressure_thickness"
    ingredients = ("air_pressure_levels",)
    requires_setup = True
    linear_support = True

    def __init__(self, parameters=None):
        super().__init__(parameters)
        self._levels = None

    def setup(self, fields) -> bool:
        self.check_ingredients(fields)
        self._levels = fields.levels("air_pressure_levels") - 1
        logger.debug("[%s.setup()] product levels = %d", self.name, self._levels)
        return self._levels >= 1

    def product_levels(self, fields) -> int:
        if self._levels is None:
            return fields.levels("air_pressure_levels") - 1
        return self._levels

    @property
    def trajectory_variables(self) -> tuple:
        return ()

    @staticmethod
    def _difference(p):
        return p[:, 1:] - p[:, :-1]

    def _levels_match(self, fields) -> bool:
        levels = fields.levels("air_pressure_levels") - 1
        expected = self._levels if self._levels is not None else levels
        if levels != expected or fields.levels(self.product) != expected:
            logger.warning("%s: set up for %d layer(s), got %d pressure level(s) and "
                           "%d thickness level(s)", self.name, expected, levels + 1,
                           fields.levels(self.product))
            return False
        return True

    def execute_nl(self, fields) -> bool:
        logger.debug("[%s.execute_nl()] starting ...", self.name)
        self.check_ingredients(fields)
        if not self._levels_match(fields):
            return False
        fields.write(self.product, self._difference(fields.columns("air_pressure_levels")))
        logger.debug("[%s.execute_nl()] ... exit", self.name)
        return True

    def execute_tl(self, increments, trajectory) -> bool:
        self.check_ingredients(increments)
        if not self._levels_match(increments):
            return False
        increments.write(
            self.product, self._difference(increments.columns("air_pressure_levels"))
        )
        return True

    def execute_ad(self, sensitivities, trajectory) -> bool:
        if not self._levels_match(sensitivities):
            return False
        dp_hat = sensitivities.columns(self.product)
        p_hat = np.zeros_like(sensitivities.columns("air_pressure_levels"))
        p_hat[:, 1:] += dp_hat
        p_hat[:, :-1] -= dp_hat
        sensitivities.accumulate("air_pressure_levels", p_hat)
        return True


class AirPressureToKappaParameters(RecipeParameters):
    kappa: float = Field(constants.RD_OVER_CP, gt=0)


class AirPressureToKappa(Recipe):
    """``air_pressure ** kappa``. Nonlinear only."""

    name = "AirPressureToKappa_A"
    product = "air_pressure_to_kappa"
    ingredients = ("air_pressure",)
    Parameters = AirPressureToKappaParameters

    def execute_nl(self, fields) -> bool:
        self.check_ingredients(fields)
        pressure = fields.columns("air_pressure")
        if np.any(pressure[fields.owned_mask()] < 0.0):
            logger.warning("%s: negative air_pressure, cannot raise to kappa", self.name)
            return False
        fields.write(self.product, pressure ** self.parameters.kappa)
        return True


class AirPressureLevels(Recipe):
    """Pressure on level interfaces, completing the top interface.

    Interfaces below the top are copied from
    ``air_pressure_levels_minus_one``. The top interface integrates the
    hydrostatic equation in exner over the uppermost layer:

        p[n-1] = p_zero * (exner[n-2] - g * dz / (cp * theta[n-2])) ** (cp / Rd)

    with ``dz = height_levels[n-1] - height_levels[n-2]`` and ``n`` the
    number of ``height_levels``. A non-positive result is replaced by a
    small positive pressure. Nonlinear only.
    """

    name = "AirPressureLevels_A"
    product = "air_pressure_levels"
    ingredients = ("exner_levels_minus_one", "air_pressure_levels_minus_one",
                   "theta", "height_levels")

    def product_levels(self, fields) -> int:
        return fields.levels("height_levels")

    def execute_nl(self, fields) -> bool:
        logger.debug("[%s.execute_nl()] starting ...", self.name)
        self.check_ingredients(fields)

        n = fields.levels(self.product)
        short = [name for name in self.ingredients[:3] if fields.levels(name) < n - 1]
        if n < 2 or fields.levels("height_levels") != n or short:
            logger.warning("%s: cannot fill %d interface(s) from %s", self.name, n,
                           {name: fields.levels(name) for name in self.ingredients})
            return False

        exner = fields.columns("exner_levels_minus_one")
        theta = fields.columns("theta")
        height_levels = fields.columns("height_levels")

        pressure = np.empty((fields.n_points, n))
        pressure[:, :n - 1] = fields.columns("air_pressure_levels_minus_one")[:, :n - 1]

        exner_top = (exner[:, n - 2]
                     - constants.GRAV * (height_levels[:, n - 1] - height_levels[:, n - 2])
                     / (constants.CP * theta[:, n - 2]))
        top = constants.P_ZERO * np.power(np.maximum(exner_top, 0.0),
                                          1.0 / constants.RD_OVER_CP)
        pressure[:, n - 1] = np.where(top > 0.0, top, constants.DEPS)

        fields.write(self.product, pressure)
        logger.debug("[%s.execute_nl()] ... exit", self.name)
        return True
