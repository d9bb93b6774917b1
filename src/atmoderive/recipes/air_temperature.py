"""Air temperature recipes.

Two routes to ``air_temperature``:

- AirTemperature_A: from model potential temperature and Exner pressure,
  ``T = theta * exner``
- AirTemperature_B: from potential temperature and air pressure,
  ``T = theta * (p / p0) ** kappa``
"""

import logging

from pydantic import Field

from atmoderive.core.recipe import Recipe, RecipeParameters
from atmoderive.recipes import constants

logger = logging.getLogger(__name__)


class AirTemperatureA(Recipe):
    """Air temperature from ``theta`` and ``exner``."""

    name = "AirTemperature_A"
    product = "air_temperature"
    ingredients = ("theta", "exner")
    linear_support = True

    def execute_nl(self, fields) -> bool:
        logger.debug("[%s.execute_nl()] starting ...", self.name)
        self.check_ingredients(fields)

        theta = fields.columns("theta")
        exner = fields.columns("exner")
        fields.write(self.product, theta * exner)

        logger.debug("[%s.execute_nl()] ... exit", self.name)
        return True

    def execute_tl(self, increments, trajectory) -> bool:
        self.check_ingredients(increments)
        self.check_trajectory(trajectory)

        theta = trajectory.columns("theta")
        exner = trajectory.columns("exner")
        increments.write(
            self.product,
            increments.columns("theta") * exner + theta * increments.columns("exner"),
        )
        return True

    def execute_ad(self, sensitivities, trajectory) -> bool:
        self.check_trajectory(trajectory)

        t_hat = sensitivities.columns(self.product)
        sensitivities.accumulate("theta", trajectory.columns("exner") * t_hat)
        sensitivities.accumulate("exner", trajectory.columns("theta") * t_hat)
        return True


class AirTemperatureBParameters(RecipeParameters):
    kappa: float = Field(constants.KAPPA, gt=0)
    p_zero: float = Field(constants.P_ZERO, gt=0)


class AirTemperatureB(Recipe):
    """Air temperature from ``potential_temperature`` and ``air_pressure``.

    Inverse of the Poisson equation used by TempToPTemp. Linearised as

        T' = theta' * pi + kappa * T * p' / p,    pi = (p / p0) ** kappa
    """

    name = "AirTemperature_B"
    product = "air_temperature"
    ingredients = ("potential_temperature", "air_pressure")
    linear_support = True
    Parameters = AirTemperatureBParameters

    def _exner(self, pressure):
        return (pressure / self.parameters.p_zero) ** self.parameters.kappa

    def execute_nl(self, fields) -> bool:
        self.check_ingredients(fields)
        theta = fields.columns("potential_temperature")
        pressure = fields.columns("air_pressure")
        fields.write(self.product, theta * self._exner(pressure))
        return True

    def execute_tl(self, increments, trajectory) -> bool:
        self.check_ingredients(increments)
        self.check_trajectory(trajectory)

        theta = trajectory.columns("potential_temperature")
        pressure = trajectory.columns("air_pressure")
        pi = self._exner(pressure)
        d_dp = self.parameters.kappa * theta * pi / pressure

        increments.write(
            self.product,
            increments.columns("potential_temperature") * pi
            + d_dp * increments.columns("air_pressure"),
        )
        return True

    def execute_ad(self, sensitivities, trajectory) -> bool:
        self.check_trajectory(trajectory)

        theta = trajectory.columns("potential_temperature")
        pressure = trajectory.columns("air_pressure")
        pi = self._exner(pressure)
        t_hat = sensitivities.columns(self.product)

        sensitivities.accumulate("potential_temperature", pi * t_hat)
        sensitivities.accumulate(
            "air_pressure", self.parameters.kappa * theta * pi / pressure * t_hat
        )
        return True
