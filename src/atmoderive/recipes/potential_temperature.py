"""Potential temperature from air temperature and pressure.

    theta = T * (p0 / p) ** kappa
"""

import logging

from pydantic import Field

from atmoderive.core.recipe import Recipe, RecipeParameters
from atmoderive.recipes import constants

logger = logging.getLogger(__name__)


class TempToPTempParameters(RecipeParameters):
    kappa: float = Field(constants.KAPPA, gt=0)
    p_zero: float = Field(constants.P_ZERO, gt=0)


class TempToPTemp(Recipe):
    """Poisson equation, with tangent-linear and adjoint.

    Linearisation around the trajectory:

        theta' = f * T' - kappa * theta / p * p',    f = (p0 / p) ** kappa
    """

    name = "TempToPTemp"
    product = "potential_temperature"
    ingredients = ("air_temperature", "air_pressure")
    linear_support = True
    Parameters = TempToPTempParameters

    def _factor(self, pressure):
        return (self.parameters.p_zero / pressure) ** self.parameters.kappa

    def execute_nl(self, fields) -> bool:
        logger.debug("[%s.execute_nl()] starting ...", self.name)
        self.check_ingredients(fields)

        temperature = fields.columns("air_temperature")
        pressure = fields.columns("air_pressure")
        fields.write(self.product, temperature * self._factor(pressure))

        logger.debug("[%s.execute_nl()] ... exit", self.name)
        return True

    def execute_tl(self, increments, trajectory) -> bool:
        self.check_ingredients(increments)
        self.check_trajectory(trajectory)

        temperature = trajectory.columns("air_temperature")
        pressure = trajectory.columns("air_pressure")
        factor = self._factor(pressure)
        d_dp = -self.parameters.kappa * temperature * factor / pressure

        increments.write(
            self.product,
            factor * increments.columns("air_temperature")
            + d_dp * increments.columns("air_pressure"),
        )
        return True

    def execute_ad(self, sensitivities, trajectory) -> bool:
        self.check_trajectory(trajectory)

        temperature = trajectory.columns("air_temperature")
        pressure = trajectory.columns("air_pressure")
        factor = self._factor(pressure)
        theta_hat = sensitivities.columns(self.product)

        sensitivities.accumulate("air_temperature", factor * theta_hat)
        sensitivities.accumulate(
            "air_pressure",
            -self.parameters.kappa * temperature * factor / pressure * theta_hat,
        )
        return True
