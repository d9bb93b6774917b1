"""Virtual temperature from air temperature and specific humidity."""

from pydantic import Field

from atmoderive.core.recipe import Recipe, RecipeParameters
from atmoderive.recipes import constants


class TempToVTempParameters(RecipeParameters):
    c_virtual: float = Field(constants.C_VIRTUAL, description="Rv/Rd - 1")


class TempToVTemp(Recipe):
    """Tv = T * (1 + c q), with tangent-linear and adjoint."""

    name = "TempToVTemp"
    product = "virtual_temperature"
    ingredients = ("air_temperature", "specific_humidity")
    linear_support = True
    Parameters = TempToVTempParameters

    def execute_nl(self, fields) -> bool:
        self.check_ingredients(fields)
        c = self.parameters.c_virtual
        temperature = fields.columns("air_temperature")
        q = fields.columns("specific_humidity")
        fields.write(self.product, temperature * (1.0 + c * q))
        return True

    def execute_tl(self, increments, trajectory) -> bool:
        self.check_ingredients(increments)
        self.check_trajectory(trajectory)

        c = self.parameters.c_virtual
        temperature = trajectory.columns("air_temperature")
        q = trajectory.columns("specific_humidity")
        increments.write(
            self.product,
            (1.0 + c * q) * increments.columns("air_temperature")
            + c * temperature * increments.columns("specific_humidity"),
        )
        return True

    def execute_ad(self, sensitivities, trajectory) -> bool:
        self.check_trajectory(trajectory)

        c = self.parameters.c_virtual
        temperature = trajectory.columns("air_temperature")
        q = trajectory.columns("specific_humidity")
        tv_hat = sensitivities.columns(self.product)

        sensitivities.accumulate("air_temperature", (1.0 + c * q) * tv_hat)
        sensitivities.accumulate("specific_humidity", c * temperature * tv_hat)
        return True
