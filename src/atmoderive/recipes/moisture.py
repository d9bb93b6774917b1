"""Moisture recipes.

Mixing ratios ``m_x`` are masses per unit mass of dry air. The total mass of
moist air per unit mass of dry air is

    m_t = 1 + m_v + m_ci + m_cl + m_r

and a specific quantity is the mixing ratio over that total,
``q_x = m_x / m_t``.
"""

import logging

import numpy as np
from pydantic import Field

from atmoderive.core.recipe import Recipe, RecipeParameters

logger = logging.getLogger(__name__)


class TotalMassMoistAir(Recipe):
    """Total mass of moist air from the four mixing ratios.

    Linear, so TL/AD do not read the trajectory.
    """

    name = "TotalMassMoistAir_A"
    product = "m_t"
    ingredients = ("m_v", "m_ci", "m_cl", "m_r")
    linear_support = True

    @property
    def trajectory_variables(self) -> tuple:
        return ()

    def execute_nl(self, fields) -> bool:
        logger.debug("[%s.execute_nl()] starting ...", self.name)
        self.check_ingredients(fields)
        total = 1.0 + sum(fields.columns(name) for name in self.ingredients)
        fields.write(self.product, total)
        logger.debug("[%s.execute_nl()] ... exit", self.name)
        return True

    def execute_tl(self, increments, trajectory) -> bool:
        self.check_ingredients(increments)
        increments.write(
            self.product, sum(increments.columns(name) for name in self.ingredients)
        )
        return True

    def execute_ad(self, sensitivities, trajectory) -> bool:
        m_t_hat = sensitivities.columns(self.product)
        for name in self.ingredients:
            sensitivities.accumulate(name, m_t_hat)
        return True


class RatioToTotalMass(Recipe):
    """Specific quantity ``q_x = m_x / m_t``.

    Subclasses name the mixing ratio ``m_x`` first in ``ingredients`` and
    ``m_t`` second.

    TL: ``q_x' = m_x' / m_t - m_x * m_t' / m_t**2``
    """

    linear_support = True

    @property
    def mixing_ratio(self) -> str:
        return self.ingredients[0]

    def execute_nl(self, fields) -> bool:
        logger.debug("[%s.execute_nl()] starting ...", self.name)
        self.check_ingredients(fields)

        m_t = fields.columns("m_t")
        if np.any(m_t[fields.owned_mask()] == 0.0):
            logger.warning("%s: m_t has zeros, cannot form ratio", self.name)
            return False
        fields.write(self.product, fields.columns(self.mixing_ratio) / m_t)

        logger.debug("[%s.execute_nl()] ... exit", self.name)
        return True

    def execute_tl(self, increments, trajectory) -> bool:
        self.check_ingredients(increments)
        self.check_trajectory(trajectory)

        m_x = trajectory.columns(self.mixing_ratio)
        m_t = trajectory.columns("m_t")
        increments.write(
            self.product,
            increments.columns(self.mixing_ratio) / m_t
            - m_x * increments.columns("m_t") / m_t ** 2,
        )
        return True

    def execute_ad(self, sensitivities, trajectory) -> bool:
        self.check_trajectory(trajectory)

        m_x = trajectory.columns(self.mixing_ratio)
        m_t = trajectory.columns("m_t")
        q_hat = sensitivities.columns(self.product)

        sensitivities.accumulate(self.mixing_ratio, q_hat / m_t)
        sensitivities.accumulate("m_t", -m_x * q_hat / m_t ** 2)
        return True


class SpecificHumidity(RatioToTotalMass):
    """Specific humidity ``q = m_v / m_t``."""

    name = "SpecificHumidity_A"
    product = "specific_humidity"
    ingredients = ("m_v", "m_t")


class MassCloudIce(RatioToTotalMass):
    name = "MassCloudIce_A"
    product = "mass_content_of_cloud_ice_in_atmosphere_layer"
    ingredients = ("m_ci", "m_t")


class MassCloudLiquid(RatioToTotalMass):
    name = "MassCloudLiquid_A"
    product = "mass_content_of_cloud_liquid_water_in_atmosphere_layer"
    ingredients = ("m_cl", "m_t")


class MassRain(RatioToTotalMass):
    name = "MassRain_A"
    product = "qrain"
    ingredients = ("m_r", "m_t")


class TotalWater(Recipe):
    """Total water ``qt = q + qcl + qcf``.

    A plain sum, so TL/AD do not read the trajectory.
    """

    name = "TotalWater_A"
    product = "qt"
    ingredients = ("specific_humidity",
                   "mass_content_of_cloud_liquid_water_in_atmosphere_layer",
                   "mass_content_of_cloud_ice_in_atmosphere_layer")
    linear_support = True

    @property
    def trajectory_variables(self) -> tuple:
        return ()

    def execute_nl(self, fields) -> bool:
        self.check_ingredients(fields)
        fields.write(self.product, sum(fields.columns(name) for name in self.ingredients))
        return True

    def execute_tl(self, increments, trajectory) -> bool:
        return self.execute_nl(increments)

    def execute_ad(self, sensitivities, trajectory) -> bool:
        qt_hat = sensitivities.columns(self.product)
        for name in self.ingredients:
            sensitivities.accumulate(name, qt_hat)
        return True


class RelativeHumidityParameters(RecipeParameters):
    cap_super_sat: bool = Field(
        False, description="Cap at 100% when the product field carries no flag"
    )


class RelativeHumidity(Recipe):
    """Relative humidity in percent from specific humidity and saturation.

    ``rh = max(q / qsat * 100, 0)``. Values above 100 are capped when the
    ``cap_super_sat`` flag is set in the metadata of the
    ``relative_humidity`` field; without that key the recipe parameter of the
    same name applies. Nonlinear only.
    """

    name = "RelativeHumidity_A"
    product = "relative_humidity"
    ingredients = ("specific_humidity", "qsat")
    Parameters = RelativeHumidityParameters

    def _cap_super_sat(self, fields) -> bool:
        if fields.has(self.product):
            metadata = fields.metadata(self.product)
            if "cap_super_sat" in metadata:
                return bool(metadata["cap_super_sat"])
        return self.parameters.cap_super_sat

    def execute_nl(self, fields) -> bool:
        logger.debug("[%s.execute_nl()] starting ...", self.name)
        self.check_ingredients(fields)

        cap = self._cap_super_sat(fields)
        q = fields.columns("specific_humidity")
        qsat = fields.columns("qsat")

        rh = np.maximum(q / qsat * 100.0, 0.0)
        if cap:
            rh = np.minimum(rh, 100.0)
        fields.write(self.product, rh)

        logger.debug("[%s.execute_nl()] ... exit (cap_super_sat=%s)", self.name, cap)
        return True


class TotalRelativeHumidity(Recipe):
    """Total relative humidity in percent, counting all condensate.

    ``rht = max((q + qcl + qci + qrain) / qsat * 100, 0)``. Nonlinear only.
    """

    name = "TotalRelativeHumidity_A"
    product = "rht"
    ingredients = ("specific_humidity",
                   "mass_content_of_cloud_liquid_water_in_atmosphere_layer",
                   "mass_content_of_cloud_ice_in_atmosphere_layer",
                   "qrain", "qsat")

    def execute_nl(self, fields) -> bool:
        logger.debug("[%s.execute_nl()] starting ...", self.name)
        self.check_ingredients(fields)

        total = sum(fields.columns(name) for name in self.ingredients[:-1])
        fields.write(self.product, np.maximum(total / fields.columns("qsat") * 100.0, 0.0))

        logger.debug("[%s.execute_nl()] ... exit", self.name)
        return True


class SpecificHumidityFromRH2m(Recipe):
    """Screen-level specific humidity ``q2m = rh2m * qsat``.

    ``relative_humidity_2m`` is a fraction, not a percentage.
    """

    name = "SpecificHumidityFromRH2m_A"
    product = "specific_humidity_at_two_meters_above_surface"
    ingredients = ("relative_humidity_2m", "qsat")
    linear_support = True

    def execute_nl(self, fields) -> bool:
        self.check_ingredients(fields)
        fields.write(self.product,
                     fields.columns("relative_humidity_2m") * fields.columns("qsat"))
        return True

    def execute_tl(self, increments, trajectory) -> bool:
        self.check_ingredients(increments)
        self.check_trajectory(trajectory)

        rh = trajectory.columns("relative_humidity_2m")
        qsat = trajectory.columns("qsat")
        increments.write(
            self.product,
            qsat * increments.columns("relative_humidity_2m")
            + rh * increments.columns("qsat"),
        )
        return True

    def execute_ad(self, sensitivities, trajectory) -> bool:
        self.check_trajectory(trajectory)

        rh = trajectory.columns("relative_humidity_2m")
        qsat = trajectory.columns("qsat")
        q_hat = sensitivities.columns(self.product)

        sensitivities.accumulate("relative_humidity_2m", qsat * q_hat)
        sensitivities.accumulate("qsat", rh * q_hat)
        return True
