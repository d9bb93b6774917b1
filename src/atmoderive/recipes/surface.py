"""Surface pressure reduction parameters.

Both parameters come from a standard-atmosphere temperature profile
anchored at the layer above the boundary layer:

    t_bl  = -(g / Rd) * dz / ln(p[b+1] / p[b]) / (1 + c_v * q[b])
    t_msh = t_bl + Lclr * (height[b] - height_levels[0])
    param_a = height_levels[0] + t_msh / Lclr
    param_b = t_msh / (p[0] ** (Lclr * Rd / g) * Lclr)

where ``b`` is the ``boundary_layer_index`` held in the metadata of
``height``, ``p`` is ``air_pressure_levels_minus_one`` and
``dz = height_levels[b+1] - height_levels[b]``.
"""

import logging

import numpy as np

from atmoderive.contracts.failure import MissingIngredientMetadata
from atmoderive.core.recipe import Recipe
from atmoderive.recipes import constants

logger = logging.getLogger(__name__)


class SurfaceReduction(Recipe):
    """Shared setup and surface temperature for ``param_a``/``param_b``.

    Subclasses implement ``_parameter``. Nonlinear only, one level.
    """

    ingredients = ("height", "height_levels",
                   "air_pressure_levels_minus_one", "specific_humidity")
    requires_setup = True

    def setup(self, fields) -> bool:
        self.check_ingredients(fields)
        return True

    def product_levels(self, fields) -> int:
        return 1

    def _boundary_layer_index(self, fields) -> int:
        metadata = fields.metadata("height")
        if "boundary_layer_index" not in metadata:
            logger.error("%s: data validation failed, expected boundary_layer_index "
                         "in the metadata of the height field", self.name)
            raise MissingIngredientMetadata(self.name, "height", "boundary_layer_index")
        return int(metadata["boundary_layer_index"])

    def _parameter(self, t_msh, height_levels, pressure_levels):
        raise NotImplementedError

    def execute_nl(self, fields) -> bool:
        logger.debug("[%s.execute_nl()] starting ...", self.name)
        self.check_ingredients(fields)

        b = self._boundary_layer_index(fields)
        height = fields.columns("height")
        height_levels = fields.columns("height_levels")
        pressure_levels = fields.columns("air_pressure_levels_minus_one")
        q = fields.columns("specific_humidity")

        top = min(height_levels.shape[1], pressure_levels.shape[1])
        if b < 0 or b + 1 >= top or b >= min(height.shape[1], q.shape[1]):
            logger.warning("%s: boundary_layer_index %d out of range", self.name, b)
            return False

        # temperature at the level above the boundary layer
        t_bl = ((-constants.GRAV / constants.RD)
                * (height_levels[:, b + 1] - height_levels[:, b])
                / np.log(pressure_levels[:, b + 1] / pressure_levels[:, b]))
        t_bl = t_bl / (1.0 + constants.C_VIRTUAL * q[:, b])

        # temperature at model surface height
        t_msh = t_bl + constants.LCLR * (height[:, b] - height_levels[:, 0])

        value = self._parameter(t_msh, height_levels, pressure_levels)
        fields.write(self.product, value[:, None])

        logger.debug("[%s.execute_nl()] ... exit", self.name)
        return True


class ParamA(SurfaceReduction):
    name = "ParamA_A"
    product = "param_a"

    def _parameter(self, t_msh, height_levels, pressure_levels):
        return height_levels[:, 0] + t_msh / constants.LCLR


class ParamB(SurfaceReduction):
    name = "ParamB_A"
    product = "param_b"

    def _parameter(self, t_msh, height_levels, pressure_levels):
        exp_pmsh = constants.LCLR * constants.RD / constants.GRAV
        return t_msh / (pressure_levels[:, 0] ** exp_pmsh * constants.LCLR)
