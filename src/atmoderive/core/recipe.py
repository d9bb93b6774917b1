"""Recipe: a named unit deriving one variable from others.

A recipe declares its product, its ingredients and whether it needs a
one-time setup. It implements the nonlinear transform and, when
``linear_support`` is True, its tangent-linear and adjoint.

Adjoint convention
------------------
``execute_ad`` ADDS the sensitivity contribution of the product into each
ingredient slot and never touches the product slot. The executor zeroes the
product slot once the recipe returns.
"""

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Optional, Union

from atmoderive.contracts.failure import ExecutionMode, MissingTrajectory, NonlinearOnlyRecipe
from atmoderive.contracts.fields import assert_fields_present
from atmoderive.schemas.base import DeriveBaseModel

__all__ = ['Recipe', 'RecipeParameters']

logger = logging.getLogger(__name__)


class RecipeParameters(DeriveBaseModel):
    """Base class for recipe parameters.

    Recipes must work with zero configuration, so every field of a subclass
    needs a default.
    """


class Recipe(ABC):
    """Base class for recipes.

    Subclasses set the class attributes below and implement ``execute_nl``.

    Attributes
    ----------
    name : str
        Registry name, constant.
    product : str
        The one variable this recipe produces.
    ingredients : tuple of str
        Variables required to set up and execute the recipe. Order is
        informational.
    requires_setup : bool
        When True the executor calls ``setup`` once before the first execute.
    linear_support : bool
        True when ``execute_tl``/``execute_ad`` are implemented.
    Parameters : type
        Pydantic model for this recipe's parameters.
    """

    name: ClassVar[str]
    product: ClassVar[str]
    ingredients: ClassVar[tuple] = ()
    requires_setup: ClassVar[bool] = False
    linear_support: ClassVar[bool] = False
    Parameters: ClassVar[type] = RecipeParameters

    def __init__(self, parameters: Optional[Union[dict, RecipeParameters]] = None):
        if parameters is None:
            parameters = self.Parameters()
        elif not isinstance(parameters, self.Parameters):
            parameters = self.Parameters.model_validate(parameters)
        self.parameters = parameters

    def __repr__(self):
        return (f"{type(self).__name__}(name={self.name!r}, product={self.product!r}, "
                f"ingredients={list(self.ingredients)})")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def setup(self, fields) -> bool:
        """One-time preparation once ingredients exist. Returns success."""
        return True

    def product_levels(self, fields) -> int:
        """Vertical levels of the product, defaulting to the first ingredient's."""
        if not self.ingredients:
            return 1
        return fields.levels(self.ingredients[0])

    @property
    def trajectory_variables(self) -> tuple:
        """Fields the linear code reads from the trajectory store."""
        return self.ingredients

    # ------------------------------------------------------------------
    # Validation helpers for subclasses
    # ------------------------------------------------------------------

    def check_ingredients(self, fields) -> None:
        assert_fields_present(fields, self.ingredients, f"recipe '{self.name}'")

    def check_trajectory(self, trajectory) -> None:
        missing = [name for name in self.trajectory_variables if not trajectory.has(name)]
        if missing:
            raise MissingTrajectory(
                f"Recipe '{self.name}' needs {missing} in the trajectory", missing
            )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @abstractmethod
    def execute_nl(self, fields) -> bool:
        """Compute the product from the ingredients, in place.

        Returns False on a recoverable numerical precondition failure.
        """

    def execute_tl(self, increments, trajectory) -> bool:
        """Linearised perturbation of the product around the trajectory."""
        raise NonlinearOnlyRecipe(self.name, ExecutionMode.TL)

    def execute_ad(self, sensitivities, trajectory) -> bool:
        """Adjoint of ``execute_tl``: accumulate into ingredient slots."""
        raise NonlinearOnlyRecipe(self.name, ExecutionMode.AD)
