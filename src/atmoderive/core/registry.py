"""Recipe registry.

An explicit catalog mapping recipe names to constructors. The application
(or a test fixture) owns the registry and passes it to the resolver; there
is no module-level instance. Built-in recipes are registered by calling
``register_builtin_recipes`` once, before any ``create`` call.
"""

import logging
from typing import Callable, Dict, Iterator, Optional, Union

from atmoderive.contracts.base import require
from atmoderive.contracts.failure import DuplicateUnit, UnknownUnit
from atmoderive.core.recipe import Recipe, RecipeParameters

__all__ = ['RecipeRegistry', 'default_registry']

logger = logging.getLogger(__name__)


class RecipeRegistry:
    """Catalog of recipe constructors keyed by recipe name.

    Example usage::

        registry = RecipeRegistry()
        register_builtin_recipes(registry)
        recipe = registry.create("TempToPTemp", {"kappa": 0.2857})
    """

    def __init__(self):
        self._makers: Dict[str, Callable[..., Recipe]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._makers

    def __len__(self) -> int:
        return len(self._makers)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def names(self) -> list:
        return sorted(self._makers)

    def register(self, name: str, maker: Callable[..., Recipe]) -> None:
        """Store a constructor under a unique name.

        Raises
        ------
        DuplicateUnit
            If the name is already registered.
        """
        if name in self._makers:
            raise DuplicateUnit(name)
        self._makers[name] = maker
        logger.debug("Registered recipe: %s", name)

    def add(self, recipe_cls: type) -> type:
        """Register a Recipe subclass under its own ``name``."""
        self.register(recipe_cls.name, recipe_cls)
        return recipe_cls

    def maker(self, name: str) -> Callable[..., Recipe]:
        if name not in self._makers:
            raise UnknownUnit(name, self.names())
        return self._makers[name]

    def create(self, name: str,
               parameters: Optional[Union[dict, RecipeParameters]] = None) -> Recipe:
        """Instantiate a recipe.

        Parameters
        ----------
        name : str
            Registered recipe name.
        parameters : dict or RecipeParameters, optional
            Overrides for the recipe's defaults, validated by its
            Parameters model.

        Raises
        ------
        UnknownUnit
            If ``name`` is not registered.
        pydantic.ValidationError
            If the parameters do not validate.
        """
        recipe = self.maker(name)(parameters)
        require(
            recipe.name == name,
            f"Registry contract violated: '{name}' constructed a recipe named '{recipe.name}'"
        )
        logger.debug("Created recipe: %r", recipe)
        return recipe


def default_registry() -> RecipeRegistry:
    """Fresh registry with every built-in recipe registered."""
    from atmoderive.recipes import register_builtin_recipes

    registry = RecipeRegistry()
    register_builtin_recipes(registry)
    return registry
