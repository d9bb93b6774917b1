"""Built-in recipes.

Nothing is registered on import. Call ``register_builtin_recipes`` on the
registry the application owns::

    registry = RecipeRegistry()
    register_builtin_recipes(registry)
"""

from atmoderive.recipes.air_temperature import AirTemperatureA, AirTemperatureB
from atmoderive.recipes.moisture import (
    MassCloudIce,
    MassCloudLiquid,
    MassRain,
    RelativeHumidity,
    SpecificHumidity,
    SpecificHumidityFromRH2m,
    TotalMassMoistAir,
    TotalRelativeHumidity,
    TotalWater,
)
from atmoderive.recipes.potential_temperature import TempToPTemp
from atmoderive.recipes.pressure import AirPressureLevels, AirPressureToKappa, PressureToDelP
from atmoderive.recipes.surface import ParamA, ParamB
from atmoderive.recipes.virtual_temperature import TempToVTemp

BUILTIN_RECIPES = (
    AirTemperatureA,
    AirTemperatureB,
    TempToPTemp,
    TempToVTemp,
    AirPressureLevels,
    PressureToDelP,
    AirPressureToKappa,
    TotalMassMoistAir,
    SpecificHumidity,
    MassCloudIce,
    MassCloudLiquid,
    MassRain,
    TotalWater,
    RelativeHumidity,
    TotalRelativeHumidity,
    SpecificHumidityFromRH2m,
    ParamA,
    ParamB,
)


def register_builtin_recipes(registry) -> None:
    """Register every built-in recipe under its name.

    Raises
    ------
    DuplicateUnit
        If called twice on the same registry.
    """
    for recipe_cls in BUILTIN_RECIPES:
        registry.add(recipe_cls)


__all__ = ['BUILTIN_RECIPES', 'register_builtin_recipes'] + [
    cls.__name__ for cls in BUILTIN_RECIPES
]
