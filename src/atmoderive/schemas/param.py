"""ParamConfig: Expert defaults for atmoderive.

This module defines the complete default configuration, including the
default cookbook. ALL engine parameters must have defaults here. No runtime
code should define fallback values - this is the single source of truth.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Any, Literal
from pydantic import Field, field_validator
from atmoderive.schemas.base import DeriveBaseModel


# Default cookbook: variable -> candidate recipes, most preferred first
DEFAULT_COOKBOOK = {
    "potential_temperature": ["TempToPTemp"],
    "virtual_temperature": ["TempToVTemp"],
    "air_temperature": ["AirTemperature_A", "AirTemperature_B"],
    "air_pressure_thickness": ["PressureToDelP"],
    "air_pressure_to_kappa": ["AirPressureToKappa_A"],
    "m_t": ["TotalMassMoistAir_A"],
    "specific_humidity": ["SpecificHumidity_A"],
    "relative_humidity": ["RelativeHumidity_A"],
    "param_a": ["ParamA_A"],
    "param_b": ["ParamB_A"],
    "air_pressure_levels": ["AirPressureLevels_A"],
    "mass_content_of_cloud_ice_in_atmosphere_layer": ["MassCloudIce_A"],
    "mass_content_of_cloud_liquid_water_in_atmosphere_layer": ["MassCloudLiquid_A"],
    "qrain": ["MassRain_A"],
    "qt": ["TotalWater_A"],
    "rht": ["TotalRelativeHumidity_A"],
    "specific_humidity_at_two_meters_above_surface": ["SpecificHumidityFromRH2m_A"],
}


def check_cookbook(cookbook: dict) -> dict:
    """Reject empty candidate lists and repeated candidates within an entry."""
    for variable, candidates in cookbook.items():
        if not candidates:
            raise ValueError(f"Cookbook entry '{variable}' has no candidate recipes")
        if len(set(candidates)) != len(candidates):
            raise ValueError(f"Cookbook entry '{variable}' repeats a candidate: {candidates}")
    return cookbook


def check_unique_recipe_parameters(wrappers: list) -> list:
    """Reject two parameter wrappers naming the same recipe."""
    names = [w.recipe_name for w in wrappers]
    duplicated = sorted({n for n in names if names.count(n) > 1})
    if duplicated:
        raise ValueError(f"Recipe parameters given more than once for {duplicated}")
    return wrappers


# =============================================================================
# Nested Configuration Models
# =============================================================================

class RecipeParametersWrapper(DeriveBaseModel):
    """Parameters overriding one recipe's defaults.

    Recipes never require parameters, so a wrapper is only needed to change
    a recipe's default configuration.
    """
    recipe_name: str = Field(alias="recipe name")
    parameters: dict[str, Any] = Field(default_factory=dict)

    model_config = DeriveBaseModel.model_config.copy()
    model_config.update({"populate_by_name": True})


class LayoutConfig(DeriveBaseModel):
    """Field store layout."""
    horizontal_dim: str = "horizontal"
    vertical_dim: str = "levels"
    halo_coord: str = Field("halo", description="Boolean coordinate marking halo points")
    include_halo: bool = True


class ExecutorConfig(DeriveBaseModel):
    """Plan execution settings."""
    max_workers: int = Field(1, ge=1, description="Threads per plan stage (1 = serial)")


class LoggingConfig(DeriveBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(DeriveBaseModel):
    """Complete expert configuration with all defaults.

    This is the single source of truth for all engine parameters.

    Usage
    -----
    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg)

    Runtime code only sees InternalConfig.
    """

    cookbook: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_COOKBOOK.items()}
    )
    recipe_parameters: list[RecipeParametersWrapper] = Field(default_factory=list)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("cookbook")
    @classmethod
    def validate_cookbook(cls, v):
        return check_cookbook(v)

    @field_validator("recipe_parameters")
    @classmethod
    def validate_recipe_parameters(cls, v):
        return check_unique_recipe_parameters(v)
