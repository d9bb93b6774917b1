"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs with aliases for common naming patterns
(e.g., COOKBOOK -> cookbook, LOG_LEVEL -> log_level).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator
from atmoderive.schemas.base import DeriveBaseModel
from atmoderive.schemas.param import (
    RecipeParametersWrapper,
    check_cookbook,
    check_unique_recipe_parameters,
)


class UserLayoutConfig(DeriveBaseModel):
    """User-facing field store layout."""
    horizontal_dim: Optional[str] = None
    vertical_dim: Optional[str] = None
    halo_coord: Optional[str] = None
    include_halo: Optional[bool] = None


class UserConfig(DeriveBaseModel):
    """User-facing configuration schema.

    Users only specify what they want to override from ParamConfig defaults.
    Cookbook entries given here replace the default entry for the same
    variable and leave the others alone, unless ``replace_cookbook`` is set,
    in which case the user cookbook is used on its own.

    Usage
    -----
        user_cfg = UserConfig(
            cookbook={"air_temperature": ["AirTemperature_B"]},
            recipe_parameters=[
                {"recipe name": "TempToPTemp", "parameters": {"kappa": 0.2857}},
            ],
            log_level="DEBUG",
        )

        internal = resolve_config(param_cfg, user_cfg)
    """

    cookbook: Optional[dict[str, list[str]]] = Field(None, alias="COOKBOOK")
    replace_cookbook: bool = Field(False, alias="REPLACE_COOKBOOK")
    recipe_parameters: Optional[list[RecipeParametersWrapper]] = Field(
        None, alias="RECIPE_PARAMETERS"
    )

    # Flat aliases
    include_halo: Optional[bool] = Field(None, alias="INCLUDE_HALO")
    max_workers: Optional[int] = Field(None, ge=1, alias="MAX_WORKERS")
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(
        None, alias="LOG_LEVEL"
    )

    # Nested overrides (advanced users)
    layout: Optional[UserLayoutConfig] = None

    model_config = DeriveBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("cookbook")
    @classmethod
    def validate_cookbook(cls, v):
        if v is not None:
            return check_cookbook(v)
        return v

    @field_validator("recipe_parameters")
    @classmethod
    def validate_recipe_parameters(cls, v):
        if v is not None:
            return check_unique_recipe_parameters(v)
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lowercase level names."""
        if isinstance(v, str):
            return v.upper().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        The cookbook and recipe parameters are returned as-is; how they
        combine with the defaults is decided in resolve_config().

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.cookbook is not None:
            overrides["cookbook"] = {k: list(v) for k, v in self.cookbook.items()}

        if self.recipe_parameters is not None:
            overrides["recipe_parameters"] = [
                w.model_dump(by_alias=True) for w in self.recipe_parameters
            ]

        layout = {}
        if self.include_halo is not None:
            layout["include_halo"] = self.include_halo
        if self.layout is not None:
            layout.update(self.layout.model_dump(exclude_none=True))
        if layout:
            overrides["layout"] = layout

        if self.max_workers is not None:
            overrides["executor"] = {"max_workers": self.max_workers}

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
