"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and immutable.
"""

from typing import Literal
from pydantic import Field, ConfigDict, field_validator
from atmoderive.schemas.base import DeriveBaseModel
from atmoderive.schemas.param import (
    RecipeParametersWrapper,
    check_cookbook,
    check_unique_recipe_parameters,
)


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalLayoutConfig(DeriveBaseModel):
    """Runtime field store layout."""
    horizontal_dim: str
    vertical_dim: str
    halo_coord: str
    include_halo: bool


class InternalExecutorConfig(DeriveBaseModel):
    """Runtime execution settings."""
    max_workers: int = Field(ge=1)


class InternalLoggingConfig(DeriveBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(DeriveBaseModel):
    """Authoritative runtime configuration.

    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.cookbook = Cookbook(config.cookbook)
            self.include_halo = config.layout.include_halo

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation

    All of that happens during config resolution, not in runtime code.
    """

    cookbook: dict[str, tuple[str, ...]]
    recipe_parameters: tuple[RecipeParametersWrapper, ...]
    layout: InternalLayoutConfig
    executor: InternalExecutorConfig
    logging: InternalLoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )

    @field_validator("cookbook")
    @classmethod
    def validate_cookbook(cls, v):
        return check_cookbook(v)

    @field_validator("recipe_parameters")
    @classmethod
    def validate_recipe_parameters(cls, v):
        return check_unique_recipe_parameters(v)

    def parameters_for(self, recipe_name: str) -> dict:
        """Configured parameters for a recipe (empty when not overridden)."""
        for wrapper in self.recipe_parameters:
            if wrapper.recipe_name == recipe_name:
                return dict(wrapper.parameters)
        return {}
