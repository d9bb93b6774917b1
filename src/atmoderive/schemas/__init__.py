"""Pydantic configuration schemas for atmoderive.

This module provides strictly typed configuration models. All
configuration validation, coercion, and normalization happens at schema
validation time via Pydantic.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete, including the default cookbook)
UserConfig : class
    User-facing configuration (forgiving, minimal)
RecipeParametersWrapper : class
    Per-recipe parameter overrides
"""

from atmoderive.schemas.resolve import resolve_config
from atmoderive.schemas.internal import InternalConfig
from atmoderive.schemas.param import ParamConfig, RecipeParametersWrapper, DEFAULT_COOKBOOK
from atmoderive.schemas.user import UserConfig

__all__ = [
    'resolve_config',
    'InternalConfig',
    'ParamConfig',
    'RecipeParametersWrapper',
    'DEFAULT_COOKBOOK',
    'UserConfig',
]
