"""Configuration resolution and merging logic.

This module provides the single entrypoint for configuration resolution:
resolve_config(). It merges ParamConfig and UserConfig in the correct
precedence order and returns a validated InternalConfig.

Precedence (highest to lowest):
1. UserConfig (user overrides)
2. ParamConfig (expert defaults)
"""

from typing import Union, Optional
from atmoderive.schemas.param import ParamConfig
from atmoderive.schemas.user import UserConfig
from atmoderive.schemas.internal import InternalConfig


def deep_merge(base: dict, *overrides: dict) -> dict:
    """Deep merge multiple dictionaries.

    Later dictionaries override earlier ones. Nested dictionaries are
    merged recursively; other values are replaced.

    Parameters
    ----------
    base : dict
        Base dictionary (lowest priority)
    *overrides : dict
        Override dictionaries (higher priority, left to right)

    Returns
    -------
    dict
        Merged dictionary

    Examples
    --------
    >>> base = {"a": 1, "b": {"c": 2, "d": 3}}
    >>> override = {"b": {"d": 4, "e": 5}, "f": 6}
    >>> deep_merge(base, override)
    {'a': 1, 'b': {'c': 2, 'd': 4, 'e': 5}, 'f': 6}
    """
    result = base.copy()

    for override in overrides:
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                # Recursive merge for nested dicts
                result[key] = deep_merge(result[key], value)
            else:
                # Replace value
                result[key] = value

    return result


def merge_recipe_parameters(base: list, override: list) -> list:
    """Combine parameter wrappers by recipe name, override wins per key.

    Examples
    --------
    >>> base = [{"recipe name": "TempToPTemp", "parameters": {"kappa": 0.28}}]
    >>> override = [{"recipe name": "TempToPTemp", "parameters": {"p_zero": 1.0e5}}]
    >>> merge_recipe_parameters(base, override)
    [{'recipe name': 'TempToPTemp', 'parameters': {'kappa': 0.28, 'p_zero': 100000.0}}]
    """
    merged = {w["recipe name"]: dict(w) for w in base}
    for wrapper in override:
        name = wrapper["recipe name"]
        if name in merged:
            merged[name]["parameters"] = deep_merge(
                merged[name]["parameters"], wrapper["parameters"]
            )
        else:
            merged[name] = dict(wrapper)
    return list(merged.values())


def resolve_config(
    param_cfg: Union[dict, ParamConfig],
    user_cfg: Optional[Union[dict, UserConfig]] = None,
) -> InternalConfig:
    """Resolve final runtime configuration from param and user configs.

    This is the SINGLE ENTRYPOINT for configuration resolution. It validates
    and merges configs in precedence order, then returns an immutable
    InternalConfig for runtime use.

    Parameters
    ----------
    param_cfg : dict or ParamConfig
        Expert configuration with complete defaults. Required.
    user_cfg : dict or UserConfig, optional
        User configuration with overrides. If None or empty, uses only param defaults.

    Returns
    -------
    InternalConfig
        Fully validated, immutable runtime configuration

    Raises
    ------
    ValidationError
        If any config fails Pydantic validation

    Examples
    --------
    >>> from atmoderive.schemas import resolve_config, ParamConfig, UserConfig
    >>> user = UserConfig(cookbook={"air_temperature": ["AirTemperature_B"]})
    >>> config = resolve_config(ParamConfig(), user)
    >>> config.cookbook["air_temperature"]
    ('AirTemperature_B',)
    >>> config.cookbook["virtual_temperature"]
    ('TempToVTemp',)
    """
    # Validate/convert inputs to Pydantic models
    if not isinstance(param_cfg, ParamConfig):
        param = ParamConfig.model_validate(param_cfg)
    else:
        param = param_cfg

    if user_cfg is None or (isinstance(user_cfg, dict) and not user_cfg):
        user = UserConfig()
    elif not isinstance(user_cfg, UserConfig):
        user = UserConfig.model_validate(user_cfg)
    else:
        user = user_cfg

    param_dict = param.model_dump(by_alias=True)
    user_overrides = user.to_internal_overrides()

    # Recipe parameters combine by recipe name rather than list replacement
    user_params = user_overrides.pop("recipe_parameters", [])

    # Deep merge: param < user (cookbook entries override per variable)
    merged = deep_merge(param_dict, user_overrides)
    merged["recipe_parameters"] = merge_recipe_parameters(
        param_dict["recipe_parameters"], user_params
    )

    if user.replace_cookbook and user.cookbook is not None:
        merged["cookbook"] = user_overrides["cookbook"]

    return InternalConfig.model_validate(merged)
