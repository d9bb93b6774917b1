"""Root-level pytest fixtures for the atmoderive test suite.

Provides shared configuration fixtures following the Pydantic-based
configuration layers, plus registry and Deriver fixtures. Tests build
configs through these fixtures instead of raw dicts.
"""

import pytest

from atmoderive.core.registry import RecipeRegistry, default_registry
from atmoderive.pipeline.deriver import Deriver
from atmoderive.schemas import ParamConfig, UserConfig, resolve_config


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults.

    Use this as the base for all test configs. Override specific values
    through make_config.
    """
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration (no overrides).

    Examples
    --------
    >>> def test_deriver_init(internal_config):
    ...     deriver = Deriver(internal_config)
    ...     assert "air_temperature" in deriver.cookbook
    """
    return resolve_config(param_config, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Returns a callable that accepts UserConfig-compatible kwargs.

    Examples
    --------
    >>> def test_custom_cookbook(make_config):
    ...     config = make_config(cookbook={"air_temperature": ["AirTemperature_B"]})
    ...     assert config.cookbook["air_temperature"] == ("AirTemperature_B",)
    """
    def _make(**user_overrides):
        """Create InternalConfig with user overrides."""
        if user_overrides:
            user = UserConfig(**user_overrides)
            return resolve_config(param_config, user)
        return resolve_config(param_config, None)

    return _make


# =============================================================================
# Registry / Deriver Fixtures
# =============================================================================

@pytest.fixture
def registry():
    """Fresh registry with every built-in recipe."""
    return default_registry()


@pytest.fixture
def empty_registry():
    """Registry with nothing registered, for hand-made recipes."""
    return RecipeRegistry()


@pytest.fixture
def deriver(internal_config):
    """Deriver with default configuration and built-in recipes."""
    return Deriver(internal_config)
