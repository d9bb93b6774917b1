"""Core building blocks: field store, recipe interface and registry."""

from atmoderive.core.field_store import FieldStore
from atmoderive.core.recipe import Recipe, RecipeParameters
from atmoderive.core.registry import RecipeRegistry, default_registry

__all__ = ['FieldStore', 'Recipe', 'RecipeParameters', 'RecipeRegistry', 'default_registry']
