"""Engine contracts and failure taxonomy.

This package holds every documented failure kind plus the fail-fast
contracts checked at stage boundaries (resolver output, recipe input).

Key principle:
- Pydantic validates config correctness
- Contracts validate plan and field-store correctness
- Failure kinds report resolution and execution outcomes
"""

from atmoderive.contracts.failure import (
    ContractViolation,
    CyclicDependency,
    DerivationError,
    DuplicateUnit,
    ExecutionFailure,
    ExecutionMode,
    MissingIngredientMetadata,
    MissingTrajectory,
    NonlinearOnlyRecipe,
    UnknownUnit,
    UnresolvableVariable,
)
from atmoderive.contracts.base import require
from atmoderive.contracts.fields import assert_fields_present
from atmoderive.contracts.plan import assert_plan_valid

__all__ = [
    "ContractViolation",
    "CyclicDependency",
    "DerivationError",
    "DuplicateUnit",
    "ExecutionFailure",
    "ExecutionMode",
    "MissingIngredientMetadata",
    "MissingTrajectory",
    "NonlinearOnlyRecipe",
    "UnknownUnit",
    "UnresolvableVariable",
    "require",
    "assert_fields_present",
    "assert_plan_valid",
]
