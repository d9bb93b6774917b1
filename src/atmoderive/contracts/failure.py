"""Failure taxonomy for recipe registration, resolution and execution.

Every error raised by the engine derives from DerivationError so callers
can handle them uniformly. The kinds split by when they happen:

- Startup (configuration/programming errors): DuplicateUnit, UnknownUnit
- Resolution (recoverable, try another cookbook or available set):
  UnresolvableVariable, CyclicDependency
- Execution (halt the remaining plan, no rollback): NonlinearOnlyRecipe,
  MissingIngredientMetadata, ExecutionFailure, MissingTrajectory

ContractViolation is kept apart: it signals that a stage boundary
invariant was broken (a malformed plan, a field that must exist but does not).
"""

from enum import Enum
from typing import Optional, Sequence


class ExecutionMode(str, Enum):
    """Numerical mode a plan is executed in.

    NL: nonlinear (forward)
    TL: tangent-linear (first-order perturbation)
    AD: adjoint (sensitivity back-propagation)
    """
    NL = "nl"
    TL = "tl"
    AD = "ad"

    @property
    def is_linear(self) -> bool:
        return self is not ExecutionMode.NL


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    This indicates a bug in calling code or in a recipe, not a resolution
    failure. A resolver produced a plan breaking ordering, or a recipe was
    handed a field store without the fields it declared.

    Key distinction:
    - ValidationError: configuration error (handled by Pydantic)
    - DerivationError: documented engine failure kinds
    - ContractViolation: broken invariant (programmer error)
    """
    pass


class DerivationError(RuntimeError):
    """Base class for all documented engine failures."""
    pass


class DuplicateUnit(DerivationError):
    """A recipe name was registered twice."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Recipe '{name}' is already registered")


class UnknownUnit(DerivationError):
    """A recipe name is not present in the registry."""

    def __init__(self, name: str, known: Sequence[str] = ()):
        self.name = name
        self.known = tuple(known)
        message = f"Unknown recipe '{name}'"
        if self.known:
            message += f". Available: {sorted(self.known)}"
        super().__init__(message)


class CyclicDependency(DerivationError):
    """A variable is needed to derive itself.

    Attributes
    ----------
    variable : str
        The variable found again on the resolution stack.
    stack : tuple of str
        Variables being resolved when the cycle was detected, outermost first.
    """

    def __init__(self, variable: str, stack: Sequence[str]):
        self.variable = variable
        self.stack = tuple(stack)
        path = " -> ".join(self.stack + (variable,))
        super().__init__(f"Cyclic dependency while resolving '{variable}': {path}")

    @property
    def cycle(self) -> tuple:
        """Variables forming the cycle, starting and ending with `variable`."""
        start = self.stack.index(self.variable)
        return self.stack[start:] + (self.variable,)


class UnresolvableVariable(DerivationError):
    """No chain of recipes derives a variable from the available set.

    Attributes
    ----------
    variable : str
        Variable that could not be derived.
    attempts : tuple of (str, str)
        Each attempted candidate recipe with the reason it failed. Empty when
        the variable has no cookbook entry.
    """

    def __init__(self, variable: str, attempts: Sequence[tuple] = ()):
        self.variable = variable
        self.attempts = tuple(attempts)
        if not self.attempts:
            message = f"Cannot derive '{variable}': not available and not in cookbook"
        else:
            reasons = "; ".join(f"{name}: {reason}" for name, reason in self.attempts)
            message = f"Cannot derive '{variable}'. Tried {reasons}"
        super().__init__(message)


class NonlinearOnlyRecipe(DerivationError):
    """A recipe without TL/AD was asked to run in a linear mode."""

    def __init__(self, recipe: str, mode: ExecutionMode):
        self.recipe = recipe
        self.mode = ExecutionMode(mode)
        super().__init__(
            f"Recipe '{recipe}' provides no tangent-linear/adjoint and cannot "
            f"run in {self.mode.name} mode"
        )


class MissingIngredientMetadata(DerivationError):
    """A recipe's numerical precondition on field metadata is not met."""

    def __init__(self, recipe: str, variable: str, key: str):
        self.recipe = recipe
        self.variable = variable
        self.key = key
        super().__init__(
            f"Recipe '{recipe}' expects '{key}' in the metadata of '{variable}'"
        )


class ExecutionFailure(DerivationError):
    """A recipe reported failure while producing its variable."""

    def __init__(self, recipe: str, variable: str, mode: ExecutionMode = ExecutionMode.NL):
        self.recipe = recipe
        self.variable = variable
        self.mode = ExecutionMode(mode)
        super().__init__(
            f"Recipe '{recipe}' failed to produce '{variable}' in {self.mode.name} mode"
        )


class MissingTrajectory(DerivationError):
    """Linear execution was requested without the nonlinear reference state."""

    def __init__(self, message: str, missing: Optional[Sequence[str]] = None):
        self.missing = tuple(missing or ())
        super().__init__(message)
