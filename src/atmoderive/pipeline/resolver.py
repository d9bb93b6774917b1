"""Cookbook-driven plan resolution.

Turns "derive R from available A" into a dependency-ordered Plan by a
depth-first search over cookbook candidates:

1. A variable that is available, or already produced by the plan being
   built, needs nothing.
2. A variable already on the resolution stack is a cycle.
3. A variable without a cookbook entry is unresolvable.
4. Otherwise each candidate is tried in priority order. A candidate is
   accepted once all of its ingredients resolve; its recipe is appended
   after the recipes placed for those ingredients (post-order). A failed
   candidate's plan entries are rolled back before the next one is tried.

Successes and failures are both remembered for the rest of a ``resolve``
call, so each variable is searched at most once. A failure is only
remembered when no cycle took part in it, since a cycle depends on the
stack it was found under.

Selection is first-success: once a candidate is accepted, choices made
while resolving its ingredients are never revisited, even if a later
sibling would have been satisfiable with a different choice.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Union

from atmoderive.contracts import assert_plan_valid
from atmoderive.contracts.failure import CyclicDependency, ExecutionMode, UnresolvableVariable
from atmoderive.core.recipe import Recipe
from atmoderive.core.registry import RecipeRegistry
from atmoderive.pipeline.cookbook import Cookbook
from atmoderive.pipeline.plan import Plan

__all__ = ['Resolver']

logger = logging.getLogger(__name__)


class Resolver:
    """Builds plans from a cookbook and a registry.

    Recipe instances are created on first use and reused by every plan this
    resolver builds, so setup state carries across plans.

    Parameters
    ----------
    registry : RecipeRegistry
        Registry with every cookbook candidate registered.
    cookbook : Cookbook
        Candidate recipes per variable.
    parameters_for : callable, optional
        ``parameters_for(recipe_name) -> dict`` giving configured parameters.
        Recipes use their defaults when omitted.

    Example usage::

        resolver = Resolver(default_registry(), Cookbook(DEFAULT_COOKBOOK))
        plan = resolver.resolve(["air_temperature"], available=["theta", "exner"])
    """

    def __init__(self, registry: RecipeRegistry, cookbook: Cookbook,
                 parameters_for: Optional[Callable[[str], dict]] = None):
        self.registry = registry
        self.cookbook = cookbook
        self._parameters_for = parameters_for
        self._recipes: Dict[str, Recipe] = {}

    def recipe(self, name: str) -> Recipe:
        """Cached recipe instance for a registered name."""
        if name not in self._recipes:
            parameters = self._parameters_for(name) if self._parameters_for else None
            self._recipes[name] = self.registry.create(name, parameters or None)
        return self._recipes[name]

    def resolve(self, requested: Iterable[str], available: Iterable[str],
                mode: Union[ExecutionMode, str] = ExecutionMode.NL) -> Plan:
        """Resolve every requested variable into one plan.

        Parameters
        ----------
        requested : iterable of str
            Variables to derive. Duplicates are ignored.
        available : iterable of str
            Variables already present.
        mode : ExecutionMode or str
            ``NL`` for a nonlinear plan. ``TL`` or ``AD`` builds a linear
            plan, which only accepts recipes with tangent-linear and adjoint.

        Returns
        -------
        Plan
            Mode is ``NL`` or, for linear plans, ``TL``.

        Raises
        ------
        UnresolvableVariable
            No candidate chain derives a requested variable.
        CyclicDependency
            Every candidate for a variable needs the variable itself.
        """
        mode = ExecutionMode(mode)
        plan_mode = ExecutionMode.TL if mode.is_linear else ExecutionMode.NL
        requested = tuple(dict.fromkeys(requested))
        available = frozenset(available)

        steps: List[Recipe] = []
        resolved: set = set()
        failed: Dict[str, UnresolvableVariable] = {}
        for variable in requested:
            self._resolve(variable, available, plan_mode.is_linear, steps, resolved, failed, [])

        plan = Plan(tuple(steps), available, requested, plan_mode)
        assert_plan_valid(plan)

        logger.info("Resolved %s plan for %s: %s", plan_mode.name, list(requested),
                    " -> ".join(plan.key) if plan.key else "nothing to derive")
        return plan

    def _resolve(self, variable: str, available: frozenset, linear: bool,
                 steps: List[Recipe], resolved: set, failed: Dict[str, UnresolvableVariable],
                 stack: List[str]) -> None:
        if variable in available or variable in resolved:
            return
        if variable in stack:
            raise CyclicDependency(variable, stack)
        if variable in failed:
            raise failed[variable]

        candidates = self.cookbook.candidates(variable)
        if not candidates:
            failed[variable] = UnresolvableVariable(variable)
            raise failed[variable]

        attempts = []
        cycles = []
        # set when a candidate failed because of the current stack
        stack_dependent = False
        stack.append(variable)
        try:
            for name in candidates:
                recipe = self.recipe(name)
                if recipe.product != variable:
                    attempts.append((name, f"produces '{recipe.product}', not '{variable}'"))
                    continue
                if linear and not recipe.linear_support:
                    attempts.append((name, "no tangent-linear/adjoint for a linear plan"))
                    continue

                mark = len(steps)
                try:
                    for ingredient in recipe.ingredients:
                        self._resolve(ingredient, available, linear, steps, resolved,
                                      failed, stack)
                except (CyclicDependency, UnresolvableVariable) as exc:
                    resolved.difference_update(r.product for r in steps[mark:])
                    del steps[mark:]
                    if isinstance(exc, CyclicDependency):
                        cycles.append(exc)
                        stack_dependent = True
                    elif failed.get(exc.variable) is not exc:
                        stack_dependent = True
                    attempts.append((name, str(exc)))
                    logger.warning("Candidate %s for '%s' rejected: %s", name, variable, exc)
                    continue

                steps.append(recipe)
                resolved.add(variable)
                logger.debug("Resolved '%s' with %s", variable, name)
                return
        finally:
            stack.pop()

        if cycles and len(cycles) == len(attempts):
            raise cycles[0]
        error = UnresolvableVariable(variable, attempts)
        if not stack_dependent:
            failed[variable] = error
        raise error
