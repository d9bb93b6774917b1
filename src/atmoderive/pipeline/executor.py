"""Plan execution in nonlinear, tangent-linear and adjoint modes.

NL and TL walk the plan front to back. AD walks it back to front and, after
each recipe has accumulated into its ingredient slots, zeroes that recipe's
product slot so the sensitivity is consumed exactly once.

The executor owns the per-recipe setup lifecycle and remembers which plans
have had a trajectory pass, since AD without one is a usage error.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Union

from atmoderive.contracts.failure import (
    ExecutionFailure,
    ExecutionMode,
    MissingTrajectory,
    NonlinearOnlyRecipe,
)
from atmoderive.core.field_store import FieldStore
from atmoderive.core.recipe import Recipe
from atmoderive.pipeline.plan import Plan

__all__ = ['Executor']

logger = logging.getLogger(__name__)


class Executor:
    """Runs plans against field stores.

    Parameters
    ----------
    max_workers : int, optional
        When greater than 1, recipes in the same stage of a plan
        (``Plan.stages()``) run on a thread pool. Product and sensitivity
        slots are allocated, and setup performed, serially before a stage
        starts, so workers only write into existing arrays.

    Notes
    -----
    Execution is not transactional. When a recipe fails, the remaining plan
    is skipped and fields written so far keep their values. Snapshot the
    store with ``FieldStore.copy()`` beforehand if that matters.
    """

    def __init__(self, max_workers: int = 1):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers
        self._setup_done = set()
        self._trajectories = set()

    def has_trajectory(self, plan: Plan) -> bool:
        """True once an NL or TL pass has run over this plan."""
        return plan.key in self._trajectories

    def run(self, plan: Plan, mode: Union[ExecutionMode, str], fields: FieldStore,
            trajectory: Optional[FieldStore] = None) -> List[str]:
        """Execute a plan.

        Parameters
        ----------
        plan : Plan
            Resolved plan.
        mode : ExecutionMode or str
            ``NL``, ``TL`` or ``AD``.
        fields : FieldStore
            Store mutated in place: state (NL), increments (TL) or
            sensitivities (AD).
        trajectory : FieldStore, optional
            Nonlinear reference state. Required for TL and AD.

        Returns
        -------
        list of str
            Products of the plan, in plan order.

        Raises
        ------
        NonlinearOnlyRecipe
            Linear mode with a recipe lacking TL/AD. Raised before any field
            is touched.
        MissingTrajectory
            Linear mode without a trajectory store, or AD before any NL/TL
            pass over the plan.
        ExecutionFailure
            A recipe returned False (or its setup did).
        """
        mode = ExecutionMode(mode)

        if mode.is_linear:
            nonlinear_only = [recipe.name for recipe in plan if not recipe.linear_support]
            if nonlinear_only:
                raise NonlinearOnlyRecipe(nonlinear_only[0], mode)
            if trajectory is None:
                raise MissingTrajectory(f"{mode.name} execution needs a trajectory store")
        if mode is ExecutionMode.AD and not self.has_trajectory(plan):
            raise MissingTrajectory(
                f"AD execution of {list(plan.key)} without a prior NL/TL pass over the plan"
            )

        stages = plan.stages() if self.max_workers > 1 else [(recipe,) for recipe in plan]
        if mode is ExecutionMode.AD:
            stages = [tuple(reversed(stage)) for stage in reversed(stages)]

        logger.debug("Executing %s: %d recipe(s) in %d stage(s)",
                     mode.name, len(plan), len(stages))

        for stage in stages:
            self._prepare(stage, mode, fields, trajectory)
            self._run_stage(stage, mode, fields, trajectory)

        if mode is not ExecutionMode.AD:
            self._trajectories.add(plan.key)

        logger.info("%s pass complete: %s", mode.name, list(plan.products) or "nothing derived")
        return list(plan.products)

    def _prepare(self, stage: Sequence[Recipe], mode: ExecutionMode,
                 fields: FieldStore, trajectory: Optional[FieldStore]) -> None:
        reference = trajectory if mode.is_linear else fields

        for recipe in stage:
            if recipe.requires_setup and recipe not in self._setup_done:
                logger.debug("Setting up %s", recipe.name)
                if not recipe.setup(reference):
                    logger.error("Setup failed: recipe=%s", recipe.name)
                    raise ExecutionFailure(recipe.name, recipe.product, mode)
                self._setup_done.add(recipe)

            if mode is ExecutionMode.AD:
                for name in recipe.ingredients:
                    self._allocate_like_trajectory(recipe, name, fields, trajectory)
                self._allocate_like_trajectory(recipe, recipe.product, fields, trajectory)
            elif not fields.has(recipe.product):
                fields.allocate(recipe.product, recipe.product_levels(reference))

    @staticmethod
    def _allocate_like_trajectory(recipe: Recipe, name: str, fields: FieldStore,
                                  trajectory: FieldStore) -> None:
        if fields.has(name):
            return
        if trajectory.has(name):
            levels = trajectory.levels(name)
        elif name == recipe.product:
            levels = recipe.product_levels(trajectory)
        else:
            raise MissingTrajectory(
                f"Recipe '{recipe.name}' needs '{name}' in the trajectory", [name]
            )
        fields.allocate(name, levels)

    def _run_stage(self, stage: Sequence[Recipe], mode: ExecutionMode,
                   fields: FieldStore, trajectory: Optional[FieldStore]) -> None:
        if self.max_workers == 1 or len(stage) == 1:
            for recipe in stage:
                self._execute(recipe, mode, fields, trajectory)
            return

        workers = min(self.max_workers, len(stage))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="atmoderive") as pool:
            futures = [pool.submit(self._execute, recipe, mode, fields, trajectory)
                       for recipe in stage]
            # result() re-raises the first failure in plan order
            for future in futures:
                future.result()

    @staticmethod
    def _execute(recipe: Recipe, mode: ExecutionMode, fields: FieldStore,
                 trajectory: Optional[FieldStore]) -> None:
        logger.debug("Running %s.execute_%s()", recipe.name, mode.value)

        if mode is ExecutionMode.NL:
            ok = recipe.execute_nl(fields)
        elif mode is ExecutionMode.TL:
            ok = recipe.execute_tl(fields, trajectory)
        else:
            ok = recipe.execute_ad(fields, trajectory)

        if not ok:
            logger.error("Recipe failed: recipe=%s, product=%s, mode=%s",
                         recipe.name, recipe.product, mode.name)
            raise ExecutionFailure(recipe.name, recipe.product, mode)

        if mode is ExecutionMode.AD:
            fields.zero(recipe.product)
