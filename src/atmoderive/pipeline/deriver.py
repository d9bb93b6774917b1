"""Variable derivation facade.

Deriver is the entry point: it owns the recipe registry, the cookbook, the
configured recipe parameters, a plan cache and the executor, and exposes
the four variable-change operations used by a data assimilation system:

- ``change_var``: derive variables in place (nonlinear)
- ``change_var_traj``: nonlinear pass over the trajectory, fixing the
  linear plan for the requested variables
- ``change_var_tl``: tangent-linear of that plan
- ``change_var_ad``: adjoint of that plan
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

import pandas as pd
import xarray as xr
from pydantic import ValidationError

from atmoderive.contracts.failure import ExecutionMode, MissingTrajectory, UnknownUnit
from atmoderive.core.field_store import FieldStore
from atmoderive.core.registry import RecipeRegistry, default_registry
from atmoderive.pipeline.cookbook import Cookbook
from atmoderive.pipeline.executor import Executor
from atmoderive.pipeline.plan import Plan
from atmoderive.pipeline.resolver import Resolver
from atmoderive.schemas import InternalConfig, ParamConfig, resolve_config

__all__ = ['Deriver']

logger = logging.getLogger(__name__)

Fields = Union[xr.Dataset, FieldStore]


class Deriver:
    """Derives requested variables from whatever a field store holds.

    Parameters
    ----------
    config : InternalConfig, optional
        Resolved configuration. Expert defaults when omitted.
    registry : RecipeRegistry, optional
        Registry to instantiate recipes from. A fresh registry with the
        built-in recipes when omitted.

    Raises
    ------
    UnknownUnit
        If the cookbook or a recipe parameter wrapper names a recipe that is
        not registered.
    pydantic.ValidationError
        If configured recipe parameters do not validate against the recipe's
        Parameters model.

    Example usage::

        deriver = Deriver()
        ds = xr.Dataset({
            "theta": (("horizontal", "levels"), [[300.0]]),
            "exner": (("horizontal", "levels"), [[0.95]]),
        })
        deriver.change_var(ds, ["air_temperature"])
        ds["air_temperature"].values  # [[285.0]]
    """

    def __init__(self, config: Optional[InternalConfig] = None,
                 registry: Optional[RecipeRegistry] = None):
        self.config = config if config is not None else resolve_config(ParamConfig())
        self.registry = registry if registry is not None else default_registry()

        self.cookbook = Cookbook(self.config.cookbook)
        self.cookbook.validate(self.registry)
        for wrapper in self.config.recipe_parameters:
            if wrapper.recipe_name not in self.registry:
                raise UnknownUnit(wrapper.recipe_name, self.registry.names())

        self.resolver = Resolver(self.registry, self.cookbook, self.config.parameters_for)
        # configured parameter bags are validated now, not at first resolve
        for wrapper in self.config.recipe_parameters:
            try:
                self.resolver.recipe(wrapper.recipe_name)
            except ValidationError:
                logger.error("Invalid parameters for recipe %s: %s",
                             wrapper.recipe_name, dict(wrapper.parameters))
                raise
        self.executor = Executor(self.config.executor.max_workers)

        self._plans: Dict[Tuple[FrozenSet[str], Tuple[str, ...], ExecutionMode], Plan] = {}
        self._linear_plans: Dict[FrozenSet[str], Plan] = {}

        logger.info("Deriver ready: %d recipe(s) registered, %d cookbook entries, "
                    "max_workers=%d", len(self.registry), len(self.cookbook),
                    self.config.executor.max_workers)

    def store(self, fields: Fields) -> FieldStore:
        """Wrap a Dataset in a FieldStore using the configured layout."""
        if isinstance(fields, FieldStore):
            return fields
        return FieldStore(fields, self.config.layout)

    def plan(self, requested: Iterable[str], available: Iterable[str],
             mode: Union[ExecutionMode, str] = ExecutionMode.NL) -> Plan:
        """Resolve a plan, reusing a cached one for the same inputs."""
        mode = ExecutionMode(mode)
        plan_mode = ExecutionMode.TL if mode.is_linear else ExecutionMode.NL
        requested = tuple(dict.fromkeys(requested))
        available = frozenset(available)

        key = (available, requested, plan_mode)
        if key not in self._plans:
            self._plans[key] = self.resolver.resolve(requested, available, plan_mode)
        return self._plans[key]

    def describe_plan(self, plan: Plan) -> pd.DataFrame:
        """Tabular summary of a plan, one row per recipe."""
        return plan.to_dataframe()

    # ------------------------------------------------------------------
    # Variable changes
    # ------------------------------------------------------------------

    def _available(self, store: FieldStore, requested: Tuple[str, ...]) -> set:
        # requested fields may be pre-allocated to carry metadata
        return set(store.names()) - set(requested)

    def change_var(self, fields: Fields, requested: Iterable[str]) -> List[str]:
        """Derive ``requested`` in place from the fields present.

        Parameters
        ----------
        fields : xr.Dataset or FieldStore
            Mutated in place. A requested variable may already be present,
            for instance to carry metadata such as ``cap_super_sat``; it is
            then overwritten rather than treated as available.
        requested : iterable of str
            Variables to derive.

        Returns
        -------
        list of str
            Every variable written, intermediates included, in plan order.

        Raises
        ------
        UnresolvableVariable, CyclicDependency
            No plan derives the requested variables.
        ExecutionFailure
            A recipe failed. Fields written before it keep their values.
        """
        store = self.store(fields)
        requested = tuple(dict.fromkeys(requested))
        plan = self.plan(requested, self._available(store, requested), ExecutionMode.NL)
        return self.executor.run(plan, ExecutionMode.NL, store)

    def change_var_traj(self, trajectory: Fields, requested: Iterable[str]) -> List[str]:
        """Nonlinear pass over the trajectory using a linear plan.

        The plan only contains recipes with tangent-linear and adjoint, and is
        remembered for ``change_var_tl``/``change_var_ad`` of the same
        requested variables.
        """
        store = self.store(trajectory)
        requested = tuple(dict.fromkeys(requested))
        plan = self.plan(requested, self._available(store, requested), ExecutionMode.TL)

        derived = self.executor.run(plan, ExecutionMode.NL, store)
        self._linear_plans[frozenset(requested)] = plan
        return derived

    def _linear_plan(self, requested: Iterable[str]) -> Plan:
        key = frozenset(requested)
        if key not in self._linear_plans:
            raise MissingTrajectory(
                f"No trajectory for {sorted(key)}: call change_var_traj first", sorted(key)
            )
        return self._linear_plans[key]

    def change_var_tl(self, increments: Fields, trajectory: Fields,
                      requested: Iterable[str]) -> List[str]:
        """Tangent-linear of the plan fixed by ``change_var_traj``.

        ``increments`` must hold perturbations of the plan's input variables;
        perturbations of the derived variables are written into it.
        """
        plan = self._linear_plan(requested)
        return self.executor.run(plan, ExecutionMode.TL,
                                 self.store(increments), self.store(trajectory))

    def change_var_ad(self, sensitivities: Fields, trajectory: Fields,
                      requested: Iterable[str]) -> List[str]:
        """Adjoint of the plan fixed by ``change_var_traj``.

        Sensitivities of the derived variables are consumed (left zeroed) and
        accumulated into the sensitivities of the plan's input variables,
        which are allocated as zeros when absent.
        """
        plan = self._linear_plan(requested)
        return self.executor.run(plan, ExecutionMode.AD,
                                 self.store(sensitivities), self.store(trajectory))
