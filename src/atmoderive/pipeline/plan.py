"""Execution plan: an immutable, dependency-ordered sequence of recipes."""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, List, Tuple

import pandas as pd

from atmoderive.contracts.failure import ExecutionMode
from atmoderive.core.recipe import Recipe

__all__ = ['Plan']


@dataclass(frozen=True)
class Plan:
    """Recipes in execution order, plus what they were resolved against.

    Every recipe's ingredients are either in ``available`` or produced by an
    earlier step, and no product is in ``available``. A plan is safe to share
    and to replay any number of times.

    Attributes
    ----------
    steps : tuple of Recipe
        Recipes in forward (topological) order.
    available : frozenset of str
        Variables present before the plan runs.
    requested : tuple of str
        Variables the plan was resolved for, in request order.
    mode : ExecutionMode
        ``NL`` for a nonlinear plan, ``TL`` for a plan valid in TL and AD.
    """

    steps: Tuple[Recipe, ...]
    available: FrozenSet[str] = field(default_factory=frozenset)
    requested: Tuple[str, ...] = ()
    mode: ExecutionMode = ExecutionMode.NL

    def __iter__(self) -> Iterator[Recipe]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def __getitem__(self, index):
        return self.steps[index]

    @property
    def key(self) -> Tuple[str, ...]:
        """Recipe names in order; identifies the plan for trajectory bookkeeping."""
        return tuple(recipe.name for recipe in self.steps)

    @property
    def products(self) -> Tuple[str, ...]:
        return tuple(recipe.product for recipe in self.steps)

    def stages(self) -> List[Tuple[Recipe, ...]]:
        """Group steps into stages that may run concurrently.

        A recipe lands one stage after the latest stage producing any of its
        ingredients, and is pushed further back while it shares an
        ingredient with a recipe already in that stage. Within a stage there
        is no dependency edge and every ingredient has one reader, so AD
        accumulation has a single writer per field.
        """
        stage_of = {}
        members: List[List[Recipe]] = []
        ingredients_in: List[set] = []

        for recipe in self.steps:
            stage = 1 + max((stage_of[name] for name in recipe.ingredients if name in stage_of),
                            default=-1)
            while stage < len(members) and ingredients_in[stage].intersection(recipe.ingredients):
                stage += 1
            if stage == len(members):
                members.append([])
                ingredients_in.append(set())
            members[stage].append(recipe)
            ingredients_in[stage].update(recipe.ingredients)
            stage_of[recipe.product] = stage

        return [tuple(group) for group in members]

    def to_dataframe(self) -> pd.DataFrame:
        """One row per step: recipe, product, ingredients, linear, setup, stage."""
        stage_of = {recipe.product: i
                    for i, group in enumerate(self.stages()) for recipe in group}
        rows = [
            {
                "step": i,
                "recipe": recipe.name,
                "product": recipe.product,
                "ingredients": ", ".join(recipe.ingredients),
                "linear": recipe.linear_support,
                "setup": recipe.requires_setup,
                "stage": stage_of[recipe.product],
            }
            for i, recipe in enumerate(self.steps)
        ]
        columns = ["step", "recipe", "product", "ingredients", "linear", "setup", "stage"]
        return pd.DataFrame(rows, columns=columns).set_index("step")
