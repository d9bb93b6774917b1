"""Plan contract.

Enforces the guarantee that a resolved plan can be executed front to back:
products are unique, none was available beforehand, and every ingredient
is available or produced by an earlier step.
"""

from atmoderive.contracts.base import require


def assert_plan_valid(plan) -> None:
    """Enforce plan contract.

    Called by the resolver immediately before handing a plan out.

    Parameters
    ----------
    plan : Plan
        Plan from Resolver.resolve()

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    known = set(plan.available)
    produced = set()

    for recipe in plan:
        require(
            recipe.product not in produced,
            f"Plan contract violated: '{recipe.product}' produced twice"
        )
        require(
            recipe.product not in plan.available,
            f"Plan contract violated: '{recipe.product}' was already available"
        )
        missing = [name for name in recipe.ingredients if name not in known]
        require(
            not missing,
            f"Plan contract violated: '{recipe.name}' runs before {missing} exist"
        )
        if plan.mode.is_linear:
            require(
                recipe.linear_support,
                f"Plan contract violated: '{recipe.name}' has no TL/AD in a linear plan"
            )
        produced.add(recipe.product)
        known.add(recipe.product)

    unmet = [name for name in plan.requested if name not in known]
    require(
        not unmet,
        f"Plan contract violated: requested {unmet} not produced"
    )
