"""Base contract enforcement utilities.

The require() function is the single enforcement mechanism for all contracts.
It enforces semantic invariants between the resolver, the executor and the
recipes.
"""

from atmoderive.contracts.failure import ContractViolation


def require(condition: bool, message: str) -> None:
    """Enforce a contract.

    Called at stage boundaries to verify the preceding stage produced the
    guaranteed invariants. It is fail-fast: no recovery, no fallback.

    Parameters
    ----------
    condition : bool
        The invariant that must be true. If False, ContractViolation is raised.

    message : str
        Error message explaining the contract violation (for debugging).

    Raises
    ------
    ContractViolation
        If condition is False.

    Examples
    --------
    >>> require("theta" in ds.data_vars, "Field contract: missing 'theta'")
    >>> require(len(plan) > 0, "Plan contract: at least one step expected")
    """
    if not condition:
        raise ContractViolation(message)
