"""Field store contract.

A recipe validates the fields it is about to read before touching any
array. A missing field is a hard error, never a silent default.
"""

from typing import Iterable

from atmoderive.contracts.base import require


def assert_fields_present(fields, names: Iterable[str], context: str) -> None:
    """Enforce that every named field exists in a field store.

    Parameters
    ----------
    fields : FieldStore
        Store about to be read.

    names : iterable of str
        Fields the caller needs.

    context : str
        Who is asking (usually a recipe name), used in the message.

    Raises
    ------
    ContractViolation
        If any field is missing. All missing names are reported at once.
    """
    missing = [name for name in names if not fields.has(name)]
    require(
        not missing,
        f"Field contract violated for {context}: missing {missing}"
    )
