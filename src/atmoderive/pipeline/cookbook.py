"""Cookbook: priority-ordered candidate recipes per variable."""

import logging
from typing import Dict, Iterable, Mapping, Tuple

from atmoderive.contracts.failure import UnknownUnit

__all__ = ['Cookbook']

logger = logging.getLogger(__name__)


class Cookbook:
    """Mapping ``variable -> (recipe name, ...)``.

    Earlier candidates are preferred. Order across variables is irrelevant.
    The cookbook is read-only once built; ``merged`` returns a new one.

    Parameters
    ----------
    entries : mapping of str to iterable of str
        Candidate recipe names per variable.

    Examples
    --------
    >>> cookbook = Cookbook({"air_temperature": ["AirTemperature_A", "AirTemperature_B"]})
    >>> cookbook.candidates("air_temperature")
    ('AirTemperature_A', 'AirTemperature_B')
    >>> "theta" in cookbook
    False
    """

    def __init__(self, entries: Mapping[str, Iterable[str]]):
        self._entries: Dict[str, Tuple[str, ...]] = {
            variable: tuple(names) for variable, names in entries.items()
        }

    def __repr__(self):
        return f"Cookbook({self._entries!r})"

    def __contains__(self, variable: str) -> bool:
        return variable in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other):
        if not isinstance(other, Cookbook):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self):
        return hash(tuple(sorted(self._entries.items())))

    def candidates(self, variable: str) -> Tuple[str, ...]:
        """Candidate recipe names for a variable, empty when not listed."""
        return self._entries.get(variable, ())

    def variables(self) -> list:
        return sorted(self._entries)

    def merged(self, overrides: Mapping[str, Iterable[str]]) -> "Cookbook":
        """New cookbook where each overridden entry replaces the original."""
        entries = dict(self._entries)
        entries.update({variable: tuple(names) for variable, names in overrides.items()})
        return Cookbook(entries)

    def validate(self, registry) -> None:
        """Check every candidate name is registered.

        Raises
        ------
        UnknownUnit
            For the first unregistered candidate found.
        """
        for variable in self.variables():
            for name in self._entries[variable]:
                if name not in registry:
                    logger.error("Cookbook entry '%s' names unknown recipe '%s'",
                                 variable, name)
                    raise UnknownUnit(name, registry.names())

    def as_dict(self) -> dict:
        return {variable: list(names) for variable, names in self._entries.items()}
