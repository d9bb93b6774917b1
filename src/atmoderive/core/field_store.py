"""Field store: named numeric fields with per-variable metadata.

A thin adapter over ``xarray.Dataset``. Every field is an ``xr.DataArray``
whose first dimension is the horizontal index space; any remaining dimension
is the vertical one. Metadata lives in the DataArray ``attrs``.

Recipes read fields as 2-D ``(points, levels)`` numpy arrays and write their
product in place, so the same Dataset object is mutated and every reader
sees the result.

An optional boolean coordinate on the horizontal dimension (``halo`` by
default) marks halo points. When ``include_halo`` is False, writes only
touch owned points and halo values are left as they were.
"""

import logging
from typing import Optional

import numpy as np
import xarray as xr

from atmoderive.contracts.base import require
from atmoderive.schemas.internal import InternalLayoutConfig
from atmoderive.schemas.param import LayoutConfig

__all__ = ['FieldStore', 'default_layout']

logger = logging.getLogger(__name__)


def default_layout() -> InternalLayoutConfig:
    """Layout built from expert defaults, for stores created without config."""
    return InternalLayoutConfig.model_validate(LayoutConfig().model_dump())


class FieldStore:
    """Named container of fields backed by an ``xarray.Dataset``.

    Parameters
    ----------
    dataset : xr.Dataset
        Backing dataset. It is mutated in place.
    layout : InternalLayoutConfig, optional
        Dimension names and halo handling. Defaults from ParamConfig.

    Examples
    --------
    >>> ds = xr.Dataset({"theta": (("horizontal", "levels"), [[300.0]])})
    >>> store = FieldStore(ds)
    >>> store.levels("theta")
    1
    """

    def __init__(self, dataset: xr.Dataset, layout: Optional[InternalLayoutConfig] = None):
        self._ds = dataset
        self.layout = layout if layout is not None else default_layout()

    def __repr__(self):
        return f"FieldStore(fields={self.names()})"

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    @property
    def dataset(self) -> xr.Dataset:
        return self._ds

    def has(self, name: str) -> bool:
        return name in self._ds.data_vars

    def names(self) -> list:
        return list(self._ds.data_vars)

    def get(self, name: str) -> xr.DataArray:
        """Return a field. Fails if absent."""
        require(name in self._ds.data_vars, f"Field contract violated: '{name}' not found")
        return self._ds[name]

    def metadata(self, name: str) -> dict:
        """Metadata bag of a field (its attrs, live)."""
        return self.get(name).attrs

    @property
    def n_points(self) -> int:
        return int(self._ds.sizes[self.layout.horizontal_dim])

    def levels(self, name: str) -> int:
        """Number of vertical levels of a field (1 for a field per column)."""
        field = self.get(name)
        return int(np.prod([n for dim, n in field.sizes.items()
                            if dim != self.layout.horizontal_dim], dtype=int))

    def owned_mask(self) -> np.ndarray:
        """Boolean mask over horizontal points that writes may touch."""
        mask = np.ones(self.n_points, dtype=bool)
        coord = self.layout.halo_coord
        if not self.layout.include_halo and coord in self._ds.coords:
            mask &= ~np.asarray(self._ds.coords[coord].values, dtype=bool)
        return mask

    # ------------------------------------------------------------------
    # Array access
    # ------------------------------------------------------------------

    def columns(self, name: str) -> np.ndarray:
        """Field values as a ``(points, levels)`` array.

        A view on the stored data whenever the storage allows it.
        """
        field = self.get(name)
        require(
            field.dims and field.dims[0] == self.layout.horizontal_dim,
            f"Field contract violated: '{name}' must lead with "
            f"'{self.layout.horizontal_dim}', has dims {field.dims}"
        )
        return np.reshape(field.data, (self.n_points, -1))

    def _assign(self, name: str, values, accumulate: bool) -> None:
        field = self.get(name)
        data = field.data
        target = self.columns(name)
        values = np.broadcast_to(np.asarray(values, dtype=target.dtype), target.shape)

        mask = np.broadcast_to(self.owned_mask()[:, None], target.shape)
        if accumulate:
            np.add(target, values, out=target, where=mask)
        else:
            np.copyto(target, values, where=mask)

        # reshape had to copy (non-contiguous storage): write back
        if not np.may_share_memory(target, data):
            data[...] = target.reshape(data.shape)

    def write(self, name: str, values) -> None:
        """Overwrite a field in place with ``(points, levels)`` values."""
        self._assign(name, values, accumulate=False)

    def accumulate(self, name: str, values) -> None:
        """Add ``(points, levels)`` values into a field in place."""
        self._assign(name, values, accumulate=True)

    def zero(self, name: str) -> None:
        """Set a field to zero on the points writes may touch."""
        self._assign(name, 0.0, accumulate=False)

    # ------------------------------------------------------------------
    # Slot management
    # ------------------------------------------------------------------

    def allocate(self, name: str, levels: int, attrs: Optional[dict] = None) -> xr.DataArray:
        """Create a zero-filled field with the given number of levels.

        The vertical dimension reuses the layout name when its size agrees
        with the dataset, otherwise a ``<vertical_dim>_<levels>`` dimension
        is used so fields on staggered grids can coexist.
        """
        require(not self.has(name), f"Field contract violated: '{name}' already allocated")
        require(levels >= 1, f"Field contract violated: '{name}' needs at least one level")

        vertical = self.layout.vertical_dim
        if vertical in self._ds.sizes and self._ds.sizes[vertical] != levels:
            vertical = f"{vertical}_{levels}"

        self._ds[name] = xr.DataArray(
            np.zeros((self.n_points, levels)),
            dims=(self.layout.horizontal_dim, vertical),
            attrs=dict(attrs or {}),
        )
        logger.debug("Allocated field: var=%s, shape=(%d, %d)", name, self.n_points, levels)
        return self._ds[name]

    def ensure(self, name: str, levels: int) -> xr.DataArray:
        """Return a field, allocating it with zeros when absent."""
        if self.has(name):
            return self.get(name)
        return self.allocate(name, levels)

    def copy(self) -> "FieldStore":
        """Deep copy, for callers that need to snapshot before a run."""
        return FieldStore(self._ds.copy(deep=True), self.layout)
