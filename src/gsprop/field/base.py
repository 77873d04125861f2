"""
GSProp subpackage providing the grid field.

.. currentmodule:: gsprop.field.base

The following classes and functions are provided

.. autosummary::
   GridField
   check_conformant
   stack
   unstack
"""

import numpy as np

from gsprop.errors import GridGeometryMismatch, InvalidParameter
from gsprop.field.geometry import GridGeometry

__all__ = ["GridField", "check_conformant", "stack", "unstack"]


class GridField:
    """
    Immutable raster of floating point values with no-data handling.

    Parameters
    ----------
    values : :class:`numpy.ndarray`
        Two dimensional array of shape ``(nrows, ncols)``. It is copied,
        the stored array is read-only.
    geometry : :any:`GridGeometry`, optional
        Geometry of the grid. Default: unit cells with the origin placed
        so that the lower-left corner is ``(0, 0)``.
    nodata : :class:`float`, optional
        No-data sentinel. Either ``nan`` or a finite value that is not a
        valid value of this field. ``nan`` values in the input are always
        treated as no-data and replaced by the sentinel. Default: ``nan``

    Notes
    -----
    Two fields are *conformant* if they share the same geometry. The
    no-data sentinel does not take part in conformance.
    """

    def __init__(self, values, geometry=None, nodata=np.nan):
        values = np.array(values, dtype=np.double)
        if values.ndim != 2:
            raise InvalidParameter(
                f"GridField: values must be 2D, got shape {values.shape}"
            )
        if geometry is None:
            geometry = GridGeometry(*values.shape)
        if not isinstance(geometry, GridGeometry):
            raise TypeError(
                f"geometry must be a GridGeometry, got {type(geometry)}"
            )
        if values.shape != geometry.shape:
            raise GridGeometryMismatch(
                f"GridField: values shape {values.shape} does not match "
                f"geometry shape {geometry.shape}"
            )
        nodata = float(nodata)
        if np.isinf(nodata):
            raise InvalidParameter("GridField: nodata must not be infinite")
        if not np.isnan(nodata):
            values[np.isnan(values)] = nodata
        values.flags.writeable = False
        self._values = values
        self._geometry = geometry
        self._nodata = nodata

    @classmethod
    def full(cls, geometry, value, nodata=np.nan):
        """Constant field on the given geometry."""
        return cls(np.full(geometry.shape, value, dtype=np.double), geometry, nodata)

    @property
    def values(self):
        """:class:`numpy.ndarray`: The read-only value array."""
        return self._values

    @property
    def geometry(self):
        """:any:`GridGeometry`: The grid geometry."""
        return self._geometry

    @property
    def nodata(self):
        """:class:`float`: The no-data sentinel."""
        return self._nodata

    @property
    def shape(self):
        """:class:`tuple`: Array shape ``(nrows, ncols)``."""
        return self._values.shape

    @property
    def mask(self):
        """:class:`numpy.ndarray`: Boolean array, True where no-data."""
        if np.isnan(self._nodata):
            return np.isnan(self._values)
        return self._values == self._nodata

    @property
    def valid(self):
        """:class:`numpy.ndarray`: Boolean array, True where data is valid."""
        return np.logical_not(self.mask)

    def masked(self):
        """The values as :class:`numpy.ma.MaskedArray`."""
        return np.ma.MaskedArray(self._values, mask=self.mask)

    def filled(self, value=np.nan):
        """Writable copy of the values with no-data replaced by ``value``."""
        out = np.array(self._values)
        out[self.mask] = value
        return out

    def conformant(self, other):
        """Whether ``other`` is a field on an identical geometry."""
        return isinstance(other, GridField) and self._geometry.conformant(
            other.geometry
        )

    def __eq__(self, other):
        if not isinstance(other, GridField):
            return NotImplemented
        if not self.conformant(other):
            return False
        mask = self.mask
        return bool(
            np.array_equal(mask, other.mask)
            and np.array_equal(self._values[~mask], other.values[~mask])
        )

    __hash__ = None

    def __repr__(self):
        return (
            f"GridField(shape={self.shape}, nodata={self._nodata}, "
            f"geometry={self._geometry!r})"
        )


def check_conformant(*fields):
    """
    Check that all given fields share one geometry.

    Parameters
    ----------
    *fields : :any:`GridField`
        Fields to compare.

    Returns
    -------
    geometry : :any:`GridGeometry` or :any:`None`
        The common geometry (None for no fields).

    Raises
    ------
    GridGeometryMismatch
        If any two fields are not conformant.
    """
    geometry = None
    for i, fld in enumerate(fields):
        if not isinstance(fld, GridField):
            raise TypeError(f"expected GridField at position {i}, got {type(fld)}")
        if geometry is None:
            geometry = fld.geometry
        elif not geometry.conformant(fld.geometry):
            raise GridGeometryMismatch(
                f"field {i} has geometry {fld.geometry!r}, expected {geometry!r}"
            )
    return geometry


def stack(fields):
    """
    Stack conformant fields into one array.

    Parameters
    ----------
    fields : :class:`list` of :any:`GridField`
        Conformant fields.

    Returns
    -------
    array : :class:`numpy.ndarray`
        Array of shape ``(n, nrows, ncols)`` with no-data as ``nan``.
    """
    fields = list(fields)
    geometry = check_conformant(*fields)
    if geometry is None:
        raise InvalidParameter("stack: no fields given")
    return np.stack([fld.filled(np.nan) for fld in fields], axis=0)


def unstack(array, geometry, nodata=np.nan):
    """
    Split a stacked array into single fields.

    Parameters
    ----------
    array : :class:`numpy.ndarray`
        Array of shape ``(n, nrows, ncols)``. ``nan`` marks no-data.
    geometry : :any:`GridGeometry`
        Geometry of each layer.
    nodata : :class:`float`, optional
        No-data sentinel of the created fields. Default: ``nan``

    Returns
    -------
    fields : :class:`list` of :any:`GridField`
    """
    array = np.asarray(array, dtype=np.double)
    if array.ndim != 3 or array.shape[1:] != geometry.shape:
        raise GridGeometryMismatch(
            f"unstack: array of shape {array.shape} does not hold layers "
            f"of shape {geometry.shape}"
        )
    return [GridField(layer, geometry, nodata) for layer in array]
