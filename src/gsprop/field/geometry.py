"""
GSProp subpackage providing the grid geometry.

.. currentmodule:: gsprop.field.geometry

The following classes are provided

.. autosummary::
   GridGeometry
"""

import numpy as np

from gsprop.errors import InvalidParameter

__all__ = ["GridGeometry"]


class GridGeometry:
    """
    Affine geometry of a north-up rectangular raster.

    The origin is the upper-left corner of the upper-left cell.
    Rows run from north to south, columns from west to east.

    Parameters
    ----------
    nrows : :class:`int`
        Number of rows. Zero is allowed, but such a grid can not be simulated.
    ncols : :class:`int`
        Number of columns.
    xmin : :class:`float`, optional
        x coordinate of the western grid edge. Default: 0.0
    ymax : :class:`float`, optional
        y coordinate of the northern grid edge.
        Default: ``nrows * dy``, placing the southern edge at zero.
    cellsize : :class:`float` or :class:`tuple`, optional
        Cell size, either one value for square cells or ``(dx, dy)``.
        Default: 1.0

    Examples
    --------
    >>> geom = GridGeometry(5, 5, cellsize=100.0)
    >>> geom.shape
    (5, 5)
    >>> geom.extent
    (0.0, 500.0, 0.0, 500.0)
    """

    def __init__(self, nrows, ncols, xmin=0.0, ymax=None, cellsize=1.0):
        if int(nrows) != nrows or int(ncols) != ncols:
            raise InvalidParameter(
                f"nrows and ncols must be integers, got {nrows}, {ncols}"
            )
        if nrows < 0 or ncols < 0:
            raise InvalidParameter(
                f"nrows and ncols must be non-negative, got {nrows}, {ncols}"
            )
        dx, dy = np.broadcast_to(np.asarray(cellsize, dtype=np.double), 2)
        if not (np.isfinite(dx) and np.isfinite(dy)) or dx <= 0 or dy <= 0:
            raise InvalidParameter(
                f"cellsize must be positive and finite, got {cellsize}"
            )
        self._nrows = int(nrows)
        self._ncols = int(ncols)
        self._dx = float(dx)
        self._dy = float(dy)
        self._xmin = float(xmin)
        self._ymax = (
            self._nrows * self._dy if ymax is None else float(ymax)
        )

    @property
    def nrows(self):
        """:class:`int`: Number of rows."""
        return self._nrows

    @property
    def ncols(self):
        """:class:`int`: Number of columns."""
        return self._ncols

    @property
    def xmin(self):
        """:class:`float`: Western edge."""
        return self._xmin

    @property
    def ymax(self):
        """:class:`float`: Northern edge."""
        return self._ymax

    @property
    def cellsize(self):
        """:class:`tuple`: Cell size ``(dx, dy)``."""
        return self._dx, self._dy

    @property
    def shape(self):
        """:class:`tuple`: Array shape ``(nrows, ncols)``."""
        return self._nrows, self._ncols

    @property
    def size(self):
        """:class:`int`: Number of cells."""
        return self._nrows * self._ncols

    @property
    def extent(self):
        """:class:`tuple`: ``(xmin, xmax, ymin, ymax)`` of the grid."""
        return (
            self._xmin,
            self._xmin + self._ncols * self._dx,
            self._ymax - self._nrows * self._dy,
            self._ymax,
        )

    @property
    def x(self):
        """:class:`numpy.ndarray`: x coordinates of the column centres."""
        return self._xmin + (np.arange(self._ncols) + 0.5) * self._dx

    @property
    def y(self):
        """:class:`numpy.ndarray`: y coordinates of the row centres."""
        return self._ymax - (np.arange(self._nrows) + 0.5) * self._dy

    def coordinates(self):
        """
        Cell-centre coordinates in row-major cell order.

        Returns
        -------
        coords : :class:`numpy.ndarray`
            Array of shape ``(size, 2)`` holding ``(x, y)`` per cell.
        """
        xx, yy = np.meshgrid(self.x, self.y)
        return np.column_stack((xx.ravel(), yy.ravel()))

    def conformant(self, other):
        """Whether ``other`` has identical rows, cols, origin and cell size."""
        if not isinstance(other, GridGeometry):
            return False
        return self._key() == other._key()

    def _key(self):
        return (
            self._nrows, self._ncols, self._xmin, self._ymax, self._dx, self._dy
        )

    def __eq__(self, other):
        if not isinstance(other, GridGeometry):
            return NotImplemented
        return self.conformant(other)

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return (
            f"GridGeometry(nrows={self._nrows}, ncols={self._ncols}, "
            f"xmin={self._xmin}, ymax={self._ymax}, "
            f"cellsize=({self._dx}, {self._dy}))"
        )
