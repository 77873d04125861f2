"""
GSProp subpackage providing sequential Gaussian simulation plans.

.. currentmodule:: gsprop.simulate.sequential

Unconditional sequential simulation visits the cells along a random path.
Each cell is simple-kriged from the nearest already visited cells and a
normal deviate scaled by the kriging standard deviation is added.

Since the simulation is unconditional, the kriging weights only depend on
the geometry, the path and the correlogram. They are computed once and
reused for every draw, so one draw costs a weighted sum per cell.

The following classes are provided

.. autosummary::
   SimulationPath
   SequentialPlan
"""

import logging
import warnings

import numpy as np
import scipy.linalg as spl
from scipy.spatial import cKDTree
from scipy.spatial.distance import cdist

from gsprop.correlogram import CorrelationModel
from gsprop.errors import InvalidParameter, NeighborLimitTooSmall

__all__ = ["SimulationPath", "SequentialPlan"]

logger = logging.getLogger(__name__)

# neighborhoods below this size reproduce the correlogram poorly
MIN_NEIGHBORS = 8
# search earlier cells by brute force while the path is this many times
# longer than the neighbor limit
BRUTE_FACTOR = 4


class SimulationPath:
    """
    Random visiting order and neighborhoods of the simulated cells.

    Parameters
    ----------
    coords : :class:`numpy.ndarray`
        Cell-centre coordinates of shape ``(m, 2)``.
    order : :class:`numpy.ndarray`
        Permutation of ``range(m)``, the visiting order.
    neighbor_limit : :class:`int` or :any:`None`, optional
        Maximal number of earlier cells used for kriging a cell.
        None conditions on all earlier cells, which makes the simulation
        exact. Default: 20
    search_radius : :class:`float` or :any:`None`, optional
        Only earlier cells within this distance are used. Default: None

    Warns
    -----
    NeighborLimitTooSmall
        If the neighbor limit is below ``min(8, m - 1)``.
    """

    def __init__(self, coords, order, neighbor_limit=20, search_radius=None):
        coords = np.asarray(coords, dtype=np.double)
        order = np.asarray(order, dtype=np.intp)
        if coords.ndim != 2 or order.shape != (coords.shape[0],):
            raise InvalidParameter("SimulationPath: coords and order don't match")
        if neighbor_limit is not None:
            if int(neighbor_limit) != neighbor_limit or neighbor_limit < 1:
                raise InvalidParameter(
                    f"neighbor_limit must be a positive integer or None, "
                    f"got {neighbor_limit}"
                )
            neighbor_limit = int(neighbor_limit)
        if search_radius is not None:
            search_radius = float(search_radius)
            if not search_radius > 0:
                raise InvalidParameter(
                    f"search_radius must be positive, got {search_radius}"
                )
        self._order = order
        self._coords = coords[order]
        self._neighbor_limit = neighbor_limit
        self._search_radius = search_radius

        size = self.size
        if neighbor_limit is not None and neighbor_limit < min(
            MIN_NEIGHBORS, size - 1
        ):
            warnings.warn(
                f"neighbor_limit={neighbor_limit} is small, the simulated "
                "fields will not reproduce the correlogram well",
                NeighborLimitTooSmall,
                stacklevel=3,
            )
        self._tree = cKDTree(self._coords) if size else None
        self._neighbors = [self._search(p) for p in range(size)]
        logger.debug(
            "simulation path: %d cells, %.1f neighbors on average",
            size,
            np.mean([len(nb) for nb in self._neighbors]) if size else 0.0,
        )

    @property
    def size(self):
        """:class:`int`: Number of simulated cells."""
        return len(self._order)

    @property
    def order(self):
        """:class:`numpy.ndarray`: Cell index visited at each path position."""
        return self._order

    @property
    def coords(self):
        """:class:`numpy.ndarray`: Coordinates in path order."""
        return self._coords

    @property
    def neighbor_limit(self):
        """:class:`int` or :any:`None`: Maximal neighborhood size."""
        return self._neighbor_limit

    @property
    def search_radius(self):
        """:class:`float` or :any:`None`: Neighbor search radius."""
        return self._search_radius

    def neighbors(self, pos):
        """Path positions of the neighbors of the cell at path position ``pos``."""
        return self._neighbors[pos]

    def _search(self, pos):
        """Nearest earlier path positions, closest first."""
        limit = pos if self._neighbor_limit is None else min(self._neighbor_limit, pos)
        if limit == 0:
            return np.empty(0, dtype=np.intp)
        point = self._coords[pos]
        if pos <= BRUTE_FACTOR * limit:
            dist = np.hypot(*(self._coords[:pos] - point).T)
            cand = np.argsort(dist, kind="stable")
            if self._search_radius is not None:
                cand = cand[dist[cand] <= self._search_radius]
            return cand[:limit].astype(np.intp)
        # earlier cells make up a fraction pos / size of all cells
        radius = np.inf if self._search_radius is None else self._search_radius
        k = min(self.size, int(np.ceil(2 * limit * self.size / pos)) + 1)
        while True:
            dist, idx = self._tree.query(point, k=k, distance_upper_bound=radius)
            found = np.isfinite(dist)
            idx = idx[found]
            cand = idx[idx < pos]
            if len(cand) >= limit or k == self.size or not found.all():
                return cand[:limit].astype(np.intp)
            k = min(self.size, 2 * k)


class SequentialPlan:
    """
    Kriging weights of one correlogram along a simulation path.

    Parameters
    ----------
    path : :any:`SimulationPath`
        Path and neighborhoods.
    correlogram : :any:`CorrelationModel`
        Correlation of the standardized variable.

    Notes
    -----
    For path position :math:`p` with neighbors :math:`N_p` the simple
    kriging system :math:`C_{N_p N_p} w_p = c_{N_p p}` is solved with the
    nugget on the diagonal of :math:`C`. The simulated value is

    .. math::
       z_p = w_p^T z_{N_p} + \\sqrt{1 - w_p^T c_{N_p p}} \\cdot \\varepsilon_p

    If every earlier cell is a neighbor, the fields follow the correlogram
    exactly (this is the Cholesky factorization of the full covariance
    written row by row).
    """

    def __init__(self, path, correlogram):
        if not isinstance(correlogram, CorrelationModel):
            raise TypeError(
                f"correlogram must be a CorrelationModel, got {type(correlogram)}"
            )
        self._path = path
        self._correlogram = correlogram
        size = path.size
        self._weights = []
        self._std = np.ones(size, dtype=np.double)
        for pos in range(size):
            weights, std = self._krige(pos)
            self._weights.append(weights)
            self._std[pos] = std

    @property
    def path(self):
        """:any:`SimulationPath`: The simulation path."""
        return self._path

    @property
    def correlogram(self):
        """:any:`CorrelationModel`: The correlogram."""
        return self._correlogram

    @property
    def std(self):
        """:class:`numpy.ndarray`: Kriging standard deviation per path position."""
        return self._std

    def weights(self, pos):
        """Kriging weights of the neighbors at path position ``pos``."""
        return self._weights[pos]

    def _krige(self, pos):
        nb = self._path.neighbors(pos)
        if nb.size == 0:
            return np.empty(0, dtype=np.double), 1.0
        coords = self._path.coords
        krige_mat = self._correlogram.cov_nugget(cdist(coords[nb], coords[nb]))
        krige_vec = self._correlogram.covariance(
            cdist(coords[nb], coords[pos : pos + 1])[:, 0]
        )
        try:
            weights = spl.solve(krige_mat, krige_vec, assume_a="pos")
        except (spl.LinAlgError, ValueError):
            weights = spl.pinvh(krige_mat) @ krige_vec
        krige_var = 1.0 - np.dot(weights, krige_vec)
        return weights, np.sqrt(max(0.0, krige_var))

    def simulate(self, eps):
        """
        Turn independent deviates into one correlated field per draw.

        Parameters
        ----------
        eps : :class:`numpy.ndarray`
            Standard normal deviates of shape ``(n, m)`` in path order.

        Returns
        -------
        field : :class:`numpy.ndarray`
            Standard normal field of shape ``(n, m)`` in cell order
            (the order of the coordinates given to the path).

        Notes
        -----
        Each draw is computed with element-wise operations only, so a
        draw gives identical values whatever the number of draws simulated
        alongside it.
        """
        eps = np.asarray(eps, dtype=np.double)
        size = self._path.size
        if eps.ndim != 2 or eps.shape[1] != size:
            raise InvalidParameter(
                f"eps must have shape (n, {size}), got {eps.shape}"
            )
        # path position first, so each position is a contiguous row
        eps_t = np.ascontiguousarray(eps.T)
        field_t = np.empty_like(eps_t)
        for pos in range(size):
            row = self._std[pos] * eps_t[pos]
            nb = self._path.neighbors(pos)
            for idx, weight in zip(nb, self._weights[pos]):
                row += weight * field_t[idx]
            field_t[pos] = row
        field = np.empty_like(eps)
        field[:, self._path.order] = field_t.T
        return field
