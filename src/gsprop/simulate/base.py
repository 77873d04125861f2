"""
GSProp subpackage providing the field simulator.

.. currentmodule:: gsprop.simulate.base

The following classes and functions are provided

.. autosummary::
   Realization
   FieldSimulator
   simulate
"""

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from gsprop.errors import (
    GridGeometryMismatch,
    InvalidGridGeometry,
    InvalidParameter,
)
from gsprop.field import GridField, GridGeometry
from gsprop.simulate.rng import RandomStreams
from gsprop.simulate.sequential import SequentialPlan, SimulationPath
from gsprop.tools import check_cancel, check_count, check_workers
from gsprop.uncertain import JointUncertaintyModel

__all__ = ["Realization", "FieldSimulator", "simulate"]

logger = logging.getLogger(__name__)


class Realization(Mapping):
    """
    One joint draw of all variables.

    A read-only mapping from variable name to :any:`GridField`.

    Parameters
    ----------
    draw : :class:`int`
        Index of the draw.
    fields : :class:`dict`
        Fields by variable name.
    """

    def __init__(self, draw, fields):
        self._draw = int(draw)
        self._fields = dict(fields)

    @property
    def draw(self):
        """:class:`int`: Index of the draw."""
        return self._draw

    def __getitem__(self, name):
        return self._fields[name]

    def __iter__(self):
        return iter(self._fields)

    def __len__(self):
        return len(self._fields)

    def __repr__(self):
        return f"Realization(draw={self._draw}, names={tuple(self._fields)})"


class FieldSimulator:
    """
    Unconditional joint Gaussian simulation of a coregionalized model.

    Every random variable gets two independent standard normal fields per
    draw: a structured one by sequential Gaussian simulation with the
    nugget-free correlogram shared by all variables, and a white noise
    field. Cell by cell, the structured fields are mixed with the factor of
    the structured coregionalization matrix and the white fields with the
    factor of the nugget matrix (see
    :any:`JointUncertaintyModel.coregionalization`). The sum keeps the
    nugget of every variable and the zero lag cross-correlation, and is
    transformed to the marginal distribution of each variable.
    Deterministic variables pass their mean unchanged.

    The simulation path and the kriging weights are computed once at
    construction and shared read-only by all draws.

    Parameters
    ----------
    model : :any:`JointUncertaintyModel`
        The joint model.
    geometry : :any:`GridGeometry`, optional
        Target grid, it has to match the geometry of the model.
        Default: the model geometry
    neighbor_limit : :class:`int` or :any:`None`, optional
        Maximal number of previously simulated cells used to krige a cell.
        None uses all of them, which is exact but scales quadratically.
        Default: 20
    search_radius : :class:`float` or :any:`None`, optional
        Only previously simulated cells within this distance are used.
        Default: None
    seed : :class:`int` or :any:`None`, optional
        Top-level seed. Draw ``i`` of variable ``j`` uses a stream derived
        from ``(seed, i, j)``. None draws fresh entropy, the chosen seed is
        available as :any:`seed`. Default: None
    batch_size : :class:`int`, optional
        Number of draws simulated together. Block boundaries are fixed
        multiples of it, so the results don't depend on the number of
        workers. Default: 256

    Raises
    ------
    GridGeometryMismatch
        If the target grid does not match the model.
    InvalidGridGeometry
        If there are no cells to simulate.

    Warns
    -----
    NeighborLimitTooSmall
        If ``neighbor_limit`` is too small to reproduce the correlogram.

    Examples
    --------
    >>> import numpy as np
    >>> import gsprop as gp
    >>> cm = gp.CorrelationModel("Sph", range=5.0)
    >>> var = gp.UncertainVariable("z", gp.GridField(np.zeros((10, 10))), 1.0, cm)
    >>> sim = gp.FieldSimulator(gp.JointUncertaintyModel([var]), seed=19970221)
    >>> fields = sim.simulate(10)
    >>> fields[0]["z"].shape
    (10, 10)
    """

    def __init__(
        self,
        model,
        geometry=None,
        neighbor_limit=20,
        search_radius=None,
        seed=None,
        batch_size=256,
    ):
        if not isinstance(model, JointUncertaintyModel):
            raise TypeError(
                f"model must be a JointUncertaintyModel, got {type(model)}"
            )
        if geometry is None:
            geometry = model.geometry
        if not isinstance(geometry, GridGeometry):
            raise TypeError(f"geometry must be a GridGeometry, got {type(geometry)}")
        if not geometry.conformant(model.geometry):
            raise GridGeometryMismatch(
                f"target grid {geometry!r} does not match the model grid "
                f"{model.geometry!r}"
            )
        if geometry.size == 0:
            raise InvalidGridGeometry("the target grid has no cells")
        if int(batch_size) != batch_size or batch_size < 1:
            raise InvalidParameter(
                f"batch_size must be a positive integer, got {batch_size}"
            )
        self._model = model
        self._geometry = geometry
        self._batch_size = int(batch_size)
        self._streams = RandomStreams(seed)

        self._random_index = model.random_index
        mask = model.simulation_mask().ravel()
        self._cells = np.flatnonzero(~mask)
        if self._random_index and self._cells.size == 0:
            raise InvalidGridGeometry("all cells of the random variables are no-data")
        self._path = None
        self._plan = None
        if self._random_index:
            coords = geometry.coordinates()[self._cells]
            order = self._streams.path().permutation(self._cells.size)
            self._path = SimulationPath(coords, order, neighbor_limit, search_radius)
            self._plan = SequentialPlan(self._path, model.structure)
        self._neighbor_limit = neighbor_limit
        self._mix = model.mixing_matrices() if self._random_index else None
        logger.debug(
            "field simulator: %d of %d cells simulated, %d random variables, "
            "structure %r, seed %d",
            self._cells.size,
            geometry.size,
            len(self._random_index),
            model.structure,
            self._streams.seed,
        )

    @property
    def model(self):
        """:any:`JointUncertaintyModel`: The joint model."""
        return self._model

    @property
    def geometry(self):
        """:any:`GridGeometry`: The target grid."""
        return self._geometry

    @property
    def seed(self):
        """:class:`int`: The top-level seed."""
        return self._streams.seed

    @property
    def neighbor_limit(self):
        """:class:`int` or :any:`None`: Maximal neighborhood size."""
        return self._neighbor_limit

    @property
    def batch_size(self):
        """:class:`int`: Number of draws per block."""
        return self._batch_size

    def simulate_block(self, start, stop):
        """
        Simulate the draws ``start, ..., stop - 1``.

        Parameters
        ----------
        start : :class:`int`
            First draw index.
        stop : :class:`int`
            Draw index after the last one.

        Returns
        -------
        realizations : :class:`list` of :any:`Realization`
        """
        start, stop = int(start), int(stop)
        if start < 0 or stop < start:
            raise InvalidParameter(f"invalid draw range [{start}, {stop})")
        count = stop - start
        model = self._model
        values = {}
        if self._random_index:
            indep = [
                self._independent(var_idx, start, count)
                for var_idx in self._random_index
            ]
            mix_s, mix_w = self._mix
            shape = (count,) + self._geometry.shape
            for row, var_idx in enumerate(self._random_index):
                var = model.variables[var_idx]
                mixed = np.zeros((count, self._cells.size), dtype=np.double)
                for col, (struct, white) in enumerate(indep):
                    if mix_s[row, col] != 0.0:
                        mixed += mix_s[row, col] * struct
                    if mix_w[row, col] != 0.0:
                        mixed += mix_w[row, col] * white
                scores = np.full((count, self._geometry.size), np.nan)
                scores[:, self._cells] = mixed
                values[var.name] = var.transform(scores.reshape(shape))
        realizations = []
        for i in range(count):
            fields = {}
            for var in model.variables:
                if var.is_random:
                    fields[var.name] = GridField(
                        values[var.name][i], self._geometry, var.mean.nodata
                    )
                else:
                    fields[var.name] = var.mean
            realizations.append(Realization(start + i, fields))
        return realizations

    def _independent(self, var_idx, start, count):
        """Structured and white standard normal fields of one variable (cell order)."""
        size = self._cells.size
        eps = np.empty((count, size), dtype=np.double)
        white = np.empty((count, size), dtype=np.double)
        for i in range(count):
            rng = self._streams.draw(start + i, var_idx)
            eps[i] = rng.standard_normal(size)
            white[i] = rng.standard_normal(size)
        return self._plan.simulate(eps), white

    def realization(self, draw):
        """
        Simulate a single draw by its index.

        This reproduces the draw of the same index from :any:`simulate`.
        """
        return self.simulate_block(draw, draw + 1)[0]

    def iter_realizations(self, n, start=0, workers=1, cancel=None):
        """
        Lazily simulate draws in index order.

        Only a bounded number of blocks is held in memory at a time.

        Parameters
        ----------
        n : :class:`int`
            Number of draws.
        start : :class:`int`, optional
            Index of the first draw. Default: 0
        workers : :class:`int` or :any:`None`, optional
            Number of worker threads simulating blocks in parallel.
            None uses the number of CPUs. Default: 1
        cancel : :class:`threading.Event`, optional
            Checked before each draw is handed out. When set,
            :any:`Cancelled` is raised.

        Yields
        ------
        realization : :any:`Realization`
        """
        n, start = check_count(n), int(start)
        workers = check_workers(workers)
        blocks = list(self.blocks(start, start + n))
        done = 0
        if workers == 1 or len(blocks) < 2:
            for b_start, b_stop in blocks:
                for real in self.simulate_block(b_start, b_stop):
                    check_cancel(cancel, done)
                    done += 1
                    yield real
            return
        with ThreadPoolExecutor(max_workers=workers) as executor:
            pending = []
            todo = iter(blocks)
            try:
                for b_range in todo:
                    pending.append(executor.submit(self.simulate_block, *b_range))
                    if len(pending) < 2 * workers:
                        continue
                    for real in pending.pop(0).result():
                        check_cancel(cancel, done)
                        done += 1
                        yield real
                while pending:
                    for real in pending.pop(0).result():
                        check_cancel(cancel, done)
                        done += 1
                        yield real
            finally:
                for future in pending:
                    future.cancel()

    def simulate(self, n, workers=1, cancel=None):
        """
        Simulate ``n`` joint realizations.

        Parameters
        ----------
        n : :class:`int`
            Number of draws.
        workers : :class:`int` or :any:`None`, optional
            Number of worker threads. Default: 1
        cancel : :class:`threading.Event`, optional
            Cooperative cancellation flag. Default: None

        Returns
        -------
        realizations : :class:`list` of :any:`Realization`
            Ordered by draw index.
        """
        logger.info(
            "simulating %d realizations of %s (seed %d)",
            n,
            self._model.names,
            self.seed,
        )
        return list(self.iter_realizations(n, workers=workers, cancel=cancel))

    def blocks(self, start, stop):
        """Draw ranges aligned to multiples of the batch size."""
        size = self._batch_size
        b_start = start
        while b_start < stop:
            b_stop = min(stop, (b_start // size + 1) * size)
            yield b_start, b_stop
            b_start = b_stop

    def __repr__(self):
        return (
            f"FieldSimulator(model={self._model!r}, "
            f"neighbor_limit={self._neighbor_limit}, seed={self.seed})"
        )


def simulate(
    model,
    geometry=None,
    n=1,
    neighbor_limit=20,
    seed=None,
    search_radius=None,
    batch_size=256,
    workers=1,
    cancel=None,
):
    """
    Simulate ``n`` joint realizations of a model.

    Shortcut for creating a :any:`FieldSimulator` and calling
    :any:`FieldSimulator.simulate`.

    Parameters
    ----------
    model : :any:`JointUncertaintyModel`
        The joint model.
    geometry : :any:`GridGeometry`, optional
        Target grid. Default: the model geometry
    n : :class:`int`, optional
        Number of draws. Default: 1
    neighbor_limit : :class:`int` or :any:`None`, optional
        Maximal neighborhood size. Default: 20
    seed : :class:`int` or :any:`None`, optional
        Top-level seed. Default: None
    search_radius : :class:`float` or :any:`None`, optional
        Neighbor search radius. Default: None
    batch_size : :class:`int`, optional
        Draws per block. Default: 256
    workers : :class:`int` or :any:`None`, optional
        Number of worker threads. Default: 1
    cancel : :class:`threading.Event`, optional
        Cooperative cancellation flag. Default: None

    Returns
    -------
    realizations : :class:`list` of :any:`Realization`
    """
    sim = FieldSimulator(
        model,
        geometry,
        neighbor_limit=neighbor_limit,
        search_radius=search_radius,
        seed=seed,
        batch_size=batch_size,
    )
    return sim.simulate(n, workers=workers, cancel=cancel)
