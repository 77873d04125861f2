"""
GSProp subpackage providing the Monte-Carlo ensemble driver.

.. currentmodule:: gsprop.ensemble.driver

The following classes and functions are provided

.. autosummary::
   Ensemble
   EnsembleDriver
   run
"""

import logging
import numbers
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from gsprop.errors import Cancelled, DerivationError, InvalidParameter
from gsprop.field import GridField, GridGeometry, stack, unstack
from gsprop.simulate import FieldSimulator
from gsprop.tools import check_count, check_workers

__all__ = ["Ensemble", "EnsembleDriver", "run"]

logger = logging.getLogger(__name__)


class Ensemble(Sequence):
    """
    Ordered outputs of a Monte-Carlo run, indexed by draw.

    Parameters
    ----------
    results : :class:`list`
        One derived output per draw, either :any:`GridField` or
        :class:`float` (other objects are kept as returned).
    seed : :class:`int` or :any:`None`, optional
        Top-level seed of the run. Default: None
    neighbor_limit : :class:`int` or :any:`None`, optional
        Neighborhood size used by the simulation. Default: None
    realizations : :class:`list` of :any:`Realization`, optional
        The input realizations, if they were retained. Default: None
    """

    def __init__(self, results, seed=None, neighbor_limit=None, realizations=None):
        self._results = tuple(results)
        self._seed = seed
        self._neighbor_limit = neighbor_limit
        self._realizations = (
            None if realizations is None else tuple(realizations)
        )

    @classmethod
    def from_array(cls, array, geometry, nodata=np.nan, **kwargs):
        """
        Ensemble of fields from a stacked array.

        Parameters
        ----------
        array : :class:`numpy.ndarray`
            Array of shape ``(n, nrows, ncols)``, ``nan`` marks no-data.
        geometry : :any:`GridGeometry`
            Geometry of each member.
        nodata : :class:`float`, optional
            No-data sentinel of the members. Default: ``nan``
        **kwargs
            Passed to :any:`Ensemble`.
        """
        return cls(unstack(array, geometry, nodata), **kwargs)

    @property
    def seed(self):
        """:class:`int` or :any:`None`: Top-level seed of the run."""
        return self._seed

    @property
    def neighbor_limit(self):
        """:class:`int` or :any:`None`: Neighborhood size of the run."""
        return self._neighbor_limit

    @property
    def realizations(self):
        """:class:`tuple` or :any:`None`: Retained input realizations."""
        return self._realizations

    @property
    def is_field(self):
        """:class:`bool`: Whether all members are :any:`GridField`."""
        return bool(self._results) and all(
            isinstance(res, GridField) for res in self._results
        )

    @property
    def is_scalar(self):
        """:class:`bool`: Whether all members are floats."""
        return bool(self._results) and all(
            isinstance(res, float) for res in self._results
        )

    @property
    def geometry(self):
        """:any:`GridGeometry` or :any:`None`: Geometry of field members."""
        return self._results[0].geometry if self.is_field else None

    def to_array(self):
        """
        Stacked representation of the ensemble.

        Returns
        -------
        array : :class:`numpy.ndarray`
            ``(n, nrows, ncols)`` with no-data as ``nan`` for fields,
            ``(n,)`` for scalars.
        """
        if self.is_field:
            return stack(self._results)
        if self.is_scalar:
            return np.array(self._results, dtype=np.double)
        raise InvalidParameter(
            "only ensembles of fields or of scalars can be stacked"
        )

    def __getitem__(self, index):
        return self._results[index]

    def __len__(self):
        return len(self._results)

    def __repr__(self):
        kind = "fields" if self.is_field else "scalars" if self.is_scalar else "objects"
        return f"Ensemble(n={len(self)}, {kind}, seed={self._seed})"


class EnsembleDriver:
    """
    Monte-Carlo propagation of a joint model through a derived quantity.

    Each draw of the :any:`FieldSimulator` is handed to ``derive`` as a
    mapping from variable name to :any:`GridField`. The outputs are
    collected in draw order.

    ``derive`` has to be a pure function of its input fields. The driver
    can not check this, but hidden state makes the results depend on the
    scheduling of the draws and invalidates the ensemble statistics.

    Parameters
    ----------
    model : :any:`JointUncertaintyModel`
        The joint model.
    geometry : :any:`GridGeometry`, optional
        Target grid. Default: the model geometry
    neighbor_limit : :class:`int` or :any:`None`, optional
        Maximal neighborhood size of the simulation. Default: 20
    search_radius : :class:`float` or :any:`None`, optional
        Neighbor search radius. Default: None
    seed : :class:`int` or :any:`None`, optional
        Top-level seed. Default: None
    batch_size : :class:`int`, optional
        Draws per block. Default: 256
    workers : :class:`int` or :any:`None`, optional
        Number of worker threads, each simulating and deriving whole
        blocks of draws. None uses the number of CPUs. The results do not
        depend on it. Default: 1

    Examples
    --------
    >>> import numpy as np
    >>> import gsprop as gp
    >>> cm = gp.CorrelationModel("Exp", range=3.0)
    >>> var = gp.UncertainVariable("z", gp.GridField(np.ones((4, 4))), 0.1, cm)
    >>> driver = gp.EnsembleDriver(gp.JointUncertaintyModel([var]), seed=20)
    >>> ens = driver.run(50, lambda real: real["z"].values * 2)
    >>> len(ens)
    50
    """

    def __init__(
        self,
        model,
        geometry=None,
        neighbor_limit=20,
        search_radius=None,
        seed=None,
        batch_size=256,
        workers=1,
    ):
        self._simulator = FieldSimulator(
            model,
            geometry,
            neighbor_limit=neighbor_limit,
            search_radius=search_radius,
            seed=seed,
            batch_size=batch_size,
        )
        self._workers = check_workers(workers)

    @property
    def simulator(self):
        """:any:`FieldSimulator`: The field simulator."""
        return self._simulator

    @property
    def seed(self):
        """:class:`int`: The top-level seed."""
        return self._simulator.seed

    @property
    def workers(self):
        """:class:`int`: Number of worker threads."""
        return self._workers

    def run(self, n, derive, cancel=None, keep_realizations=False):
        """
        Run ``n`` draws through ``derive``.

        Parameters
        ----------
        n : :class:`int`
            Number of draws.
        derive : :any:`callable`
            Function taking a :any:`Realization` (mapping of variable name
            to :any:`GridField`) and returning the derived quantity.
            Arrays of the grid shape are wrapped into :any:`GridField`,
            real numbers are converted to :class:`float`.
        cancel : :class:`threading.Event`, optional
            Checked at every draw boundary. Default: None
        keep_realizations : :class:`bool`, optional
            Whether to retain the input realizations in the ensemble.
            Default: False

        Returns
        -------
        ensemble : :any:`Ensemble`

        Raises
        ------
        DerivationError
            If ``derive`` fails. The run is aborted, the lowest failing
            draw index is reported.
        Cancelled
            If ``cancel`` was set. Completed draws are discarded, their
            number is reported.
        """
        if not callable(derive):
            raise TypeError(f"derive must be callable, got {type(derive)}")
        n = check_count(n)
        logger.info(
            "running %d draws with %d workers (seed %d)",
            n,
            self._workers,
            self.seed,
        )
        blocks = list(self._simulator.blocks(0, n))
        results, reals = [], []
        if self._workers == 1 or len(blocks) < 2:
            for b_start, b_stop in blocks:
                try:
                    block_res, block_reals = self._run_block(
                        b_start, b_stop, derive, cancel, keep_realizations
                    )
                except Cancelled as err:
                    raise Cancelled(len(results) + err.completed) from None
                results.extend(block_res)
                reals.extend(block_reals)
        else:
            with ThreadPoolExecutor(max_workers=self._workers) as executor:
                futures = [
                    executor.submit(
                        self._run_block, *b_range, derive, cancel, keep_realizations
                    )
                    for b_range in blocks
                ]
                try:
                    for future in futures:
                        block_res, block_reals = future.result()
                        results.extend(block_res)
                        reals.extend(block_reals)
                except DerivationError:
                    for future in futures:
                        future.cancel()
                    raise
                except Cancelled:
                    for future in futures:
                        future.cancel()
                    cancelled = True
                else:
                    cancelled = False
            if cancelled:
                raise Cancelled(_completed(futures)) from None
        logger.info("finished %d draws", len(results))
        return Ensemble(
            results,
            seed=self.seed,
            neighbor_limit=self._simulator.neighbor_limit,
            realizations=reals if keep_realizations else None,
        )

    def _run_block(self, start, stop, derive, cancel, keep):
        if cancel is not None and cancel.is_set():
            raise Cancelled(0)
        realizations = self._simulator.simulate_block(start, stop)
        results = []
        for real in realizations:
            if cancel is not None and cancel.is_set():
                raise Cancelled(len(results))
            try:
                res = derive(real)
            except Exception as err:
                logger.debug("derive failed on draw %d", real.draw, exc_info=True)
                raise DerivationError(real.draw, err) from err
            results.append(self._convert(res))
        logger.debug("block [%d, %d) done", start, stop)
        return results, realizations if keep else []

    def _convert(self, res):
        if isinstance(res, GridField):
            return res
        if isinstance(res, numbers.Real):
            return float(res)
        if isinstance(res, np.ndarray):
            if res.ndim == 0:
                return float(res)
            if res.shape == self._simulator.geometry.shape:
                return GridField(res, self._simulator.geometry)
        return res

    def __repr__(self):
        return f"EnsembleDriver(simulator={self._simulator!r}, workers={self._workers})"


def _completed(futures):
    """Number of draws derived by finished or interrupted blocks."""
    done = 0
    for future in futures:
        if future.cancelled():
            continue
        err = future.exception()
        if err is None:
            done += len(future.result()[0])
        elif isinstance(err, Cancelled):
            done += err.completed
    return done


def run(
    model,
    grid=None,
    n=1,
    derive=None,
    neighbor_limit=20,
    seed=None,
    search_radius=None,
    batch_size=256,
    workers=1,
    cancel=None,
    keep_realizations=False,
):
    """
    Propagate the uncertainty of a model through a derived quantity.

    Shortcut for creating an :any:`EnsembleDriver` and calling
    :any:`EnsembleDriver.run`.

    Parameters
    ----------
    model : :any:`JointUncertaintyModel`
        The joint model.
    grid : :any:`GridGeometry`, optional
        Target grid. Default: the model geometry
    n : :class:`int`, optional
        Number of draws. Default: 1
    derive : :any:`callable`
        Derived quantity, see :any:`EnsembleDriver.run`.
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
    keep_realizations : :class:`bool`, optional
        Whether to retain the input realizations. Default: False

    Returns
    -------
    ensemble : :any:`Ensemble`
    """
    if grid is not None and not isinstance(grid, GridGeometry):
        raise TypeError(f"grid must be a GridGeometry, got {type(grid)}")
    driver = EnsembleDriver(
        model,
        grid,
        neighbor_limit=neighbor_limit,
        search_radius=search_radius,
        seed=seed,
        batch_size=batch_size,
        workers=workers,
    )
    return driver.run(n, derive, cancel=cancel, keep_realizations=keep_realizations)
