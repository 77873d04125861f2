"""
GSProp subpackage providing the error classes.

.. currentmodule:: gsprop.errors

Construction errors are raised while building models and can only be
fixed by the caller. Engine errors are raised by the simulator and the
ensemble driver.

.. autosummary::
   GSPropError
   ConstructionError
   InvalidParameter
   NonPositiveSemiDefiniteCorrelation
   IncompatibleCoregionalizationModel
   GridGeometryMismatch
   AggregationError
   InsufficientSamples
   SimulationError
   InvalidGridGeometry
   NeighborLimitTooSmall
   DerivationError
   Cancelled
"""

__all__ = [
    "GSPropError",
    "ConstructionError",
    "InvalidParameter",
    "NonPositiveSemiDefiniteCorrelation",
    "IncompatibleCoregionalizationModel",
    "GridGeometryMismatch",
    "AggregationError",
    "InsufficientSamples",
    "SimulationError",
    "InvalidGridGeometry",
    "NeighborLimitTooSmall",
    "DerivationError",
    "Cancelled",
]


class GSPropError(Exception):
    """Base class of all GSProp errors."""


class ConstructionError(GSPropError, ValueError):
    """Invalid input given while building a model."""


class InvalidParameter(ConstructionError):
    """A scalar or enumerated parameter is out of its valid domain."""


class NonPositiveSemiDefiniteCorrelation(ConstructionError):
    """The cross-correlation matrix is not a valid correlation matrix."""


class IncompatibleCoregionalizationModel(ConstructionError):
    """Random variables do not share correlogram family and range."""


class AggregationError(GSPropError, ValueError):
    """Summary statistics can not be computed from the given ensemble."""


class GridGeometryMismatch(ConstructionError, AggregationError):
    """Two grids are not conformant (rows, cols, origin, cell size)."""


class InsufficientSamples(AggregationError):
    """Not enough ensemble members for the requested statistic."""


class SimulationError(GSPropError, RuntimeError):
    """Failure inside the simulation engine."""


class InvalidGridGeometry(SimulationError):
    """The grid has no cells that could be simulated."""


class NeighborLimitTooSmall(UserWarning):
    """
    The neighborhood is too small to reproduce the correlogram well.

    This is a warning only, the simulation proceeds with reduced accuracy.
    """


class DerivationError(GSPropError, RuntimeError):
    """
    The derived-quantity function failed on one draw.

    The original exception is chained as ``__cause__``.

    Parameters
    ----------
    draw : :class:`int`
        Index of the failing draw.
    cause : :class:`Exception`
        The exception raised by the derived-quantity function.
    """

    def __init__(self, draw, cause):
        self.draw = int(draw)
        self.cause = cause
        super().__init__(
            f"derived quantity failed on draw {self.draw}: "
            f"{type(cause).__name__}: {cause}"
        )


class Cancelled(GSPropError):
    """The ensemble run was cancelled; completed draws were discarded."""

    def __init__(self, completed=0):
        self.completed = int(completed)
        super().__init__(
            f"ensemble run cancelled after {self.completed} completed draws"
        )
