"""
Purpose
=======

GSProp is a library for Monte-Carlo propagation of spatially correlated
uncertainty. It includes

- raster fields with no-data handling
- spatial correlation models (spherical, exponential, gaussian, Matérn)
- uncertain variables under a linear model of coregionalization
- unconditional sequential Gaussian simulation of joint random fields
- a Monte-Carlo driver for user supplied derived quantities
- cell-wise and scalar ensemble summaries

Subpackages
===========

.. autosummary::
   :toctree: api

   field
   correlogram
   uncertain
   simulate
   ensemble
   errors
   tools

Classes
=======

Fields
^^^^^^

.. autosummary::
   GridGeometry
   GridField

Models
^^^^^^

.. autosummary::
   CorrelationModel
   UncertainVariable
   JointUncertaintyModel

Simulation and Propagation
^^^^^^^^^^^^^^^^^^^^^^^^^^

.. autosummary::
   FieldSimulator
   EnsembleDriver
   Ensemble
"""

from gsprop import correlogram, ensemble, errors, field, simulate, tools, uncertain
from gsprop.correlogram import CorrelationModel, Family
from gsprop.ensemble import (
    Ensemble,
    EnsembleDriver,
    ScalarSummary,
    cellwise_exceedance,
    cellwise_mean,
    cellwise_quantile,
    cellwise_stddev,
    count_exceeding,
    field_mean,
    fraction_exceeding,
    run,
    scalar_statistic,
    summarize,
)
from gsprop.errors import (
    AggregationError,
    Cancelled,
    ConstructionError,
    DerivationError,
    GridGeometryMismatch,
    GSPropError,
    IncompatibleCoregionalizationModel,
    InsufficientSamples,
    InvalidGridGeometry,
    InvalidParameter,
    NeighborLimitTooSmall,
    NonPositiveSemiDefiniteCorrelation,
    SimulationError,
)
from gsprop.field import GridField, GridGeometry, stack, unstack
from gsprop.simulate import FieldSimulator, Realization, simulate as simulate_fields
from gsprop.uncertain import Distribution, JointUncertaintyModel, UncertainVariable

__version__ = "0.1.0"

__all__ = ["__version__"]
__all__ += ["correlogram", "ensemble", "errors", "field", "simulate", "tools"]
__all__ += ["uncertain"]
__all__ += ["GridGeometry", "GridField", "stack", "unstack"]
__all__ += ["Family", "CorrelationModel"]
__all__ += ["Distribution", "UncertainVariable", "JointUncertaintyModel"]
__all__ += ["FieldSimulator", "Realization", "simulate_fields"]
__all__ += [
    "Ensemble",
    "EnsembleDriver",
    "run",
    "ScalarSummary",
    "cellwise_mean",
    "cellwise_stddev",
    "cellwise_quantile",
    "cellwise_exceedance",
    "scalar_statistic",
    "count_exceeding",
    "fraction_exceeding",
    "field_mean",
    "summarize",
]
__all__ += [
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
