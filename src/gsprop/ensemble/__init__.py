"""
GSProp subpackage providing Monte-Carlo propagation.

.. currentmodule:: gsprop.ensemble

Driver
^^^^^^

.. autosummary::
   :toctree:

   Ensemble
   EnsembleDriver
   run

Summaries
^^^^^^^^^

.. autosummary::
   :toctree:

   ScalarSummary
   cellwise_mean
   cellwise_stddev
   cellwise_quantile
   cellwise_exceedance
   scalar_statistic
   count_exceeding
   fraction_exceeding
   field_mean
   summarize
"""

from gsprop.ensemble.driver import Ensemble, EnsembleDriver, run
from gsprop.ensemble.summary import (
    ScalarSummary,
    cellwise_exceedance,
    cellwise_mean,
    cellwise_quantile,
    cellwise_stddev,
    count_exceeding,
    field_mean,
    fraction_exceeding,
    scalar_statistic,
    summarize,
)

__all__ = [
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
