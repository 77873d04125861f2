"""
GSProp subpackage providing unconditional joint field simulation.

.. currentmodule:: gsprop.simulate

Simulator
^^^^^^^^^

.. autosummary::
   :toctree:

   FieldSimulator
   Realization
   simulate

Building Blocks
^^^^^^^^^^^^^^^

.. autosummary::
   :toctree:

   SimulationPath
   SequentialPlan
   RandomStreams
"""

from gsprop.simulate.base import FieldSimulator, Realization, simulate
from gsprop.simulate.rng import RandomStreams
from gsprop.simulate.sequential import SequentialPlan, SimulationPath

__all__ = [
    "FieldSimulator",
    "Realization",
    "simulate",
    "SimulationPath",
    "SequentialPlan",
    "RandomStreams",
]
