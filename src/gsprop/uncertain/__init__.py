"""
GSProp subpackage providing the uncertainty model.

.. currentmodule:: gsprop.uncertain

Variables
^^^^^^^^^

.. autosummary::
   :toctree:

   Distribution
   UncertainVariable

Joint Model
^^^^^^^^^^^

.. autosummary::
   :toctree:

   JointUncertaintyModel
"""

from gsprop.uncertain.joint import JointUncertaintyModel
from gsprop.uncertain.variable import Distribution, UncertainVariable

__all__ = ["Distribution", "UncertainVariable", "JointUncertaintyModel"]
