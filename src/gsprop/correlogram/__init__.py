"""
GSProp subpackage providing spatial correlation models.

.. currentmodule:: gsprop.correlogram

A correlation model describes how the correlation of one standardized
variable decays with distance. Parameters (family, range, nugget) are
supplied by the caller, they are never fitted here.

Correlation Model
^^^^^^^^^^^^^^^^^

.. autosummary::
   :toctree:

   Family
   CorrelationModel
"""

from gsprop.correlogram.base import CorrelationModel, Family

__all__ = ["Family", "CorrelationModel"]
