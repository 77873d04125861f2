"""
GSProp subpackage providing raster fields.

.. currentmodule:: gsprop.field

Grid Classes
^^^^^^^^^^^^

.. autosummary::
   :toctree:

   GridGeometry
   GridField

Conversions
^^^^^^^^^^^

.. autosummary::
   :toctree:

   check_conformant
   stack
   unstack
"""

from gsprop.field.base import GridField, check_conformant, stack, unstack
from gsprop.field.geometry import GridGeometry

__all__ = ["GridGeometry", "GridField", "check_conformant", "stack", "unstack"]
