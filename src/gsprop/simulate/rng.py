"""
GSProp subpackage providing the random streams.

.. currentmodule:: gsprop.simulate.rng

The following classes are provided

.. autosummary::
   RandomStreams
"""

import numpy as np

from gsprop.errors import InvalidParameter

__all__ = ["RandomStreams"]

# leading spawn key entries separating the path stream from the draw streams
DRAW_KEY = 0
PATH_KEY = 1


class RandomStreams:
    """
    Reproducible random streams derived from one top-level seed.

    Every draw and variable gets its own generator, keyed by
    ``(seed, draw, variable)``, so the values of a draw never depend on
    which worker computes it or in which order draws are computed.

    Parameters
    ----------
    seed : :class:`int` or :any:`None`, optional
        Top-level seed. If None, fresh entropy is drawn once and kept
        as :any:`seed`. Default: None
    """

    def __init__(self, seed=None):
        if seed is None:
            seed = np.random.SeedSequence().entropy
        seed = int(seed)
        if seed < 0:
            raise InvalidParameter(f"seed must be non-negative, got {seed}")
        self._seed = seed

    @property
    def seed(self):
        """:class:`int`: The top-level seed."""
        return self._seed

    def path(self):
        """Generator for the simulation path."""
        return np.random.default_rng(
            np.random.SeedSequence(self._seed, spawn_key=(PATH_KEY,))
        )

    def draw(self, draw, variable=0):
        """
        Generator for one variable of one draw.

        Parameters
        ----------
        draw : :class:`int`
            Draw index.
        variable : :class:`int`, optional
            Variable index. Default: 0

        Returns
        -------
        rng : :class:`numpy.random.Generator`
        """
        return np.random.default_rng(
            np.random.SeedSequence(
                self._seed, spawn_key=(DRAW_KEY, int(draw), int(variable))
            )
        )

    def __repr__(self):
        return f"RandomStreams(seed={self._seed})"
