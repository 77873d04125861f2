"""
GSProp subpackage providing uncertain variables.

.. currentmodule:: gsprop.uncertain.variable

The following classes are provided

.. autosummary::
   Distribution
   UncertainVariable
"""

from enum import Enum

import numpy as np
from scipy import special as sps

from gsprop.correlogram import CorrelationModel
from gsprop.errors import GridGeometryMismatch, InvalidParameter
from gsprop.field import GridField

__all__ = ["Distribution", "UncertainVariable"]


class Distribution(Enum):
    """
    Marginal distribution families.

    All families are parameterized by the mean and standard deviation of
    the variable itself, so the same mean and sd fields can be used with
    every family.
    """

    NORMAL = "normal"
    LOGNORMAL = "lognormal"
    UNIFORM = "uniform"

    @classmethod
    def from_name(cls, name):
        """Look up a distribution by name (``"norm"``, ``"lnorm"`` accepted)."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        aliases = {"norm": "normal", "lnorm": "lognormal", "unif": "uniform"}
        key = aliases.get(key, key)
        for dist in cls:
            if key == dist.value:
                return dist
        raise InvalidParameter(f"unknown distribution: {name!r}")

    def transform(self, z, mean, sd):
        """
        Transform standard normal scores to the marginal distribution.

        Parameters
        ----------
        z : :class:`numpy.ndarray`
            Standard normal scores.
        mean : :class:`numpy.ndarray`
            Target mean, broadcastable to ``z``.
        sd : :class:`numpy.ndarray`
            Target standard deviation, broadcastable to ``z``.

        Returns
        -------
        values : :class:`numpy.ndarray`
        """
        if self is Distribution.NORMAL:
            return mean + sd * z
        if self is Distribution.UNIFORM:
            half_width = np.sqrt(3.0) * sd
            return mean + half_width * (2.0 * sps.ndtr(z) - 1.0)
        # lognormal, mean is positive wherever sd is positive
        with np.errstate(divide="ignore", invalid="ignore"):
            sigma2 = np.log1p((sd / mean) ** 2)
            mu = np.log(mean) - 0.5 * sigma2
            res = np.exp(mu + np.sqrt(sigma2) * z)
        return np.where(sd > 0, res, mean)


class UncertainVariable:
    """
    Spatially distributed variable known by its per-cell mean and sd.

    Parameters
    ----------
    name : :class:`str`
        Identifier of the variable, used as key in realizations.
    mean : :any:`GridField`
        Per-cell mean.
    sd : :any:`GridField` or :class:`float`, optional
        Per-cell standard deviation. A scalar is broadcast to the geometry
        of ``mean`` (keeping its no-data cells). Default: 0.0
    correlogram : :any:`CorrelationModel`, optional
        Spatial correlation of the standardized variable.
        Required for random variables.
    distribution : :any:`Distribution` or :class:`str`, optional
        Marginal distribution family. Default: "normal"
    is_random : :class:`bool`, optional
        Whether the variable is uncertain. A deterministic variable passes
        its mean through every realization, its sd is treated as zero.
        Default: True
    """

    def __init__(
        self,
        name,
        mean,
        sd=0.0,
        correlogram=None,
        distribution="normal",
        is_random=True,
    ):
        if not isinstance(name, str) or not name:
            raise InvalidParameter(f"name must be a non-empty string, got {name!r}")
        if not isinstance(mean, GridField):
            raise TypeError(f"mean must be a GridField, got {type(mean)}")
        self._name = name
        self._mean = mean
        self._is_random = bool(is_random)
        self._distribution = Distribution.from_name(distribution)

        if isinstance(sd, GridField):
            if not sd.conformant(mean):
                raise GridGeometryMismatch(
                    f"{name}: sd geometry {sd.geometry!r} does not match "
                    f"mean geometry {mean.geometry!r}"
                )
        else:
            sd = float(sd)
            values = np.where(mean.mask, np.nan, sd)
            sd = GridField(values, mean.geometry)
        if not self._is_random:
            sd = GridField(np.where(sd.mask, np.nan, 0.0), sd.geometry)
        self._sd = sd

        if correlogram is not None and not isinstance(correlogram, CorrelationModel):
            raise TypeError(
                f"correlogram must be a CorrelationModel, got {type(correlogram)}"
            )
        if self._is_random and correlogram is None:
            raise InvalidParameter(f"{name}: random variable needs a correlogram")
        self._correlogram = correlogram

        self._validate()

    def _validate(self):
        valid = self.valid
        mean = self._mean.values[valid]
        sd = self._sd.values[valid]
        if not np.all(np.isfinite(mean)) or not np.all(np.isfinite(sd)):
            raise InvalidParameter(f"{self._name}: mean and sd must be finite")
        if np.any(sd < 0):
            raise InvalidParameter(f"{self._name}: sd must be non-negative")
        if self._is_random and self._distribution is Distribution.LOGNORMAL:
            if np.any(mean[sd > 0] <= 0):
                raise InvalidParameter(
                    f"{self._name}: lognormal variable needs a positive mean"
                )

    @property
    def name(self):
        """:class:`str`: The variable identifier."""
        return self._name

    @property
    def mean(self):
        """:any:`GridField`: Per-cell mean."""
        return self._mean

    @property
    def sd(self):
        """:any:`GridField`: Per-cell standard deviation."""
        return self._sd

    @property
    def correlogram(self):
        """:any:`CorrelationModel` or :any:`None`: Spatial correlation."""
        return self._correlogram

    @property
    def distribution(self):
        """:any:`Distribution`: Marginal distribution family."""
        return self._distribution

    @property
    def is_random(self):
        """:class:`bool`: Whether the variable is uncertain."""
        return self._is_random

    @property
    def geometry(self):
        """:any:`GridGeometry`: Geometry of the mean and sd fields."""
        return self._mean.geometry

    @property
    def mask(self):
        """:class:`numpy.ndarray`: True where mean or sd is no-data."""
        return self._mean.mask | self._sd.mask

    @property
    def valid(self):
        """:class:`numpy.ndarray`: True where mean and sd are valid."""
        return np.logical_not(self.mask)

    def transform(self, z):
        """
        Turn standard normal scores into values of this variable.

        Parameters
        ----------
        z : :class:`numpy.ndarray`
            Scores of shape ``(..., nrows, ncols)``.

        Returns
        -------
        values : :class:`numpy.ndarray`
            Values with no-data cells set to ``nan``.
        """
        mean = self._mean.filled(np.nan)
        sd = self._sd.filled(np.nan)
        values = self._distribution.transform(np.asarray(z, dtype=np.double), mean, sd)
        return np.where(self.mask, np.nan, values)

    def __repr__(self):
        return (
            f"UncertainVariable(name={self._name!r}, "
            f"distribution={self._distribution.name}, "
            f"is_random={self._is_random}, correlogram={self._correlogram!r})"
        )
