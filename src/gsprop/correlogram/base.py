"""
GSProp subpackage providing the correlation model.

.. currentmodule:: gsprop.correlogram.base

The following classes are provided

.. autosummary::
   Family
   CorrelationModel
"""

from enum import Enum

import gstools as gs
import numpy as np

from gsprop.errors import InvalidParameter

__all__ = ["Family", "CorrelationModel"]


class Family(Enum):
    """Closed set of supported correlogram families."""

    SPHERICAL = "spherical"
    EXPONENTIAL = "exponential"
    GAUSSIAN = "gaussian"
    MATERN = "matern"

    @classmethod
    def from_name(cls, name):
        """
        Look up a family by name.

        Accepts the enum itself, the full name or the three letter
        abbreviations used by variogram fitting tools ("Sph", "Exp", ...).
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        for family in cls:
            if key in (family.value, family.value[:3]):
                return family
        raise InvalidParameter(f"unknown correlogram family: {name!r}")


# covariance model class and the rescale factor giving h = d / range
# (sqrt(2 nu) h for the Matern model)
_COV_MODELS = {
    Family.SPHERICAL: (gs.Spherical, 1.0),
    Family.EXPONENTIAL: (gs.Exponential, 1.0),
    Family.GAUSSIAN: (gs.Gaussian, 1.0),
    Family.MATERN: (gs.Matern, np.sqrt(2.0)),
}


class CorrelationModel:
    """
    Isotropic spatial correlation model with nugget.

    The correlation between two cells at distance :math:`d` is

    .. math::
       C(d) =
       \\begin{cases}
       1 & d = 0 \\\\
       (1 - n) \\cdot \\rho(d / a) & d > 0
       \\end{cases}

    where :math:`n` is the nugget fraction, :math:`a` the range and
    :math:`\\rho` the normalized structure of the family. The structure is
    taken from the matching :any:`gstools.CovModel` in two dimensions,
    rescaled so that :math:`h = d / a`
    (e.g. :math:`\\rho(h) = \\exp(-h^2)` for the gaussian family).
    The sill is always one, since the model describes correlation of
    standardized values.

    Parameters
    ----------
    family : :any:`Family` or :class:`str`
        Correlogram family.
    range : :class:`float`
        Range parameter :math:`a`. For the spherical model correlation
        vanishes beyond it, for the others it is the length scale.
    nugget_fraction : :class:`float`, optional
        Relative nugget in ``[0, 1)``. Default: 0.0
    smoothness : :class:`float`, optional
        Smoothness :math:`\\nu` of the Matérn model, ignored otherwise.
        Default: 0.5

    Examples
    --------
    >>> cm = CorrelationModel("Sph", range=5.0, nugget_fraction=0.4)
    >>> cm.correlation(0.0)
    1.0
    >>> round(cm.correlation(1e-9), 6)
    0.6
    >>> cm.correlation(5.0)
    0.0
    """

    def __init__(self, family, range, nugget_fraction=0.0, smoothness=0.5):
        self._family = Family.from_name(family)
        self._range = float(range)
        self._nugget_fraction = float(nugget_fraction)
        self._smoothness = float(smoothness)
        self._validate()
        cov_model, rescale = _COV_MODELS[self._family]
        opt_arg = {"nu": self._smoothness} if self._family is Family.MATERN else {}
        try:
            self._model = cov_model(
                dim=2,
                var=self.acf0,
                len_scale=self._range,
                nugget=self._nugget_fraction,
                rescale=rescale,
                **opt_arg,
            )
        except ValueError as err:
            raise InvalidParameter(f"invalid correlogram: {err}") from err

    def _validate(self):
        if not np.isfinite(self._range) or self._range <= 0:
            raise InvalidParameter(
                f"range must be positive and finite, got {self._range}"
            )
        if not 0.0 <= self._nugget_fraction < 1.0:
            raise InvalidParameter(
                f"nugget_fraction must be in [0, 1), got {self._nugget_fraction}"
            )
        if self._family is Family.MATERN and not (
            np.isfinite(self._smoothness) and self._smoothness > 0
        ):
            raise InvalidParameter(
                f"smoothness must be positive, got {self._smoothness}"
            )

    @property
    def family(self):
        """:any:`Family`: The correlogram family."""
        return self._family

    @property
    def range(self):
        """:class:`float`: The range parameter."""
        return self._range

    @property
    def nugget_fraction(self):
        """:class:`float`: The relative nugget."""
        return self._nugget_fraction

    @property
    def smoothness(self):
        """:class:`float`: Matérn smoothness."""
        return self._smoothness

    @property
    def acf0(self):
        """:class:`float`: Correlation approached at vanishing lag."""
        return 1.0 - self._nugget_fraction

    @property
    def sill(self):
        """:class:`float`: Total sill, always one."""
        return 1.0

    @property
    def model(self):
        """:any:`gstools.CovModel`: The underlying covariance model."""
        return self._model

    def without_nugget(self):
        """The same spatial structure with zero nugget (:math:`\\rho(d / a)`)."""
        if self._nugget_fraction == 0.0:
            return self
        return CorrelationModel(self._family, self._range, 0.0, self._smoothness)

    def cor(self, h):
        """Normalized structure at the range-scaled distance ``h``."""
        return np.asarray(self._model.cor(np.asarray(h, dtype=np.double)))

    def covariance(self, d):
        """
        Structured part of the correlation, without the nugget jump.

        Parameters
        ----------
        d : :class:`float` or :class:`numpy.ndarray`
            Distance(s).

        Returns
        -------
        cov : :class:`numpy.ndarray`
            :math:`(1 - n) \\rho(d / a)`
        """
        d = np.abs(np.asarray(d, dtype=np.double))
        return np.asarray(self._model.covariance(d), dtype=np.double)

    def cov_nugget(self, d):
        """
        Correlation respecting the nugget at zero distance.

        Parameters
        ----------
        d : :class:`float` or :class:`numpy.ndarray`
            Distance(s).

        Returns
        -------
        cov : :class:`numpy.ndarray`
            One where the distance is zero, :any:`covariance` elsewhere.
        """
        d = np.abs(np.asarray(d, dtype=np.double))
        return np.where(d == 0.0, self.sill, self.covariance(d))

    def correlation(self, distance):
        """
        Correlation between two locations at the given distance.

        Parameters
        ----------
        distance : :class:`float` or :class:`numpy.ndarray`
            Distance(s), non-negative.

        Returns
        -------
        correlation : :class:`float` or :class:`numpy.ndarray`
            Float for scalar input, array otherwise.
        """
        res = self.cov_nugget(distance)
        if res.ndim == 0:
            return float(res)
        return res

    def compatible(self, other):
        """
        Whether both models share the spatial structure.

        Models are compatible under the linear model of coregionalization
        if family and range (and Matérn smoothness) agree. The nugget may
        differ.
        """
        if not isinstance(other, CorrelationModel):
            return False
        if self._family is not other.family or self._range != other.range:
            return False
        if self._family is Family.MATERN:
            return self._smoothness == other.smoothness
        return True

    def _key(self):
        smoothness = self._smoothness if self._family is Family.MATERN else None
        return self._family, self._range, self._nugget_fraction, smoothness

    def __eq__(self, other):
        if not isinstance(other, CorrelationModel):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        opt = (
            f", smoothness={self._smoothness}"
            if self._family is Family.MATERN
            else ""
        )
        return (
            f"CorrelationModel(family={self._family.name}, range={self._range}, "
            f"nugget_fraction={self._nugget_fraction}{opt})"
        )
