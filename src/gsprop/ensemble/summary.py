"""
GSProp subpackage providing ensemble summaries.

.. currentmodule:: gsprop.ensemble.summary

Cell-wise statistics reduce an ensemble of conformant fields to one field.
No-data cells of a member are left out at that cell; a cell that is
no-data in every member is no-data in the result.

The following classes and functions are provided

.. autosummary::
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

import warnings

import numpy as np

from gsprop.errors import InsufficientSamples, InvalidParameter
from gsprop.field import GridField, check_conformant, stack

__all__ = [
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


def _members(ensemble):
    members = list(ensemble)
    if not members:
        raise InsufficientSamples("the ensemble is empty")
    for i, member in enumerate(members):
        if not isinstance(member, GridField):
            raise InvalidParameter(
                f"cell-wise statistics need GridField members, "
                f"member {i} is {type(member).__name__}"
            )
    geometry = check_conformant(*members)
    return stack(members), geometry, members[0].nodata


def _check_quantile(q):
    q = float(q)
    if not 0.0 <= q <= 1.0:
        raise InvalidParameter(f"quantile must be in [0, 1], got {q}")
    return q


def cellwise_mean(ensemble):
    """
    Cell-wise mean of an ensemble of fields.

    Parameters
    ----------
    ensemble : :any:`Ensemble` or :class:`list` of :any:`GridField`
        Conformant fields.

    Returns
    -------
    mean : :any:`GridField`

    Raises
    ------
    GridGeometryMismatch
        If the members are not conformant.
    InsufficientSamples
        If the ensemble is empty.
    """
    array, geometry, nodata = _members(ensemble)
    valid = ~np.isnan(array)
    count = valid.sum(axis=0)
    total = np.where(valid, array, 0.0).sum(axis=0)
    with np.errstate(invalid="ignore", divide="ignore"):
        mean = np.where(count > 0, total / count, np.nan)
    return GridField(mean, geometry, nodata)


def cellwise_stddev(ensemble, ddof=1):
    """
    Cell-wise standard deviation of an ensemble of fields.

    Parameters
    ----------
    ensemble : :any:`Ensemble` or :class:`list` of :any:`GridField`
        Conformant fields.
    ddof : :class:`int`, optional
        Delta degrees of freedom. The default gives the sample standard
        deviation with ``n - 1`` in the denominator. Default: 1

    Returns
    -------
    std : :any:`GridField`
        Cells with no more than ``ddof`` valid members are no-data.

    Raises
    ------
    InsufficientSamples
        If the ensemble has no more than ``ddof`` members.
    """
    ddof = int(ddof)
    if ddof < 0:
        raise InvalidParameter(f"ddof must be non-negative, got {ddof}")
    array, geometry, nodata = _members(ensemble)
    if array.shape[0] <= ddof:
        raise InsufficientSamples(
            f"standard deviation with ddof={ddof} needs at least "
            f"{ddof + 1} members, got {array.shape[0]}"
        )
    valid = ~np.isnan(array)
    count = valid.sum(axis=0)
    with np.errstate(invalid="ignore", divide="ignore"):
        mean = np.where(valid, array, 0.0).sum(axis=0) / count
        sq_dev = np.where(valid, (array - mean) ** 2, 0.0).sum(axis=0)
        std = np.where(count > ddof, np.sqrt(sq_dev / (count - ddof)), np.nan)
    return GridField(std, geometry, nodata)


def cellwise_quantile(ensemble, q):
    """
    Cell-wise quantile(s) of an ensemble of fields.

    Quantiles are linearly interpolated between order statistics.

    Parameters
    ----------
    ensemble : :any:`Ensemble` or :class:`list` of :any:`GridField`
        Conformant fields.
    q : :class:`float` or :class:`list` of :class:`float`
        Quantile level(s) in ``[0, 1]``.

    Returns
    -------
    quantile : :any:`GridField` or :class:`list` of :any:`GridField`
        One field per level if ``q`` is a sequence.
    """
    multi = np.ndim(q) > 0
    levels = [_check_quantile(qi) for qi in np.atleast_1d(q)]
    array, geometry, nodata = _members(ensemble)
    with warnings.catch_warnings():
        # all no-data cells give nan, which is what we want
        warnings.simplefilter("ignore", RuntimeWarning)
        result = np.nanquantile(array, levels, axis=0)
    fields = [GridField(layer, geometry, nodata) for layer in result]
    return fields if multi else fields[0]


def cellwise_exceedance(ensemble, threshold):
    """
    Cell-wise probability of exceeding a threshold.

    Parameters
    ----------
    ensemble : :any:`Ensemble` or :class:`list` of :any:`GridField`
        Conformant fields.
    threshold : :class:`float`
        Threshold value.

    Returns
    -------
    probability : :any:`GridField`
        Fraction of valid members strictly above ``threshold``.
    """
    array, geometry, nodata = _members(ensemble)
    valid = ~np.isnan(array)
    count = valid.sum(axis=0)
    above = (np.where(valid, array, -np.inf) > threshold).sum(axis=0)
    with np.errstate(invalid="ignore", divide="ignore"):
        prob = np.where(count > 0, above / count, np.nan)
    return GridField(prob, geometry, nodata)


class ScalarSummary:
    """
    Distribution of a scalar statistic over the ensemble.

    Parameters
    ----------
    values : :class:`numpy.ndarray`
        One value per draw, in draw order.
    """

    def __init__(self, values):
        values = np.array(values, dtype=np.double)
        if values.ndim != 1:
            raise InvalidParameter("values must be one dimensional")
        values.flags.writeable = False
        self._values = values

    @property
    def values(self):
        """:class:`numpy.ndarray`: The values in draw order."""
        return self._values

    @property
    def mean(self):
        """:class:`float`: Mean over the draws."""
        if self._values.size == 0:
            raise InsufficientSamples("no values to average")
        return float(np.mean(self._values))

    @property
    def std(self):
        """:class:`float`: Sample standard deviation over the draws."""
        if self._values.size < 2:
            raise InsufficientSamples(
                f"standard deviation needs at least 2 values, got {self._values.size}"
            )
        return float(np.std(self._values, ddof=1))

    def quantile(self, q):
        """Quantile(s) of the values, ``q`` in ``[0, 1]``."""
        if self._values.size == 0:
            raise InsufficientSamples("no values for a quantile")
        if np.ndim(q) > 0:
            return np.quantile(self._values, [_check_quantile(qi) for qi in q])
        return float(np.quantile(self._values, _check_quantile(q)))

    def describe(self, quantiles=(0.05, 0.5, 0.95)):
        """
        Summary of the values.

        Returns
        -------
        summary : :class:`dict`
            ``n``, ``mean``, ``std`` and one entry per quantile level.
        """
        summary = {"n": self._values.size, "mean": self.mean, "std": self.std}
        for q in quantiles:
            summary[f"q{q:g}"] = self.quantile(q)
        return summary

    def __len__(self):
        return self._values.size

    def __repr__(self):
        return f"ScalarSummary(n={self._values.size})"


def scalar_statistic(ensemble, reducer=None):
    """
    Reduce each member to a scalar.

    Parameters
    ----------
    ensemble : :any:`Ensemble` or :class:`list`
        Members in draw order.
    reducer : :any:`callable`, optional
        Function taking one member (:any:`GridField`) and returning a
        number, e.g. :any:`count_exceeding`. If None, the members have to
        be numbers already. Default: None

    Returns
    -------
    summary : :any:`ScalarSummary`
    """
    members = list(ensemble)
    if not members:
        raise InsufficientSamples("the ensemble is empty")
    if reducer is None:
        values = [float(member) for member in members]
    else:
        values = [float(reducer(member)) for member in members]
    return ScalarSummary(values)


def count_exceeding(threshold):
    """
    Reducer counting the valid cells strictly above ``threshold``.

    Examples
    --------
    >>> summary = scalar_statistic(ensemble, count_exceeding(15.0))  # doctest: +SKIP
    """
    threshold = float(threshold)

    def reducer(field):
        return int(np.count_nonzero(field.values[field.valid] > threshold))

    return reducer


def fraction_exceeding(threshold):
    """Reducer giving the fraction of valid cells strictly above ``threshold``."""
    threshold = float(threshold)

    def reducer(field):
        values = field.values[field.valid]
        if values.size == 0:
            return np.nan
        return np.count_nonzero(values > threshold) / values.size

    return reducer


def field_mean(field):
    """Reducer giving the mean over the valid cells of a field."""
    values = field.values[field.valid]
    return float(np.mean(values)) if values.size else np.nan


def summarize(ensemble, quantiles=(0.05, 0.5, 0.95)):
    """
    Common cell-wise summaries of an ensemble of fields.

    Parameters
    ----------
    ensemble : :any:`Ensemble` or :class:`list` of :any:`GridField`
        Conformant fields, at least two.
    quantiles : :class:`tuple`, optional
        Quantile levels. Default: (0.05, 0.5, 0.95)

    Returns
    -------
    summary : :class:`dict`
        ``mean`` and ``std`` fields plus a ``quantiles`` dict by level.
    """
    return {
        "mean": cellwise_mean(ensemble),
        "std": cellwise_stddev(ensemble),
        "quantiles": dict(zip(quantiles, cellwise_quantile(ensemble, list(quantiles)))),
    }
