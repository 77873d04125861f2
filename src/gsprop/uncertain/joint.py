"""
GSProp subpackage providing the joint uncertainty model.

.. currentmodule:: gsprop.uncertain.joint

The following classes are provided

.. autosummary::
   JointUncertaintyModel
"""

import numpy as np
import scipy.linalg as spl

from gsprop.errors import (
    GridGeometryMismatch,
    IncompatibleCoregionalizationModel,
    InvalidParameter,
    NonPositiveSemiDefiniteCorrelation,
)
from gsprop.uncertain.variable import UncertainVariable

__all__ = ["JointUncertaintyModel"]

# tolerance for symmetry and eigenvalue checks of the correlation matrix
TOL = 1e-10


class JointUncertaintyModel:
    """
    Joint model of spatially and cross-correlated uncertain variables.

    The variables follow a linear model of coregionalization: every random
    variable shares the same correlogram family and range, and the
    variables are correlated at zero lag by ``cross_correlation``. The
    nuggets may differ, the correlation is then carried by a structured and
    a nugget part (see :any:`coregionalization`).

    All validation takes place at construction, a model that exists can be
    simulated.

    Parameters
    ----------
    variables : :class:`list` of :any:`UncertainVariable`
        The variables, in the order of the matrix rows.
    cross_correlation : :class:`numpy.ndarray`, optional
        Symmetric positive semi-definite matrix with unit diagonal, one
        row and column per variable. Entries of deterministic variables
        are ignored. Default: identity

    Raises
    ------
    InvalidParameter
        If no variables are given or names are not unique.
    NonPositiveSemiDefiniteCorrelation
        If the matrix is not a valid correlation matrix, or can not be
        split into the structured and the nugget part.
    IncompatibleCoregionalizationModel
        If the random variables have different correlogram structures.
    GridGeometryMismatch
        If the fields of the variables are not conformant.

    Examples
    --------
    >>> from gsprop import CorrelationModel, GridField, UncertainVariable
    >>> import numpy as np
    >>> cm = CorrelationModel("Sph", range=5.0)
    >>> a = UncertainVariable("a", GridField(np.zeros((3, 3))), 1.0, cm)
    >>> b = UncertainVariable("b", GridField(np.ones((3, 3))), 0.5, cm)
    >>> model = JointUncertaintyModel([a, b], [[1.0, 0.7], [0.7, 1.0]])
    >>> model.names
    ('a', 'b')
    """

    def __init__(self, variables, cross_correlation=None):
        variables = tuple(variables)
        if not variables:
            raise InvalidParameter("at least one variable is required")
        for var in variables:
            if not isinstance(var, UncertainVariable):
                raise TypeError(
                    f"variables must be UncertainVariable instances, got {type(var)}"
                )
        names = tuple(var.name for var in variables)
        if len(set(names)) != len(names):
            raise InvalidParameter(f"variable names must be unique, got {names}")
        self._variables = variables
        self._names = names

        if cross_correlation is None:
            cross_correlation = np.eye(len(variables))
        self._cross_correlation = self._check_correlation(cross_correlation)
        self._check_coregionalization()
        self._geometry = self._check_geometry()

    @classmethod
    def build(cls, variables, cross_correlation=None):
        """Validate the inputs and create the model."""
        return cls(variables, cross_correlation)

    def _check_correlation(self, matrix):
        size = len(self._variables)
        matrix = np.array(matrix, dtype=np.double)
        if matrix.shape != (size, size):
            raise NonPositiveSemiDefiniteCorrelation(
                f"cross_correlation must have shape {(size, size)}, "
                f"got {matrix.shape}"
            )
        if not np.all(np.isfinite(matrix)):
            raise NonPositiveSemiDefiniteCorrelation(
                "cross_correlation must be finite"
            )
        if not np.allclose(matrix, matrix.T, rtol=0.0, atol=TOL):
            raise NonPositiveSemiDefiniteCorrelation(
                "cross_correlation must be symmetric"
            )
        if not np.allclose(np.diag(matrix), 1.0, rtol=0.0, atol=TOL):
            raise NonPositiveSemiDefiniteCorrelation(
                "cross_correlation must have a unit diagonal"
            )
        if np.any(np.abs(matrix) > 1.0 + TOL):
            raise NonPositiveSemiDefiniteCorrelation(
                "cross_correlation entries must be in [-1, 1]"
            )
        matrix = 0.5 * (matrix + matrix.T)
        np.fill_diagonal(matrix, 1.0)
        min_eig = spl.eigvalsh(matrix)[0]
        if min_eig < -TOL:
            raise NonPositiveSemiDefiniteCorrelation(
                "cross_correlation is not positive semi-definite "
                f"(smallest eigenvalue {min_eig:.3g})"
            )
        matrix.flags.writeable = False
        return matrix

    def _check_coregionalization(self):
        random_vars = self.random_variables
        if not random_vars:
            empty = np.zeros((0, 0))
            empty.flags.writeable = False
            self._coregionalization = (empty, empty)
            self._structure = None
            return
        ref = random_vars[0]
        for var in random_vars[1:]:
            if not ref.correlogram.compatible(var.correlogram):
                raise IncompatibleCoregionalizationModel(
                    f"correlogram of {var.name!r} ({var.correlogram!r}) does "
                    f"not share family and range with {ref.name!r} "
                    f"({ref.correlogram!r})"
                )
        self._structure = ref.correlogram.without_nugget()
        self._split_coregionalization()

    def _split_coregionalization(self):
        idx = self.random_index
        corr = self._cross_correlation[np.ix_(idx, idx)]
        nug = np.array(
            [var.correlogram.nugget_fraction for var in self.random_variables]
        )
        struct = np.sqrt(np.outer(1.0 - nug, 1.0 - nug))
        white = np.sqrt(np.outer(nug, nug))
        # every cross term is split in proportion to the structured and
        # white parts of the two variances, giving b1_ii = 1 - n_i
        b_1 = corr * struct / (struct + white)
        b_0 = corr * white / (struct + white)
        for mat, part in [(b_1, "structured"), (b_0, "nugget")]:
            min_eig = spl.eigvalsh(mat)[0]
            if min_eig < -TOL:
                raise NonPositiveSemiDefiniteCorrelation(
                    f"cross_correlation can not be split into a {part} part "
                    "that is positive semi-definite for the given nugget "
                    f"fractions (smallest eigenvalue {min_eig:.3g})"
                )
        b_1.flags.writeable = False
        b_0.flags.writeable = False
        self._coregionalization = (b_1, b_0)

    def _check_geometry(self):
        geometry = self._variables[0].geometry
        for var in self._variables[1:]:
            if not geometry.conformant(var.geometry):
                raise GridGeometryMismatch(
                    f"variable {var.name!r} has geometry {var.geometry!r}, "
                    f"expected {geometry!r}"
                )
        return geometry

    @property
    def variables(self):
        """:class:`tuple`: The variables in matrix order."""
        return self._variables

    @property
    def names(self):
        """:class:`tuple`: The variable names in matrix order."""
        return self._names

    @property
    def geometry(self):
        """:any:`GridGeometry`: Common geometry of all variables."""
        return self._geometry

    @property
    def cross_correlation(self):
        """:class:`numpy.ndarray`: Read-only cross-correlation matrix."""
        return self._cross_correlation

    @property
    def random_variables(self):
        """:class:`tuple`: The random variables in matrix order."""
        return tuple(var for var in self._variables if var.is_random)

    @property
    def random_index(self):
        """:class:`list`: Matrix indices of the random variables."""
        return [i for i, var in enumerate(self._variables) if var.is_random]

    @property
    def structure(self):
        """
        :any:`CorrelationModel`: Nugget-free correlogram shared by the random
        variables, None without random variables.
        """
        return self._structure

    def coregionalization(self):
        """
        Coregionalization matrices of the structured and the nugget part.

        The zero lag cross-correlation :math:`R` of the random variables is
        split into :math:`B_1 + B_0 = R` with :math:`B_{1,ii} = 1 - n_i`
        and :math:`B_{0,ii} = n_i`, so the cross-covariance at lag
        :math:`d` is :math:`B_1 \\rho(d / a) + B_0 \\delta(d)`.

        Returns
        -------
        b_1 : :class:`numpy.ndarray`
            Read-only matrix of the structured part.
        b_0 : :class:`numpy.ndarray`
            Read-only matrix of the nugget part.
        """
        return self._coregionalization

    def mixing_matrices(self):
        """
        Matrices mixing independent fields into cross-correlated ones.

        These are the lower factors :math:`A_k` with
        :math:`A_k A_k^T = B_k` of both :any:`coregionalization` matrices.
        A singular matrix is factorized by its eigen-decomposition.

        Returns
        -------
        a_1 : :class:`numpy.ndarray`
            Mixing of the structured fields.
        a_0 : :class:`numpy.ndarray`
            Mixing of the white noise fields.
        """
        return tuple(_factor(mat) for mat in self._coregionalization)

    def simulation_mask(self):
        """
        Cells excluded from simulation.

        Returns
        -------
        mask : :class:`numpy.ndarray`
            True where any random variable has no-data.
        """
        mask = np.zeros(self._geometry.shape, dtype=bool)
        for var in self.random_variables:
            mask |= var.mask
        return mask

    def __getitem__(self, name):
        try:
            return self._variables[self._names.index(name)]
        except ValueError:
            raise KeyError(name) from None

    def __len__(self):
        return len(self._variables)

    def __iter__(self):
        return iter(self._variables)

    def __repr__(self):
        return (
            f"JointUncertaintyModel(names={self._names}, "
            f"geometry={self._geometry!r})"
        )


def _factor(mat):
    try:
        return spl.cholesky(mat, lower=True)
    except spl.LinAlgError:
        eig_val, eig_vec = spl.eigh(mat)
        return eig_vec * np.sqrt(np.clip(eig_val, 0.0, None))
