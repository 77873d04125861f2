"""
This is the unittest of the correlogram module.
"""

import unittest

import gstools as gs
import numpy as np

import gsprop as gp


class TestCorrelationModel(unittest.TestCase):
    def setUp(self):
        self.families = ["spherical", "exponential", "gaussian", "matern"]
        self.dist = np.linspace(0.0, 30.0, 301)

    def test_unit_correlation_at_zero(self):
        """Test that correlation(0) == 1 for all families and nuggets."""
        for family in self.families:
            for nugget in [0.0, 0.25, 0.6, 0.99]:
                cm = gp.CorrelationModel(family, range=5.0, nugget_fraction=nugget)
                self.assertEqual(cm.correlation(0.0), 1.0)

    def test_non_increasing(self):
        """Test that correlation decays monotonically with distance."""
        for family in self.families:
            for rng in [0.5, 5.0, 50.0]:
                for nugget in [0.0, 0.4]:
                    cm = gp.CorrelationModel(family, rng, nugget)
                    cor = cm.correlation(self.dist)
                    self.assertTrue(np.all(np.diff(cor) <= 1e-12), (family, rng))
                    self.assertTrue(np.all(cor >= 0.0))

    def test_nugget_discontinuity(self):
        """Test that acf0 is approached at vanishing lag."""
        for family in self.families:
            cm = gp.CorrelationModel(family, range=5.0, nugget_fraction=0.4)
            self.assertAlmostEqual(cm.acf0, 0.6)
            self.assertAlmostEqual(cm.correlation(1e-9), 0.6, places=6)
            self.assertAlmostEqual(cm.covariance(0.0), 0.6)
            self.assertEqual(cm.cov_nugget(0.0), 1.0)

    def test_spherical_closed_form(self):
        cm = gp.CorrelationModel("Sph", range=5.0, nugget_fraction=0.4)
        h = 1.0 / 5.0
        self.assertAlmostEqual(
            cm.correlation(1.0), 0.6 * (1.0 - 1.5 * h + 0.5 * h**3)
        )
        self.assertEqual(cm.correlation(5.0), 0.0)
        self.assertEqual(cm.correlation(7.5), 0.0)

    def test_exponential_gaussian_closed_form(self):
        exp = gp.CorrelationModel("Exp", range=2.0)
        gau = gp.CorrelationModel("Gau", range=2.0)
        self.assertAlmostEqual(exp.correlation(3.0), np.exp(-1.5))
        self.assertAlmostEqual(gau.correlation(3.0), np.exp(-2.25))

    def test_matern_half_is_exponential(self):
        mat = gp.CorrelationModel("matern", range=3.0, smoothness=0.5)
        exp = gp.CorrelationModel("exponential", range=3.0)
        np.testing.assert_allclose(
            mat.correlation(self.dist),
            exp.correlation(self.dist),
            rtol=1e-6,
            atol=1e-12,
        )
        self.assertAlmostEqual(mat.correlation(0.0), 1.0)

    def test_wraps_gstools_model(self):
        classes = {
            "spherical": gs.Spherical,
            "exponential": gs.Exponential,
            "gaussian": gs.Gaussian,
            "matern": gs.Matern,
        }
        for family, cls in classes.items():
            cm = gp.CorrelationModel(family, range=4.0, nugget_fraction=0.3)
            self.assertIsInstance(cm.model, cls)
            self.assertEqual(cm.model.dim, 2)
            self.assertAlmostEqual(cm.model.var, 0.7)
            self.assertAlmostEqual(cm.model.nugget, 0.3)
            self.assertAlmostEqual(cm.model.len_scale, 4.0)
            np.testing.assert_allclose(
                cm.covariance(self.dist), cm.model.covariance(self.dist)
            )
        mat = gp.CorrelationModel("Mat", range=4.0, smoothness=1.5)
        self.assertAlmostEqual(mat.model.nu, 1.5)

    def test_without_nugget(self):
        cm = gp.CorrelationModel("Exp", range=4.0, nugget_fraction=0.3)
        pure = cm.without_nugget()
        self.assertEqual(pure.nugget_fraction, 0.0)
        self.assertTrue(cm.compatible(pure))
        np.testing.assert_allclose(
            cm.covariance(self.dist), 0.7 * pure.covariance(self.dist)
        )
        np.testing.assert_allclose(
            pure.cor(self.dist / 4.0), pure.covariance(self.dist)
        )
        self.assertIs(pure.without_nugget(), pure)

    def test_scalar_and_array_input(self):
        cm = gp.CorrelationModel("Sph", range=5.0)
        self.assertIsInstance(cm.correlation(1.0), float)
        res = cm.correlation(np.array([[0.0, 1.0], [2.0, 6.0]]))
        self.assertEqual(res.shape, (2, 2))
        self.assertEqual(res[0, 0], 1.0)
        self.assertEqual(res[1, 1], 0.0)

    def test_invalid_parameters(self):
        with self.assertRaises(gp.InvalidParameter):
            gp.CorrelationModel("Sph", range=0.0)
        with self.assertRaises(gp.InvalidParameter):
            gp.CorrelationModel("Sph", range=-1.0)
        with self.assertRaises(gp.InvalidParameter):
            gp.CorrelationModel("Sph", range=1.0, nugget_fraction=1.0)
        with self.assertRaises(gp.InvalidParameter):
            gp.CorrelationModel("Sph", range=1.0, nugget_fraction=-0.1)
        with self.assertRaises(gp.InvalidParameter):
            gp.CorrelationModel("Mat", range=1.0, smoothness=0.0)
        with self.assertRaises(gp.InvalidParameter):
            gp.CorrelationModel("cubic", range=1.0)
        # construction errors are value errors
        with self.assertRaises(ValueError):
            gp.CorrelationModel("Sph", range=0.0)

    def test_family_names(self):
        self.assertIs(gp.Family.from_name("Sph"), gp.Family.SPHERICAL)
        self.assertIs(gp.Family.from_name("EXPONENTIAL"), gp.Family.EXPONENTIAL)
        self.assertIs(gp.Family.from_name(gp.Family.GAUSSIAN), gp.Family.GAUSSIAN)
        self.assertIs(gp.Family.from_name("mat"), gp.Family.MATERN)

    def test_compatible(self):
        a = gp.CorrelationModel("Sph", 5000.0, 0.4)
        b = gp.CorrelationModel("Sph", 5000.0, 0.6)
        c = gp.CorrelationModel("Exp", 5000.0, 0.4)
        d = gp.CorrelationModel("Sph", 4000.0, 0.4)
        self.assertTrue(a.compatible(b))
        self.assertFalse(a.compatible(c))
        self.assertFalse(a.compatible(d))
        m1 = gp.CorrelationModel("Mat", 10.0, smoothness=1.5)
        m2 = gp.CorrelationModel("Mat", 10.0, smoothness=2.5)
        self.assertFalse(m1.compatible(m2))

    def test_value_semantics(self):
        a = gp.CorrelationModel("Sph", 5.0, 0.4)
        b = gp.CorrelationModel("spherical", 5.0, 0.4)
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertNotEqual(a, gp.CorrelationModel("Sph", 5.0, 0.5))
        self.assertEqual(len({a, b}), 1)


if __name__ == "__main__":
    unittest.main()
