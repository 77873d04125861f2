"""
End-to-end propagation of a carbon to nitrogen ratio.
"""

import unittest

import numpy as np

import gsprop as gp


class TestRatioScenario(unittest.TestCase):
    def setUp(self):
        self.geom = gp.GridGeometry(5, 5, xmin=0.0, ymax=5000.0, cellsize=1000.0)
        carbon = gp.UncertainVariable(
            "C",
            gp.GridField.full(self.geom, 2.0),
            0.3,
            gp.CorrelationModel("Sph", range=5000.0, nugget_fraction=0.4),
        )
        nitrogen = gp.UncertainVariable(
            "N",
            gp.GridField.full(self.geom, 0.15),
            0.02,
            gp.CorrelationModel("Sph", range=5000.0, nugget_fraction=0.6),
        )
        self.model = gp.JointUncertaintyModel.build(
            [carbon, nitrogen], [[1.0, 0.7], [0.7, 1.0]]
        )
        self.seed = 1234

    @staticmethod
    def ratio(real):
        return real["C"].values / real["N"].values

    def propagate(self, workers=1):
        return gp.run(
            self.model,
            self.geom,
            n=500,
            derive=self.ratio,
            neighbor_limit=20,
            seed=self.seed,
            batch_size=64,
            workers=workers,
        )

    def test_reproducible(self):
        ref = self.propagate().to_array()
        np.testing.assert_array_equal(self.propagate().to_array(), ref)
        np.testing.assert_array_equal(self.propagate(workers=4).to_array(), ref)

    def test_statistics(self):
        ens = self.propagate()
        mean = gp.cellwise_mean(ens)
        std = gp.cellwise_stddev(ens)
        self.assertEqual(mean.geometry, self.geom)
        self.assertFalse(mean.mask.any())
        self.assertTrue(np.all(np.abs(mean.values - 2.0 / 0.15) < 1.0))
        self.assertTrue(np.all(std.values > 0.0))
        # positive cross-correlation damps the spread of the ratio
        independent = 2.0 / 0.15 * np.hypot(0.3 / 2.0, 0.02 / 0.15)
        self.assertTrue(np.all(std.values < independent))

    def test_exceedance_summary(self):
        ens = self.propagate()
        hot = gp.scalar_statistic(ens, gp.count_exceeding(15.0))
        self.assertEqual(len(hot), 500)
        self.assertTrue(np.all((hot.values >= 0) & (hot.values <= 25)))
        desc = hot.describe()
        self.assertLessEqual(desc["q0.05"], desc["q0.5"])
        self.assertLessEqual(desc["q0.5"], desc["q0.95"])
        prob = gp.cellwise_exceedance(ens, 15.0)
        self.assertAlmostEqual(
            prob.values.mean(), hot.values.mean() / 25.0, places=10
        )


if __name__ == "__main__":
    unittest.main()
