"""
This is the unittest of the ensemble driver.
"""

import threading
import unittest

import numpy as np

import gsprop as gp


class TestEnsembleDriver(unittest.TestCase):
    def setUp(self):
        self.geom = gp.GridGeometry(4, 5, cellsize=100.0)
        cm = gp.CorrelationModel("Exp", range=300.0, nugget_fraction=0.2)
        self.a = gp.UncertainVariable("a", gp.GridField.full(self.geom, 4.0), 0.5, cm)
        self.b = gp.UncertainVariable("b", gp.GridField.full(self.geom, 2.0), 0.2, cm)
        self.model = gp.JointUncertaintyModel.build(
            [self.a, self.b], [[1.0, 0.5], [0.5, 1.0]]
        )
        self.seed = 20170519

    @staticmethod
    def ratio(real):
        return real["a"].values / real["b"].values

    def test_field_output(self):
        ens = gp.run(self.model, n=40, derive=self.ratio, seed=self.seed)
        self.assertEqual(len(ens), 40)
        self.assertTrue(ens.is_field)
        self.assertFalse(ens.is_scalar)
        self.assertEqual(ens.geometry, self.geom)
        self.assertEqual(ens.seed, self.seed)
        self.assertEqual(ens.neighbor_limit, 20)
        self.assertIsNone(ens.realizations)
        self.assertEqual(ens.to_array().shape, (40, 4, 5))

    def test_matches_simulator(self):
        """Test that draw i of the ensemble is derived from draw i of the fields."""
        ens = gp.run(self.model, n=10, derive=self.ratio, seed=self.seed)
        sim = gp.FieldSimulator(self.model, seed=self.seed)
        for i in [0, 3, 9]:
            real = sim.realization(i)
            np.testing.assert_array_equal(ens[i].values, self.ratio(real))

    def test_scalar_output(self):
        ens = gp.run(
            self.model,
            n=30,
            derive=lambda real: np.sum(real["a"].values),
            seed=self.seed,
        )
        self.assertTrue(ens.is_scalar)
        self.assertIsInstance(ens[0], float)
        self.assertEqual(ens.to_array().shape, (30,))
        self.assertIsNone(ens.geometry)

    def test_keep_realizations(self):
        driver = gp.EnsembleDriver(self.model, seed=self.seed, batch_size=8)
        ens = driver.run(
            20, lambda real: gp.field_mean(real["a"]), keep_realizations=True
        )
        self.assertEqual(len(ens.realizations), 20)
        self.assertEqual([r.draw for r in ens.realizations], list(range(20)))
        self.assertEqual(ens[7], gp.field_mean(ens.realizations[7]["a"]))

    def test_derivation_error(self):
        def derive(real):
            if real.draw == 7:
                raise ZeroDivisionError("bad draw")
            return self.ratio(real)

        with self.assertRaises(gp.DerivationError) as cm:
            gp.run(self.model, n=20, derive=derive, seed=self.seed)
        self.assertEqual(cm.exception.draw, 7)
        self.assertIsInstance(cm.exception.cause, ZeroDivisionError)
        self.assertIs(cm.exception.__cause__, cm.exception.cause)

    def test_derivation_error_parallel(self):
        """Test that the lowest failing draw is reported with workers."""
        def derive(real):
            if real.draw in (5, 37, 90):
                raise ValueError(f"draw {real.draw}")
            return 1.0

        driver = gp.EnsembleDriver(
            self.model, seed=self.seed, batch_size=8, workers=4
        )
        with self.assertRaises(gp.DerivationError) as cm:
            driver.run(100, derive)
        self.assertEqual(cm.exception.draw, 5)

    def test_workers_reproducible(self):
        serial = gp.EnsembleDriver(self.model, seed=self.seed, batch_size=16)
        par = gp.EnsembleDriver(
            self.model, seed=self.seed, batch_size=16, workers=3
        )
        ref = serial.run(100, self.ratio).to_array()
        np.testing.assert_array_equal(par.run(100, self.ratio).to_array(), ref)
        np.testing.assert_array_equal(serial.run(100, self.ratio).to_array(), ref)

    def test_cancelled(self):
        cancel = threading.Event()
        cancel.set()
        with self.assertRaises(gp.Cancelled) as cm:
            gp.run(self.model, n=10, derive=self.ratio, seed=1, cancel=cancel)
        self.assertEqual(cm.exception.completed, 0)
        driver = gp.EnsembleDriver(self.model, seed=1, batch_size=4, workers=2)
        with self.assertRaises(gp.Cancelled) as cm:
            driver.run(20, self.ratio, cancel=cancel)
        self.assertEqual(cm.exception.completed, 0)

    def test_cancel_during_run(self):
        cancel = threading.Event()

        def derive(real):
            if real.draw == 3:
                cancel.set()
            return 0.0

        with self.assertRaises(gp.Cancelled) as cm:
            gp.run(self.model, n=10, derive=derive, seed=1, cancel=cancel)
        self.assertEqual(cm.exception.completed, 4)

    def test_cancel_counts_across_blocks(self):
        cancel = threading.Event()

        def derive(real):
            if real.draw == 4:
                cancel.set()
            return 0.0

        driver = gp.EnsembleDriver(self.model, seed=1, batch_size=3)
        with self.assertRaises(gp.Cancelled) as cm:
            driver.run(10, derive, cancel=cancel)
        self.assertEqual(cm.exception.completed, 5)

    def test_cancel_counts_parallel_blocks(self):
        """Draws of all blocks are counted, not the index of the last one."""
        cancel = threading.Event()
        cond = threading.Condition()
        done = []

        def derive(real):
            if real.draw == 8:
                # the last block waits until the first two are derived
                with cond:
                    cond.wait_for(lambda: len(done) >= 8, timeout=30.0)
            if real.draw == 9:
                cancel.set()
            with cond:
                done.append(real.draw)
                cond.notify_all()
            return 0.0

        driver = gp.EnsembleDriver(self.model, seed=1, batch_size=4, workers=2)
        with self.assertRaises(gp.Cancelled) as cm:
            driver.run(12, derive, cancel=cancel)
        self.assertEqual(cm.exception.completed, 10)
        self.assertEqual(sorted(done), list(range(10)))

    def test_invalid(self):
        with self.assertRaises(TypeError):
            gp.run(self.model, n=10, derive=None)
        with self.assertRaises(gp.InvalidParameter):
            gp.run(self.model, n=-1, derive=self.ratio)
        with self.assertRaises(gp.InvalidParameter):
            gp.EnsembleDriver(self.model, workers=0)
        with self.assertRaises(TypeError):
            gp.run(self.model, grid=(4, 5), n=1, derive=self.ratio)
        with self.assertRaises(gp.GridGeometryMismatch):
            gp.run(self.model, grid=gp.GridGeometry(5, 4), n=1, derive=self.ratio)

    def test_zero_draws(self):
        ens = gp.run(self.model, n=0, derive=self.ratio, seed=1)
        self.assertEqual(len(ens), 0)
        self.assertFalse(ens.is_field)


class TestEnsemble(unittest.TestCase):
    def test_from_array(self):
        geom = gp.GridGeometry(2, 3)
        array = np.arange(24.0).reshape(4, 2, 3)
        array[1, 0, 0] = np.nan
        ens = gp.Ensemble.from_array(array, geom, seed=3)
        self.assertEqual(len(ens), 4)
        self.assertEqual(ens.seed, 3)
        self.assertTrue(ens[1].mask[0, 0])
        np.testing.assert_array_equal(ens.to_array(), array)

    def test_mixed_members(self):
        ens = gp.Ensemble([1.0, gp.GridField(np.zeros((2, 2)))])
        self.assertFalse(ens.is_field)
        self.assertFalse(ens.is_scalar)
        with self.assertRaises(gp.InvalidParameter):
            ens.to_array()

    def test_sequence(self):
        ens = gp.Ensemble([1.0, 2.0, 3.0])
        self.assertEqual(list(ens), [1.0, 2.0, 3.0])
        self.assertEqual(ens[-1], 3.0)
        self.assertEqual(ens[:2], (1.0, 2.0))


if __name__ == "__main__":
    unittest.main()
