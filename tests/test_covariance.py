import unittest
import numpy as np
from fitmh.mcmc.covariance import EmpiricalCovariance, update_covariance
from fitmh.misc.param import ParameterVector
from fitmh.misc.dataframe import DataFrame
from fitmh.errors import UnlabeledVectorError


class TestUpdateCovariance(unittest.TestCase):
    def setUp(self):
        self.names = ["a", "b", "c"]
        rng = np.random.default_rng(123)
        self.x = rng.multivariate_normal(
            [1.0, -2.0, 0.5],
            [[2.0, 0.3, 0.0], [0.3, 1.0, -0.4], [0.0, -0.4, 0.5]],
            size=300,
        )

    def feed(self, state, rows):
        for row in rows:
            state = update_covariance(state, ParameterVector(row, self.names))
        return state

    def test_matches_batch_estimates(self):
        state = EmpiricalCovariance.initial(ParameterVector.full(self.names, 0.0))
        state = self.feed(state, self.x)
        self.assertEqual(state.count, len(self.x) + 1)
        self.assertTrue(np.allclose(state.mean.values, self.x.mean(axis=0)))
        self.assertTrue(np.allclose(state.covmat.data, np.cov(self.x.T, ddof=0)))

    def test_symmetric(self):
        state = EmpiricalCovariance.initial(ParameterVector.full(self.names, 0.0))
        state = self.feed(state, self.x[:50])
        self.assertTrue(np.array_equal(state.covmat.data, state.covmat.data.T))

    def test_first_update(self):
        state = EmpiricalCovariance.initial(ParameterVector({"a": 10.0, "b": 10.0}))
        state = update_covariance(state, ParameterVector({"a": 1.0, "b": 2.0}))
        self.assertTrue(np.array_equal(state.covmat.data, np.zeros((2, 2))))
        self.assertEqual(state.mean.to_dict(), {"a": 1.0, "b": 2.0})
        state = update_covariance(state, ParameterVector({"a": 3.0, "b": 2.0}))
        self.assertAlmostEqual(state.covmat["a", "a"], 1.0)
        self.assertAlmostEqual(state.covmat["b", "b"], 0.0)

    def test_does_not_modify_input_state(self):
        state = EmpiricalCovariance.initial(ParameterVector({"a": 0.0}))
        new = update_covariance(state, ParameterVector({"a": 1.0}))
        self.assertEqual(state.count, 1)
        self.assertEqual(state.mean["a"], 0.0)
        self.assertEqual(new.count, 2)

    def test_restricts_to_sample_names(self):
        state = EmpiricalCovariance.initial(ParameterVector({"a": 0.0, "b": 0.0, "c": 0.0}))
        new = update_covariance(state, ParameterVector({"c": 1.0, "a": 2.0}))
        self.assertEqual(new.covmat.colnames, ["c", "a"])
        self.assertEqual(new.mean.names, ["c", "a"])

    def test_restricts_to_common_names(self):
        state = EmpiricalCovariance.initial(ParameterVector({"a": 0.0, "b": 0.0}))
        new = update_covariance(state, ParameterVector({"z": 5.0, "b": 1.0}))
        self.assertEqual(new.covmat.colnames, ["b"])
        self.assertEqual(new.mean.to_dict(), {"b": 1.0})

    def test_unlabeled_inputs(self):
        state = EmpiricalCovariance.initial(ParameterVector({"a": 0.0}))
        with self.assertRaises(UnlabeledVectorError):
            update_covariance(state, np.array([1.0]))
        bad_mean = EmpiricalCovariance(state.covmat, np.array([0.0]), 1)
        with self.assertRaises(UnlabeledVectorError):
            update_covariance(bad_mean, ParameterVector({"a": 1.0}))
        bad_cov = EmpiricalCovariance(np.zeros((1, 1)), state.mean, 1)
        with self.assertRaises(UnlabeledVectorError):
            update_covariance(bad_cov, ParameterVector({"a": 1.0}))
        no_names = EmpiricalCovariance(DataFrame(np.zeros((0, 0)), [], []), state.mean, 1)
        with self.assertRaises(UnlabeledVectorError):
            update_covariance(no_names, ParameterVector({"a": 1.0}))


if __name__ == "__main__":
    unittest.main()
