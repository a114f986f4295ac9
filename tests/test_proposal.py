import math
import unittest
import numpy as np
from scipy.stats import truncnorm, multivariate_normal

from fitmh.mcmc.proposal import (
    TruncatedGaussianProposal,
    check_covariance,
    log_truncation_mass,
)
from fitmh.misc.param import ParameterVector
from fitmh.misc.dataframe import DataFrame
from fitmh.errors import DegenerateCovarianceError, NonPositiveDefiniteCovarianceError


def named(m, names):
    return DataFrame(np.asarray(m, dtype=float), names, names)


def box(names, lo=-np.inf, hi=np.inf):
    return ParameterVector.full(names, lo), ParameterVector.full(names, hi)


class TestDraw(unittest.TestCase):
    def setUp(self):
        self.kernel = TruncatedGaussianProposal(rng=np.random.default_rng(0))

    def test_degenerate_covariance_raises_without_mutation(self):
        current = ParameterVector({"a": 1.0, "b": 2.0})
        covmat = named([[1.0, 0.0], [0.0, 0.0]], ["a", "b"])
        before_cov = covmat.copy()
        lower, upper = box(["a", "b"])
        with self.assertRaises(DegenerateCovarianceError) as ctx:
            self.kernel.draw(current, covmat, lower, upper)
        self.assertIsInstance(ctx.exception, NonPositiveDefiniteCovarianceError)
        self.assertEqual(current.to_dict(), {"a": 1.0, "b": 2.0})
        self.assertTrue(covmat.equals(before_cov))

    def test_fixed_parameters_pass_through(self):
        current = ParameterVector({"a": 1.0, "b": 2.0})
        covmat = named([[1.0, 0.0], [0.0, 0.0]], ["a", "b"])
        lower, upper = box(["a", "b"])
        y = self.kernel.draw(current, covmat, lower, upper, estimated=["a"])
        self.assertEqual(y["b"], 2.0)
        self.assertNotEqual(y["a"], 1.0)
        self.assertEqual(current["a"], 1.0)

    def test_no_estimated_parameter(self):
        current = ParameterVector({"a": 1.0})
        covmat = named([[0.0]], ["a"])
        lower, upper = box(["a"])
        y = self.kernel.draw(current, covmat, lower, upper, estimated=[])
        self.assertEqual(y, current)
        self.assertIsNot(y, current)

    def test_draws_respect_diagonal_bounds(self):
        current = ParameterVector({"a": 0.01, "b": 0.5})
        covmat = named([[1.0, 0.0], [0.0, 4.0]], ["a", "b"])
        lower = ParameterVector({"a": 0.0, "b": 0.0})
        upper = ParameterVector({"a": np.inf, "b": 1.0})
        for _ in range(200):
            y = self.kernel.draw(current, covmat, lower, upper)
            self.assertTrue(y["a"] >= 0.0)
            self.assertTrue(0.0 <= y["b"] <= 1.0)

    def test_draws_respect_correlated_bounds(self):
        current = ParameterVector({"a": 0.1, "b": 0.1})
        covmat = named([[1.0, 0.9], [0.9, 1.0]], ["a", "b"])
        lower, upper = box(["a", "b"], 0.0, 2.0)
        for _ in range(100):
            y = self.kernel.draw(current, covmat, lower, upper)
            self.assertTrue(np.all((y.values >= 0.0) & (y.values <= 2.0)))

    def test_gibbs_fallback(self):
        kernel = TruncatedGaussianProposal(
            rng=np.random.default_rng(1), max_rejection_tries=1, gibbs_sweeps=5
        )
        current = ParameterVector({"a": 0.0, "b": 0.0})
        covmat = named([[1.0, 0.5], [0.5, 1.0]], ["a", "b"])
        lower, upper = box(["a", "b"], 5.0, 6.0)
        for _ in range(20):
            y = kernel.draw(current, covmat, lower, upper)
            self.assertTrue(np.all((y.values >= 5.0) & (y.values <= 6.0)))

    def test_gibbs_fallback_is_logged(self):
        kernel = TruncatedGaussianProposal(
            rng=np.random.default_rng(2), max_rejection_tries=1, gibbs_sweeps=2
        )
        current = ParameterVector({"a": 0.0, "b": 0.0})
        covmat = named([[1.0, 0.5], [0.5, 1.0]], ["a", "b"])
        lower, upper = box(["a", "b"], 5.0, 6.0)
        with self.assertLogs("fitmh", level="DEBUG") as logs:
            kernel.draw(current, covmat, lower, upper)
        self.assertIn("Gibbs", "\n".join(logs.output))

    def test_untruncated_moments(self):
        current = ParameterVector({"a": 3.0})
        covmat = named([[4.0]], ["a"])
        lower, upper = box(["a"])
        x = np.array([self.kernel.draw(current, covmat, lower, upper)["a"] for _ in range(4000)])
        self.assertAlmostEqual(x.mean(), 3.0, delta=0.15)
        self.assertAlmostEqual(x.std(), 2.0, delta=0.15)


class TestLogDensity(unittest.TestCase):
    def setUp(self):
        self.kernel = TruncatedGaussianProposal(rng=np.random.default_rng(0))

    def test_symmetric_when_untruncated(self):
        names = ["a", "b"]
        covmat = named([[2.0, 0.0], [0.0, 0.5]], names)
        lower, upper = box(names)
        x = ParameterVector({"a": 0.3, "b": -1.2})
        y = ParameterVector({"a": 1.7, "b": 0.4})
        forward = self.kernel.log_density(y, x, covmat, lower, upper)
        reverse = self.kernel.log_density(x, y, covmat, lower, upper)
        self.assertAlmostEqual(forward - reverse, 0.0, places=12)
        expected = multivariate_normal.logpdf(y.values, x.values, covmat.data)
        self.assertAlmostEqual(forward, expected, places=10)

    def test_one_dimensional_truncated(self):
        covmat = named([[0.25]], ["p"])
        lower = ParameterVector({"p": 0.0})
        upper = ParameterVector({"p": 1.0})
        mean = ParameterVector({"p": 0.9})
        x = ParameterVector({"p": 0.7})
        sd = 0.5
        expected = truncnorm.logpdf(0.7, (0.0 - 0.9) / sd, (1.0 - 0.9) / sd, loc=0.9, scale=sd)
        got = self.kernel.log_density(x, mean, covmat, lower, upper)
        self.assertAlmostEqual(got, expected, places=10)

    def test_asymmetric_near_bound(self):
        covmat = named([[1.0]], ["p"])
        lower = ParameterVector({"p": 0.0})
        upper = ParameterVector({"p": np.inf})
        x = ParameterVector({"p": 0.1})
        y = ParameterVector({"p": 2.0})
        forward = self.kernel.log_density(y, x, covmat, lower, upper)
        reverse = self.kernel.log_density(x, y, covmat, lower, upper)
        self.assertNotAlmostEqual(forward, reverse, places=3)

    def test_outside_box(self):
        covmat = named([[1.0]], ["p"])
        lower = ParameterVector({"p": 0.0})
        upper = ParameterVector({"p": 1.0})
        x = ParameterVector({"p": 1.5})
        self.assertEqual(
            self.kernel.log_density(x, ParameterVector({"p": 0.5}), covmat, lower, upper),
            -math.inf,
        )

    def test_diagonal_matches_product(self):
        names = ["a", "b"]
        covmat = named([[1.0, 0.0], [0.0, 4.0]], names)
        lower = ParameterVector({"a": -1.0, "b": 0.0})
        upper = ParameterVector({"a": 1.0, "b": np.inf})
        mean = ParameterVector({"a": 0.5, "b": 1.0})
        x = ParameterVector({"a": -0.2, "b": 3.0})
        expected = truncnorm.logpdf(-0.2, -1.5, 0.5, loc=0.5, scale=1.0) + truncnorm.logpdf(
            3.0, -0.5, np.inf, loc=1.0, scale=2.0
        )
        self.assertAlmostEqual(
            self.kernel.log_density(x, mean, covmat, lower, upper), expected, places=10
        )

    def test_no_estimated_parameter(self):
        covmat = named([[0.0]], ["a"])
        lower, upper = box(["a"])
        x = ParameterVector({"a": 1.0})
        self.assertEqual(self.kernel.log_density(x, x, covmat, lower, upper, estimated=[]), 0.0)


class TestTruncationMass(unittest.TestCase):
    def test_untruncated(self):
        self.assertEqual(
            log_truncation_mass(np.zeros(2), np.eye(2), np.full(2, -np.inf), np.full(2, np.inf)),
            0.0,
        )

    def test_far_tail_is_finite(self):
        mass = log_truncation_mass(np.zeros(1), np.eye(1), np.array([40.0]), np.array([np.inf]))
        self.assertTrue(np.isfinite(mass))
        self.assertLess(mass, -700.0)

    def test_correlated_close_to_diagonal(self):
        lower = np.array([-0.5, 0.0])
        upper = np.array([1.0, np.inf])
        diag = log_truncation_mass(np.zeros(2), np.eye(2), lower, upper)
        cov = np.array([[1.0, 1e-9], [1e-9, 1.0]])
        corr = log_truncation_mass(np.zeros(2), cov, lower, upper, rng=np.random.default_rng(0))
        self.assertAlmostEqual(diag, corr, places=3)


class TestCheckCovariance(unittest.TestCase):
    def test_only_estimated_names_checked(self):
        covmat = named([[1.0, 0.0], [0.0, 0.0]], ["a", "b"])
        check_covariance(covmat, ["a"])
        check_covariance(covmat, [])
        with self.assertRaises(NonPositiveDefiniteCovarianceError) as ctx:
            check_covariance(covmat, ["a", "b"])
        self.assertEqual(ctx.exception.covmat.colnames, ["a", "b"])

    def test_singular_block_with_positive_variances(self):
        r = np.array([0.9857, 0.3552])
        covmat = named(np.outer(r, r), ["a", "b"])
        with self.assertRaises(NonPositiveDefiniteCovarianceError):
            check_covariance(covmat, ["a", "b"])
        with self.assertRaises(NonPositiveDefiniteCovarianceError):
            check_covariance(named([[1.0, 2.0], [2.0, 1.0]], ["a", "b"]), ["a", "b"])
        check_covariance(named([[1.0, 0.99], [0.99, 1.0]], ["a", "b"]), ["a", "b"])


if __name__ == "__main__":
    unittest.main()
