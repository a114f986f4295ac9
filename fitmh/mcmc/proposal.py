# fitmh/mcmc/proposal.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Truncated multivariate Gaussian proposal kernel.

Given a current point x, a covariance C and box bounds [l, u], the
kernel draws the estimated coordinates from

  q(y | x) = N(y; x, C) 1{l <= y <= u} / P_x(l <= Y <= u),

where P_x is the mass of N(x, C) inside the box. Fixed coordinates are
copied from x. Because the normalizing mass depends on x, the kernel
is not symmetric near the bounds, and the Metropolis-Hastings ratio
needs both q(x | y) and q(y | x).

Sampling
--------
- no finite bound: plain multivariate normal draw,
- diagonal covariance: exact independent univariate truncated normals,
- otherwise: rejection sampling from N(x, C); when the box has too
  little mass for rejection to succeed within `max_rejection_tries`
  draws, a Gibbs sampler over the univariate truncated conditionals is
  used instead. It runs a fixed number of sweeps, so its draw is only
  approximately from the truncated kernel and the Hastings ratio computed
  from the exact density is then slightly biased (logged at DEBUG).

Normalizing mass
----------------
- no finite bound: 1,
- diagonal covariance: product of univariate masses (log_ndtr),
- otherwise: scipy.stats.multivariate_normal.cdf with lower_limit.
"""

import math
from typing import List, Optional
import numpy as np
from scipy.stats import multivariate_normal, truncnorm
from scipy.special import log_ndtr

from fitmh.config import default_rng, get_eps, get_logger
from fitmh.misc.dataframe import DataFrame
from fitmh.misc.param import ParameterVector
from fitmh.errors import NonPositiveDefiniteCovarianceError


def check_covariance(
    covmat: DataFrame, names: List[str], eps: Optional[float] = None
) -> None:
    """Raise NonPositiveDefiniteCovarianceError if the block of `covmat`
    on `names` is not positive definite.

    A variance below `eps` (machine epsilon by default) is degenerate. So
    is a block whose smallest eigenvalue is below ``1e6 * eps`` times the
    largest one, the rank tolerance of scipy.stats.multivariate_normal.
    """
    if not names:
        return
    eps = get_eps() if eps is None else eps
    sub = covmat.select(names, names)
    if np.any(np.diag(sub.data) < eps):
        raise NonPositiveDefiniteCovarianceError("non-positive definite covmat", covmat=sub)
    spectrum = np.linalg.eigvalsh(sub.data)
    if spectrum.min() <= 1e6 * eps * np.abs(spectrum).max():
        raise NonPositiveDefiniteCovarianceError("non-positive definite covmat", covmat=sub)


def _is_diagonal(cov: np.ndarray) -> bool:
    return not np.any(cov - np.diag(np.diag(cov)))


def _log_diff_ndtr(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """log(Phi(b) - Phi(a)) for a <= b, elementwise."""
    # use the upper tail when both points are on the right
    flip = a > 0
    lo = np.where(flip, -b, a)
    hi = np.where(flip, -a, b)
    log_hi = log_ndtr(hi)
    log_lo = log_ndtr(lo)
    with np.errstate(divide="ignore"):
        return log_hi + np.log1p(-np.exp(log_lo - log_hi))


def log_truncation_mass(
    mean: np.ndarray, cov: np.ndarray, lower: np.ndarray, upper: np.ndarray, rng=None
) -> float:
    """log P(lower <= Y <= upper) for Y ~ N(mean, cov)."""
    if np.all(np.isneginf(lower)) and np.all(np.isposinf(upper)):
        return 0.0
    if _is_diagonal(cov):
        sd = np.sqrt(np.diag(cov))
        a = (lower - mean) / sd
        b = (upper - mean) / sd
        return float(np.sum(_log_diff_ndtr(a, b)))
    p = multivariate_normal(mean=mean, cov=cov, seed=rng).cdf(upper, lower_limit=lower)
    return math.log(p) if p > 0 else -math.inf


class TruncatedGaussianProposal:
    """Random-walk proposal N(x, C) truncated to a box.

    Parameters
    ----------
    rng : numpy.random.Generator, optional
        Random generator. Defaults to ``fitmh.config.default_rng()``.
    max_rejection_tries : int
        Number of untruncated draws tried before switching to Gibbs
        sampling.
    gibbs_sweeps : int
        Number of Gibbs sweeps when the fallback is used.
    """

    def __init__(self, rng=None, max_rejection_tries: int = 10_000, gibbs_sweeps: int = 10):
        self.rng = rng if rng is not None else default_rng()
        self.max_rejection_tries = max_rejection_tries
        self.gibbs_sweeps = gibbs_sweeps

    @staticmethod
    def _estimated(current: ParameterVector, covmat: DataFrame, estimated):
        if estimated is not None:
            return list(estimated)
        return [k for k in current.names if k in covmat.colnames]

    def draw(
        self,
        current: ParameterVector,
        covmat: DataFrame,
        lower: ParameterVector,
        upper: ParameterVector,
        estimated: Optional[List[str]] = None,
    ) -> ParameterVector:
        """Draw a candidate around `current`.

        Only the `estimated` coordinates move (default: every name of
        `current` that labels `covmat`). Raises
        NonPositiveDefiniteCovarianceError, before any draw, if one of
        their variances is below machine epsilon.
        """
        names = self._estimated(current, covmat, estimated)
        check_covariance(covmat, names)
        proposed = current.copy()
        if not names:
            return proposed

        mean = current.subset(names).values
        cov = covmat.select(names, names).data
        lo = lower.subset(names).values
        hi = upper.subset(names).values
        proposed[names] = self.sample(mean, cov, lo, hi)
        return proposed

    def sample(self, mean, cov, lower, upper) -> np.ndarray:
        """One draw from N(mean, cov) truncated to [lower, upper] (arrays)."""
        if np.all(np.isneginf(lower)) and np.all(np.isposinf(upper)):
            return self.rng.multivariate_normal(mean, cov)
        if _is_diagonal(cov):
            sd = np.sqrt(np.diag(cov))
            return truncnorm.rvs(
                (lower - mean) / sd,
                (upper - mean) / sd,
                loc=mean,
                scale=sd,
                random_state=self.rng,
            ).reshape(-1)

        n_tried = 0
        batch = min(16, self.max_rejection_tries)
        while n_tried < self.max_rejection_tries:
            y = self.rng.multivariate_normal(mean, cov, size=batch)
            inside = np.all((y >= lower) & (y <= upper), axis=1)
            if np.any(inside):
                return y[np.argmax(inside)]
            n_tried += batch
            batch = min(2 * batch, self.max_rejection_tries - n_tried) or 1
        get_logger().debug(
            "No draw inside the bounds after %d tries, using Gibbs sampling", n_tried
        )
        return self._gibbs(mean, cov, lower, upper)

    def _gibbs(self, mean, cov, lower, upper) -> np.ndarray:
        precision = np.linalg.inv(cov)
        x = np.clip(mean, lower, upper)
        d = len(mean)
        for _ in range(self.gibbs_sweeps):
            for i in range(d):
                sd_i = 1.0 / math.sqrt(precision[i, i])
                others = np.arange(d) != i
                mu_i = mean[i] - (sd_i**2) * precision[i, others] @ (
                    x[others] - mean[others]
                )
                x[i] = truncnorm.rvs(
                    (lower[i] - mu_i) / sd_i,
                    (upper[i] - mu_i) / sd_i,
                    loc=mu_i,
                    scale=sd_i,
                    random_state=self.rng,
                )
        return x

    def log_density(
        self,
        x: ParameterVector,
        mean: ParameterVector,
        covmat: DataFrame,
        lower: ParameterVector,
        upper: ParameterVector,
        estimated: Optional[List[str]] = None,
    ) -> float:
        """Log-density at `x` of the kernel centred at `mean`."""
        names = self._estimated(mean, covmat, estimated)
        if not names:
            return 0.0
        xv = x.subset(names).values
        mv = mean.subset(names).values
        cov = covmat.select(names, names).data
        lo = lower.subset(names).values
        hi = upper.subset(names).values
        if np.any(xv < lo) or np.any(xv > hi):
            return -math.inf
        logpdf = multivariate_normal.logpdf(xv, mean=mv, cov=cov)
        return float(logpdf) - log_truncation_mass(mv, cov, lo, hi, rng=self.rng)
