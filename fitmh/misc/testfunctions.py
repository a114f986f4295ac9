# coding: utf-8
## --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022, CentraleSupelec
# License: GPLv3 (see LICENSE)
## --------------------------------------------------------------
"""
Log-density test targets for the samplers.

Each target takes a ParameterVector (or any name-indexed mapping) and
returns a log-density, possibly -inf outside the support.
"""
import math
import numpy as np
from scipy.stats import multivariate_normal, poisson
from scipy.integrate import solve_ivp

from fitmh.misc.param import ParameterVector, as_parameter_vector, as_named_matrix


class GaussianTarget:
    """Multivariate normal target N(mean, covmat) over named parameters.

    Parameters
    ----------
    mean : dict or ParameterVector
        Mean, which also fixes the parameter names.
    covmat : DataFrame, dict of dicts or array, optional
        Covariance (identity by default).
    """

    def __init__(self, mean, covmat=None):
        self.mean = as_parameter_vector(mean, "mean")
        names = self.mean.names
        if covmat is None:
            covmat = np.eye(len(names))
        self.covmat = as_named_matrix(covmat, names)
        self._dist = multivariate_normal(mean=self.mean.values, cov=self.covmat.data)

    def log_density(self, theta):
        x = [theta[k] for k in self.mean.names]
        return float(self._dist.logpdf(x))

    def __call__(self, theta):
        return self.log_density(theta)


def banana_log_density(theta, b=0.1, sigma1=10.0):
    """Twisted Gaussian ("banana") of Haario et al. (1999) in (x, y).

    The density of (x, y + b x^2 - b sigma1^2) is N(0, diag(sigma1^2, 1)).
    """
    x = theta["x"]
    y = theta["y"] + b * x**2 - b * sigma1**2
    return -0.5 * (x**2 / sigma1**2 + y**2)


def sir_trajectory(theta, init_state, times):
    """Deterministic SIR model.

    Parameters
    ----------
    theta : mapping
        ``R0`` (basic reproduction number) and ``D_inf`` (duration of
        infection).
    init_state : mapping
        Initial ``S``, ``I``, ``R``.
    times : array_like
        Observation times; the first one is the initial time.

    Returns
    -------
    numpy.ndarray
        Array of shape (len(times), 3) with columns S, I, R.
    """
    beta = theta["R0"] / theta["D_inf"]
    gamma = 1.0 / theta["D_inf"]
    y0 = np.array([init_state["S"], init_state["I"], init_state["R"]], dtype=float)
    n = y0.sum()

    def rhs(t, y):
        s, i, _ = y
        infection = beta * s * i / n
        recovery = gamma * i
        return [-infection, infection - recovery, recovery]

    times = np.asarray(times, dtype=float)
    sol = solve_ivp(rhs, (times[0], times[-1]), y0, t_eval=times, rtol=1e-8, atol=1e-8)
    return sol.y.T


class SIRPoissonTarget:
    """Posterior of (R0, D_inf) for Poisson counts of infectives.

    Priors are uniform on [1, 100] for R0 and [0, 30] for D_inf.
    Observations y_k ~ Poisson(rho * I(t_k)); ``rho`` is an optional
    reporting rate (a fixed parameter if present in theta, 1 otherwise).
    """

    prior_bounds = {"R0": (1.0, 100.0), "D_inf": (0.0, 30.0)}

    def __init__(self, times, observations, init_state):
        self.times = np.asarray(times, dtype=float)
        self.observations = np.asarray(observations)
        self.init_state = dict(init_state)

    def log_prior(self, theta):
        lp = 0.0
        for name, (lo, hi) in self.prior_bounds.items():
            if not lo < theta[name] <= hi:
                return -math.inf
            lp -= math.log(hi - lo)
        return lp

    def log_likelihood(self, theta):
        rho = theta["rho"] if "rho" in theta else 1.0
        traj = sir_trajectory(theta, self.init_state, self.times)
        rate = np.maximum(rho * traj[:, 1], 0.0)
        return float(np.sum(poisson.logpmf(self.observations, rate)))

    def log_density(self, theta):
        lp = self.log_prior(theta)
        if not math.isfinite(lp):
            return lp
        return lp + self.log_likelihood(theta)

    def simulate(self, theta, rng=None):
        """Simulated Poisson observations at `self.times`."""
        rng = np.random.default_rng() if rng is None else rng
        rho = theta["rho"] if "rho" in theta else 1.0
        traj = sir_trajectory(theta, self.init_state, self.times)
        return rng.poisson(np.maximum(rho * traj[:, 1], 0.0))


def as_theta(**values):
    """Shortcut: ``as_theta(a=1.0, b=2.0)`` -> ParameterVector."""
    return ParameterVector(values)
