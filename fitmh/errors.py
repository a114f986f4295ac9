# fitmh/errors.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Exceptions raised by fitmh.

Configuration problems are detected once, before the first iteration of
a chain. Degenerate proposal covariances are fatal. A non-finite target
value is never an error: the sampler treats it as a rejection.
"""


class FitMHError(Exception):
    """Base class for fitmh errors."""


class ConfigurationError(FitMHError, ValueError):
    """Inconsistent sampler configuration (names, bounds, iterations...)."""


class DegenerateCovarianceError(FitMHError, ValueError):
    """Proposal covariance with a (numerically) zero variance on an
    estimated parameter.

    Attributes
    ----------
    covmat : DataFrame or None
        The offending covariance (estimated block).
    iteration : int or None
        Iteration at which the covariance was found degenerate, if known.
    """

    def __init__(self, message, covmat=None, iteration=None):
        self.covmat = covmat
        self.iteration = iteration
        if iteration is not None:
            message = f"iteration {iteration}: {message}"
        if covmat is not None:
            message = f"{message}\n{covmat!r}"
        super().__init__(message)


class NonPositiveDefiniteCovarianceError(DegenerateCovarianceError):
    """Raised at proposal time when the covariance is not positive definite
    on the estimated block."""


class UnlabeledVectorError(FitMHError, TypeError):
    """A vector or matrix without parameter names was given where names
    are required."""
