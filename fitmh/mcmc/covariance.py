# fitmh/mcmc/covariance.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
One-pass empirical mean and covariance of a chain.

The estimator is updated one sample at a time with a Welford-type
recurrence, so the chain history never has to be stored. With
n = state.count and r = x - mean:

  covmat' = (covmat * (n - 1) + (n - 1) / n * r r^T) / n
  mean'   = mean + r / n

Seeded with ``count = 1`` and a zero covariance (the first update
overwrites the seed mean with x_1), after feeding x_1, ..., x_m the
state holds the sample mean and the (ddof=0) sample covariance of
x_1, ..., x_m.

Reference: https://en.wikipedia.org/wiki/Algorithms_for_calculating_variance#Covariance
"""

from dataclasses import dataclass
from typing import List
import numpy as np

from fitmh.misc.dataframe import DataFrame
from fitmh.misc.param import ParameterVector
from fitmh.errors import UnlabeledVectorError


@dataclass(frozen=True)
class EmpiricalCovariance:
    """Running mean / covariance over a named vector stream."""

    covmat: DataFrame
    mean: ParameterVector
    count: int = 1

    @classmethod
    def initial(cls, mean: ParameterVector, names: List[str] = None):
        """Zero covariance over `names` (default: all names of `mean`)."""
        names = list(mean.names) if names is None else list(names)
        d = len(names)
        return cls(
            covmat=DataFrame(np.zeros((d, d)), names, names),
            mean=mean.subset(names),
            count=1,
        )


def _check_labels(state: EmpiricalCovariance, new_sample) -> None:
    if not isinstance(new_sample, ParameterVector):
        raise UnlabeledVectorError("Argument 'theta' must be named.")
    if not isinstance(state.mean, ParameterVector):
        raise UnlabeledVectorError("Argument 'theta.mean' must be named.")
    if not isinstance(state.covmat, DataFrame) or not state.covmat.rownames:
        raise UnlabeledVectorError("Argument 'covmat' must have named rows.")
    if not state.covmat.colnames:
        raise UnlabeledVectorError("Argument 'covmat' must have named columns.")


def update_covariance(
    state: EmpiricalCovariance, new_sample: ParameterVector
) -> EmpiricalCovariance:
    """Feed one sample to the estimator and return the new state.

    The update is carried on the names common to `new_sample`, the
    covariance and the mean, in the order of `new_sample`. The returned
    state is restricted to them.
    """
    _check_labels(state, new_sample)

    names = [
        k for k in new_sample.names if k in state.covmat.colnames and k in state.mean
    ]
    new_sample = new_sample.subset(names)
    n = state.count
    covmat = state.covmat.select(names, names).data
    mean = state.mean.subset(names).values

    residual = new_sample.values - mean
    covmat = (covmat * (n - 1) + (n - 1) / n * np.outer(residual, residual)) / n
    mean = mean + residual / n

    return EmpiricalCovariance(
        covmat=DataFrame(covmat, names, names),
        mean=ParameterVector(mean, names),
        count=n + 1,
    )
