# fitmh/mcmc/adaptation.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Two-phase adaptation of the proposal covariance.

Size adaptation (phase SIZE) rescales the initial covariance C0 to
steer the acceptance rate r towards 0.234:

  m_i  = exp(alpha^(i - i_size) (r - 0.234))
  s_i  = min(s_{i-1} m_i, s_max)
  C_i  = s_i^2 C0

Shape adaptation (phase SHAPE) starts once the chain has made
``adapt_shape_start`` accepted jumps (r i >= adapt_shape_start) and
uses the empirical covariance E of the chain with the optimal scaling
for Gaussian targets:

  C_i = (2.38^2 / d) E

When ``adapt_shape_stop`` is set, shape adaptation lasts that many
iterations; the covariance is then frozen (phase STOPPED).

Reference: Roberts GO, Rosenthal JS. Examples of adaptive MCMC. Journal
of Computational and Graphical Statistics, 18(2):349-67, 2009.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple
import numpy as np

from fitmh.config import get_eps, get_logger
from fitmh.misc.dataframe import DataFrame
from fitmh.mcmc.covariance import EmpiricalCovariance

TARGET_ACCEPTANCE = 0.234
OPTIMAL_SCALING = 2.38


class AdaptationPhase(Enum):
    NONE = "none"
    SIZE = "size"
    SHAPE = "shape"
    STOPPED = "stopped"


@dataclass(frozen=True)
class AdaptationState:
    scaling_sd: float = 1.0
    scaling_multiplier: float = 1.0
    phase: AdaptationPhase = AdaptationPhase.NONE
    shape_start_iteration: Optional[int] = None

    @property
    def shape_started(self) -> bool:
        return self.shape_start_iteration is not None


class AdaptationController:
    """Decide, at each iteration, how the proposal covariance changes.

    Parameters
    ----------
    covmat_init : DataFrame
        Initial proposal covariance C0, used by size adaptation.
    estimated : list of str
        Estimated parameter names; d = len(estimated).
    size_start : int, optional
        First iteration of size adaptation. None disables it.
    size_cooling : float
        Cooling factor alpha.
    shape_start : float, optional
        Number of accepted jumps before shape adaptation. None disables it.
    shape_stop : int, optional
        Length (in iterations) of the shape adaptation window. None
        means shape adaptation never stops.
    max_scaling_sd : float
        Upper bound on the size scaling factor.
    """

    def __init__(
        self,
        covmat_init: DataFrame,
        estimated: List[str],
        size_start: Optional[int] = None,
        size_cooling: float = 0.99,
        shape_start: Optional[float] = None,
        shape_stop: Optional[int] = None,
        max_scaling_sd: float = 50.0,
    ):
        self.covmat_init = covmat_init
        self.estimated = list(estimated)
        self.size_start = size_start
        self.size_cooling = size_cooling
        self.shape_start = shape_start
        self.shape_stop = shape_stop
        self.max_scaling_sd = max_scaling_sd
        self.logger = get_logger()

    def _size_active(self, state, iteration, acceptance_rate) -> bool:
        if self.size_start is None or iteration < self.size_start:
            return False
        if state.shape_started:
            return False
        return self.shape_start is None or acceptance_rate * iteration < self.shape_start

    def _shape_triggered(self, state, iteration, acceptance_rate) -> bool:
        if self.shape_start is None or state.phase is AdaptationPhase.STOPPED:
            return False
        return state.shape_started or acceptance_rate * iteration >= self.shape_start

    def _is_degenerate(self, covmat: DataFrame) -> bool:
        if not self.estimated:
            return False
        diag = np.diag(covmat.select(self.estimated, self.estimated).data)
        return bool(np.any(diag < get_eps()))

    def step(
        self,
        state: AdaptationState,
        iteration: int,
        acceptance_rate: float,
        empirical: EmpiricalCovariance,
        covmat: DataFrame,
    ) -> Tuple[AdaptationState, DataFrame]:
        """Return the adaptation state and proposal covariance to use at
        `iteration`. Neither `state` nor `covmat` is modified."""
        if self._size_active(state, iteration, acceptance_rate):
            if state.phase is not AdaptationPhase.SIZE:
                self.logger.info("Start adapting size of covariance matrix")
            multiplier = math.exp(
                self.size_cooling ** (iteration - self.size_start)
                * (acceptance_rate - TARGET_ACCEPTANCE)
            )
            scaling_sd = min(state.scaling_sd * multiplier, self.max_scaling_sd)
            candidate = DataFrame(
                scaling_sd**2 * self.covmat_init.data,
                self.covmat_init.colnames,
                self.covmat_init.rownames,
            )
            state = replace(
                state,
                phase=AdaptationPhase.SIZE,
                scaling_sd=scaling_sd,
                scaling_multiplier=multiplier,
            )
            if self._is_degenerate(candidate):
                self.logger.debug(
                    "iteration %d: size adaptation skipped (degenerate covariance)",
                    iteration,
                )
                return state, covmat
            return state, candidate

        if self._shape_triggered(state, iteration, acceptance_rate):
            start = state.shape_start_iteration if state.shape_started else iteration
            if self.shape_stop is not None and iteration >= start + self.shape_stop:
                self.logger.info("Stop adapting shape of covariance matrix")
                state = replace(
                    state, phase=AdaptationPhase.STOPPED, shape_start_iteration=start
                )
                return state, covmat
            if not state.shape_started:
                self.logger.info("Start adapting shape of covariance matrix")
                state = replace(state, shape_start_iteration=iteration)
            d = len(self.estimated)
            scaling_sd = OPTIMAL_SCALING / math.sqrt(d) if d > 0 else 0.0
            emp = empirical.covmat.select(self.estimated, self.estimated)
            candidate = covmat.copy()
            candidate[self.estimated, self.estimated] = scaling_sd**2 * emp.data
            state = replace(state, phase=AdaptationPhase.SHAPE, scaling_sd=scaling_sd)
            return state, candidate

        return state, covmat
