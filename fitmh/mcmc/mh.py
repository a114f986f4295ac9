# fitmh/mcmc/mh.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Adaptive Metropolis-Hastings sampler with a truncated Gaussian proposal.

One chain is run for ``iterations`` steps. Each step:

1. adapts the proposal covariance (AdaptationController),
2. draws theta* from the truncated Gaussian kernel around theta,
3. evaluates the log target at theta*,
4. accepts with probability min(1, exp(log_a)), where

     log_a = t(theta*) - t(theta) + log q(theta | theta*) - log q(theta* | theta)

   and log_a = -inf whenever t(theta*) is not finite,
5. writes the current state in the trace,
6. updates the acceptance rate and the empirical covariance.

The target is a callable ``theta -> float`` or an object with a
``log_density(theta)`` method, theta being a ParameterVector. It may
also return a mapping with a ``"log.density"`` entry and an optional
``"trace"`` entry (named values such as the log-prior and the
log-likelihood) that is recorded in every row of the trace.
"""

import math
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Tuple, Union
import numpy as np

from fitmh.config import default_rng, get_logger
from fitmh.errors import (
    ConfigurationError,
    DegenerateCovarianceError,
    NonPositiveDefiniteCovarianceError,
)
from fitmh.misc.dataframe import DataFrame, format_named_vector
from fitmh.misc.param import (
    ParameterVector,
    as_named_matrix,
    as_parameter_vector,
    diagonal_covariance,
    estimated_names,
)
from fitmh.mcmc.adaptation import AdaptationController, AdaptationPhase, AdaptationState
from fitmh.mcmc.covariance import EmpiricalCovariance, update_covariance
from fitmh.mcmc.proposal import TruncatedGaussianProposal

LOG_DENSITY = "log.density"
TRACE = "trace"


class Target(Protocol):
    def log_density(self, theta: ParameterVector) -> float:
        ...


@dataclass
class MHOptions:
    """
    Configuration for the adaptive Metropolis-Hastings sampler.

    ``covmat`` and ``proposal_sd`` are mutually exclusive. Without
    either, the proposal covariance is diag((init_theta / 10)^2).
    ``print_every="auto"`` reports every ``iterations // 100`` steps;
    None disables reporting.
    """

    iterations: int = 1000
    covmat: Union[DataFrame, Mapping, None] = None
    proposal_sd: Union[ParameterVector, Mapping, None] = None
    lower: Union[ParameterVector, Mapping, None] = None
    upper: Union[ParameterVector, Mapping, None] = None
    adapt_size_start: Optional[int] = None
    adapt_size_cooling: float = 0.99
    adapt_shape_start: Optional[float] = None
    adapt_shape_stop: Optional[int] = None
    max_scaling_sd: float = 50.0
    print_every: Union[int, str, None] = "auto"
    seed: Optional[int] = None
    update_empirical_when_stopped: bool = True
    init_msg: Union[str, None] = field(default="Sampling from target distribution...")

    def __post_init__(self):
        if int(self.iterations) != self.iterations or self.iterations <= 0:
            raise ConfigurationError(
                f"iterations must be a positive integer, got {self.iterations}"
            )
        self.iterations = int(self.iterations)
        if self.covmat is not None and self.proposal_sd is not None:
            raise ConfigurationError("Supply at most one of covmat or proposal_sd.")
        if self.print_every == "auto":
            self.print_every = max(1, self.iterations // 100)
        if self.print_every is not None and self.print_every <= 0:
            raise ConfigurationError("print_every must be positive or None.")
        if self.adapt_size_start is not None and self.adapt_size_start < 0:
            raise ConfigurationError("adapt_size_start must be non-negative.")
        if self.adapt_shape_stop is not None and self.adapt_shape_stop < 0:
            raise ConfigurationError("adapt_shape_stop must be non-negative.")
        if self.adapt_size_cooling <= 0:
            raise ConfigurationError("adapt_size_cooling must be positive.")
        if self.max_scaling_sd <= 0:
            raise ConfigurationError("max_scaling_sd must be positive.")


@dataclass(frozen=True)
class ChainState:
    theta: ParameterVector
    target_value: float
    extra: Optional[ParameterVector] = None


@dataclass
class MCMCResult:
    """Output of a run.

    trace : DataFrame
        One row per completed iteration; columns are the estimated
        parameters, the names of the target's ``"trace"`` entry (if any),
        then ``log.density``.
    acceptance_rate : float
    covmat_empirical : DataFrame
        Empirical covariance of the chain (estimated parameters).
    covmat_proposal : DataFrame
        Proposal covariance in use at the last iteration.
    """

    trace: DataFrame
    acceptance_rate: float
    covmat_empirical: DataFrame
    covmat_proposal: DataFrame
    adaptation: AdaptationState
    state: ChainState
    n_iterations: int


@dataclass(frozen=True)
class ProgressReport:
    iteration: int
    n_iterations: int
    acceptance_rate: float
    adaptation: AdaptationState
    state: ChainState
    seconds_per_10000: float


def log_progress(report: ProgressReport) -> None:
    """Default observer: log the chain status at INFO level."""
    values = report.state.theta.to_dict()
    values[LOG_DENSITY] = report.state.target_value
    get_logger().info(
        "Iteration: %d/%d | Time 10000 iter: %.1fs | Acceptance rate: %.3f"
        " | Scaling sd: %.3f | State: %s",
        report.iteration,
        report.n_iterations,
        report.seconds_per_10000,
        report.acceptance_rate,
        report.adaptation.scaling_sd,
        format_named_vector(values),
    )


class MetropolisHastings:
    """
    Single-chain adaptive Metropolis-Hastings sampler.

    Parameters
    ----------
    target : callable or object with ``log_density``
        Log of the (unnormalized) target density. A callable may also
        return a mapping with a ``"log.density"`` entry and a ``"trace"``
        entry of named values to record.
    options : MHOptions
    proposal : TruncatedGaussianProposal, optional
    rng : numpy.random.Generator, optional
        Defaults to ``fitmh.config.default_rng(options.seed)``.
    observer : callable, optional
        Called with a ProgressReport every ``options.print_every``
        iterations. Returning True stops the run; the trace then holds
        the iterations completed so far. None disables reporting.
    """

    def __init__(
        self,
        target: Union[Callable[[ParameterVector], Any], Target],
        options: MHOptions = None,
        proposal: TruncatedGaussianProposal = None,
        rng: np.random.Generator = None,
        observer: Optional[Callable[[ProgressReport], Optional[bool]]] = log_progress,
    ):
        self.options = options or MHOptions()
        self.target = target
        self.rng = rng if rng is not None else default_rng(self.options.seed)
        self.proposal = proposal or TruncatedGaussianProposal(rng=self.rng)
        self.observer = observer
        self.logger = get_logger()

        # set by setup()
        self.names = None
        self.estimated = None
        self.trace_names = []
        self.covmat_init = None
        self.lower = None
        self.upper = None
        self.controller = None

    def _evaluate(self, theta: ParameterVector) -> Tuple[float, Optional[ParameterVector]]:
        if hasattr(self.target, "log_density"):
            value = self.target.log_density(theta)
        else:
            value = self.target(theta)
        extra = None
        if isinstance(value, Mapping):
            if value.get(TRACE) is not None:
                extra = as_parameter_vector(value[TRACE], "trace")
            value = value[LOG_DENSITY]
        return float(value), extra

    def evaluate(self, theta: ParameterVector) -> float:
        """Log target at theta, as a float (possibly -inf or nan)."""
        return self._evaluate(theta)[0]

    def _state(self, theta: ParameterVector) -> ChainState:
        value, extra = self._evaluate(theta)
        return ChainState(theta=theta, target_value=value, extra=extra)

    def _bounds(self, bound, default: float, what: str) -> ParameterVector:
        vec = ParameterVector.full(self.names, default)
        if bound is None:
            return vec
        bound = as_parameter_vector(bound, what)
        unknown = [k for k in bound.names if k not in self.names]
        if unknown:
            raise ConfigurationError(f"'{what}' refers to unknown parameters {unknown}.")
        vec.update(bound)
        return vec

    def _initial_covariance(self, theta: ParameterVector) -> DataFrame:
        opts = self.options
        if opts.covmat is not None:
            covmat = as_named_matrix(opts.covmat, self.names, "covmat")
        elif opts.proposal_sd is not None:
            sd = as_parameter_vector(opts.proposal_sd, "proposal_sd")
            missing = [k for k in self.names if k not in sd]
            if missing:
                raise ConfigurationError(f"'proposal_sd' has no entry for parameters {missing}.")
            covmat = diagonal_covariance(sd.subset(self.names))
        else:
            covmat = diagonal_covariance(ParameterVector(theta.values / 10, self.names))
        if not np.allclose(covmat.data, covmat.data.T):
            raise ConfigurationError(f"covmat must be symmetric:\n{covmat!r}")
        if np.any(np.diag(covmat.data) < 0):
            raise ConfigurationError(f"covmat has negative variances:\n{covmat!r}")
        return covmat

    def setup(self, init_theta) -> ChainState:
        """Validate the configuration against `init_theta` and return the
        initial chain state. Nothing is sampled."""
        theta = as_parameter_vector(init_theta, "init_theta").copy()
        self.names = list(theta.names)
        self.covmat_init = self._initial_covariance(theta)
        self.estimated = estimated_names(self.covmat_init, self.names)
        self.lower = self._bounds(self.options.lower, -math.inf, "lower")
        self.upper = self._bounds(self.options.upper, math.inf, "upper")

        if np.any(self.lower.values > self.upper.values):
            raise ConfigurationError("lower bounds must not exceed upper bounds.")
        outside = [
            k for k in self.estimated if not self.lower[k] <= theta[k] <= self.upper[k]
        ]
        if outside:
            raise ConfigurationError(f"init_theta is outside the bounds for {outside}.")

        self.controller = AdaptationController(
            self.covmat_init,
            self.estimated,
            size_start=self.options.adapt_size_start,
            size_cooling=self.options.adapt_size_cooling,
            shape_start=self.options.adapt_shape_start,
            shape_stop=self.options.adapt_shape_stop,
            max_scaling_sd=self.options.max_scaling_sd,
        )

        state = self._state(theta)
        self.trace_names = []
        if state.extra is not None:
            self.trace_names = [
                k for k in state.extra.names if k not in self.estimated and k != LOG_DENSITY
            ]
        if not math.isfinite(state.target_value):
            self.logger.warning(
                "Log target is not finite at init_theta (%s)", state.target_value
            )
            if math.isnan(state.target_value):
                state = replace(state, target_value=-math.inf)
        return state

    def log_acceptance(
        self, current: ChainState, proposed: ChainState, covmat: DataFrame
    ) -> float:
        """Log Metropolis-Hastings ratio for a move current -> proposed."""
        if not math.isfinite(proposed.target_value):
            return -math.inf
        log_a = proposed.target_value - current.target_value
        if self.estimated:
            log_a += self.proposal.log_density(
                current.theta, proposed.theta, covmat, self.lower, self.upper, self.estimated
            ) - self.proposal.log_density(
                proposed.theta, current.theta, covmat, self.lower, self.upper, self.estimated
            )
        return log_a

    def mhstep(self, current: ChainState, covmat: DataFrame) -> Tuple[ChainState, bool]:
        """One Metropolis-Hastings transition."""
        theta = self.proposal.draw(
            current.theta, covmat, self.lower, self.upper, self.estimated
        )
        proposed = self._state(theta)
        log_a = self.log_acceptance(current, proposed, covmat)
        accept = math.log(self.rng.random()) < log_a
        return (proposed, True) if accept else (current, False)

    def _trace_row(self, state: ChainState) -> np.ndarray:
        extra = state.extra if state.extra is not None else {}
        recorded = [extra[k] if k in extra else np.nan for k in self.trace_names]
        return np.concatenate(
            [state.theta.subset(self.estimated).values, recorded, [state.target_value]]
        )

    def run(self, init_theta) -> MCMCResult:
        """Run the chain from `init_theta` and return an MCMCResult."""
        chain = self.setup(init_theta)
        opts = self.options
        n = opts.iterations

        if opts.init_msg:
            self.logger.info(opts.init_msg)
        self.logger.debug(
            "  Parameters: %s | Estimated: %s | Iterations: %d",
            self.names,
            self.estimated,
            n,
        )

        covmat = self.covmat_init.copy()
        adaptation = AdaptationState()
        empirical = EmpiricalCovariance.initial(chain.theta, self.estimated)
        acceptance_rate = 0.0
        columns = self.estimated + self.trace_names + [LOG_DENSITY]
        trace = np.empty((n, len(columns)), dtype=float)

        n_done = 0
        block_start = time.time()
        for i in range(1, n + 1):
            adaptation, covmat = self.controller.step(
                adaptation, i, acceptance_rate, empirical, covmat
            )
            try:
                chain, accepted = self.mhstep(chain, covmat)
            except DegenerateCovarianceError as err:
                raise NonPositiveDefiniteCovarianceError(
                    "non-positive definite covmat", covmat=err.covmat, iteration=i
                ) from err

            trace[i - 1] = self._trace_row(chain)
            n_done = i

            acceptance_rate += (float(accepted) - acceptance_rate) / i
            if self.estimated and (
                adaptation.phase is not AdaptationPhase.STOPPED
                or opts.update_empirical_when_stopped
            ):
                empirical = update_covariance(
                    empirical, chain.theta.subset(self.estimated)
                )

            if (
                self.observer is not None
                and opts.print_every is not None
                and i % opts.print_every == 0
            ):
                now = time.time()
                report = ProgressReport(
                    iteration=i,
                    n_iterations=n,
                    acceptance_rate=acceptance_rate,
                    adaptation=adaptation,
                    state=chain,
                    seconds_per_10000=(now - block_start) * 10000 / opts.print_every,
                )
                block_start = now
                if self.observer(report):
                    self.logger.info("Sampling stopped at iteration %d", i)
                    break

        self.logger.info(
            "Done: %d iterations, acceptance rate %.3f", n_done, acceptance_rate
        )
        trace_df = DataFrame(
            trace[:n_done],
            columns,
            [str(k) for k in range(1, n_done + 1)],
        )
        return MCMCResult(
            trace=trace_df,
            acceptance_rate=acceptance_rate,
            covmat_empirical=empirical.covmat,
            covmat_proposal=covmat,
            adaptation=adaptation,
            state=chain,
            n_iterations=n_done,
        )


def mcmc_mh(
    target,
    init_theta,
    iterations: int,
    observer: Optional[Callable[[ProgressReport], Optional[bool]]] = log_progress,
    rng: np.random.Generator = None,
    **kwargs: Dict[str, Any],
) -> MCMCResult:
    """Run an adaptive Metropolis-Hastings chain.

    Keyword arguments are MHOptions fields.

    Example
    -------
    >>> res = mcmc_mh(lambda th: -0.5 * (th["a"] - 10.0) ** 2, {"a": 5.0},
    ...               iterations=5000, covmat={"a": {"a": 4.0}}, print_every=None)
    """
    options = MHOptions(iterations=iterations, **kwargs)
    return MetropolisHastings(target, options, rng=rng, observer=observer).run(init_theta)
