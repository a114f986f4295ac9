# fitmh/mcmc/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Adaptive Metropolis-Hastings sampling.

This subpackage gathers:
- the chain driver and its options
- the truncated Gaussian proposal kernel
- size / shape adaptation of the proposal covariance
- the one-pass empirical covariance estimator
- trace post-processing (burn-in, thinning, export)

Public API
----------
MHOptions, MetropolisHastings, mcmc_mh
    Sampler configuration, sampler and one-call entry point.
MCMCResult, ChainState, ProgressReport, log_progress
    Run output, chain state and progress reporting.
TruncatedGaussianProposal, check_covariance
    Proposal kernel.
AdaptationController, AdaptationState, AdaptationPhase
    Proposal covariance adaptation.
EmpiricalCovariance, update_covariance
    Online mean / covariance estimator.
burn_and_thin, compact_trace, expand_trace, export_tracer, distance_oscillation
    Trace utilities.
"""
from __future__ import annotations

import importlib

__all__ = [
    "MHOptions",
    "MetropolisHastings",
    "mcmc_mh",
    "MCMCResult",
    "ChainState",
    "ProgressReport",
    "log_progress",
    "TruncatedGaussianProposal",
    "check_covariance",
    "AdaptationController",
    "AdaptationState",
    "AdaptationPhase",
    "EmpiricalCovariance",
    "update_covariance",
    "burn_and_thin",
    "compact_trace",
    "expand_trace",
    "export_tracer",
    "distance_oscillation",
]

_EXPORT_TO_MODULE = {
    # Chain driver
    "MHOptions": "mh",
    "MetropolisHastings": "mh",
    "mcmc_mh": "mh",
    "MCMCResult": "mh",
    "ChainState": "mh",
    "ProgressReport": "mh",
    "log_progress": "mh",
    # Proposal
    "TruncatedGaussianProposal": "proposal",
    "check_covariance": "proposal",
    # Adaptation
    "AdaptationController": "adaptation",
    "AdaptationState": "adaptation",
    "AdaptationPhase": "adaptation",
    # Empirical covariance
    "EmpiricalCovariance": "covariance",
    "update_covariance": "covariance",
    # Traces
    "burn_and_thin": "trace",
    "compact_trace": "trace",
    "expand_trace": "trace",
    "export_tracer": "trace",
    "distance_oscillation": "trace",
}


def __getattr__(name: str):
    module_name = _EXPORT_TO_MODULE.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = importlib.import_module(f"{__name__}.{module_name}")
    obj = getattr(module, name)
    globals()[name] = obj
    return obj


def __dir__():
    return sorted(set(globals().keys()) | set(__all__))
