"""
Adaptive sampling of a correlated, truncated two-dimensional Gaussian

The proposal starts far too small; size adaptation fixes its scale,
then shape adaptation learns the correlation from the chain.

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

import numpy as np
import fitmh as fm
from fitmh.misc.testfunctions import GaussianTarget
from fitmh.misc.plotutils import plot_trace


def main():
    names = ["x", "y"]
    cov = fm.DataFrame([[1.0, 0.8], [0.8, 1.0]], names, names)
    target = GaussianTarget({"x": 1.0, "y": 1.0}, cov)

    options = fm.MHOptions(
        iterations=6000,
        proposal_sd={"x": 0.01, "y": 0.01},
        lower={"x": 0.0, "y": 0.0},
        adapt_size_start=100,
        adapt_shape_start=500,
        adapt_shape_stop=3000,
        print_every=1000,
        seed=1,
    )
    sampler = fm.MetropolisHastings(target, options)
    res = sampler.run({"x": 1.0, "y": 1.0})

    print(f"Acceptance rate: {res.acceptance_rate:.3f}")
    print(f"Final adaptation phase: {res.adaptation.phase.value}")
    print("Proposal covariance:")
    print(res.covmat_proposal)
    print("Empirical covariance (truncated target):")
    print(res.covmat_empirical)

    trace = fm.burn_and_thin(res.trace, burn=2000)
    x = np.column_stack([trace["x"], trace["y"]])
    print("Correlation:", np.corrcoef(x.T)[0, 1])

    plot_trace(res.trace, burn=2000)


if __name__ == "__main__":
    main()
