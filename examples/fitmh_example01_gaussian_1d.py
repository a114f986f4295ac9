"""
Sample a one-dimensional Gaussian target with a fixed proposal

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

import numpy as np
import fitmh as fm
from fitmh.misc.plotutils import plot_trace, plot_marginals


def log_target(theta):
    # unnormalized N(10, 1)
    return -((theta["a"] - 10.0) ** 2) / 2


def main():
    res = fm.mcmc_mh(
        log_target,
        init_theta={"a": 5.0},
        iterations=5000,
        covmat={"a": {"a": 4.0}},
        print_every=1000,
        seed=0,
    )
    print(f"Acceptance rate: {res.acceptance_rate:.3f}")

    trace = fm.burn_and_thin(res.trace, burn=500, thin=4)
    print(f"Kept {len(trace)} of {len(res.trace)} iterations")
    print(f"Posterior mean of a: {np.mean(trace['a']):.3f} (expected 10)")
    print(f"Posterior sd of a:   {np.std(trace['a']):.3f} (expected 1)")

    plot_trace(res.trace, burn=500)
    plot_marginals(trace, names=["a"])


if __name__ == "__main__":
    main()
