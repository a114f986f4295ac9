# fitmh/mcmc/trace.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Post-processing of chain traces: burn-in removal, thinning, compact
(weighted) storage, Tracer export, and the oscillation distance used to
compare simulated and observed trajectories.
"""

import numpy as np

from fitmh.misc.dataframe import DataFrame

WEIGHT = "weight"
ITERATION = "iteration"


def _check_count(value, what):
    if int(value) != value or value < 0:
        raise ValueError(f"{what} must be a non-negative integer, got {value}")
    return int(value)


def burn_and_thin(trace, burn: int = 0, thin: int = 0):
    """Drop the first `burn` rows, then keep one row out of ``thin + 1``.

    Parameters
    ----------
    trace : DataFrame, ndarray, dict or list
        A trace (rows are iterations) or a collection of traces, in which
        case each trace is processed independently and a collection of
        the same kind is returned.
    burn : int
        Number of leading rows to discard.
    thin : int
        Number of rows skipped after each kept row.

    Returns
    -------
    Same type as `trace`. The result has ``ceil((n - burn) / (thin + 1))``
    rows, and no row when ``burn >= n``.
    """
    burn = _check_count(burn, "burn")
    thin = _check_count(thin, "thin")

    if isinstance(trace, dict):
        return {k: burn_and_thin(v, burn, thin) for k, v in trace.items()}
    if isinstance(trace, (list, tuple)):
        return [burn_and_thin(v, burn, thin) for v in trace]
    if isinstance(trace, DataFrame):
        return trace.take(range(burn, len(trace), thin + 1))
    if isinstance(trace, np.ndarray):
        return trace[burn :: thin + 1]
    raise TypeError(f"Unsupported trace type: {type(trace).__name__}")


def compact_trace(trace: DataFrame) -> DataFrame:
    """Merge consecutive identical rows and count them in a ``weight``
    column."""
    if WEIGHT in trace.colnames:
        raise ValueError("trace is already compact")
    n = len(trace)
    if n == 0:
        return DataFrame(np.empty((0, trace.shape[1] + 1)), trace.colnames + [WEIGHT], [])
    new_state = np.ones(n, dtype=bool)
    new_state[1:] = np.any(trace.data[1:] != trace.data[:-1], axis=1)
    starts = np.flatnonzero(new_state)
    weights = np.diff(np.append(starts, n))
    data = np.column_stack([trace.data[starts], weights])
    return DataFrame(data, trace.colnames + [WEIGHT], [trace.rownames[i] for i in starts])


def expand_trace(trace: DataFrame) -> DataFrame:
    """Inverse of compact_trace: repeat each row ``weight`` times."""
    weights = trace[WEIGHT].astype(int)
    cols = [c for c in trace.colnames if c != WEIGHT]
    data = np.repeat(trace.select(cols=cols).data, weights, axis=0)
    return DataFrame(data, cols, [str(k) for k in range(1, data.shape[0] + 1)])


def export_tracer(trace: DataFrame, file) -> None:
    """Write `trace` as a tab-separated file readable by Tracer.

    An ``iteration`` column (0, 1, ...) is added first when missing; a
    ``weight`` column is dropped, so a compact trace is written one row
    per state.
    """
    cols = [c for c in trace.colnames if c not in (ITERATION, WEIGHT)]
    if ITERATION in trace.colnames:
        iteration = trace[ITERATION]
    else:
        iteration = np.arange(len(trace))
    data = np.column_stack([iteration, trace.select(cols=cols).data])
    np.savetxt(
        file,
        data,
        delimiter="\t",
        header="\t".join([ITERATION] + cols),
        comments="",
        fmt=["%d"] + ["%.10g"] * len(cols),
    )


def distance_oscillation(x, y) -> float:
    """Mean squared difference between `x` and `y` divided by the number of
    times `x` oscillates around `y` (plus one).

    With y = (1, 3, 5, 7, 5, 3, 1), x1 = (3, 5, 7, 9, 7, 5, 3) (always
    above) and x2 = (3, 5, 3, 5, 7, 5, 3) (crossing y), the squared
    differences are identical but d(x1, y) = 4 and d(x2, y) = 4 / 3.
    """
    x = np.asarray(x, dtype=float).reshape(-1)
    y = np.asarray(y, dtype=float).reshape(-1)
    if len(x) != len(y):
        raise ValueError("'x' and 'y' must be vectors of the same length")
    above = (x - y) > 0
    n_oscillations = 1 + np.count_nonzero(np.diff(above.astype(int)))
    return float(np.sum((x - y) ** 2) / (len(x) * n_oscillations))
