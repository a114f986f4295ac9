## --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022, CentraleSupelec
# License: GPLv3 (see LICENSE)
## --------------------------------------------------------------
import sys
import numpy as np
import matplotlib.pyplot as plt
from matplotlib import interactive
from scipy.stats import gaussian_kde


class Figure:
    """Figures manager class.

    A thin wrapper over a matplotlib figure with a grid of subplots and
    a current axis ``ax``.
    """

    def __init__(self, nrows=1, ncols=1, isinteractive=True, boxoff=True, **kargs):
        # Check if we run in interpreter mode
        # https://stackoverflow.com/questions/2356399/tell-if-python-is-in-interactive-mode
        self.interpreter = False
        try:
            if sys.ps1:
                self.interpreter = True
        except AttributeError:
            self.interpreter = False
            if sys.flags.interactive:
                self.interpreter = True

        if isinteractive & self.interpreter:
            interactive(True)

        self.boxoff = boxoff

        self.fig = plt.figure(**kargs)

        self.nrows = nrows
        self.ncols = ncols
        self.axes = []
        for i in range(nrows * ncols):
            self.axes.append(self.fig.add_subplot(nrows, ncols, i + 1))
        self.ax = self.axes[0]
        if self.boxoff:
            self.set_boxoff()

    def set_boxoff(self):
        self.ax.spines["right"].set_visible(False)
        self.ax.spines["top"].set_visible(False)
        self.ax.tick_params(direction="in")

    def subplot(self, i):
        self.ax = self.axes[i - 1]
        if self.boxoff:
            self.set_boxoff()

    def plot(self, x, z, *args, **kargs):
        self.ax.plot(x, z, *args, **kargs)

    def xlabel(self, s):
        self.ax.set_xlabel(s)

    def ylabel(self, s):
        self.ax.set_ylabel(s)

    def grid(
        self,
        visible=True,
        which="major",
        linestyle=(0, (1, 5)),
        linewidth=0.5,
        **kwargs
    ):
        self.ax.grid(visible, which, linestyle=linestyle, linewidth=linewidth, **kwargs)


def plot_trace(trace, names=None, burn=0, show=True):
    """Trace plots, one subplot per column of `trace`.

    Parameters
    ----------
    trace : DataFrame
        Chain trace (rows are iterations).
    names : list of str, optional
        Columns to display. Defaults to all columns.
    burn : int, optional
        If positive, a vertical line marks the end of the burn-in.
    show : bool, optional
        Call plt.show() at the end.
    """
    names = trace.colnames if names is None else list(names)
    fig = Figure(len(names), 1, figsize=(10, 2.5 * len(names)))
    iterations = np.arange(1, len(trace) + 1)
    for i, name in enumerate(names):
        fig.subplot(i + 1)
        fig.plot(iterations, trace[name], linewidth=0.8)
        if burn > 0:
            fig.ax.axvline(burn, color="red", linestyle="--", label="End Burn-in")
        fig.ylabel(name)
        fig.grid()
    fig.xlabel("Iteration")
    fig.fig.tight_layout()
    if show:
        plt.show()
    return fig


def plot_marginals(trace, names=None, bins=50, smooth=True, show=True):
    """Histogram or KDE of each column of `trace`."""
    names = trace.colnames if names is None else list(names)
    fig = Figure(1, len(names), figsize=(4 * len(names), 3.5))
    for i, name in enumerate(names):
        fig.subplot(i + 1)
        vals = trace[name]
        if not smooth or np.ptp(vals) == 0:
            fig.ax.hist(vals, bins=bins, density=True, histtype="step")
        else:
            lo, hi = vals.min(), vals.max()
            xx = np.linspace(lo - 0.1 * (hi - lo), hi + 0.1 * (hi - lo), 200)
            fig.plot(xx, gaussian_kde(vals)(xx))
        fig.xlabel(name)
        fig.ylabel("Density")
    fig.fig.tight_layout()
    if show:
        plt.show()
    return fig
