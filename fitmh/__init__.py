# fitmh/__init__.py

from . import config
from . import errors
from . import misc
from . import mcmc
from .misc.param import ParameterVector
from .misc.dataframe import DataFrame
from .mcmc.mh import MHOptions, MetropolisHastings, mcmc_mh
from .mcmc.trace import burn_and_thin
import os

__all__ = [
    "config",
    "errors",
    "misc",
    "mcmc",
    "ParameterVector",
    "DataFrame",
    "MHOptions",
    "MetropolisHastings",
    "mcmc_mh",
    "burn_and_thin",
    "__version__",
]

# Read version from VERSION file at project root
_version_file = os.path.join(os.path.dirname(__file__), "..", "VERSION")
try:
    with open(_version_file, "r") as f:
        __version__ = f.read().strip()
except FileNotFoundError:
    __version__ = "0.0.0"
