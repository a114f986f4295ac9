# fitmh/config.py
import os
import logging
import numpy as np

# Read version from VERSION file
_version_file = os.path.join(os.path.dirname(__file__), "..", "VERSION")
try:
    with open(os.path.abspath(_version_file), "r") as f:
        __version__ = f.read().strip()
except FileNotFoundError:
    __version__ = "0.0.0"


class _FitMHConfig:
    def __init__(self):
        self.version = __version__
        self.dtype = float
        self.seed = None
        # smallest admissible proposal variance
        self.eps = float(np.finfo(float).eps)
        # logger lives in config
        self.logger = logging.getLogger("fitmh")
        if not self.logger.handlers:
            h = logging.StreamHandler()
            h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
            self.logger.addHandler(h)
        self.logger.setLevel(logging.INFO)

    def __str__(self):
        return (
            f"FitMHConfig("
            f"version={self.version}, "
            f"dtype={self.dtype}, "
            f"seed={self.seed}, "
            f"eps={self.eps})"
        )

    def __repr__(self):
        return (
            f"<FitMHConfig "
            f"version={self.version!r}, "
            f"dtype={self.dtype!r}, "
            f"seed={self.seed!r}, "
            f"eps={self.eps!r}>"
        )

    def update(self, **kwargs):
        for k, v in kwargs.items():
            if not hasattr(self, k):
                raise AttributeError(f"Unknown configuration key: {k}")
            setattr(self, k, v)
        return self


_config = _FitMHConfig()


def get_config():
    return _config


def set_seed(seed):
    """Default seed for samplers created without an explicit rng or seed."""
    _config.seed = seed


def get_seed():
    return _config.seed


def default_rng(seed=None):
    """Return a numpy Generator seeded with `seed`, or the configured seed."""
    return np.random.default_rng(_config.seed if seed is None else seed)


def get_eps():
    return _config.eps


def get_logger():
    return _config.logger


def set_log_level(level):
    _config.logger.setLevel(level)
