# fitmh/misc/param.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
ParameterVector: ordered named parameter values

A ParameterVector maps parameter names to real values. The order of
the names is fixed at construction and is the canonical order used by
the sampler for covariance indexing, bounds lookup and trace columns.

Named covariance matrices are DataFrame objects whose row and column
names are parameter names; the helpers below build and reorder them.

Features:
- access by name, by list of names (sub-vector) or by slice
- conversion from dicts and from (names, values) pairs
- lookup of estimated (positive variance) and fixed parameter names
"""

from typing import List, Union, Optional, Dict, Iterable, Mapping
import numpy as np
from fitmh.misc.dataframe import DataFrame, ftos
from fitmh.errors import UnlabeledVectorError, ConfigurationError


class ParameterVector:
    def __init__(
        self,
        values: Optional[Union[Mapping[str, float], List[float], np.ndarray]] = None,
        names: Optional[List[str]] = None,
    ):
        if isinstance(values, ParameterVector):
            names = list(values.names) if names is None else names
            values = values.values
        elif isinstance(values, Mapping):
            if names is None:
                names = list(values.keys())
            values = [values[k] for k in names]
        elif values is None:
            names = [] if names is None else names
            values = [0.0] * len(names)

        self._values = np.array(values, dtype=float).reshape(-1)
        if names is None:
            raise UnlabeledVectorError(
                "ParameterVector requires parameter names; got an unlabeled sequence."
            )
        self.names: List[str] = [str(n) for n in names]
        self._check_consistency()

    def _check_consistency(self) -> None:
        if len(self.names) != len(self._values):
            raise ValueError(
                f"Got {len(self._values)} values for {len(self.names)} names."
            )
        if len(set(self.names)) != len(self.names):
            raise ValueError(f"Duplicated parameter names in {self.names}.")

    @classmethod
    def full(cls, names: Iterable[str], value: float) -> "ParameterVector":
        names = list(names)
        return cls(np.full(len(names), value, dtype=float), names)

    @property
    def values(self) -> np.ndarray:
        return self._values

    @values.setter
    def values(self, new_values) -> None:
        new_values = np.array(new_values, dtype=float).reshape(-1)
        if len(new_values) != len(self.names):
            raise ValueError("Mismatch in size for parameter values.")
        self._values = new_values

    @property
    def dim(self) -> int:
        return len(self.names)

    def __len__(self) -> int:
        return len(self.names)

    def __iter__(self):
        return iter(self.names)

    def __contains__(self, name) -> bool:
        return name in self.names

    def keys(self) -> List[str]:
        return list(self.names)

    def items(self):
        return zip(self.names, self._values)

    def index(self, name: str) -> int:
        try:
            return self.names.index(name)
        except ValueError:
            raise KeyError(f"Unknown parameter name '{name}'") from None

    def __getitem__(self, key):
        if isinstance(key, str):
            return float(self._values[self.index(key)])
        if isinstance(key, slice):
            return ParameterVector(self._values[key], self.names[key])
        if isinstance(key, (list, tuple)):
            return self.subset(key)
        raise TypeError("Index must be a name, a list of names or a slice.")

    def __setitem__(self, key, value) -> None:
        if isinstance(key, str):
            self._values[self.index(key)] = value
        elif isinstance(key, (list, tuple)):
            idx = [self.index(k) for k in key]
            if isinstance(value, ParameterVector):
                value = value[list(key)].values
            self._values[idx] = value
        else:
            raise TypeError("Index must be a name or a list of names.")

    def subset(self, names: Iterable[str]) -> "ParameterVector":
        names = list(names)
        idx = [self.index(k) for k in names]
        return ParameterVector(self._values[idx], names)

    def update(self, other: Union["ParameterVector", Mapping[str, float]]) -> None:
        """In-place assignment of the entries of `other` (names must exist)."""
        for k in other.keys():
            self[k] = other[k]

    def copy(self) -> "ParameterVector":
        return ParameterVector(self._values.copy(), list(self.names))

    def to_dict(self) -> Dict[str, float]:
        return {k: float(v) for k, v in zip(self.names, self._values)}

    def __eq__(self, other) -> bool:
        if not isinstance(other, ParameterVector):
            return NotImplemented
        return self.names == other.names and np.array_equal(
            self._values, other.values
        )

    __hash__ = None

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={ftos(v)}" for k, v in zip(self.names, self._values))
        return f"ParameterVector({body})"


def as_parameter_vector(x, what: str = "theta") -> ParameterVector:
    """Convert a mapping or ParameterVector to a ParameterVector.

    Raises UnlabeledVectorError for unnamed input (arrays, lists, scalars).
    """
    if isinstance(x, ParameterVector):
        return x
    if isinstance(x, Mapping):
        return ParameterVector(x)
    raise UnlabeledVectorError(
        f"Argument '{what}' must be named (dict or ParameterVector), got {type(x).__name__}."
    )


def as_named_matrix(m, names: Optional[List[str]] = None, what: str = "covmat") -> DataFrame:
    """Return `m` as a square DataFrame labelled by parameter names.

    `m` can be a DataFrame, a dict of dicts (``m[row][col]``) or an
    array together with `names`. With a DataFrame and `names`, the
    matrix is reordered (and restricted) to `names`.
    """
    if isinstance(m, DataFrame):
        if not m.rownames or not m.colnames or set(m.rownames) != set(m.colnames):
            raise UnlabeledVectorError(
                f"Argument '{what}' must have identical named rows and columns."
            )
        if names is None:
            return m.select(m.colnames, m.colnames)
        missing = [k for k in names if k not in m.colnames]
        if missing:
            raise ConfigurationError(f"'{what}' has no entry for parameters {missing}.")
        return m.select(names, names)
    if isinstance(m, Mapping):
        rows = list(m.keys())
        data = [[m[r].get(c, 0.0) for c in rows] for r in rows]
        return as_named_matrix(DataFrame(data, rows, rows), names, what)
    if names is None:
        raise UnlabeledVectorError(
            f"Argument '{what}' must have named rows and columns."
        )
    m = np.atleast_2d(np.asarray(m, dtype=float))
    if m.shape != (len(names), len(names)):
        raise ConfigurationError(
            f"'{what}' has shape {m.shape}, expected ({len(names)}, {len(names)})."
        )
    return DataFrame(m, list(names), list(names))


def diagonal_covariance(sd: Union[ParameterVector, Mapping[str, float]]) -> DataFrame:
    """Diagonal covariance with variances ``sd**2``."""
    sd = as_parameter_vector(sd, "sd")
    return DataFrame(np.diag(sd.values**2), list(sd.names), list(sd.names))


def estimated_names(covmat: DataFrame, names: Optional[List[str]] = None) -> List[str]:
    """Names with a strictly positive variance, in the order of `names`."""
    names = covmat.colnames if names is None else names
    return [k for k in names if covmat[k, k] > 0]
