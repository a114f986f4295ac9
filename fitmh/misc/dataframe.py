## --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022, CentraleSupelec
# License: GPLv3 (see LICENSE)
## --------------------------------------------------------------

import numpy as np


def ftos(x, fp=3):
    if x == float('inf'):
        return "+Inf"
    elif x == float('-inf'):
        return "-Inf"
    elif x != x:
        return "NaN"
    abs_x = abs(x)
    if x == 0:
        return "0.0"
    elif abs_x >= 0.1 and abs_x < 1000:
        return f"{x:.{fp}f}"
    elif abs_x >= 0.01 and abs_x < 0.1:
        return f"{x:.{fp+1}f}"
    else:
        exponent = int(np.floor(np.log10(abs_x)))
        coeff = x / 10**exponent
        return f"{coeff:.{fp}f}e{exponent}"


def format_named_vector(x, fmt="%.2f", sep=" | "):
    """Format a named vector as ``"a = 1.00 | b = 2.00"``.

    `x` is anything with ``keys()``/``__getitem__`` (dict, ParameterVector)
    or a one-row DataFrame.
    """
    if isinstance(x, DataFrame):
        if x.data.shape[0] != 1:
            raise ValueError("format_named_vector expects a one-row DataFrame")
        items = zip(x.colnames, x.data[0])
    else:
        items = ((k, x[k]) for k in x.keys())
    return sep.join(f"{k} = {fmt % float(v)}" for k, v in items)


class DataFrame:
    """Two-dimensional array with named rows and columns.

    Used for chain traces (rows are iterations) and for covariance
    matrices indexed by parameter names (``rownames == colnames``).
    """

    def __init__(self, data, colnames, rownames):
        self.rownames = list(rownames)
        self.colnames = list(colnames)
        self.data = np.array(data, dtype=float).reshape(
            len(self.rownames), len(self.colnames)
        )

    @property
    def shape(self):
        return self.data.shape

    def __len__(self):
        return self.data.shape[0]

    def _row_index(self, key):
        if isinstance(key, slice):
            return key
        if isinstance(key, (list, tuple)):
            return [self.rownames.index(k) for k in key]
        return [self.rownames.index(key)]

    def _col_index(self, key):
        if isinstance(key, slice):
            return key
        if isinstance(key, (list, tuple)):
            return [self.colnames.index(k) for k in key]
        return [self.colnames.index(key)]

    def _names(self, names, index):
        if isinstance(index, slice):
            return names[index]
        return [names[i] for i in index]

    def select(self, rows=None, cols=None):
        """Sub-frame with rows and columns in the given order."""
        ri = slice(None) if rows is None else self._row_index(list(rows))
        ci = slice(None) if cols is None else self._col_index(list(cols))
        data = self.data[ri, :][:, ci]
        return DataFrame(
            data, self._names(self.colnames, ci), self._names(self.rownames, ri)
        )

    def __getitem__(self, key):
        if isinstance(key, tuple):
            row_key, col_key = key
            if isinstance(row_key, str) and isinstance(col_key, str):
                return self.data[
                    self.rownames.index(row_key), self.colnames.index(col_key)
                ]
            ri = self._row_index(row_key)
            ci = self._col_index(col_key)
            return DataFrame(
                self.data[ri, :][:, ci],
                self._names(self.colnames, ci),
                self._names(self.rownames, ri),
            )
        elif isinstance(key, str):
            if key in self.colnames:
                return self.data[:, self.colnames.index(key)].copy()
            elif key in self.rownames:
                return self.data[self.rownames.index(key), :].copy()
            else:
                raise KeyError(f"Key '{key}' not found in row or column names")
        elif isinstance(key, list):
            return self.select(cols=key)
        else:
            raise TypeError("Invalid key type. Must be a tuple, a list or a string.")

    def __setitem__(self, key, value):
        if isinstance(key, tuple):
            row_key, col_key = key
            ri = self._row_index(row_key)
            ci = self._col_index(col_key)
            if isinstance(ri, list) and isinstance(ci, list):
                self.data[np.ix_(ri, ci)] = value
            else:
                self.data[ri, ci] = value
        elif isinstance(key, str):
            if key in self.colnames:
                self.data[:, self.colnames.index(key)] = value
            elif key in self.rownames:
                self.data[self.rownames.index(key), :] = value
            else:
                raise KeyError(f"Key '{key}' not found in row or column names")
        else:
            raise TypeError("Invalid key type. Must be a tuple or a string.")

    def __repr__(self):
        header = [[''] + self.colnames]
        rows = header + \
            [[self.rownames[i]+':'] + \
             [ftos(self.data[i, j]) for j in range(self.data.shape[1])] \
             for i in range(self.data.shape[0])]

        min_width = 8
        col_widths = [max(min_width, max(len(str(rows[i][j])) for i in range(len(rows)))) \
                      for j in range(len(rows[0]))]

        formatted_rows = [' '.join(str(rows[i][j]).rjust(col_widths[j]) \
                                   for j in range(len(rows[0]))) \
                          for i in range(len(rows))]

        return '\n'.join(formatted_rows)

    def copy(self):
        return DataFrame(self.data.copy(), list(self.colnames), list(self.rownames))

    def equals(self, other):
        return (
            isinstance(other, DataFrame)
            and self.colnames == other.colnames
            and self.rownames == other.rownames
            and np.array_equal(self.data, other.data)
        )

    def take(self, indices):
        """Rows at the given integer positions."""
        indices = np.asarray(list(indices), dtype=int)
        return DataFrame(
            self.data[indices, :],
            list(self.colnames),
            [self.rownames[i] for i in indices],
        )
