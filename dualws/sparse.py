"""
Column-major sparse matrix builder.

The QP matrices are assembled one column at a time, the same way OSQP stores
them: a value array, a row-index array and a column-pointer array where
``indptr[c]`` is the offset of column ``c``'s first entry. CSCBuilder keeps the
three arrays consistent and checks the structural invariants before handing
the result to scipy.
"""

from __future__ import annotations

from typing import List

import numpy as np
import scipy.sparse as sp

from dualws.logging import DUALWS_ASSERT


class CSCBuilder:
    """Incremental builder for a ``(n_rows, n_cols)`` CSC matrix.

    Columns must be opened in order with :meth:`start_column`; entries added
    afterwards belong to the most recently opened column. Columns never opened
    are empty and are padded by :meth:`finish`.

    Example:
        builder = CSCBuilder(3, 2)
        builder.start_column()
        builder.add(0, 1.0)
        builder.add(2, -1.0)
        matrix = builder.finish()  # second column empty
    """

    def __init__(self, n_rows: int, n_cols: int):
        DUALWS_ASSERT(n_rows >= 0 and n_cols >= 0, "matrix shape must be non-negative")
        self.n_rows = int(n_rows)
        self.n_cols = int(n_cols)
        self.data: List[float] = []
        self.indices: List[int] = []
        self.indptr: List[int] = []

    @property
    def nnz(self) -> int:
        return len(self.data)

    @property
    def columns_started(self) -> int:
        return len(self.indptr)

    def start_column(self) -> int:
        """Open the next column and return its index."""
        DUALWS_ASSERT(
            self.columns_started < self.n_cols,
            f"cannot open column {self.columns_started} of a {self.n_cols}-column matrix",
        )
        self.indptr.append(self.nnz)
        return self.columns_started - 1

    def add(self, row: int, value: float) -> None:
        """Append ``value`` at ``row`` of the current column."""
        DUALWS_ASSERT(self.columns_started > 0, "no open column")
        DUALWS_ASSERT(
            0 <= row < self.n_rows, f"row {row} out of range [0, {self.n_rows})"
        )
        self.data.append(float(value))
        self.indices.append(int(row))

    def add_column(self, rows, values) -> int:
        """Open a column and fill it with ``rows``/``values`` pairs."""
        col = self.start_column()
        for row, value in zip(rows, values):
            self.add(row, value)
        return col

    def finish(self) -> sp.csc_matrix:
        """Pad the remaining empty columns, validate and build the matrix."""
        while self.columns_started < self.n_cols:
            self.indptr.append(self.nnz)
        indptr = self.indptr + [self.nnz]
        self.validate(self.data, self.indices, indptr, self.n_cols)

        return sp.csc_matrix(
            (
                np.asarray(self.data, dtype=float),
                np.asarray(self.indices, dtype=np.int64),
                np.asarray(indptr, dtype=np.int64),
            ),
            shape=(self.n_rows, self.n_cols),
        )

    @staticmethod
    def validate(data, indices, indptr, n_cols: int) -> None:
        """Check the CSC structural invariants of raw arrays."""
        DUALWS_ASSERT(
            len(data) == len(indices),
            f"value array ({len(data)}) and index array ({len(indices)}) differ in length",
        )
        DUALWS_ASSERT(
            len(indptr) == n_cols + 1,
            f"column pointer array has length {len(indptr)}, expected {n_cols + 1}",
        )
        DUALWS_ASSERT(indptr[0] == 0, "column pointer array must start at 0")
        DUALWS_ASSERT(
            bool(np.all(np.diff(indptr) >= 0)),
            "column pointer array must be non-decreasing",
        )
        DUALWS_ASSERT(
            indptr[-1] == len(data),
            f"last column pointer {indptr[-1]} does not match nnz {len(data)}",
        )
