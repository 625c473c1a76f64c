"""Sparse symmetric matrices stored by their lower triangle."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy import sparse

Array = np.ndarray


def packed_length(dim: int) -> int:
    return dim * (dim + 1) // 2


def _packed_indices(dim: int) -> tuple[Array, Array]:
    # triu_indices walks (i, j) with i <= j row by row; read transposed, that is
    # the lower triangle column by column.
    cols, rows = np.triu_indices(dim)
    return rows, cols


def pack_lower_triangular(mat: Array) -> Array:
    """Stack the lower triangle of ``mat`` column by column.

    Column ``c`` contributes rows ``c .. d-1``, which is the layout MOSEK uses
    for the primal value of a semidefinite variable.
    """
    mat = np.asarray(mat, dtype=float)
    if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
        raise ValueError(f"mat must be a square matrix, got shape {mat.shape}")
    rows, cols = _packed_indices(mat.shape[0])
    return mat[rows, cols]


def unpack_lower_triangular(dim: int, values: Array) -> Array:
    """Inverse of :func:`pack_lower_triangular`, mirrored across the diagonal."""
    values = np.asarray(values, dtype=float).reshape(-1)
    if values.shape[0] != packed_length(dim):
        raise ValueError(
            f"Packed lower triangle of a {dim}x{dim} matrix has {packed_length(dim)} entries, "
            f"got {values.shape[0]}."
        )
    rows, cols = _packed_indices(dim)
    mat = np.zeros((dim, dim), dtype=float)
    mat[rows, cols] = values
    mat[cols, rows] = values
    return mat


@dataclass(frozen=True)
class LowerTriangularMatrix:
    """Symmetric ``dim x dim`` matrix given by (row, col, value) triples, row >= col.

    Each triple stands for both ``(row, col)`` and ``(col, row)``; a matrix
    never holds two triples for the same cell.
    """

    dim: int
    rows: Array
    cols: Array
    data: Array

    def __post_init__(self) -> None:
        if self.dim < 0:
            raise ValueError("dim must be nonnegative.")
        rows = np.asarray(self.rows, dtype=np.int64).reshape(-1)
        cols = np.asarray(self.cols, dtype=np.int64).reshape(-1)
        data = np.asarray(self.data, dtype=float).reshape(-1)
        if not (rows.shape == cols.shape == data.shape):
            raise ValueError("rows, cols and data must have the same length.")
        if rows.size:
            if np.any(rows < cols):
                raise ValueError("Only lower-triangular entries (row >= col) are allowed.")
            if cols.min() < 0 or rows.max() >= self.dim:
                raise ValueError(f"Entry out of range for a {self.dim}x{self.dim} matrix.")
            flat = rows * self.dim + cols
            if np.unique(flat).shape[0] != flat.shape[0]:
                raise ValueError("Duplicate (row, col) entries.")
        for arr in (rows, cols, data):
            arr.setflags(write=False)
        object.__setattr__(self, "rows", rows)
        object.__setattr__(self, "cols", cols)
        object.__setattr__(self, "data", data)

    @property
    def nnz(self) -> int:
        return int(self.data.shape[0])

    def triples(self) -> list[tuple[int, int, float]]:
        return [(int(r), int(c), float(v)) for r, c, v in zip(self.rows, self.cols, self.data)]

    def to_scipy(self) -> sparse.csr_matrix:
        """Full symmetric matrix as CSR, both triangles filled."""
        off = self.rows != self.cols
        r = np.concatenate([self.rows, self.cols[off]])
        c = np.concatenate([self.cols, self.rows[off]])
        v = np.concatenate([self.data, self.data[off]])
        return sparse.coo_matrix((v, (r, c)), shape=(self.dim, self.dim)).tocsr()

    def to_dense(self) -> Array:
        return self.to_scipy().toarray()

    def inner(self, X: Array) -> float:
        """Trace inner product with a dense symmetric matrix."""
        X = np.asarray(X, dtype=float)
        return float(self.to_scipy().multiply(X).sum())


def extract_lower_triangular(
    moment_indices: Array,
    phases: Array,
    index: int,
    scale: float = 1.0,
) -> LowerTriangularMatrix:
    """Collect the lower-triangular cells tagged with monomial ``index``.

    Every matching cell yields its own triple with value ``scale * phase``.
    """
    moment_indices = np.asarray(moment_indices)
    phases = np.asarray(phases, dtype=float)
    dim = moment_indices.shape[0]
    mask = np.tril(moment_indices == index)
    rows, cols = np.nonzero(mask)
    return LowerTriangularMatrix(dim, rows, cols, scale * phases[rows, cols])
