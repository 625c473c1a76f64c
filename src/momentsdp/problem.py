"""Numeric SDP data derived from a moment relaxation.

The relaxation is turned into the primal problem

    minimize    c_fix + C • X
    subject to  A_i • X = b_i,  i = 1, …, m
                X ⪰ 0,

with ``C`` the cells of the identity monomial, ``A_i`` minus the cells of
monomial ``i`` and ``b_i`` the objective coefficient of monomial ``i``. Its
dual

    maximize    c_fix + Σ b_i y_i
    subject to  C - Σ y_i A_i ⪰ 0

is the moment relaxation itself: ``C - Σ y_i A_i`` is the Gram matrix with
monomial ``i`` replaced by the moment ``y_i``.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Sequence

import numpy as np

from .relaxation import RelaxationLike, real_value
from .sparse import LowerTriangularMatrix, packed_length

logger = logging.getLogger(__name__)

CONSTRAINT_SCALE = -1.0


@dataclass(frozen=True)
class NumericProgram:
    dim: int
    constant_offset: float
    fixed_matrix: LowerTriangularMatrix
    constraint_matrices: tuple[LowerTriangularMatrix, ...]
    bounds: np.ndarray

    def __post_init__(self) -> None:
        if self.dim <= 0:
            raise ValueError("dim must be positive.")
        mats = tuple(self.constraint_matrices)
        bounds = np.asarray(self.bounds, dtype=float).reshape(-1)
        if bounds.shape[0] != len(mats):
            raise ValueError(
                f"Number of bounds ({bounds.shape[0]}) must equal the number of "
                f"constraint matrices ({len(mats)})."
            )
        for i, mat in enumerate((self.fixed_matrix,) + mats):
            if not isinstance(mat, LowerTriangularMatrix):
                raise TypeError("Program matrices must be LowerTriangularMatrix instances.")
            if mat.dim != self.dim:
                label = "fixed_matrix" if i == 0 else f"constraint_matrices[{i - 1}]"
                raise ValueError(f"{label} has dimension {mat.dim}, expected {self.dim}.")
        if not np.all(np.isfinite(bounds)) or not np.isfinite(self.constant_offset):
            raise ValueError("Bounds and constant offset must be finite.")
        bounds.setflags(write=False)
        object.__setattr__(self, "constraint_matrices", mats)
        object.__setattr__(self, "bounds", bounds)
        object.__setattr__(self, "constant_offset", float(self.constant_offset))

    @classmethod
    def from_relaxation(
        cls,
        relaxation: RelaxationLike,
        to_real: Callable[[Any], float] = real_value,
    ) -> "NumericProgram":
        return encode_relaxation(relaxation, to_real=to_real)

    @property
    def num_constraints(self) -> int:
        """Number of equality constraints, one per non-identity monomial."""
        return len(self.constraint_matrices)

    @property
    def packed_length(self) -> int:
        """Length of the packed lower triangle of the primal matrix."""
        return packed_length(self.dim)

    @property
    def nnz(self) -> int:
        return self.fixed_matrix.nnz + sum(mat.nnz for mat in self.constraint_matrices)

    def apply_constraints(self, X: np.ndarray) -> np.ndarray:
        """Evaluate [A_i • X]_i."""
        X = 0.5 * (np.asarray(X, dtype=float) + np.asarray(X, dtype=float).T)
        return np.array([mat.inner(X) for mat in self.constraint_matrices], dtype=float)

    def primal_objective(self, X: np.ndarray) -> float:
        X = 0.5 * (np.asarray(X, dtype=float) + np.asarray(X, dtype=float).T)
        return self.constant_offset + self.fixed_matrix.inner(X)

    def dual_objective(self, y: Sequence[float]) -> float:
        y = np.asarray(y, dtype=float).reshape(-1)
        if y.shape[0] != self.num_constraints:
            raise ValueError("Dimension mismatch for y in the dual objective.")
        return self.constant_offset + float(np.dot(y, self.bounds))

    def moment_matrix(self, y: Sequence[float]) -> np.ndarray:
        """Dual slack C - Σ y_i A_i, i.e. the Gram matrix evaluated at moments y."""
        y = np.asarray(y, dtype=float).reshape(-1)
        if y.shape[0] != self.num_constraints:
            raise ValueError("Dimension mismatch for y in the moment matrix.")
        out = self.fixed_matrix.to_dense()
        for yi, mat in zip(y, self.constraint_matrices):
            out -= yi * mat.to_dense()
        return out


def encode_relaxation(
    relaxation: RelaxationLike,
    to_real: Callable[[Any], float] = real_value,
) -> NumericProgram:
    """Build the numeric SDP for ``relaxation``.

    Raises ``ValueError`` when monomial 0 is not the identity.
    """
    gram = relaxation.gram_matrix
    if not gram.identity_first:
        raise ValueError("empty/one monomial not part of the relaxation")
    objective = relaxation.objective_vector
    n_monomials = gram.n_unique_monomials
    if len(objective) != n_monomials:
        raise ValueError(
            f"objective_vector has {len(objective)} entries, expected {n_monomials}."
        )

    d = gram.matrix_size
    m = n_monomials - 1
    fixed = gram.lower_triangular(0)
    constraints = tuple(gram.lower_triangular(i, CONSTRAINT_SCALE) for i in range(1, m + 1))
    bounds = np.array([to_real(objective[i]) for i in range(1, m + 1)], dtype=float)

    program = NumericProgram(
        dim=d,
        constant_offset=to_real(objective[0]),
        fixed_matrix=fixed,
        constraint_matrices=constraints,
        bounds=bounds,
    )
    logger.debug(
        "Encoded relaxation: dim=%d, constraints=%d, nonzeros=%d", d, m, program.nnz
    )
    return program
