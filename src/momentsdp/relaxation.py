"""Read-only view of a symbolic moment relaxation.

The symbolic machinery that produces a relaxation (monomial enumeration,
quotient rules, symmetry reduction) lives outside this package. What the
encoder needs from it is small:

* a symmetric Gram matrix whose cells are tagged by monomial index,
* an objective vector with one coefficient per unique monomial.

``GramMatrixLike`` and ``RelaxationLike`` describe that surface; the concrete
``GramMatrix`` and ``MomentRelaxation`` dataclasses implement it for callers
that already hold the tags as arrays.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence, runtime_checkable

import numpy as np

from .sparse import LowerTriangularMatrix, extract_lower_triangular

ZERO_CELL = -1


def real_value(value: Any) -> float:
    """Evaluate a coefficient of the objective field to a real number."""
    # float() on a numpy complex scalar drops the imaginary part with only a warning.
    if not isinstance(value, (complex, np.complexfloating)):
        try:
            return float(value)
        except TypeError:
            pass
    try:
        z = complex(value)
    except TypeError as exc:
        raise TypeError(f"Cannot evaluate coefficient {value!r} to a real number.") from exc
    if abs(z.imag) > 1e-12 * max(1.0, abs(z.real)):
        raise ValueError(f"Coefficient {value!r} is not real.")
    return float(z.real)


@runtime_checkable
class GramMatrixLike(Protocol):
    @property
    def matrix_size(self) -> int: ...

    @property
    def n_unique_monomials(self) -> int: ...

    @property
    def identity_first(self) -> bool: ...

    def lower_triangular(self, index: int, scale: float = 1.0) -> LowerTriangularMatrix: ...


@runtime_checkable
class RelaxationLike(Protocol):
    @property
    def gram_matrix(self) -> GramMatrixLike: ...

    @property
    def objective_vector(self) -> Sequence[Any]: ...


@dataclass(frozen=True)
class GramMatrix:
    """Symmetric matrix of monomial tags.

    ``moment_indices[r, c]`` is the index of the monomial whose expectation
    sits in cell ``(r, c)``, or ``-1`` when the cell is identically zero.
    ``phases[r, c]`` is the scale factor multiplying that monomial.
    """

    moment_indices: np.ndarray
    phases: np.ndarray | None = None

    def __post_init__(self) -> None:
        idx = np.asarray(self.moment_indices)
        if idx.ndim != 2 or idx.shape[0] != idx.shape[1]:
            raise ValueError(f"moment_indices must be a square matrix, got shape {idx.shape}")
        if idx.size and not np.issubdtype(idx.dtype, np.integer):
            raise ValueError("moment_indices must contain integers.")
        idx = idx.astype(np.int64)
        if np.any(idx < ZERO_CELL):
            raise ValueError("moment_indices entries must be >= -1.")
        if not np.array_equal(idx, idx.T):
            raise ValueError("moment_indices must be symmetric.")
        tags = np.unique(idx[idx != ZERO_CELL])
        if not np.array_equal(tags, np.arange(tags.shape[0])):
            raise ValueError("Monomial indices must be contiguous, 0 .. n_unique_monomials - 1.")

        if self.phases is None:
            phases = np.ones(idx.shape, dtype=float)
        else:
            phases = np.asarray(self.phases, dtype=float)
            if phases.shape != idx.shape:
                raise ValueError(f"phases shape mismatch: expected {idx.shape}, got {phases.shape}.")
            if not np.array_equal(phases, phases.T):
                raise ValueError("phases must be symmetric.")
        phases = np.where(idx == ZERO_CELL, 0.0, phases)

        idx.setflags(write=False)
        phases.setflags(write=False)
        object.__setattr__(self, "moment_indices", idx)
        object.__setattr__(self, "phases", phases)

    @property
    def matrix_size(self) -> int:
        return int(self.moment_indices.shape[0])

    @property
    def n_unique_monomials(self) -> int:
        """Number of distinct monomials in the matrix, identity included."""
        if not np.any(self.moment_indices != ZERO_CELL):
            return 0
        return int(self.moment_indices.max()) + 1

    @property
    def identity_first(self) -> bool:
        """Whether the (0, 0) cell holds monomial 0 with unit phase."""
        if self.matrix_size == 0:
            return False
        return bool(self.moment_indices[0, 0] == 0 and self.phases[0, 0] == 1.0)

    def lower_triangular(self, index: int, scale: float = 1.0) -> LowerTriangularMatrix:
        return extract_lower_triangular(self.moment_indices, self.phases, index, scale)

    def evaluate(self, moments: Sequence[float]) -> np.ndarray:
        """Dense Gram matrix with monomial ``k`` replaced by ``moments[k]``."""
        values = np.asarray(moments, dtype=float).reshape(-1)
        if values.shape[0] != self.n_unique_monomials:
            raise ValueError(
                f"Expected {self.n_unique_monomials} moments, got {values.shape[0]}."
            )
        safe = np.where(self.moment_indices == ZERO_CELL, 0, self.moment_indices)
        return self.phases * values[safe]


@dataclass(frozen=True)
class MomentRelaxation:
    gram_matrix: GramMatrix
    objective_vector: tuple

    def __post_init__(self) -> None:
        if not isinstance(self.gram_matrix, GramMatrixLike):
            raise TypeError("gram_matrix must provide the GramMatrixLike interface.")
        objective = tuple(self.objective_vector)
        if len(objective) != self.gram_matrix.n_unique_monomials:
            raise ValueError(
                "Length of objective_vector must equal the number of unique monomials "
                f"({len(objective)} != {self.gram_matrix.n_unique_monomials})."
            )
        object.__setattr__(self, "objective_vector", objective)
