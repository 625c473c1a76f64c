"""Typed results decoded from raw solver output."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union

import numpy as np

from .problem import NumericProgram
from .sparse import unpack_lower_triangular

INFEASIBILITY_REASON = "Primal or dual infeasibility certificate found."
UNKNOWN_REASON = "The status of the solution could not be determined."
OTHER_REASON = "Other solution status."


class SolutionStatus(str, Enum):
    OPTIMAL = "optimal"
    NEAR_OPTIMAL = "near_optimal"
    DUAL_INFEASIBLE_CERTIFICATE = "dual_infeas_cer"
    PRIMAL_INFEASIBLE_CERTIFICATE = "prim_infeas_cer"
    NEAR_DUAL_INFEASIBLE_CERTIFICATE = "near_dual_infeas_cer"
    NEAR_PRIMAL_INFEASIBLE_CERTIFICATE = "near_prim_infeas_cer"
    UNKNOWN = "unknown"
    OTHER = "other"


_OPTIMAL_STATES = {SolutionStatus.OPTIMAL, SolutionStatus.NEAR_OPTIMAL}
_CERTIFICATE_STATES = {
    SolutionStatus.DUAL_INFEASIBLE_CERTIFICATE,
    SolutionStatus.PRIMAL_INFEASIBLE_CERTIFICATE,
    SolutionStatus.NEAR_DUAL_INFEASIBLE_CERTIFICATE,
    SolutionStatus.NEAR_PRIMAL_INFEASIBLE_CERTIFICATE,
}


@dataclass(frozen=True)
class OptimumFound:
    """Optimal (or near-optimal) solution of the relaxation.

    ``objective_value`` is recomputed from the dual multipliers as
    ``c_fix + Σ y_i b_i``. ``primal_objective`` is the value the solver reports
    for its primal solution, when available.
    """

    objective_value: float
    primal_matrix: np.ndarray
    dual_vector: np.ndarray
    primal_objective: Optional[float] = None

    @property
    def is_optimal(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    reason: str

    @property
    def is_optimal(self) -> bool:
        return False


SolveResult = Union[OptimumFound, Failure]


def decode_solution(
    program: NumericProgram,
    status: SolutionStatus,
    packed_primal: Sequence[float] | None = None,
    duals: Sequence[float] | None = None,
    primal_objective: float | None = None,
) -> SolveResult:
    """Map a solver status and its raw arrays to a result.

    ``packed_primal`` and ``duals`` are only read for the optimal states.
    """
    status = SolutionStatus(status)
    if status in _OPTIMAL_STATES:
        if packed_primal is None or duals is None:
            raise ValueError("An optimal status requires the primal and dual arrays.")
        X = unpack_lower_triangular(program.dim, packed_primal)
        y = np.asarray(duals, dtype=float).reshape(-1)
        if y.shape[0] != program.num_constraints:
            raise ValueError(
                f"Expected {program.num_constraints} dual multipliers, got {y.shape[0]}."
            )
        objective = program.constant_offset
        for yi, bi in zip(y, program.bounds):
            objective += yi * bi
        dual_vector = np.concatenate([[1.0], y])
        return OptimumFound(
            objective_value=float(objective),
            primal_matrix=X,
            dual_vector=dual_vector,
            primal_objective=None if primal_objective is None else float(primal_objective),
        )
    if status in _CERTIFICATE_STATES:
        return Failure(INFEASIBILITY_REASON)
    if status is SolutionStatus.UNKNOWN:
        return Failure(UNKNOWN_REASON)
    return Failure(OTHER_REASON)
