"""Numeric SDP encoding and MOSEK solving for moment relaxations.

The stable top-level API covers the relaxation interface, the numeric program
built from it, the MOSEK back-end and the decoded results. The sparse helpers
remain available from ``momentsdp.sparse``.
"""

from .mosek_backend import MosekInstance, MosekSettings
from .problem import NumericProgram, encode_relaxation
from .relaxation import GramMatrix, GramMatrixLike, MomentRelaxation, RelaxationLike, real_value
from .results import Failure, OptimumFound, SolutionStatus, SolveResult, decode_solution

__all__ = [
    "GramMatrix",
    "GramMatrixLike",
    "MomentRelaxation",
    "RelaxationLike",
    "real_value",
    "NumericProgram",
    "encode_relaxation",
    "MosekInstance",
    "MosekSettings",
    "SolutionStatus",
    "OptimumFound",
    "Failure",
    "SolveResult",
    "decode_solution",
]
