"""Solve the level-1 CHSH moment relaxation with MOSEK (expects 2*sqrt(2))."""

from __future__ import annotations

import logging

import numpy as np

from momentsdp import GramMatrix, MomentRelaxation, MosekInstance, OptimumFound

# Generating set {1, A0, A1, B0, B1}. Monomials:
# 0: 1, 1: A0, 2: A1, 3: B0, 4: B1, 5: A0A1,
# 6: A0B0, 7: A0B1, 8: A1B0, 9: A1B1, 10: B0B1
TAGS = np.array(
    [
        [0, 1, 2, 3, 4],
        [1, 0, 5, 6, 7],
        [2, 5, 0, 8, 9],
        [3, 6, 8, 0, 10],
        [4, 7, 9, 10, 0],
    ]
)
OBJECTIVE = [0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 1.0, 1.0, 1.0, -1.0, 0.0]


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    relaxation = MomentRelaxation(GramMatrix(TAGS), OBJECTIVE)
    instance = MosekInstance.from_relaxation(relaxation)
    result = instance.solve()
    if isinstance(result, OptimumFound):
        print(f"CHSH bound: {result.objective_value:.10f} (reported primal {result.primal_objective:.10f})")
        print(f"sqrt(8)   : {np.sqrt(8.0):.10f}")
    else:
        print(f"Solve failed: {result.reason}")
