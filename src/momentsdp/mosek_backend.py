"""MOSEK Task API back-end for moment relaxations.

Every call to :meth:`MosekInstance.solve` or :meth:`MosekInstance.write_data`
opens its own ``mosek.Env``/``mosek.Task`` pair and closes both before
returning, whatever the outcome.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
import math
from pathlib import Path
import time
from typing import Any, Callable, Dict, Iterator, Optional

import numpy as np

from .problem import NumericProgram
from .relaxation import RelaxationLike, real_value
from .results import SolutionStatus, SolveResult, decode_solution

logger = logging.getLogger(__name__)

_MOSEK_MODULE: Any | None = None
_MOSEK_IMPORT_FAILED = False


def _get_mosek() -> Any | None:
    """Lazy-import mosek so encoding and decoding work without it."""
    global _MOSEK_MODULE, _MOSEK_IMPORT_FAILED
    if _MOSEK_MODULE is not None:
        return _MOSEK_MODULE
    if _MOSEK_IMPORT_FAILED:
        return None
    try:
        import mosek as mosek_mod
    except ImportError:  # pragma: no cover - dependency gate
        _MOSEK_IMPORT_FAILED = True
        return None
    _MOSEK_MODULE = mosek_mod
    return _MOSEK_MODULE


def _require_mosek() -> Any:
    mosek_mod = _get_mosek()
    if mosek_mod is None:
        raise RuntimeError("mosek is required to solve or export a relaxation.")
    return mosek_mod


def _status_table(mosek_mod: Any) -> Dict[Any, SolutionStatus]:
    # Statuses are matched by name; near_* members only exist before MOSEK 9.
    table: Dict[Any, SolutionStatus] = {}
    for status in SolutionStatus:
        if status is SolutionStatus.OTHER:
            continue
        member = getattr(mosek_mod.solsta, status.value, None)
        if member is not None:
            table[member] = status
    return table


def translate_status(mosek_mod: Any, solsta: Any) -> SolutionStatus:
    return _status_table(mosek_mod).get(solsta, SolutionStatus.OTHER)


def _log_stream(msg: str) -> None:
    text = msg.rstrip("\n")
    if text:
        logger.debug("[mosek] %s", text)


@dataclass
class MosekSettings:
    tol_rel_gap: float = 1e-9
    log_solver_output: bool = True

    def __post_init__(self) -> None:
        if not math.isfinite(self.tol_rel_gap) or self.tol_rel_gap <= 0.0:
            raise ValueError("tol_rel_gap must be positive and finite.")


class MosekInstance:
    """Feeds a :class:`NumericProgram` to MOSEK and decodes the answer."""

    def __init__(self, program: NumericProgram, settings: Optional[MosekSettings] = None) -> None:
        self.program = program
        self.settings = settings or MosekSettings()

    @classmethod
    def from_relaxation(
        cls,
        relaxation: RelaxationLike,
        settings: Optional[MosekSettings] = None,
        to_real: Callable[[Any], float] = real_value,
    ) -> "MosekInstance":
        return cls(NumericProgram.from_relaxation(relaxation, to_real=to_real), settings)

    def _resolve_tol(self, tol_rel_gap: float | None) -> float:
        if tol_rel_gap is None:
            return self.settings.tol_rel_gap
        # Validates the override the same way as the settings field.
        return MosekSettings(tol_rel_gap=tol_rel_gap).tol_rel_gap

    @contextmanager
    def _session(self, tol_rel_gap: float) -> Iterator[Any]:
        mosek = _require_mosek()
        with mosek.Env() as env:
            with env.Task(0, 0) as task:
                logger.debug("Opened MOSEK task (tol_rel_gap=%g)", tol_rel_gap)
                task.putdouparam(mosek.dparam.intpnt_co_tol_rel_gap, tol_rel_gap)
                if self.settings.log_solver_output:
                    task.set_Stream(mosek.streamtype.log, _log_stream)
                yield task
        logger.debug("Released MOSEK task")

    def populate_task(self, task: Any) -> None:
        """Declare the constraints, the semidefinite block and all coefficient data."""
        mosek = _require_mosek()
        program = self.program
        m = program.num_constraints
        d = program.dim

        task.appendcons(m)
        task.appendbarvars([d])
        task.putcfix(program.constant_offset)
        task.putobjsense(mosek.objsense.minimize)

        c = program.fixed_matrix
        c_idx = task.appendsparsesymmat(d, c.rows.tolist(), c.cols.tolist(), c.data.tolist())
        task.putbarcj(0, [c_idx], [1.0])

        for i in range(m):
            b = float(program.bounds[i])
            task.putconbound(i, mosek.boundkey.fx, b, b)

        for i, a in enumerate(program.constraint_matrices):
            a_idx = task.appendsparsesymmat(d, a.rows.tolist(), a.cols.tolist(), a.data.tolist())
            task.putbaraij(i, 0, [a_idx], [1.0])

    def solve_raw(
        self, tol_rel_gap: float | None = None
    ) -> tuple[SolutionStatus, Optional[np.ndarray], Optional[np.ndarray], Optional[float]]:
        """Run MOSEK and return (status, packed primal, duals, reported primal objective).

        The arrays are only read back for optimal statuses.
        """
        mosek = _require_mosek()
        tol = self._resolve_tol(tol_rel_gap)
        with self._session(tol) as task:
            self.populate_task(task)
            t0 = time.perf_counter()
            task.optimize()
            elapsed_ms = (time.perf_counter() - t0) * 1e3
            task.solutionsummary(mosek.streamtype.msg)

            whichsol = mosek.soltype.itr
            status = translate_status(mosek, task.getsolsta(whichsol))
            logger.info("MOSEK finished in %.1f ms with status %s", elapsed_ms, status.value)
            if status not in (SolutionStatus.OPTIMAL, SolutionStatus.NEAR_OPTIMAL):
                return status, None, None, None

            barx = np.asarray(task.getbarxj(whichsol, 0), dtype=float)
            y = np.asarray(task.gety(whichsol), dtype=float)
            primal_obj = float(task.getprimalobj(whichsol))
        return status, barx, y, primal_obj

    def solve(self, tol_rel_gap: float | None = None) -> SolveResult:
        status, barx, y, primal_obj = self.solve_raw(tol_rel_gap)
        result = decode_solution(self.program, status, barx, y, primal_objective=primal_obj)
        if result.is_optimal:
            logger.debug(
                "Objective from duals %.12g, reported primal objective %.12g",
                result.objective_value,
                result.primal_objective,
            )
        return result

    def write_data(self, path: str | Path, tol_rel_gap: float | None = None) -> Path:
        """Write the populated task to ``path``; MOSEK picks the format from the extension."""
        tol = self._resolve_tol(tol_rel_gap)
        out = Path(path)
        with self._session(tol) as task:
            self.populate_task(task)
            task.writedata(str(out))
        logger.info("Wrote MOSEK problem to %s", out)
        return out
