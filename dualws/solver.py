"""
OSQP driver for the dual warm-start QP.

solve_qp() owns one OSQP workspace for the duration of a single call and
drops it before returning or raising, including on setup errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import osqp
import scipy.sparse as sp

from dualws.config import SolverSettings
from dualws.exceptions import SolverSetupError
from dualws.logging import LOG_DEBUG, DUALWS_ASSERT, timed

SUCCESS_STATUSES = frozenset(
    {
        int(osqp.SolverStatus.OSQP_SOLVED),
        int(osqp.SolverStatus.OSQP_SOLVED_INACCURATE),
    }
)


@dataclass
class QPResult:
    """Outcome of one OSQP solve."""

    status: str
    status_val: int
    iterations: int
    x: Optional[np.ndarray] = None

    @property
    def success(self) -> bool:
        return self.status_val in SUCCESS_STATUSES


@timed
def solve_qp(
    P: sp.csc_matrix,
    q: np.ndarray,
    A: sp.csc_matrix,
    l: np.ndarray,
    u: np.ndarray,
    settings: SolverSettings,
) -> QPResult:
    """Solve ``min 1/2 x'Px + q'x  s.t.  l <= Ax <= u`` with OSQP.

    P may be given in full symmetric form; only its upper triangle is passed
    on. The primal solution is copied out of the workspace and only attached
    to the result when the status counts as a success.

    Raises:
        SolverSetupError: OSQP rejected the problem data or settings.
    """
    n = P.shape[0]
    DUALWS_ASSERT(P.shape == (n, n), f"P must be square, got {P.shape}")
    DUALWS_ASSERT(A.shape[1] == n, f"A has {A.shape[1]} columns, expected {n}")
    DUALWS_ASSERT(len(q) == n and len(l) == A.shape[0] and len(u) == A.shape[0],
                  "q, l, u do not match the problem dimensions")

    P_upper = sp.triu(P, format="csc")

    solver = osqp.OSQP()
    setup_error = None
    try:
        try:
            solver.setup(P_upper, q, A, l, u, **settings.to_osqp_kwargs())
        except osqp.OSQPException as e:
            setup_error = e.args[0] if e.args else "unknown"

        if setup_error is None:
            results = solver.solve(raise_error=False)
            info = results.info
            result = QPResult(
                status=str(info.status),
                status_val=int(info.status_val),
                iterations=int(info.iter),
            )
            if result.success:
                result.x = np.array(results.x, dtype=float, copy=True)
            del results, info
    finally:
        # The workspace goes away here even if a traceback keeps this frame
        del solver

    # Raised outside the handler: the chained OSQP traceback would reference the workspace
    if setup_error is not None:
        raise SolverSetupError("OSQP rejected the problem data", details={"code": setup_error})

    LOG_DEBUG(f"OSQP finished: status={result.status}, iterations={result.iterations}")
    return result
