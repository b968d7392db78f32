"""
Dual variable warm start for the distance-approach trajectory smoother.

DualVariableWarmStart solves a convex QP whose solution gives feasible
starting values for the obstacle duals of the nonlinear smoother:

- lambda: one multiplier per obstacle edge and step, shape (sum(edges), steps)
- mu: four multipliers per obstacle and step, shape (4 * obstacles, steps)

Typical use, once per planning cycle:

    warm_start = DualVariableWarmStart(horizon, ts, ego, edges_num, obstacles_num,
                                       obstacles_A, obstacles_b, xWS)
    if warm_start.optimize():
        l_warm_up, n_warm_up = warm_start.get_optimization_results()
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from dualws.config import WarmStartConfig
from dualws.constraints import assemble_bounds, assemble_constraints
from dualws.exceptions import InvalidTrajectoryError
from dualws.logging import LOG_DEBUG, LOG_ERROR, DUALWS_ASSERT, SolveTimings, profile_scope
from dualws.objective import assemble_objective
from dualws.problem import (
    EgoGeometry,
    ObstacleSet,
    ProblemDimensions,
    check_index_bound,
    validate_trajectory,
)
from dualws.solver import solve_qp


class DualVariableWarmStart:
    """Warm start for the lambda/mu duals of the obstacle-avoidance constraints.

    Args:
        horizon: Number of trajectory steps minus one.
        ts: Sampling interval of the trajectory in seconds.
        ego: Vehicle extents (front, right, rear, left) from the reference point.
        obstacles_edges_num: Edge count per obstacle.
        obstacles_num: Number of obstacles.
        obstacles_A: (sum(edges), 2) stacked half-plane normals.
        obstacles_b: (sum(edges),) stacked half-plane offsets.
        xWS: (horizon + 1, 3) warm-start poses (x, y, heading).
        config: Solver tuning; defaults to WarmStartConfig().
    """

    def __init__(
        self,
        horizon: int,
        ts: float,
        ego,
        obstacles_edges_num,
        obstacles_num: int,
        obstacles_A,
        obstacles_b,
        xWS,
        config: Optional[WarmStartConfig] = None,
    ):
        self.horizon = check_index_bound("horizon", horizon)
        if not ts > 0:
            raise InvalidTrajectoryError(f"sampling interval must be > 0, got {ts}")
        self.ts = float(ts)

        self.config = config or WarmStartConfig()
        self.config.validate()

        self.ego = EgoGeometry.from_vector(ego)
        self.obstacles = ObstacleSet(obstacles_edges_num, obstacles_num, obstacles_A, obstacles_b)
        self.dims = ProblemDimensions(
            horizon=self.horizon,
            num_obstacles=self.obstacles.num_obstacles,
            edges_sum=self.obstacles.edges_sum,
        )
        check_index_bound("num_constraints", self.dims.num_constraints)
        self.xWS = validate_trajectory(xWS, self.dims.num_steps)

        self._l_warm_up = np.zeros((self.dims.edges_sum, self.dims.num_steps))
        self._n_warm_up = np.zeros((4 * self.dims.num_obstacles, self.dims.num_steps))
        self.timings: Optional[SolveTimings] = None

    # ------------------------------------------------------------------
    # Derived constants
    # ------------------------------------------------------------------

    @property
    def num_of_variables(self) -> int:
        return self.dims.num_variables

    @property
    def num_of_constraints(self) -> int:
        return self.dims.num_constraints

    @property
    def g(self) -> np.ndarray:
        return self.ego.half_extents

    @property
    def offset(self) -> float:
        return self.ego.offset

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def assemble_P(self):
        return assemble_objective(self.dims, self.obstacles)

    def assemble_constraint(self):
        return assemble_constraints(self.dims, self.ego, self.obstacles, self.xWS)

    def assemble_bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        return assemble_bounds(self.dims, self.config.infinity_surrogate)

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------

    def optimize(self) -> bool:
        """Assemble and solve the QP, then store lambda and mu.

        Returns:
            True on a solved (or solved inaccurate) status. On any other status
            the failure is logged and the stored results are left untouched.
            Stage wall times of the attempt are kept in ``self.timings``.
        """
        if self.dims.num_variables == 0:
            LOG_DEBUG("No obstacles, dual warm start is empty")
            return True

        with profile_scope("dual variable warm start") as timings:
            P = self.assemble_P()
            q = np.zeros(self.dims.num_variables)
            A = self.assemble_constraint()
            lower, upper = self.assemble_bounds()
            LOG_DEBUG(
                f"Dual warm start QP: {self.dims.num_variables} variables, "
                f"{self.dims.num_constraints} constraints, nnz(P)={P.nnz}, nnz(A)={A.nnz}"
            )

            result = solve_qp(P, q, A, lower, upper, self.config.solver)
        self.timings = timings

        if not result.success:
            LOG_ERROR(f"OSQP dual warm up unsuccess, return status: {result.status}")
            return False

        self._l_warm_up, self._n_warm_up = self.split_solution(result.x)
        return True

    def split_solution(self, x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Split a primal vector into (lambda, mu) in the canonical order."""
        dims = self.dims
        DUALWS_ASSERT(
            x.shape == (dims.num_variables,),
            f"primal solution has shape {x.shape}, expected ({dims.num_variables},)",
        )
        # Step-major in x, so reshape by step and transpose to (rows, steps)
        l_warm_up = x[dims.lambda_start : dims.mu_start].reshape(dims.num_steps, dims.edges_sum).T
        n_warm_up = x[dims.mu_start :].reshape(dims.num_steps, 4 * dims.num_obstacles).T
        return l_warm_up.copy(), n_warm_up.copy()

    def stack_solution(self, l_warm_up: np.ndarray, n_warm_up: np.ndarray) -> np.ndarray:
        """Inverse of :meth:`split_solution`."""
        return np.concatenate([l_warm_up.T.ravel(), n_warm_up.T.ravel()])

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def get_optimization_results(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return copies of (lambda, mu) from the last successful solve."""
        return self._l_warm_up.copy(), self._n_warm_up.copy()

    def equality_residual(self) -> float:
        """Max absolute value of the equality rows at the current lambda/mu."""
        if self.dims.num_variables == 0:
            return 0.0
        A = self.assemble_constraint()
        x = self.stack_solution(self._l_warm_up, self._n_warm_up)
        residual = A[: self.dims.num_equality_rows] @ x
        return float(np.max(np.abs(residual), initial=0.0))

    def min_dual(self) -> float:
        """Smallest entry over lambda and mu."""
        values = np.concatenate([self._l_warm_up.ravel(), self._n_warm_up.ravel()])
        return float(values.min()) if values.size else 0.0
