"""
Constraint matrix and bounds of the dual warm-start QP.

The constraint matrix stacks four row groups::

    | R A^T,     G^T |   2 * obstacles * steps   (equality)
    | A t - b,  -g^T |   obstacles * steps
    | I,         0   |   lambda_count            (lambda >= 0)
    | 0,         I   |   mu_count                (mu >= 0)

It is filled column by column in the canonical variable order: lambda before
mu, then step, then obstacle, then edge (lambda) or footprint corner (mu).
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
import scipy.sparse as sp

from dualws.logging import DUALWS_ASSERT, timed
from dualws.problem import CORNER_SIGNS, EgoGeometry, ObstacleSet, ProblemDimensions
from dualws.sparse import CSCBuilder


def heading_rotation(heading: float) -> np.ndarray:
    """Rotation block applied to the obstacle normals at one pose.

    Both off-diagonal entries are +sin(heading), so this is not a proper
    rotation for nonzero headings. Keep it in sync with the downstream
    distance formulation (see DESIGN.md).
    """
    c, s = np.cos(heading), np.sin(heading)
    return np.array([[c, s], [s, c]])


def footprint_center(pose, offset: float) -> np.ndarray:
    """Geometric center of the vehicle box for a reference-point pose."""
    x, y, heading = pose
    return np.array([x + np.cos(heading) * offset, y + np.sin(heading) * offset])


@timed
def assemble_constraints(
    dims: ProblemDimensions,
    ego: EgoGeometry,
    obstacles: ObstacleSet,
    trajectory: np.ndarray,
) -> sp.csc_matrix:
    """Build the ``(m, n)`` constraint matrix."""
    builder = CSCBuilder(dims.num_constraints, dims.num_variables)

    # lambda columns: 2 rows in group 1, 1 in group 2, 1 in group 3
    r1_index = dims.rotation_row_start
    r2_index = dims.offset_row_start
    r3_index = dims.lambda_row_start
    for i in range(dims.num_steps):
        R = heading_rotation(trajectory[i, 2])
        t = footprint_center(trajectory[i], ego.offset)

        for A_j, b_j in obstacles.blocks():
            r1_block = R @ A_j.T
            r2_block = t @ A_j.T - b_j

            for k in range(A_j.shape[0]):
                builder.add_column(
                    (r1_index, r1_index + 1, r2_index, r3_index),
                    (r1_block[0, k], r1_block[1, k], r2_block[k], 1.0),
                )
                r3_index += 1

            r1_index += 2
            r2_index += 1

    DUALWS_ASSERT(r3_index == dims.mu_row_start, f"lambda identity ended at row {r3_index}")

    # mu columns: 1 row in group 1 (by corner parity), 1 in group 2, 1 in group 4
    g = ego.half_extents
    r1_index = dims.rotation_row_start
    r2_index = dims.offset_row_start
    r4_index = dims.mu_row_start
    for _ in range(dims.num_steps):
        for _ in range(dims.num_obstacles):
            for k in range(4):
                builder.add_column(
                    (r1_index + k % 2, r2_index, r4_index),
                    (CORNER_SIGNS[k], -g[k], 1.0),
                )
                r4_index += 1

            r1_index += 2
            r2_index += 1

    DUALWS_ASSERT(
        r4_index == dims.num_constraints, f"mu identity ended at row {r4_index}"
    )
    DUALWS_ASSERT(
        builder.nnz == 4 * dims.lambda_count + 3 * dims.mu_count,
        f"constraint matrix has {builder.nnz} nonzeros",
    )
    return builder.finish()


def assemble_bounds(dims: ProblemDimensions, infinity_surrogate: float) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(l, u)``: zero equality rows, then ``[0, surrogate]`` rows."""
    lower = np.zeros(dims.num_constraints)
    upper = np.full(dims.num_constraints, float(infinity_surrogate))
    upper[: dims.num_equality_rows] = 0.0
    return lower, upper
