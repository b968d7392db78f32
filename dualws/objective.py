"""
Quadratic cost of the dual warm-start QP.

The objective is sum_i sum_j ||A_j^T lambda_ij||^2, so P is block diagonal over
the lambda variables with the Gram matrix A_j A_j^T repeated at every step.
Obstacles are assumed stationary over the horizon. The mu variables carry no
cost and their columns stay empty.
"""

from __future__ import annotations

from typing import List

import numpy as np
import scipy.sparse as sp

from dualws.logging import DUALWS_ASSERT, timed
from dualws.problem import ObstacleSet, ProblemDimensions
from dualws.sparse import CSCBuilder


def gram_blocks(obstacles: ObstacleSet) -> List[np.ndarray]:
    """Return ``A_j A_j^T`` for every obstacle."""
    blocks = []
    for j, (A_j, _) in enumerate(obstacles.blocks()):
        gram = A_j @ A_j.T
        edges = int(obstacles.edges_num[j])
        DUALWS_ASSERT(gram.shape == (edges, edges), f"Gram block of obstacle {j} is {gram.shape}")
        blocks.append(gram)
    return blocks


@timed
def assemble_objective(dims: ProblemDimensions, obstacles: ObstacleSet) -> sp.csc_matrix:
    """Build the full symmetric ``(n, n)`` cost matrix P."""
    n = dims.num_variables
    builder = CSCBuilder(n, n)
    blocks = gram_blocks(obstacles)

    l_index = dims.lambda_start
    for _ in range(dims.num_steps):
        for gram in blocks:
            edges = gram.shape[0]
            for c in range(edges):
                builder.add_column(range(l_index, l_index + edges), gram[:, c])
            l_index += edges

    DUALWS_ASSERT(
        builder.columns_started == dims.lambda_count,
        f"objective filled {builder.columns_started} lambda columns, expected {dims.lambda_count}",
    )
    return builder.finish()
