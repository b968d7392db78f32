"""
Problem data for the dual warm start.

EgoGeometry, ObstacleSet and ProblemDimensions hold the inputs of one solve
and every constant derived from them: footprint half extents, the
reference-point offset, variable and constraint counts and the row offsets
of the four constraint groups.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np

from dualws.exceptions import (
    InvalidGeometryError,
    InvalidObstacleError,
    InvalidTrajectoryError,
    ProblemDimensionError,
)

# OSQP and the downstream solver index with signed 32-bit integers
MAX_INDEX = int(np.iinfo(np.int32).max)

# G = ((1, 0, -1, 0), (0, 1, 0, -1)): corner k maps to row k % 2 with this sign
CORNER_SIGNS = (1.0, 1.0, -1.0, -1.0)


def check_index_bound(name: str, value: int) -> int:
    """Return ``value`` as int, raising if it does not fit a signed 32-bit index."""
    value = int(value)
    if value < 0:
        raise ProblemDimensionError(name, value, MAX_INDEX)
    if value >= MAX_INDEX:
        raise ProblemDimensionError(name, value, MAX_INDEX)
    return value


@dataclass(frozen=True)
class EgoGeometry:
    """Vehicle box measured from the reference point (rear axle center).

    The extent vector order is (front, right, rear, left).
    """

    front: float
    right: float
    rear: float
    left: float

    def __post_init__(self):
        for name in ("front", "right", "rear", "left"):
            value = getattr(self, name)
            if not np.isfinite(value) or value < 0:
                raise InvalidGeometryError(f"{name} extent must be finite and >= 0, got {value}")

    @classmethod
    def from_vector(cls, ego) -> "EgoGeometry":
        values = np.asarray(ego, dtype=float).ravel()
        if values.size != 4:
            raise InvalidGeometryError(f"expected 4 extents, got {values.size}")
        return cls(*(float(v) for v in values))

    @property
    def length(self) -> float:
        return self.front + self.rear

    @property
    def width(self) -> float:
        return self.right + self.left

    @property
    def half_extents(self) -> np.ndarray:
        """g = (L/2, W/2, L/2, W/2), one entry per footprint half-plane."""
        half_length = self.length / 2.0
        half_width = self.width / 2.0
        return np.array([half_length, half_width, half_length, half_width])

    @property
    def offset(self) -> float:
        """Longitudinal distance from the reference point to the box center."""
        return self.length / 2.0 - self.rear


class ObstacleSet:
    """Stacked half-plane representation ``A_j x <= b_j`` of convex obstacles.

    Args:
        edges_num: Edge count per obstacle.
        obstacles_num: Number of obstacles; must match ``len(edges_num)``.
        A: (sum(edges), 2) stacked edge normals, one block per obstacle.
        b: (sum(edges),) stacked offsets.
    """

    def __init__(self, edges_num, obstacles_num: int, A, b):
        self.num_obstacles = check_index_bound("obstacles_num", obstacles_num)
        counts = np.asarray(edges_num, dtype=float).ravel()
        if not np.all(np.isfinite(counts)) or np.any(counts != np.round(counts)):
            raise InvalidObstacleError("*", f"edge counts must be whole numbers, got {counts.tolist()}")
        self.edges_num = counts.astype(int)
        if self.edges_num.size != self.num_obstacles:
            raise InvalidObstacleError(
                "*", f"{self.edges_num.size} edge counts for {self.num_obstacles} obstacles"
            )
        for j, edges in enumerate(self.edges_num):
            if edges < 1:
                raise InvalidObstacleError(j, f"edge count must be positive, got {edges}")

        self.edges_sum = int(self.edges_num.sum())
        self.A = np.asarray(A, dtype=float)
        if self.A.size == 0:
            self.A = np.zeros((0, 2))
        if self.A.ndim != 2 or self.A.shape[1] != 2:
            raise InvalidObstacleError("*", f"A must have 2 columns, got shape {self.A.shape}")
        self.b = np.asarray(b, dtype=float).ravel()
        if self.A.shape[0] != self.edges_sum or self.b.size != self.edges_sum:
            raise InvalidObstacleError(
                "*",
                f"A has {self.A.shape[0]} rows and b has {self.b.size}, "
                f"edge counts sum to {self.edges_sum}",
            )
        if not (np.all(np.isfinite(self.A)) and np.all(np.isfinite(self.b))):
            raise InvalidObstacleError("*", "half-plane coefficients must be finite")

        self.offsets = np.concatenate(([0], np.cumsum(self.edges_num)))

    def __len__(self) -> int:
        return self.num_obstacles

    def block(self, j: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(A_j, b_j)`` for obstacle ``j``."""
        start, stop = self.offsets[j], self.offsets[j + 1]
        return self.A[start:stop], self.b[start:stop]

    def blocks(self) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        for j in range(self.num_obstacles):
            yield self.block(j)


@dataclass(frozen=True)
class ProblemDimensions:
    """Variable and constraint counts of the warm-start QP."""

    horizon: int
    num_obstacles: int
    edges_sum: int

    @property
    def num_steps(self) -> int:
        return self.horizon + 1

    @property
    def lambda_count(self) -> int:
        return self.edges_sum * self.num_steps

    @property
    def mu_count(self) -> int:
        return 4 * self.num_obstacles * self.num_steps

    @property
    def num_variables(self) -> int:
        return self.lambda_count + self.mu_count

    @property
    def num_constraints(self) -> int:
        return 3 * self.num_obstacles * self.num_steps + self.num_variables

    # Row offsets of the four constraint groups

    @property
    def rotation_row_start(self) -> int:
        return 0

    @property
    def offset_row_start(self) -> int:
        return 2 * self.num_obstacles * self.num_steps

    @property
    def lambda_row_start(self) -> int:
        return 3 * self.num_obstacles * self.num_steps

    @property
    def mu_row_start(self) -> int:
        return self.lambda_row_start + self.lambda_count

    @property
    def num_equality_rows(self) -> int:
        return self.offset_row_start

    @property
    def lambda_start(self) -> int:
        return 0

    @property
    def mu_start(self) -> int:
        return self.lambda_count


def validate_trajectory(xWS, num_steps: int) -> np.ndarray:
    """Return the warm-start trajectory as a ``(num_steps, 3)`` float array."""
    trajectory = np.asarray(xWS, dtype=float)
    if trajectory.ndim != 2 or trajectory.shape != (num_steps, 3):
        raise InvalidTrajectoryError(
            f"expected shape ({num_steps}, 3) of (x, y, heading), got {trajectory.shape}"
        )
    if not np.all(np.isfinite(trajectory)):
        raise InvalidTrajectoryError("poses must be finite")
    return trajectory
