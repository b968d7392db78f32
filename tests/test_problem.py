"""
Tests for problem dimensions and derived geometric constants.
"""

from __future__ import annotations

import numpy as np
import pytest

from dualws.exceptions import (
    InvalidGeometryError,
    InvalidObstacleError,
    InvalidTrajectoryError,
    ProblemDimensionError,
)
from dualws.problem import (
    MAX_INDEX,
    EgoGeometry,
    ObstacleSet,
    ProblemDimensions,
    check_index_bound,
    validate_trajectory,
)


class TestEgoGeometry:
    """Tests for EgoGeometry."""

    def test_derived_constants(self, ego):
        """4m x 2m box with the reference point 1m ahead of the rear edge."""
        geometry = EgoGeometry.from_vector(ego)
        assert geometry.length == 4.0
        assert geometry.width == 2.0
        np.testing.assert_array_equal(geometry.half_extents, [2.0, 1.0, 2.0, 1.0])
        assert geometry.offset == pytest.approx(1.0)

    def test_reference_at_center(self):
        """Symmetric extents put the reference point at the center."""
        geometry = EgoGeometry.from_vector([2.0, 1.0, 2.0, 1.0])
        assert geometry.offset == 0.0

    def test_negative_extent(self):
        """Negative extents should be rejected."""
        with pytest.raises(InvalidGeometryError):
            EgoGeometry.from_vector([2.0, -1.0, 2.0, 1.0])

    def test_wrong_size(self):
        """Anything but four extents should be rejected."""
        with pytest.raises(InvalidGeometryError):
            EgoGeometry.from_vector([2.0, 1.0, 2.0])


class TestObstacleSet:
    """Tests for ObstacleSet."""

    def test_blocks(self, two_obstacles):
        """Blocks should slice the stacked arrays by edge count."""
        edges_num, A, b = two_obstacles
        obstacles = ObstacleSet(edges_num, 2, A, b)

        assert obstacles.edges_sum == 7
        assert len(obstacles) == 2
        A_1, b_1 = obstacles.block(1)
        np.testing.assert_array_equal(A_1, A[4:])
        np.testing.assert_array_equal(b_1, b[4:])

    def test_column_vector_b(self, square_obstacle):
        """b given as a column should be accepted."""
        A, b = square_obstacle
        obstacles = ObstacleSet([4], 1, A, b.reshape(-1, 1))
        assert obstacles.b.shape == (4,)

    def test_count_mismatch(self, square_obstacle):
        """Edge counts must match the obstacle count."""
        A, b = square_obstacle
        with pytest.raises(InvalidObstacleError):
            ObstacleSet([4], 2, A, b)

    def test_edge_sum_mismatch(self, square_obstacle):
        """Edge counts must sum to the number of rows of A and b."""
        A, b = square_obstacle
        with pytest.raises(InvalidObstacleError):
            ObstacleSet([3], 1, A, b)

    def test_nonpositive_edges(self):
        """Every obstacle needs at least one edge."""
        with pytest.raises(InvalidObstacleError):
            ObstacleSet([0], 1, np.zeros((0, 2)), np.zeros(0))

    def test_fractional_edges(self, square_obstacle):
        """Edge counts are not truncated to integers."""
        A, b = square_obstacle
        with pytest.raises(InvalidObstacleError, match="whole numbers"):
            ObstacleSet([4.9], 1, A, b)

    def test_integral_float_edges(self, square_obstacle):
        """Whole-number floats are accepted as counts."""
        A, b = square_obstacle
        obstacles = ObstacleSet([4.0], 1, A, b)
        assert obstacles.edges_num.tolist() == [4]

    def test_wrong_columns(self):
        """A must have two columns."""
        with pytest.raises(InvalidObstacleError):
            ObstacleSet([2], 1, np.ones((2, 3)), np.ones(2))

    def test_no_obstacles(self):
        """An empty set is valid."""
        obstacles = ObstacleSet([], 0, np.zeros((0, 2)), np.zeros(0))
        assert obstacles.edges_sum == 0
        assert list(obstacles.blocks()) == []


class TestProblemDimensions:
    """Tests for ProblemDimensions."""

    @pytest.mark.parametrize(
        "horizon, num_obstacles, edges_sum",
        [(0, 1, 4), (2, 1, 4), (10, 2, 7), (5, 3, 12), (3, 0, 0)],
    )
    def test_counts(self, horizon, num_obstacles, edges_sum):
        """n and m should follow the closed-form counts."""
        dims = ProblemDimensions(horizon, num_obstacles, edges_sum)
        steps = horizon + 1
        n = edges_sum * steps + 4 * num_obstacles * steps

        assert dims.lambda_count == edges_sum * steps
        assert dims.mu_count == 4 * num_obstacles * steps
        assert dims.num_variables == n
        assert dims.num_constraints == 3 * num_obstacles * steps + n

    def test_row_offsets(self):
        """Group row offsets should tile the constraint rows."""
        dims = ProblemDimensions(2, 2, 7)
        assert dims.rotation_row_start == 0
        assert dims.offset_row_start == 2 * 2 * 3
        assert dims.lambda_row_start == 3 * 2 * 3
        assert dims.mu_row_start == dims.lambda_row_start + 21
        assert dims.mu_row_start + dims.mu_count == dims.num_constraints


class TestIndexBound:
    """Tests for the signed integer range check."""

    def test_accepts_in_range(self):
        assert check_index_bound("horizon", 10) == 10

    def test_rejects_overflow(self):
        """Values at or beyond the int32 maximum are fatal."""
        with pytest.raises(ProblemDimensionError):
            check_index_bound("horizon", MAX_INDEX)

    def test_rejects_negative(self):
        with pytest.raises(ProblemDimensionError):
            check_index_bound("obstacles_num", -1)


class TestValidateTrajectory:
    """Tests for warm-start trajectory validation."""

    def test_accepts_pose_rows(self):
        trajectory = validate_trajectory([[0.0, 0.0, 0.0], [1.0, 0.0, 0.1]], 2)
        assert trajectory.shape == (2, 3)

    def test_wrong_length(self):
        """One pose per step is required."""
        with pytest.raises(InvalidTrajectoryError):
            validate_trajectory(np.zeros((2, 3)), 3)

    def test_non_finite(self):
        with pytest.raises(InvalidTrajectoryError):
            validate_trajectory([[0.0, np.nan, 0.0]], 1)
