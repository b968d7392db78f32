"""
Tests for the quadratic cost assembly.
"""

from __future__ import annotations

import numpy as np

from dualws.objective import assemble_objective, gram_blocks
from dualws.problem import ObstacleSet, ProblemDimensions


def _build(edges_num, A, b, horizon):
    obstacles = ObstacleSet(edges_num, len(edges_num), A, b)
    dims = ProblemDimensions(horizon, obstacles.num_obstacles, obstacles.edges_sum)
    return dims, obstacles, assemble_objective(dims, obstacles)


class TestGramBlocks:
    """Tests for gram_blocks."""

    def test_square_gram(self, square_obstacle):
        """Gram matrix of a square's normals."""
        A, b = square_obstacle
        (gram,) = gram_blocks(ObstacleSet([4], 1, A, b))
        np.testing.assert_allclose(gram, A @ A.T)
        np.testing.assert_allclose(gram, gram.T)


class TestAssembleObjective:
    """Tests for assemble_objective."""

    def test_single_step_block(self, square_obstacle):
        """For one obstacle at one step, P is exactly A A^T padded with zeros."""
        A, b = square_obstacle
        dims, _, P = _build([4], A, b, horizon=0)
        dense = P.toarray()

        assert P.shape == (8, 8)
        np.testing.assert_allclose(dense[:4, :4], A @ A.T)
        np.testing.assert_array_equal(dense[4:, :], 0.0)
        np.testing.assert_array_equal(dense[:, 4:], 0.0)

    def test_block_diagonal_and_stationary(self, two_obstacles):
        """Every (step, obstacle) block is the same Gram matrix; no cross terms."""
        edges_num, A, b = two_obstacles
        horizon = 2
        dims, obstacles, P = _build(edges_num, A, b, horizon)
        dense = P.toarray()

        expected = np.zeros((dims.num_variables, dims.num_variables))
        index = 0
        for _ in range(horizon + 1):
            for A_j, _b_j in obstacles.blocks():
                e = A_j.shape[0]
                expected[index:index + e, index:index + e] = A_j @ A_j.T
                index += e

        np.testing.assert_allclose(dense, expected)

    def test_mu_columns_empty(self, two_obstacles):
        """The mu columns carry no cost."""
        edges_num, A, b = two_obstacles
        dims, _, P = _build(edges_num, A, b, horizon=3)
        assert P[:, dims.mu_start:].nnz == 0
        assert np.all(np.diff(P.indptr[dims.mu_start:]) == 0)

    def test_structure(self, two_obstacles):
        """Pointer and value arrays should satisfy the CSC invariants."""
        edges_num, A, b = two_obstacles
        dims, _, P = _build(edges_num, A, b, horizon=4)

        assert len(P.indptr) == dims.num_variables + 1
        assert P.indptr[0] == 0
        assert np.all(np.diff(P.indptr) >= 0)
        assert len(P.data) == len(P.indices)
        assert P.nnz == (4 * 4 + 3 * 3) * 5

    def test_symmetric_psd(self, two_obstacles):
        """P should be symmetric positive semidefinite."""
        edges_num, A, b = two_obstacles
        _, _, P = _build(edges_num, A, b, horizon=1)
        dense = P.toarray()

        np.testing.assert_allclose(dense, dense.T)
        assert np.min(np.linalg.eigvalsh(dense)) > -1e-9
