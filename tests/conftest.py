"""
Pytest configuration and fixtures for dualws tests.

This module provides shared fixtures for testing:
- Ego geometry fixtures
- Obstacle half-plane fixtures
- Warm-start trajectory fixtures
- Configuration file fixtures
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import numpy as np
import pytest


def square_halfplanes(center_x: float, center_y: float, half_size: float) -> Tuple[np.ndarray, np.ndarray]:
    """Axis-aligned square as A x <= b with outward unit normals."""
    A = np.array([[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0], [0.0, -1.0]])
    b = np.array([
        center_x + half_size,
        center_y + half_size,
        -(center_x - half_size),
        -(center_y - half_size),
    ])
    return A, b


# =============================================================================
# Geometry Fixtures
# =============================================================================


@pytest.fixture
def ego() -> np.ndarray:
    """4m x 2m box, reference point 1m ahead of the rear edge."""
    return np.array([3.0, 1.0, 1.0, 1.0])


@pytest.fixture
def square_obstacle() -> Tuple[np.ndarray, np.ndarray]:
    """Single 2m square obstacle centered at (6, 0)."""
    return square_halfplanes(6.0, 0.0, 1.0)


@pytest.fixture
def two_obstacles() -> Tuple[List[int], np.ndarray, np.ndarray]:
    """A square and a triangle, stacked."""
    A_square, b_square = square_halfplanes(6.0, 3.0, 1.0)
    A_triangle = np.array([[0.0, -1.0], [1.0, 1.0], [-1.0, 1.0]]) / np.array([[1.0], [np.sqrt(2)], [np.sqrt(2)]])
    b_triangle = np.array([2.0, -1.0, 5.0]) / np.array([1.0, np.sqrt(2), np.sqrt(2)])
    return [4, 3], np.vstack([A_square, A_triangle]), np.concatenate([b_square, b_triangle])


# =============================================================================
# Trajectory Fixtures
# =============================================================================


def straight_trajectory(horizon: int, step: float = 0.5, heading: float = 0.0) -> np.ndarray:
    """Poses along a straight line from the origin."""
    s = np.arange(horizon + 1) * step
    return np.column_stack([s * np.cos(heading), s * np.sin(heading), np.full(horizon + 1, heading)])


@pytest.fixture
def origin_pose() -> np.ndarray:
    """Single pose at the origin with zero heading."""
    return np.zeros((1, 3))


@pytest.fixture
def make_warm_start(ego, square_obstacle):
    """Factory building a single-square-obstacle warm start for a horizon."""
    from dualws import DualVariableWarmStart

    def _make(horizon: int = 0, trajectory=None, config=None):
        A, b = square_obstacle
        if trajectory is None:
            trajectory = straight_trajectory(horizon)
        return DualVariableWarmStart(horizon, 0.5, ego, [4], 1, A, b, trajectory, config=config)

    return _make


# =============================================================================
# Temporary Files Fixtures
# =============================================================================


@pytest.fixture
def temp_config_file(tmp_path) -> Path:
    """Create a temporary solver configuration file."""
    import yaml

    config = {
        "solver": {
            "max_iter": 2000,
            "eps_abs": 1.0e-4,
        },
    }

    config_path = tmp_path / "solver.yml"
    with open(config_path, "w") as f:
        yaml.dump(config, f)

    return config_path


@pytest.fixture
def temp_scenario_file(tmp_path) -> Path:
    """Create a temporary two-step scenario file."""
    import yaml

    A, b = square_halfplanes(6.0, 0.0, 1.0)
    scenario = {
        "horizon": 2,
        "ts": 0.5,
        "ego": [3.0, 1.0, 1.0, 1.0],
        "obstacles": [{"A": A.tolist(), "b": b.tolist()}],
        "trajectory": straight_trajectory(2).tolist(),
    }

    scenario_path = tmp_path / "scenario.yml"
    with open(scenario_path, "w") as f:
        yaml.dump(scenario, f)

    return scenario_path


# =============================================================================
# Solver Test Doubles
# =============================================================================


class FakeOSQP:
    """Stands in for osqp.OSQP and reports a fixed status."""

    instances: list = []

    def __init__(self, status: str, status_val: int):
        self.status = status
        self.status_val = status_val
        self.setup_calls = 0
        FakeOSQP.instances.append(self)

    def setup(self, P, q, A, l, u, **settings):
        self.setup_calls += 1
        self.n = P.shape[0]
        self.settings = settings

    def solve(self, raise_error=None):
        from types import SimpleNamespace

        info = SimpleNamespace(status=self.status, status_val=self.status_val, iter=self.settings["max_iter"])
        return SimpleNamespace(x=np.full(self.n, np.nan), info=info)


@pytest.fixture
def failing_osqp(monkeypatch):
    """Replace OSQP with a double reporting primal infeasibility."""
    import osqp

    import dualws.solver

    FakeOSQP.instances = []
    status_val = int(osqp.SolverStatus.OSQP_PRIMAL_INFEASIBLE)
    monkeypatch.setattr(
        dualws.solver.osqp, "OSQP", lambda: FakeOSQP("primal infeasible", status_val)
    )
    return FakeOSQP


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo setup_logging() calls made by a test, e.g. through the CLI."""
    from dualws.logging import reset_logging

    yield
    reset_logging()
