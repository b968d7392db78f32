"""
dualws - dual variable warm start for open-space trajectory smoothing.

Solves a convex QP with OSQP to obtain starting values for the lambda/mu
obstacle duals used by a distance-based nonlinear trajectory smoother.

Basic Usage:
    from dualws import DualVariableWarmStart

    warm_start = DualVariableWarmStart(horizon, ts, ego, edges_num, obstacles_num,
                                       obstacles_A, obstacles_b, xWS)
    if warm_start.optimize():
        l_warm_up, n_warm_up = warm_start.get_optimization_results()

For more control:
    from dualws.config import WarmStartConfig, SolverSettings, ConfigManager
    from dualws.logging import LOG_INFO, setup_logging
    from dualws.exceptions import DualWSError
"""

from __future__ import annotations

__version__ = "0.1.0"

# =============================================================================
# Core API
# =============================================================================

from dualws.config import (
    ConfigManager,
    SolverSettings,
    WarmStartConfig,
    create_default_config,
    load_config,
)

from dualws.problem import (
    EgoGeometry,
    ObstacleSet,
    ProblemDimensions,
)

from dualws.sparse import CSCBuilder

from dualws.solver import QPResult, solve_qp

from dualws.warm_start import DualVariableWarmStart

# =============================================================================
# Logging
# =============================================================================

from dualws.logging import (
    LOG_DEBUG,
    LOG_INFO,
    LOG_ERROR,
    DUALWS_ASSERT,
    SolveTimings,
    get_logger,
    profile_scope,
    reset_logging,
    setup_logging,
    timed,
)

# =============================================================================
# Exceptions
# =============================================================================

from dualws.exceptions import (
    DualWSError,
    ConfigurationError,
    ConfigNotFoundError,
    ConfigValidationError,
    DataError,
    ProblemDimensionError,
    InvalidGeometryError,
    InvalidObstacleError,
    InvalidTrajectoryError,
    SolverError,
    SolverSetupError,
)

__all__ = [
    "__version__",
    # Config
    "ConfigManager",
    "SolverSettings",
    "WarmStartConfig",
    "create_default_config",
    "load_config",
    # Problem
    "EgoGeometry",
    "ObstacleSet",
    "ProblemDimensions",
    "CSCBuilder",
    "QPResult",
    "solve_qp",
    "DualVariableWarmStart",
    # Logging
    "LOG_DEBUG",
    "LOG_INFO",
    "LOG_ERROR",
    "DUALWS_ASSERT",
    "SolveTimings",
    "get_logger",
    "profile_scope",
    "reset_logging",
    "setup_logging",
    "timed",
    # Exceptions
    "DualWSError",
    "ConfigurationError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    "DataError",
    "ProblemDimensionError",
    "InvalidGeometryError",
    "InvalidObstacleError",
    "InvalidTrajectoryError",
    "SolverError",
    "SolverSetupError",
]
