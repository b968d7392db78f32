"""
dualws exception hierarchy.

Inputs are checked when a DualVariableWarmStart is built, so a DataError is
raised before any matrix exists. Solver outcomes are not exceptions: a
non-success OSQP status is a False return from ``optimize()`` plus an error
log. Only a rejected setup (bad data reaching OSQP) raises SolverSetupError.
"""

from typing import Any, Optional


class DualWSError(Exception):
    """Base exception for all dualws errors.

    Subclasses set ``prefix`` to name what was wrong; ``details`` holds the
    offending values and is rendered after the message.
    """

    prefix = ""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = f"{self.prefix}: {message}" if self.prefix else message
        self.details = dict(details or {})
        super().__init__(self.message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({rendered})"


class ConfigurationError(DualWSError):
    """Solver configuration could not be loaded or is out of range."""


class ConfigNotFoundError(ConfigurationError):
    prefix = "File not found"

    def __init__(self, path: str):
        super().__init__(str(path), details={"path": str(path)})


class ConfigValidationError(ConfigurationError):
    prefix = "Invalid configuration"

    def __init__(self, key: str, reason: str, value: Any = None):
        details = {"key": key}
        if value is not None:
            details["value"] = str(value)
        super().__init__(f"'{key}' {reason}", details=details)


class DataError(DualWSError):
    """Malformed geometry, obstacle or trajectory input."""


class ProblemDimensionError(DataError):
    """A count does not fit the signed 32-bit indices OSQP uses."""

    prefix = "Invalid cast"

    def __init__(self, name: str, value: int, limit: int):
        super().__init__(
            f"{name} must lie in [0, {limit})",
            details={"name": name, "value": value, "limit": limit},
        )


class InvalidGeometryError(DataError):
    prefix = "Invalid ego geometry"


class InvalidObstacleError(DataError):
    """``obstacle_id`` is the obstacle index, or ``"*"`` for the stacked arrays."""

    prefix = "Invalid obstacle"

    def __init__(self, obstacle_id: Any, reason: str):
        super().__init__(reason, details={"obstacle_id": obstacle_id})


class InvalidTrajectoryError(DataError):
    prefix = "Invalid warm-start trajectory"


class SolverError(DualWSError):
    """OSQP could not be driven with the assembled problem."""


class SolverSetupError(SolverError):
    prefix = "QP solver setup failed"
