"""
Logging for dualws.

Importing the package only attaches a NullHandler to the ``dualws`` logger;
records propagate to whatever the host application configured. The CLI, or
an application that wants dualws to own its output, calls ``setup_logging()``
which reads:

- DUALWS_LOG_LEVEL: level name, default INFO
- DUALWS_LOG_FORMAT: ``default`` or ``json``
- DUALWS_LOG_FILE: optional extra file handler

Stage timing: ``profile_scope`` opens a SolveTimings record and every
``@timed`` function that runs inside it adds its wall time to that record,
so one solve is reported as a single line with the per-stage breakdown.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

LOGGER_NAME = "dualws"

FORMATS = {
    "default": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
}

_handlers: List[logging.Handler] = []


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in _handlers:
        logger.removeHandler(handler)
        handler.close()
    _handlers.clear()


logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def setup_logging(
    level: Optional[int] = None,
    format_str: Optional[str] = None,
    log_file: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """Attach dualws-owned handlers to the ``dualws`` logger.

    Explicit arguments win over the DUALWS_LOG_* variables. Without ``force``
    a second call is a no-op; with it the previous handlers are closed and
    replaced. Once dualws owns its output the logger stops propagating, so a
    root handler in the host does not print each record a second time.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if _handlers and not force:
        return logger

    _drop_handlers(logger)

    if level is None:
        level_name = os.environ.get("DUALWS_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)
    if format_str is None:
        format_name = os.environ.get("DUALWS_LOG_FORMAT", "default").lower()
        format_str = FORMATS.get(format_name, FORMATS["default"])
    log_file = log_file or os.environ.get("DUALWS_LOG_FILE")

    formatter = logging.Formatter(format_str)
    _handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        _handlers.append(logging.FileHandler(log_file))
    for handler in _handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    logger.propagate = False
    return logger


def reset_logging() -> None:
    """Drop the handlers added by setup_logging() and propagate again."""
    logger = logging.getLogger(LOGGER_NAME)
    _drop_handlers(logger)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the ``dualws`` logger, or its ``dualws.<name>`` child."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


def LOG_DEBUG(msg: str, *args: Any, **kwargs: Any) -> None:
    get_logger().debug(msg, *args, **kwargs)


def LOG_INFO(msg: str, *args: Any, **kwargs: Any) -> None:
    get_logger().info(msg, *args, **kwargs)


def LOG_ERROR(msg: str, *args: Any, **kwargs: Any) -> None:
    get_logger().error(msg, *args, **kwargs)


# =============================================================================
# Stage timing
# =============================================================================


@dataclass
class SolveTimings:
    """Wall time of one profiled scope and of the @timed stages inside it."""

    name: str
    total: float = 0.0
    stages: Dict[str, float] = field(default_factory=dict)

    def add(self, stage: str, elapsed: float) -> None:
        self.stages[stage] = self.stages.get(stage, 0.0) + elapsed

    def summary(self) -> str:
        parts = ", ".join(f"{stage} {elapsed:.4f}s" for stage, elapsed in self.stages.items())
        if not parts:
            return f"{self.name} took {self.total:.4f}s"
        return f"{self.name} took {self.total:.4f}s ({parts})"


_active_timings: ContextVar[Optional[SolveTimings]] = ContextVar("dualws_timings", default=None)


@contextmanager
def profile_scope(name: str, log_level: int = logging.DEBUG) -> Iterator[SolveTimings]:
    """Time the enclosed block and collect the @timed stages run inside it.

    Example:
        with profile_scope("dual variable warm start") as timings:
            P = assemble_objective(dims, obstacles)
            ...
        timings.stages["assemble_objective"]
    """
    timings = SolveTimings(name)
    token = _active_timings.set(timings)
    start_time = time.perf_counter()
    try:
        yield timings
    finally:
        timings.total = time.perf_counter() - start_time
        _active_timings.reset(token)
        get_logger().log(log_level, timings.summary())


def timed(func: F) -> F:
    """Record the wall time of ``func`` as a stage of the enclosing profile_scope.

    Outside any scope the time is logged on its own at debug level.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start_time
            timings = _active_timings.get()
            if timings is not None:
                timings.add(func.__name__, elapsed)
            else:
                get_logger().debug(f"{func.__name__} took {elapsed:.4f}s")

    return wrapper  # type: ignore


def DUALWS_ASSERT(condition: bool, message: str) -> None:
    """Log and raise AssertionError when an assembly invariant is broken.

    The failing call site is included in the log record.
    """
    if condition:
        return
    import traceback

    caller = traceback.extract_stack(limit=2)[0]
    LOG_ERROR(f"Assertion failed at {caller.filename}:{caller.lineno}: {message}")
    raise AssertionError(message)
