"""
Configuration management for dualws.

This module provides:
- SolverSettings: the OSQP tuning record used by the warm start
- WarmStartConfig: typed configuration for one warm-start solve
- ConfigManager: defaults, YAML file and environment overrides
- create_default_config / load_config: dictionary-level helpers
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from dualws.exceptions import ConfigNotFoundError, ConfigValidationError


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class SolverSettings:
    """OSQP tuning for the dual warm-start QP."""

    relaxation: float = 1.0
    eps_abs: float = 1.0e-5
    eps_rel: float = 1.0e-5
    max_iter: int = 5000
    polish: bool = True
    verbose: bool = False

    def validate(self) -> None:
        """Validate solver settings."""
        if not 0.0 < self.relaxation < 2.0:
            raise ConfigValidationError(
                "solver.relaxation", "must be in (0, 2)", self.relaxation
            )
        if self.eps_abs < 0:
            raise ConfigValidationError("solver.eps_abs", "must be >= 0", self.eps_abs)
        if self.eps_rel < 0:
            raise ConfigValidationError("solver.eps_rel", "must be >= 0", self.eps_rel)
        if self.eps_abs == 0 and self.eps_rel == 0:
            raise ConfigValidationError(
                "solver.eps_abs", "eps_abs and eps_rel cannot both be 0", self.eps_abs
            )
        if self.max_iter < 1:
            raise ConfigValidationError("solver.max_iter", "must be >= 1", self.max_iter)

    def to_osqp_kwargs(self) -> Dict[str, Any]:
        """Map to the keyword arguments accepted by ``osqp.OSQP.setup``."""
        return {
            "alpha": float(self.relaxation),
            "eps_abs": float(self.eps_abs),
            "eps_rel": float(self.eps_rel),
            "max_iter": int(self.max_iter),
            "polishing": bool(self.polish),
            "verbose": bool(self.verbose),
        }


@dataclass
class WarmStartConfig:
    """Complete configuration for a dual warm-start solve."""

    solver: SolverSettings = field(default_factory=SolverSettings)

    # Finite stand-in for +inf on the non-negativity rows
    infinity_surrogate: float = 2.0e19

    def validate(self) -> None:
        """Validate all configuration settings."""
        self.solver.validate()
        if self.infinity_surrogate <= 0:
            raise ConfigValidationError(
                "infinity_surrogate", "must be > 0", self.infinity_surrogate
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {
            "solver": {
                "relaxation": self.solver.relaxation,
                "eps_abs": self.solver.eps_abs,
                "eps_rel": self.solver.eps_rel,
                "max_iter": self.solver.max_iter,
                "polish": self.solver.polish,
                "verbose": self.solver.verbose,
            },
            "infinity_surrogate": self.infinity_surrogate,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WarmStartConfig":
        """Create WarmStartConfig from dictionary."""
        solver_data = data.get("solver", {})
        defaults = SolverSettings()

        return cls(
            solver=SolverSettings(
                relaxation=float(solver_data.get("relaxation", defaults.relaxation)),
                eps_abs=float(solver_data.get("eps_abs", defaults.eps_abs)),
                eps_rel=float(solver_data.get("eps_rel", defaults.eps_rel)),
                max_iter=int(solver_data.get("max_iter", defaults.max_iter)),
                polish=bool(solver_data.get("polish", defaults.polish)),
                verbose=bool(solver_data.get("verbose", defaults.verbose)),
            ),
            infinity_surrogate=float(data.get("infinity_surrogate", 2.0e19)),
        )


# =============================================================================
# Configuration Manager
# =============================================================================


class ConfigManager:
    """Configuration loading with environment variable support.

    Environment variables take precedence over config files.
    Config files take precedence over defaults.

    Environment variable format: DUALWS_<SECTION>_<KEY>, where the section is
    the first underscore-separated token and the rest is the key.
    Example: DUALWS_SOLVER_MAX_ITER=100
    """

    ENV_PREFIX = "DUALWS"

    # Logging variables share the prefix but are not configuration
    _RESERVED_SECTIONS = {"log"}

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to YAML configuration file.
        """
        self._config: Optional[WarmStartConfig] = None
        self._config_path = Path(config_path) if config_path else None
        self._raw_config: Dict[str, Any] = {}

    def load(self, validate: bool = True) -> WarmStartConfig:
        """Load and return configuration.

        Args:
            validate: Whether to validate configuration after loading.
        """
        self._raw_config = create_default_config()

        if self._config_path:
            self._load_from_file(self._config_path)

        self._load_from_env()

        self._config = WarmStartConfig.from_dict(self._raw_config)

        if validate:
            self._config.validate()

        return self._config

    def _load_from_file(self, path: Path) -> None:
        """Load configuration from YAML file."""
        if not path.exists():
            raise ConfigNotFoundError(str(path))

        with open(path, "r") as f:
            file_config = yaml.safe_load(f)

        if file_config:
            self._deep_update(self._raw_config, file_config)

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(f"{self.ENV_PREFIX}_"):
                config_key = key[len(self.ENV_PREFIX) + 1 :].lower()
                self._set_nested_value(config_key, value)

    def _set_nested_value(self, key: str, value: str) -> None:
        """Set a configuration value from an environment variable name."""
        section, _, name = key.partition("_")
        if section in self._RESERVED_SECTIONS:
            return

        if name and isinstance(self._raw_config.get(section), dict):
            self._raw_config[section][name] = self._parse_value(value)
        else:
            self._raw_config[key] = self._parse_value(value)

    @staticmethod
    def _parse_value(value: str) -> Any:
        """Parse string value to appropriate Python type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    @staticmethod
    def _deep_update(base: dict, update: dict) -> dict:
        """Deep merge update into base dictionary."""
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                ConfigManager._deep_update(base[key], value)
            else:
                base[key] = value
        return base

    @property
    def config(self) -> WarmStartConfig:
        """Get current configuration (loads if not already loaded)."""
        if self._config is None:
            self.load()
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dotted key path, e.g. "solver.max_iter"."""
        parts = key.split(".")
        value = self._raw_config

        for part in parts:
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value


# =============================================================================
# Factory Functions
# =============================================================================


def create_default_config() -> Dict[str, Any]:
    """Create the default configuration dictionary."""
    return WarmStartConfig().to_dict()


def load_config(path: Union[str, Path], validate: bool = True) -> WarmStartConfig:
    """Load a typed configuration from a YAML file (plus env overrides)."""
    manager = ConfigManager(path)
    return manager.load(validate=validate)
