"""
Command-line interface for dualws.

Usage:
    dualws solve scenario.yml [--config solver.yml] [--output duals.json]
    dualws validate solver.yml
    dualws info

A scenario file holds one warm-start problem::

    horizon: 2
    ts: 0.5
    ego: [3.0, 1.0, 1.0, 1.0]     # front, right, rear, left
    obstacles:
      - A: [[1, 0], [0, 1], [-1, 0], [0, -1]]
        b: [7, 1, -5, 1]
    trajectory:                   # horizon + 1 poses of (x, y, heading)
      - [0.0, 0.0, 0.0]
      - [0.5, 0.0, 0.0]
      - [1.0, 0.0, 0.0]
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import yaml

from dualws import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="dualws",
        description="dualws - dual variable warm start for open-space trajectory smoothing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dualws solve scenario.yml                 Solve and print a summary
  dualws solve scenario.yml -o duals.json   Also write lambda/mu as JSON
  dualws validate solver.yml                Validate a solver configuration
        """,
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (use -vv for debug)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress all output except errors",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    solve_parser = subparsers.add_parser(
        "solve",
        help="Compute the dual warm start of a scenario",
        description="Compute lambda/mu for a scenario described in YAML",
    )
    solve_parser.add_argument(
        "scenario",
        type=Path,
        help="Path to scenario file",
    )
    solve_parser.add_argument(
        "--config", "-f",
        type=Path,
        help="Path to solver configuration file",
    )
    solve_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file for lambda/mu (JSON format)",
    )

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a configuration file",
        description="Validate a YAML solver configuration file",
    )
    validate_parser.add_argument(
        "config_file",
        type=Path,
        help="Path to configuration file",
    )

    subparsers.add_parser(
        "info",
        help="Show system information",
        description="Display system and dependency information",
    )

    return parser


def setup_logging(verbose: int, quiet: bool) -> None:
    """Setup logging based on verbosity level."""
    import logging
    from dualws.logging import setup_logging as _setup_logging

    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    _setup_logging(level=level, force=True)


def load_scenario(path: Path) -> Dict[str, Any]:
    """Read a scenario file into DualVariableWarmStart keyword arguments."""
    from dualws.exceptions import ConfigNotFoundError, InvalidObstacleError

    if not path.exists():
        raise ConfigNotFoundError(str(path))

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    obstacles: List[Dict[str, Any]] = data.get("obstacles") or []
    edges_num, A_blocks, b_blocks = [], [], []
    for j, obstacle in enumerate(obstacles):
        if "A" not in obstacle or "b" not in obstacle:
            raise InvalidObstacleError(j, "obstacle needs both 'A' and 'b'")
        A_j = np.atleast_2d(np.asarray(obstacle["A"], dtype=float))
        if A_j.ndim != 2 or A_j.shape[1] != 2:
            raise InvalidObstacleError(j, f"A must have 2 columns, got shape {A_j.shape}")
        b_j = np.asarray(obstacle["b"], dtype=float).ravel()
        if b_j.size != A_j.shape[0]:
            raise InvalidObstacleError(j, f"A has {A_j.shape[0]} rows but b has {b_j.size} entries")
        edges_num.append(A_j.shape[0])
        A_blocks.append(A_j)
        b_blocks.append(b_j)

    return {
        "horizon": int(data.get("horizon", 0)),
        "ts": float(data.get("ts", 0.1)),
        "ego": data.get("ego", [0.0, 0.0, 0.0, 0.0]),
        "obstacles_edges_num": edges_num,
        "obstacles_num": len(obstacles),
        "obstacles_A": np.vstack(A_blocks) if A_blocks else np.zeros((0, 2)),
        "obstacles_b": np.concatenate(b_blocks) if b_blocks else np.zeros(0),
        "xWS": data.get("trajectory", []),
    }


def cmd_solve(args: argparse.Namespace) -> int:
    """Execute the solve command."""
    from dualws.config import ConfigManager
    from dualws.exceptions import DualWSError
    from dualws.logging import LOG_INFO, LOG_ERROR
    from dualws.warm_start import DualVariableWarmStart

    try:
        config = ConfigManager(args.config).load()
        warm_start = DualVariableWarmStart(**load_scenario(args.scenario), config=config)

        LOG_INFO(
            f"Horizon: {warm_start.horizon}, obstacles: {warm_start.dims.num_obstacles}, "
            f"variables: {warm_start.num_of_variables}"
        )

        if not warm_start.optimize():
            print("Dual warm start failed", file=sys.stderr)
            return 1
        if warm_start.timings is not None:
            LOG_INFO(warm_start.timings.summary())

        l_warm_up, n_warm_up = warm_start.get_optimization_results()
        print(f"lambda: {l_warm_up.shape[0]}x{l_warm_up.shape[1]}")
        print(f"mu: {n_warm_up.shape[0]}x{n_warm_up.shape[1]}")
        print(f"equality residual: {warm_start.equality_residual():.3e}")
        print(f"min dual: {warm_start.min_dual():.3e}")

        if args.output:
            output_data = {
                "lambda": l_warm_up.tolist(),
                "mu": n_warm_up.tolist(),
            }
            with open(args.output, "w") as f:
                json.dump(output_data, f, indent=2)
            LOG_INFO(f"Results saved to {args.output}")

        return 0

    except DualWSError as e:
        LOG_ERROR(f"Error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except yaml.YAMLError as e:
        LOG_ERROR(f"Error reading YAML input: {e}")
        print(f"Error reading YAML input: {e}", file=sys.stderr)
        return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Execute the validate command."""
    from dualws.config import ConfigManager
    from dualws.exceptions import ConfigurationError

    try:
        manager = ConfigManager(args.config_file)
        config = manager.load(validate=True)
        print(f"Configuration file '{args.config_file}' is valid.")
        print(f"  Max iterations: {config.solver.max_iter}")
        print(f"  Tolerances: abs={config.solver.eps_abs}, rel={config.solver.eps_rel}")
        return 0

    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except yaml.YAMLError as e:
        print(f"Error reading configuration: {e}", file=sys.stderr)
        return 1


def cmd_info(args: argparse.Namespace) -> int:
    """Execute the info command."""
    import platform

    print("dualws System Information")
    print("=" * 40)
    print(f"Python version: {platform.python_version()}")
    print(f"Platform: {platform.platform()}")
    print()

    print("Dependencies:")
    dependencies = ["numpy", "scipy", "osqp", "yaml"]
    for dep in dependencies:
        try:
            mod = __import__(dep)
            version = getattr(mod, "__version__", "unknown")
            print(f"  {dep}: {version}")
        except ImportError:
            print(f"  {dep}: NOT INSTALLED")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.quiet)

    if args.command == "solve":
        return cmd_solve(args)
    elif args.command == "validate":
        return cmd_validate(args)
    elif args.command == "info":
        return cmd_info(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
