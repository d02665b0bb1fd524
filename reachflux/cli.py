"""Command-line interface for reachflux."""

import argparse
import logging
import math
import os
from dataclasses import replace
from typing import List, Optional, Sequence

from .config import RunConfig, load_config, run_config_from_mapping
from .errors import ConfigurationError
from .outputs.export import export_sweep_results_csv, export_sweep_results_json
from .sweep.grid import (
    DEFAULT_ALPHAS,
    DEFAULT_RATE_CONSTANTS,
    DEFAULT_STORAGE_VOLUMES,
    parameter_grid,
    run_configs_from_grid,
)
from .sweep.runner import run_single, run_sweep

logger = logging.getLogger(__name__)


def _parse_floats(value: str) -> List[float]:
    values = [float(item) for item in value.split(",") if item.strip()]
    if not values:
        raise argparse.ArgumentTypeError("expected a comma-separated list of numbers.")
    return values


def _base_run_config(path: Optional[str]) -> RunConfig:
    if not path:
        return RunConfig()
    if not os.path.exists(path):
        raise ConfigurationError([f"config file not found: {path}"])
    return run_config_from_mapping(load_config(path))


def _sweep_axes(path: Optional[str]) -> dict:
    if not path:
        return {}
    return load_config(path).get("sweep") or {}


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="YAML run configuration (engine, reach and sweep sections).")
    parser.add_argument("--output", required=True, help="Output directory.")
    parser.add_argument("--time-step", type=float, help="Override engine.time_step.")
    parser.add_argument("--max-iterations", type=int, help="Override engine.max_iterations.")
    parser.add_argument("--max-seconds", type=float, help="Wall-clock budget per run.")
    parser.add_argument("--tolerance", type=float, help="Override engine.steady_state_tolerance.")
    parser.add_argument("--checkpoint", action="store_true", help="Write a model checkpoint per run.")
    parser.add_argument("--tau-max-infinite", action="store_true", help="Use an unbounded tau_max.")


def _apply_overrides(config: RunConfig, args: argparse.Namespace) -> RunConfig:
    engine = config.engine
    if args.time_step is not None:
        engine = replace(engine, time_step=args.time_step)
    if args.max_iterations is not None:
        engine = replace(engine, max_iterations=args.max_iterations)
    if args.max_seconds is not None:
        engine = replace(engine, max_seconds=args.max_seconds)
    if args.tolerance is not None:
        engine = replace(engine, steady_state_tolerance=args.tolerance)
    reach = config.reach
    if args.tau_max_infinite:
        reach = replace(reach, tau_max=math.inf)
    return replace(
        config,
        engine=engine,
        reach=reach,
        output_dir=args.output,
        write_checkpoint=config.write_checkpoint or args.checkpoint,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Reactive-storage stream reach simulations.")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run one reach to steady state.")
    _add_common(run_parser)

    sweep_parser = subparsers.add_parser("sweep", help="Run the alpha x storage volume x k sensitivity grid.")
    _add_common(sweep_parser)
    sweep_parser.add_argument("--alphas", type=_parse_floats)
    sweep_parser.add_argument("--storage-volumes", type=_parse_floats)
    sweep_parser.add_argument("--rate-constants", type=_parse_floats)
    sweep_parser.add_argument("--workers", type=int, default=1)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    base = _apply_overrides(_base_run_config(args.config), args)

    if args.command == "run":
        results = [run_single(base)]
    else:
        axes = _sweep_axes(args.config)
        grid = parameter_grid(
            alphas=args.alphas or axes.get("alphas") or DEFAULT_ALPHAS,
            storage_volumes=args.storage_volumes or axes.get("storage_volumes") or DEFAULT_STORAGE_VOLUMES,
            rate_constants=args.rate_constants or axes.get("rate_constants") or DEFAULT_RATE_CONSTANTS,
            base=base.reach,
        )
        logger.info("Sweeping %d parameter combinations on %d worker(s)", len(grid), args.workers)
        configs = run_configs_from_grid(
            grid,
            output_dir=args.output,
            engine=base.engine,
            write_csv=base.write_csv,
            write_checkpoint=base.write_checkpoint,
        )
        results = run_sweep(configs, n_workers=args.workers)

    export_sweep_results_csv(results, os.path.join(args.output, "summary.csv"))
    export_sweep_results_json(results, os.path.join(args.output, "summary.json"))

    failed = [r for r in results if not r.ok]
    for result in failed:
        logger.error("%s: %s: %s", result.run_id, result.error_type, result.error)
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
