"""Parameter grids for sensitivity sweeps."""

import itertools
import os
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from ..config import EngineConfig, ReachParameters, RunConfig

# Reference study: 3 transit-time shapes x 5 storage volumes x 5 rate constants.
DEFAULT_ALPHAS = (1.2, 1.5, 1.8)
DEFAULT_STORAGE_VOLUMES = (10.0, 25.0, 50.0, 100.0, 200.0)  # m3
DEFAULT_RATE_CONSTANTS = (1e-6, 3e-6, 1e-5, 3e-5, 1e-4)  # 1/s


def parameter_grid(
    alphas: Sequence[float] = DEFAULT_ALPHAS,
    storage_volumes: Sequence[float] = DEFAULT_STORAGE_VOLUMES,
    rate_constants: Sequence[float] = DEFAULT_RATE_CONSTANTS,
    base: Optional[ReachParameters] = None,
) -> List[ReachParameters]:
    """Cartesian product of the three swept parameters; alpha varies slowest."""
    base = base or ReachParameters()
    return [
        replace(base, alpha=float(alpha), vol_water_in_storage=float(volume), k=float(k))
        for alpha, volume, k in itertools.product(alphas, storage_volumes, rate_constants)
    ]


def run_id_for(position: int, params: ReachParameters) -> str:
    return f"run_{position + 1:03d}_a{params.alpha:g}_v{params.vol_water_in_storage:g}_k{params.k:g}"


def run_configs_from_grid(
    grid: Iterable[ReachParameters],
    output_dir: Optional[str] = None,
    engine: Optional[EngineConfig] = None,
    write_csv: bool = True,
    write_checkpoint: bool = False,
) -> List[RunConfig]:
    """One RunConfig per grid point, each with its own output directory."""
    engine = engine or EngineConfig()
    configs = []
    for position, params in enumerate(grid):
        run_id = run_id_for(position, params)
        configs.append(
            RunConfig(
                run_id=run_id,
                output_dir=os.path.join(output_dir, run_id) if output_dir else None,
                engine=replace(engine),
                reach=params,
                write_csv=write_csv and output_dir is not None,
                write_checkpoint=write_checkpoint and output_dir is not None,
            )
        )
    return configs
