"""Reachflux package entry points."""

from .config import EngineConfig, ReachParameters, RunConfig, default_config, load_config
from .engine.builder import build_model
from .engine.checkpoint import load_checkpoint, save_checkpoint
from .engine.model import Model, ModelStatus
from .errors import (
    ConfigurationError,
    IterationFault,
    NegativeMassError,
    NumericDomainError,
    ReachfluxError,
)
from .models.cells import WATER, SoluteCell, WaterCell
from .models.reaction import PowerLawReaction
from .models.residence_time import (
    fraction_remaining_storage,
    mean_transit_time,
    storage_exchange_flux,
)
from .models.transport import SoluteTransport, WaterTransport
from .outputs.recorder import Recorder
from .reach import build_reach_model, reach_tables
from .sweep import RunResult, SteadyStateResult
from .sweep.grid import parameter_grid, run_configs_from_grid
from .sweep.runner import run_single, run_sweep
from .sweep.steady_state import run_to_steady_state

__all__ = [
    "EngineConfig",
    "ReachParameters",
    "RunConfig",
    "default_config",
    "load_config",
    "build_model",
    "load_checkpoint",
    "save_checkpoint",
    "Model",
    "ModelStatus",
    "ConfigurationError",
    "IterationFault",
    "NegativeMassError",
    "NumericDomainError",
    "ReachfluxError",
    "WATER",
    "SoluteCell",
    "WaterCell",
    "PowerLawReaction",
    "fraction_remaining_storage",
    "mean_transit_time",
    "storage_exchange_flux",
    "SoluteTransport",
    "WaterTransport",
    "Recorder",
    "build_reach_model",
    "reach_tables",
    "RunResult",
    "SteadyStateResult",
    "parameter_grid",
    "run_configs_from_grid",
    "run_single",
    "run_sweep",
    "run_to_steady_state",
]

__version__ = "0.1.0"
