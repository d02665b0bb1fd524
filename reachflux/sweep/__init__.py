"""
Steady-state driving and parameter sweeps.

Each run is an independent unit of work: it builds its own model from a
RunConfig, so runs can be dispatched to separate processes with nothing
shared but the collected results.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class SteadyStateResult:
    """Outcome of iterating a model toward steady state."""

    converged: bool
    iterations: int
    elapsed_seconds: float
    stop_reason: str  # "steady_state", "max_iterations", "max_seconds"
    final_change: float


@dataclass
class RunResult:
    """Summary of one sweep run; failures are captured, not raised."""

    run_id: str
    parameters: Dict[str, object] = field(default_factory=dict)
    converged: bool = False
    iterations: int = 0
    stop_reason: Optional[str] = None
    elapsed_seconds: float = 0.0
    simulated_time: float = 0.0

    inflow_concentration: Optional[float] = None
    outflow_concentration: Optional[float] = None
    reach_fraction_removed: Optional[float] = None

    q_storage: Optional[float] = None
    damkohler_num: Optional[float] = None
    damkohler_num_storage: Optional[float] = None
    fraction_removed: Optional[float] = None
    fraction_removed_storage: Optional[float] = None

    output_csv: Optional[str] = None
    checkpoint: Optional[str] = None

    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


__all__ = [
    "RunResult",
    "SteadyStateResult",
]
