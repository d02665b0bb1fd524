"""Tabular output helpers."""

from typing import List

from ..sweep import RunResult

PARAMETER_COLUMNS = ["alpha", "vol_water_in_storage", "k", "tau_min", "tau_max", "tau_rxn", "discharge", "concentration"]


def sweep_results_table(results: List[RunResult]) -> List[dict]:
    rows = []
    for result in results:
        params = result.parameters or {}
        rows.append(
            {
                "run_id": result.run_id,
                **{name: params.get(name) for name in PARAMETER_COLUMNS},
                "converged": result.converged,
                "iterations": result.iterations,
                "stop_reason": result.stop_reason,
                "elapsed_seconds": result.elapsed_seconds,
                "simulated_time": result.simulated_time,
                "inflow_concentration": result.inflow_concentration,
                "outflow_concentration": result.outflow_concentration,
                "reach_fraction_removed": result.reach_fraction_removed,
                "q_storage": result.q_storage,
                "damkohler_num": result.damkohler_num,
                "damkohler_num_storage": result.damkohler_num_storage,
                "fraction_removed": result.fraction_removed,
                "fraction_removed_storage": result.fraction_removed_storage,
                "output_csv": result.output_csv,
                "checkpoint": result.checkpoint,
                "error": result.error,
                "error_type": result.error_type,
            }
        )
    return rows
