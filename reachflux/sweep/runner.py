"""Run single reach simulations and dispatch sweeps across worker processes."""

import logging
import os
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import asdict
from typing import List, Sequence

from . import RunResult
from .steady_state import run_to_steady_state
from ..config import RunConfig
from ..engine.checkpoint import save_checkpoint
from ..errors import ReachfluxError
from ..outputs.export import export_frame_csv
from ..outputs.recorder import Recorder
from ..reach import CHANNEL_SOLUTE, SOLUTE_OUTFLOW, STORAGE_REACTION, build_reach_model, default_targets

logger = logging.getLogger(__name__)


def run_single(run_config: RunConfig) -> RunResult:
    """
    Build, drive and record one reach simulation.

    Model and configuration errors are captured on the result so that one
    failing parameter combination does not abort its siblings.
    """
    params = run_config.reach
    result = RunResult(run_id=run_config.run_id, parameters=asdict(params))
    start = time.monotonic()
    logger.info("Starting run %s", run_config.run_id)
    model = None
    recorder = None
    try:
        run_config.validate()
        model = build_reach_model(params, run_config.engine)
        recorder = Recorder(model, default_targets(), interval=run_config.engine.output_interval)
        outcome = run_to_steady_state(model, run_config.engine, recorder)
        result.converged = outcome.converged
        result.iterations = outcome.iterations
        result.stop_reason = outcome.stop_reason
    except ReachfluxError as exc:
        logger.error("Run %s failed: %s", run_config.run_id, exc)
        result.error = str(exc)
        result.error_type = type(exc).__name__

    if model is not None:
        # A partial run still reports how far it got.
        result.iterations = model.iteration
        _summarize(model, result)
        try:
            _write_outputs(run_config, model, recorder, result)
        except OSError as exc:
            logger.error("Run %s could not write its outputs: %s", run_config.run_id, exc)
            if result.ok:
                result.error = str(exc)
                result.error_type = type(exc).__name__

    result.elapsed_seconds = time.monotonic() - start
    logger.info(
        "Finished run %s (%s, %d iterations)",
        run_config.run_id,
        "ok" if result.ok else result.error_type,
        result.iterations,
    )
    return result


def _write_outputs(run_config: RunConfig, model, recorder, result: RunResult) -> None:
    if run_config.write_csv and recorder is not None and recorder.rows:
        path = os.path.join(run_config.output_dir, f"{run_config.run_id}.csv")
        result.output_csv = str(export_frame_csv(recorder.to_frame(), path))
    if run_config.write_checkpoint:
        path = os.path.join(run_config.output_dir, f"{run_config.run_id}.pkl")
        result.checkpoint = str(save_checkpoint(model, path))


def _summarize(model, result: RunResult) -> None:
    solute = model.cell(CHANNEL_SOLUTE)
    outflow = model.boundary(SOLUTE_OUTFLOW)
    reaction = model.boundary(STORAGE_REACTION)
    result.simulated_time = model.time
    result.inflow_concentration = result.parameters.get("concentration")
    if model.iteration and outflow.discharge:
        result.outflow_concentration = outflow.load / outflow.discharge
    else:
        result.outflow_concentration = solute.concentration
    if result.inflow_concentration:
        result.reach_fraction_removed = 1.0 - result.outflow_concentration / result.inflow_concentration
    result.q_storage = reaction.q_storage
    result.damkohler_num = reaction.damkohler_num
    result.damkohler_num_storage = reaction.damkohler_num_storage
    result.fraction_removed = reaction.fraction_removed
    result.fraction_removed_storage = reaction.fraction_removed_storage


def _crashed(run_id: str, exc: Exception) -> RunResult:
    logger.error("Run %s crashed: %s", run_id, exc)
    return RunResult(run_id=run_id, error=str(exc), error_type=type(exc).__name__)


def run_sweep(run_configs: Sequence[RunConfig], n_workers: int = 1) -> List[RunResult]:
    """Run every configuration, serially or on a process pool; results sorted by run_id."""
    results: List[RunResult] = []
    total = len(run_configs)
    if n_workers <= 1:
        for run_config in run_configs:
            try:
                results.append(run_single(run_config))
            except Exception as exc:
                results.append(_crashed(run_config.run_id, exc))
    else:
        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            futures = {executor.submit(run_single, run_config): run_config.run_id for run_config in run_configs}
            for future in as_completed(futures):
                run_id = futures[future]
                try:
                    results.append(future.result())
                except Exception as exc:
                    results.append(_crashed(run_id, exc))
                logger.info("Completed %d/%d runs", len(results), total)
    results.sort(key=lambda r: r.run_id)
    failed = sum(1 for r in results if not r.ok)
    logger.info("Sweep finished: %d runs, %d failed", total, failed)
    return results
