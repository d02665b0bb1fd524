"""Iterate a model until its state stops changing, or a budget runs out."""

import logging
import math
import time
from typing import Optional

import numpy as np

from . import SteadyStateResult
from ..config import EngineConfig
from ..engine.model import Model
from ..outputs.recorder import Recorder

logger = logging.getLogger(__name__)


def relative_change(previous: np.ndarray, current: np.ndarray) -> float:
    """Largest elementwise change relative to the larger of the two magnitudes."""
    if previous.size == 0:
        return 0.0
    scale = np.maximum(np.abs(previous), np.abs(current))
    diff = np.abs(current - previous)
    ratios = np.divide(diff, scale, out=np.zeros_like(diff), where=scale > 0)
    return float(np.max(ratios))


def run_to_steady_state(
    model: Model,
    config: Optional[EngineConfig] = None,
    recorder: Optional[Recorder] = None,
) -> SteadyStateResult:
    """
    Iterate ``model`` until the state vector settles.

    Stops when the relative change between checks is at or below
    ``steady_state_tolerance``, after ``max_iterations`` steps, or once
    ``max_seconds`` of wall-clock time have elapsed. On every stop the model is
    left at its last committed step. Errors raised by ``Model.iterate``
    propagate after the model has rolled back that step.
    """
    config = config or model.config
    start = time.monotonic()
    previous = model.state_vector()
    change = math.inf
    stop_reason = "max_iterations"
    converged = False
    steps = 0

    if recorder is not None:
        recorder.poll()

    while steps < config.max_iterations:
        model.iterate()
        steps += 1
        if recorder is not None:
            recorder.poll()

        if steps % config.check_interval == 0:
            current = model.state_vector()
            change = relative_change(previous, current)
            previous = current
            if change <= config.steady_state_tolerance:
                converged = True
                stop_reason = "steady_state"
                break

        if config.max_seconds is not None and time.monotonic() - start >= config.max_seconds:
            stop_reason = "max_seconds"
            break

    if recorder is not None and (not recorder.rows or recorder.rows[-1]["iteration"] != model.iteration):
        recorder.record()

    elapsed = time.monotonic() - start
    if converged:
        logger.info("Steady state after %d iterations (change %.3g, %.2fs)", steps, change, elapsed)
    else:
        logger.info("Stopped by %s after %d iterations (change %.3g, %.2fs)", stop_reason, steps, change, elapsed)
    return SteadyStateResult(
        converged=converged,
        iterations=steps,
        elapsed_seconds=elapsed,
        stop_reason=stop_reason,
        final_change=change,
    )
