"""Checkpoint helpers: persist the whole model state and resume from it."""

import logging
from pathlib import Path
from typing import Union

from .model import Model

logger = logging.getLogger(__name__)


def save_checkpoint(model: Model, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as handle:
        handle.write(model.snapshot())
    logger.info("Saved checkpoint at iteration %d to %s", model.iteration, path)
    return path


def load_checkpoint(path: Union[str, Path]) -> Model:
    with open(path, "rb") as handle:
        model = Model.restore(handle.read())
    logger.info("Loaded checkpoint at iteration %d from %s", model.iteration, path)
    return model
