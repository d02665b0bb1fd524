"""Model construction, iteration and persistence."""

from .builder import build_model, parse_tables
from .checkpoint import load_checkpoint, save_checkpoint
from .model import Model, ModelStatus, network_problems

__all__ = [
    "Model",
    "ModelStatus",
    "build_model",
    "load_checkpoint",
    "network_problems",
    "parse_tables",
    "save_checkpoint",
]
