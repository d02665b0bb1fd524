"""
Cells and boundaries of the reach network.

Boundaries refer to cells by index only; the model owns the cells and hands
them to each boundary when it is evaluated.
"""

from typing import Dict, Tuple


class Boundary:
    """Common accessor plumbing for transport and reaction boundaries."""

    kind = "boundary"
    ATTRIBUTES: Tuple[str, ...] = ("index", "currency")

    def __init__(self, index: int, currency: str):
        self.index = int(index)
        self.currency = str(currency)

    def cell_references(self) -> Dict[str, int]:
        """Named cell indices this boundary depends on (None entries omitted)."""
        return {}

    def get_attribute(self, name: str):
        if name not in self.ATTRIBUTES:
            raise KeyError(f"{type(self).__name__} has no attribute '{name}'; valid: {list(self.ATTRIBUTES)}")
        return getattr(self, name)

    def attributes(self) -> dict:
        return {name: self.get_attribute(name) for name in self.ATTRIBUTES}

    def last_step_state(self) -> dict:
        """Per-step outputs that must be restored when an iteration rolls back."""
        return {}

    def restore_step_state(self, state: dict) -> None:
        for name, value in state.items():
            setattr(self, name, value)


Delta = Tuple[int, float]

__all__ = ["Boundary", "Delta"]
