"""State containers for water and solute currencies."""

import logging
import math
from typing import Optional, Tuple

from ..errors import ConfigurationError, NegativeMassError

logger = logging.getLogger(__name__)

WATER = "water"


class Cell:
    """Amount of one currency held within a process domain."""

    kind = "cell"
    ATTRIBUTES: Tuple[str, ...] = ("index", "currency", "process_domain", "amount")

    def __init__(self, index: int, currency: str, amount: float, process_domain: str = "channel"):
        amount = float(amount)
        if not math.isfinite(amount) or amount < 0:
            raise ConfigurationError([f"cell {index}: amount must be a finite non-negative number, got {amount!r}"])
        self.index = int(index)
        self.currency = str(currency)
        self.amount = amount
        self.process_domain = process_domain

    @property
    def is_water(self) -> bool:
        return self.currency == WATER

    def apply_delta(self, delta: float, tolerance: float = 0.0, boundary: Optional[int] = None) -> float:
        """Add ``delta`` to the stored amount and return the new amount.

        Results below ``-tolerance`` raise NegativeMassError; smaller undershoots
        are clamped to zero.
        """
        result = self.amount + delta
        if result < 0:
            if -result > tolerance:
                raise NegativeMassError(self.index, self.amount, delta, boundary=boundary)
            logger.warning(
                "Clamping cell %s to zero (undershoot %.3g within tolerance %.3g)",
                self.index,
                -result,
                tolerance,
            )
            result = 0.0
        self.amount = result
        return result

    def get_attribute(self, name: str):
        if name not in self.ATTRIBUTES:
            raise KeyError(f"{type(self).__name__} has no attribute '{name}'; valid: {list(self.ATTRIBUTES)}")
        return getattr(self, name)

    def attributes(self) -> dict:
        return {name: self.get_attribute(name) for name in self.ATTRIBUTES}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(index={self.index}, currency={self.currency!r}, amount={self.amount:.6g})"


class WaterCell(Cell):
    ATTRIBUTES = Cell.ATTRIBUTES + (
        "volume",
        "outflow_discharge",
        "residence_time",
        "velocity",
        "hydraulic_load",
        "length",
        "area",
    )

    def __init__(
        self,
        index: int,
        amount: float,
        process_domain: str = "channel",
        length: Optional[float] = None,
        area: Optional[float] = None,
    ):
        super().__init__(index, WATER, amount, process_domain)
        self.length = length
        self.area = area
        # Set by the model from the cell's outgoing water boundaries.
        self.outflow_discharge = 0.0

    @property
    def volume(self) -> float:
        return self.amount

    @property
    def residence_time(self) -> float:
        if self.outflow_discharge <= 0:
            return math.inf
        return self.volume / self.outflow_discharge

    @property
    def velocity(self) -> Optional[float]:
        # Q / cross-sectional area, with area = volume / length.
        if self.length is None or self.volume <= 0:
            return None
        return self.outflow_discharge * self.length / self.volume

    @property
    def hydraulic_load(self) -> float:
        if self.area:
            return self.outflow_discharge / self.area
        return self.outflow_discharge


class SoluteCell(Cell):
    ATTRIBUTES = Cell.ATTRIBUTES + ("linked_cell", "water_volume", "concentration")

    def __init__(self, index: int, currency: str, amount: float, linked_cell: int, process_domain: str = "channel"):
        if currency == WATER:
            raise ConfigurationError([f"cell {index}: solute cells cannot use the '{WATER}' currency"])
        super().__init__(index, currency, amount, process_domain)
        self.linked_cell = int(linked_cell)
        self.water: Optional[WaterCell] = None

    def bind(self, water: WaterCell) -> None:
        self.water = water

    @property
    def water_volume(self) -> float:
        return self.water.volume if self.water is not None else 0.0

    @property
    def concentration(self) -> float:
        volume = self.water_volume
        if volume <= 0:
            return 0.0
        return self.amount / volume
