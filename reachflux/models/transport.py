"""Transport boundaries moving water and solute between cells."""

from typing import Dict, List, Mapping, Optional

from . import Boundary, Delta
from .cells import WATER, Cell, SoluteCell
from ..errors import ConfigurationError, NegativeMassError


class TransportBoundary(Boundary):
    """Moves ``rate * time_step`` from ``upstream`` to ``downstream``.

    Either endpoint may be None, marking an open edge of the modeled domain.
    """

    kind = "transport"
    ATTRIBUTES = Boundary.ATTRIBUTES + ("upstream", "downstream", "rate", "quantity_moved")

    def __init__(self, index: int, currency: str, upstream: Optional[int], downstream: Optional[int]):
        super().__init__(index, currency)
        if upstream is None and downstream is None:
            raise ConfigurationError([f"transport boundary {index}: needs an upstream or a downstream cell"])
        if upstream is not None and upstream == downstream:
            raise ConfigurationError([f"transport boundary {index}: upstream and downstream are both cell {upstream}"])
        self.upstream = None if upstream is None else int(upstream)
        self.downstream = None if downstream is None else int(downstream)
        self.quantity_moved = 0.0
        self._last_rate = 0.0

    @property
    def is_external(self) -> bool:
        return self.upstream is None or self.downstream is None

    def cell_references(self) -> Dict[str, int]:
        refs = {}
        if self.upstream is not None:
            refs["upstream"] = self.upstream
        if self.downstream is not None:
            refs["downstream"] = self.downstream
        return refs

    def current_rate(self, cells: Mapping[int, Cell]) -> float:
        raise NotImplementedError

    @property
    def rate(self) -> float:
        return self._last_rate

    def compute_deltas(self, cells: Mapping[int, Cell], time_step: float) -> List[Delta]:
        """Deltas for one step, evaluated against the current (pre-step) state."""
        rate = self.current_rate(cells)
        quantity = rate * time_step
        if self.upstream is not None:
            available = cells[self.upstream].amount
            if quantity > available:
                raise NegativeMassError(
                    self.upstream,
                    available,
                    -quantity,
                    boundary=self.index,
                    reason="time step too large relative to the flux",
                )
        self._last_rate = rate
        self.quantity_moved = quantity
        deltas: List[Delta] = []
        if self.upstream is not None:
            deltas.append((self.upstream, -quantity))
        if self.downstream is not None:
            deltas.append((self.downstream, quantity))
        return deltas

    def last_step_state(self) -> dict:
        return {"_last_rate": self._last_rate, "quantity_moved": self.quantity_moved}


class WaterTransport(TransportBoundary):
    ATTRIBUTES = TransportBoundary.ATTRIBUTES + ("discharge",)

    def __init__(self, index: int, upstream: Optional[int], downstream: Optional[int], discharge: float):
        super().__init__(index, WATER, upstream, downstream)
        discharge = float(discharge)
        if discharge < 0:
            raise ConfigurationError([f"transport boundary {index}: discharge must be non-negative, got {discharge}"])
        self.discharge = discharge
        self._last_rate = discharge

    def current_rate(self, cells: Mapping[int, Cell]) -> float:
        return self.discharge


class SoluteTransport(TransportBoundary):
    """Solute riding on a water flux.

    With an upstream cell the load is the water discharge times the upstream
    concentration. Inflow boundaries (no upstream cell) carry either a fixed
    ``load`` or a fixed ``concentration`` applied to the linked discharge.
    """

    ATTRIBUTES = TransportBoundary.ATTRIBUTES + ("water_boundary", "load", "concentration", "discharge")

    def __init__(
        self,
        index: int,
        currency: str,
        upstream: Optional[int],
        downstream: Optional[int],
        water_boundary: Optional[int] = None,
        load: Optional[float] = None,
        concentration: Optional[float] = None,
    ):
        if currency == WATER:
            raise ConfigurationError([f"transport boundary {index}: solute transport cannot carry '{WATER}'"])
        super().__init__(index, currency, upstream, downstream)
        problems = []
        if upstream is not None and water_boundary is None:
            problems.append(f"transport boundary {index}: solute transport out of a cell needs a water_boundary")
        if upstream is None and load is None and concentration is None:
            problems.append(f"transport boundary {index}: inflow solute transport needs a load or a concentration")
        if upstream is None and load is None and water_boundary is None:
            problems.append(f"transport boundary {index}: concentration inflow needs a water_boundary")
        if load is not None and load < 0:
            problems.append(f"transport boundary {index}: load must be non-negative, got {load}")
        if concentration is not None and concentration < 0:
            problems.append(f"transport boundary {index}: concentration must be non-negative, got {concentration}")
        if problems:
            raise ConfigurationError(problems)
        self.water_boundary = None if water_boundary is None else int(water_boundary)
        self.fixed_load = None if load is None else float(load)
        self.concentration = None if concentration is None else float(concentration)
        self.water: Optional[WaterTransport] = None
        self._last_rate = self.fixed_load if self.fixed_load is not None else 0.0

    def bind(self, water: WaterTransport) -> None:
        self.water = water

    @property
    def discharge(self) -> Optional[float]:
        return self.water.discharge if self.water is not None else None

    @property
    def load(self) -> float:
        return self._last_rate

    def current_rate(self, cells: Mapping[int, Cell]) -> float:
        if self.upstream is None:
            if self.fixed_load is not None:
                return self.fixed_load
            return self.concentration * self.water.discharge
        source = cells[self.upstream]
        if not isinstance(source, SoluteCell):
            raise ConfigurationError([f"transport boundary {self.index}: upstream cell {self.upstream} is not a solute cell"])
        return self.water.discharge * source.concentration
