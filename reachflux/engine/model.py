"""Model: owns the cells and boundaries and advances them one step at a time."""

import enum
import logging
import math
import pickle
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import EngineConfig
from ..errors import ConfigurationError, IterationFault, ReachfluxError
from ..models import Boundary, Delta
from ..models.cells import Cell, SoluteCell, WaterCell
from ..models.reaction import PowerLawReaction
from ..models.transport import SoluteTransport, TransportBoundary, WaterTransport

logger = logging.getLogger(__name__)


class ModelStatus(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    RUNNING = "running"
    FAULTED = "faulted"


def network_problems(
    cells: Sequence[Cell],
    transports: Sequence[TransportBoundary],
    reactions: Sequence[PowerLawReaction],
) -> List[str]:
    """Every unresolved or inconsistent reference in a network, as messages."""
    problems: List[str] = []
    cell_map: Dict[int, Cell] = {}
    for cell in cells:
        if cell.index in cell_map:
            problems.append(f"duplicate cell index {cell.index}")
        cell_map[cell.index] = cell

    for cell in cells:
        if not isinstance(cell, SoluteCell):
            continue
        linked = cell_map.get(cell.linked_cell)
        if linked is None:
            problems.append(f"cell {cell.index}: linked_cell {cell.linked_cell} does not exist")
        elif not isinstance(linked, WaterCell):
            problems.append(f"cell {cell.index}: linked_cell {cell.linked_cell} is not a water cell")

    boundary_map: Dict[int, Boundary] = {}
    for boundary in [*transports, *reactions]:
        if boundary.index in boundary_map:
            problems.append(f"duplicate boundary index {boundary.index}")
        boundary_map[boundary.index] = boundary

    for boundary in transports:
        for role, index in boundary.cell_references().items():
            target = cell_map.get(index)
            if target is None:
                problems.append(f"transport boundary {boundary.index}: {role} cell {index} does not exist")
            elif target.currency != boundary.currency:
                problems.append(
                    f"transport boundary {boundary.index}: {role} cell {index} holds "
                    f"'{target.currency}', boundary carries '{boundary.currency}'"
                )
        if isinstance(boundary, SoluteTransport) and boundary.water_boundary is not None:
            water = boundary_map.get(boundary.water_boundary)
            if water is None:
                problems.append(
                    f"transport boundary {boundary.index}: water_boundary {boundary.water_boundary} does not exist"
                )
            elif not isinstance(water, WaterTransport):
                problems.append(
                    f"transport boundary {boundary.index}: water_boundary {boundary.water_boundary} "
                    "is not a water transport"
                )

    for reaction in reactions:
        target = cell_map.get(reaction.cell)
        if target is None:
            problems.append(f"reaction boundary {reaction.index}: cell {reaction.cell} does not exist")
        elif not isinstance(target, SoluteCell):
            problems.append(f"reaction boundary {reaction.index}: cell {reaction.cell} is not a solute cell")

    return problems


class Model:
    """A static network of cells and boundaries with its own clock."""

    def __init__(
        self,
        cells: Iterable[Cell],
        transports: Iterable[TransportBoundary] = (),
        reactions: Iterable[PowerLawReaction] = (),
        time_step: Optional[float] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.status = ModelStatus.UNINITIALIZED
        self.config = config or EngineConfig()
        self.time_step = float(time_step if time_step is not None else self.config.time_step)
        self.time = 0.0
        self.iteration = 0

        cells = list(cells)
        transports = list(transports)
        reactions = list(reactions)
        self._validate(cells, transports, reactions)

        self._cells: Dict[int, Cell] = {cell.index: cell for cell in cells}
        self._boundaries: Dict[int, Boundary] = {b.index: b for b in [*transports, *reactions]}
        self._water_transports = [b for b in transports if isinstance(b, WaterTransport)]
        self._solute_transports = [b for b in transports if isinstance(b, SoluteTransport)]
        self._reactions = reactions
        self._bind()

        self.status = ModelStatus.READY
        logger.info(
            "Model ready: %d cells, %d water transports, %d solute transports, %d reactions (time_step=%g)",
            len(self._cells),
            len(self._water_transports),
            len(self._solute_transports),
            len(self._reactions),
            self.time_step,
        )

    def _validate(
        self,
        cells: Sequence[Cell],
        transports: Sequence[TransportBoundary],
        reactions: Sequence[PowerLawReaction],
    ) -> None:
        problems: List[str] = []
        if not self.time_step > 0 or not math.isfinite(self.time_step):
            problems.append(f"time_step must be a positive finite number, got {self.time_step!r}")
        problems.extend(network_problems(cells, transports, reactions))
        if problems:
            raise ConfigurationError(problems)

    def _bind(self) -> None:
        for cell in self._cells.values():
            if isinstance(cell, SoluteCell):
                cell.bind(self._cells[cell.linked_cell])
        for boundary in self._solute_transports:
            if boundary.water_boundary is not None:
                boundary.bind(self._boundaries[boundary.water_boundary])
        for reaction in self._reactions:
            reaction.bind(self._cells[reaction.cell])
        outflow: Dict[int, float] = defaultdict(float)
        for boundary in self._water_transports:
            if boundary.upstream is not None:
                outflow[boundary.upstream] += boundary.discharge
        for cell in self._cells.values():
            if isinstance(cell, WaterCell):
                cell.outflow_discharge = outflow.get(cell.index, 0.0)

    # iteration

    def iterate(self) -> ModelStatus:
        """Advance one time step: transport (water, then solute), then reactions."""
        if self.status is ModelStatus.FAULTED:
            raise IterationFault("model is faulted; call clear_fault() before iterating", self.iteration)
        if self.status is not ModelStatus.READY:
            raise IterationFault(f"cannot iterate a model in state {self.status.value}", self.iteration)

        saved_amounts = {index: cell.amount for index, cell in self._cells.items()}
        saved_steps = {index: b.last_step_state() for index, b in self._boundaries.items()}
        self.status = ModelStatus.RUNNING
        try:
            deltas: List[Delta] = []
            for boundary in self._water_transports:
                deltas.extend(boundary.compute_deltas(self._cells, self.time_step))
            for boundary in self._solute_transports:
                deltas.extend(boundary.compute_deltas(self._cells, self.time_step))
            self._commit(deltas)

            deltas = []
            for reaction in self._reactions:
                deltas.extend(reaction.compute_deltas(self._cells, self.time_step))
            self._commit(deltas)
        except ReachfluxError as exc:
            self._rollback(saved_amounts, saved_steps)
            logger.error("Iteration %d failed, state rolled back: %s", self.iteration + 1, exc)
            raise
        except Exception as exc:
            self._rollback(saved_amounts, saved_steps)
            logger.error("Iteration %d faulted, state rolled back: %s", self.iteration + 1, exc)
            raise IterationFault(
                f"iteration {self.iteration + 1} failed: {type(exc).__name__}: {exc}", self.iteration
            ) from exc

        self.time += self.time_step
        self.iteration += 1
        self.status = ModelStatus.READY
        return self.status

    def _commit(self, deltas: Sequence[Delta]) -> None:
        net: Dict[int, float] = defaultdict(float)
        for index, delta in deltas:
            net[index] += delta
        tolerance = self.config.negative_mass_tolerance
        for index, delta in net.items():
            self._cells[index].apply_delta(delta, tolerance)

    def _rollback(self, amounts: Dict[int, float], steps: Dict[int, dict]) -> None:
        for index, amount in amounts.items():
            self._cells[index].amount = amount
        for index, state in steps.items():
            self._boundaries[index].restore_step_state(state)
        self.status = ModelStatus.FAULTED

    def clear_fault(self) -> None:
        if self.status is ModelStatus.FAULTED:
            self.status = ModelStatus.READY

    # introspection

    @property
    def cells(self) -> Tuple[Cell, ...]:
        return tuple(self._cells[index] for index in sorted(self._cells))

    @property
    def transports(self) -> Tuple[TransportBoundary, ...]:
        return tuple(self._water_transports + self._solute_transports)

    @property
    def reactions(self) -> Tuple[PowerLawReaction, ...]:
        return tuple(self._reactions)

    def cell(self, index: int) -> Cell:
        try:
            return self._cells[index]
        except KeyError:
            raise KeyError(f"no cell with index {index}") from None

    def boundary(self, index: int) -> Boundary:
        try:
            return self._boundaries[index]
        except KeyError:
            raise KeyError(f"no boundary with index {index}") from None

    def entity(self, kind: str, index: int) -> Union[Cell, Boundary]:
        if kind == "cell":
            return self.cell(index)
        if kind in ("boundary", "transport", "reaction"):
            entity = self.boundary(index)
            if kind != "boundary" and entity.kind != kind:
                raise KeyError(f"boundary {index} is a {entity.kind} boundary, not {kind}")
            return entity
        raise KeyError(f"unknown entity kind '{kind}'")

    def get_attribute(self, kind: str, index: int, name: str):
        return self.entity(kind, index).get_attribute(name)

    def total_mass(self, currency: str) -> float:
        return math.fsum(cell.amount for cell in self._cells.values() if cell.currency == currency)

    def state_vector(self) -> np.ndarray:
        return np.array([self._cells[index].amount for index in sorted(self._cells)], dtype=float)

    # persistence

    def snapshot(self) -> bytes:
        if self.status is ModelStatus.RUNNING:
            raise IterationFault("cannot snapshot a model mid-iteration", self.iteration)
        return pickle.dumps(self, protocol=pickle.HIGHEST_PROTOCOL)

    @classmethod
    def restore(cls, data: bytes) -> "Model":
        model = pickle.loads(data)
        if not isinstance(model, cls):
            raise TypeError(f"snapshot holds {type(model).__name__}, expected {cls.__name__}")
        return model
