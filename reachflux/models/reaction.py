"""Reactive-storage removal boundary.

Each step a volume ``q_storage * time_step`` of channel water is exchanged
with a storage zone whose transit times follow a truncated power law. The
solute carried into storage decays at first order (after a lag ``tau_rxn``)
and only the unreacted fraction returns. The per-step removal is therefore

    fraction_removed = (q_storage * time_step / water_volume) * fraction_removed_storage

with both fractions expressed through effective Damkohler numbers
(``fraction_remaining = exp(-Da)``). Everything that depends only on the
parameters is evaluated once at construction.
"""

import math
from typing import List, Mapping, Optional

from . import Boundary, Delta
from .cells import Cell, SoluteCell
from .residence_time import (
    damkohler_from_remaining,
    fraction_remaining_storage,
    fractions_from_damkohler,
    storage_exchange_flux,
)
from ..errors import ConfigurationError, NegativeMassError, NumericDomainError


class PowerLawReaction(Boundary):
    kind = "reaction"
    ATTRIBUTES = Boundary.ATTRIBUTES + (
        "cell",
        "alpha",
        "k",
        "vol_water_in_storage",
        "tau_min",
        "tau_max",
        "tau_rxn",
        "q_storage",
        "damkohler_num",
        "damkohler_num_storage",
        "fraction_removed",
        "fraction_remaining",
        "fraction_removed_storage",
        "fraction_remaining_storage",
        "starting_amount",
        "amount_to_remove",
        "amount_to_remain",
    )

    def __init__(
        self,
        index: int,
        cell: int,
        alpha: float,
        k: float,
        vol_water_in_storage: float,
        tau_min: float,
        tau_max: float,
        tau_rxn: float = 0.0,
        currency: Optional[str] = None,
    ):
        super().__init__(index, currency or "")
        self.cell = int(cell)
        self.alpha = float(alpha)
        self.k = float(k)
        self.vol_water_in_storage = float(vol_water_in_storage)
        self.tau_min = float(tau_min)
        self.tau_max = float(tau_max)
        self.tau_rxn = float(tau_rxn)

        try:
            self.q_storage = storage_exchange_flux(self.vol_water_in_storage, self.alpha, self.tau_min, self.tau_max)
            remaining_storage = fraction_remaining_storage(self.alpha, self.k, self.tau_min, self.tau_max, self.tau_rxn)
        except NumericDomainError as exc:
            raise NumericDomainError(exc.parameter, exc.value, exc.reason, boundary=self.index) from exc

        self.damkohler_num_storage = damkohler_from_remaining(remaining_storage)
        self.fraction_removed_storage, self.fraction_remaining_storage = fractions_from_damkohler(
            self.damkohler_num_storage
        )

        self.damkohler_num = 0.0
        self.fraction_removed = 0.0
        self.fraction_remaining = 1.0
        self.starting_amount = 0.0
        self.amount_to_remove = 0.0
        self.amount_to_remain = 0.0

    def bind(self, cell: Cell) -> None:
        if not isinstance(cell, SoluteCell):
            raise ConfigurationError([f"reaction boundary {self.index}: cell {cell.index} is not a solute cell"])
        self.currency = cell.currency

    def cell_references(self):
        return {"cell": self.cell}

    def exchange_fraction(self, water_volume: float, time_step: float) -> float:
        """Share of the channel water that passes through storage in one step."""
        if water_volume <= 0:
            return 0.0
        return self.q_storage * time_step / water_volume

    def compute_deltas(self, cells: Mapping[int, Cell], time_step: float) -> List[Delta]:
        cell = cells[self.cell]
        starting = cell.amount
        exchange = self.exchange_fraction(cell.water_volume, time_step) if starting > 0 else 0.0
        if exchange > 1.0:
            raise NegativeMassError(
                cell.index,
                starting,
                -starting * exchange * self.fraction_removed_storage,
                boundary=self.index,
                reason=f"storage exchange of {exchange:.3g} channel volumes per step; reduce the time step",
            )
        removed = exchange * self.fraction_removed_storage
        damkohler = -math.log1p(-removed) if removed < 1.0 else math.inf

        self.damkohler_num = damkohler
        self.fraction_removed, self.fraction_remaining = fractions_from_damkohler(damkohler)
        self.starting_amount = starting
        self.amount_to_remove = starting * self.fraction_removed
        self.amount_to_remain = starting - self.amount_to_remove
        return [(self.cell, -self.amount_to_remove)]

    def last_step_state(self) -> dict:
        return {
            "damkohler_num": self.damkohler_num,
            "fraction_removed": self.fraction_removed,
            "fraction_remaining": self.fraction_remaining,
            "starting_amount": self.starting_amount,
            "amount_to_remove": self.amount_to_remove,
            "amount_to_remain": self.amount_to_remain,
        }
