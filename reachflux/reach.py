"""Single stream reach: inflow -> channel -> outflow, with reactive storage."""

from typing import Dict, List, Optional

from .config import EngineConfig, ReachParameters
from .engine.builder import build_model
from .engine.model import Model
from .models.cells import WATER

CHANNEL_WATER = 1
CHANNEL_SOLUTE = 2

WATER_INFLOW = 1
WATER_OUTFLOW = 2
SOLUTE_INFLOW = 3
SOLUTE_OUTFLOW = 4
STORAGE_REACTION = 5


def reach_tables(params: ReachParameters) -> Dict[str, List[dict]]:
    """Declarative tables for one reach; the channel starts at the inflow concentration."""
    params.validate()
    volume = params.channel_volume
    cells = [
        {
            "index": CHANNEL_WATER,
            "currency": WATER,
            "amount": volume,
            "process_domain": "channel",
            "length": params.reach_length,
            "area": params.reach_length * params.reach_width,
        },
        {
            "index": CHANNEL_SOLUTE,
            "currency": params.currency,
            "amount": volume * params.concentration,
            "process_domain": "channel",
            "linked_cell": CHANNEL_WATER,
        },
    ]
    transports = [
        {"index": WATER_INFLOW, "currency": WATER, "upstream": None, "downstream": CHANNEL_WATER,
         "discharge": params.discharge},
        {"index": WATER_OUTFLOW, "currency": WATER, "upstream": CHANNEL_WATER, "downstream": None,
         "discharge": params.discharge},
        {"index": SOLUTE_INFLOW, "currency": params.currency, "upstream": None, "downstream": CHANNEL_SOLUTE,
         "load": params.load, "water_boundary": WATER_INFLOW},
        {"index": SOLUTE_OUTFLOW, "currency": params.currency, "upstream": CHANNEL_SOLUTE, "downstream": None,
         "water_boundary": WATER_OUTFLOW},
    ]
    reactions = [
        {
            "index": STORAGE_REACTION,
            "cell": CHANNEL_SOLUTE,
            "alpha": params.alpha,
            "k": params.k,
            "vol_water_in_storage": params.vol_water_in_storage,
            "tau_min": params.tau_min,
            "tau_max": params.tau_max,
            "tau_rxn": params.tau_rxn,
        }
    ]
    return {"cells": cells, "transports": transports, "reactions": reactions}


def build_reach_model(params: ReachParameters, engine: Optional[EngineConfig] = None) -> Model:
    tables = reach_tables(params)
    return build_model(tables["cells"], tables["transports"], tables["reactions"], config=engine)


def default_targets() -> List[tuple]:
    """Attributes recorded for a reach run."""
    return [
        ("cell", CHANNEL_SOLUTE, ["amount", "concentration"]),
        ("transport", SOLUTE_OUTFLOW, ["load", "quantity_moved"]),
        (
            "reaction",
            STORAGE_REACTION,
            ["q_storage", "damkohler_num", "damkohler_num_storage", "fraction_removed", "amount_to_remove"],
        ),
    ]
