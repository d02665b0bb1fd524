"""Build a Model from declarative tables of cells and boundaries."""

import logging
from typing import Callable, List, Optional, Tuple, TypeVar

from .model import Model, network_problems
from ..config import EngineConfig
from ..data.schema import (
    CELL_OPTIONAL,
    CELL_REQUIRED,
    REACTION_OPTIONAL,
    REACTION_REQUIRED,
    TRANSPORT_OPTIONAL,
    TRANSPORT_REQUIRED,
    missing_required,
    parse_index,
    parse_numeric,
    parse_text,
    rows_from_table,
    unknown_columns,
)
from ..errors import ConfigurationError, NumericDomainError
from ..models.cells import WATER, Cell, SoluteCell, WaterCell
from ..models.reaction import PowerLawReaction
from ..models.transport import SoluteTransport, TransportBoundary, WaterTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _cell_from_row(row: dict) -> Cell:
    index = parse_index(row["index"])
    currency = parse_text(row["currency"])
    amount = parse_numeric(row["amount"])
    domain = parse_text(row.get("process_domain")) or "channel"
    if currency == WATER:
        return WaterCell(
            index,
            amount,
            process_domain=domain,
            length=parse_numeric(row.get("length")),
            area=parse_numeric(row.get("area")),
        )
    linked = parse_index(row.get("linked_cell"))
    if linked is None:
        raise ConfigurationError([f"cell {index}: solute cell '{currency}' needs a linked_cell"])
    return SoluteCell(index, currency, amount, linked, process_domain=domain)


def _transport_from_row(row: dict) -> TransportBoundary:
    index = parse_index(row["index"])
    currency = parse_text(row["currency"])
    upstream = parse_index(row.get("upstream"))
    downstream = parse_index(row.get("downstream"))
    if currency == WATER:
        discharge = parse_numeric(row.get("discharge"))
        if discharge is None:
            raise ConfigurationError([f"transport boundary {index}: water transport needs a discharge"])
        return WaterTransport(index, upstream, downstream, discharge)
    return SoluteTransport(
        index,
        currency,
        upstream,
        downstream,
        water_boundary=parse_index(row.get("water_boundary")),
        load=parse_numeric(row.get("load")),
        concentration=parse_numeric(row.get("concentration")),
    )


def _reaction_from_row(row: dict) -> PowerLawReaction:
    tau_rxn = parse_numeric(row.get("tau_rxn"))
    return PowerLawReaction(
        parse_index(row["index"]),
        parse_index(row["cell"]),
        alpha=parse_numeric(row["alpha"]),
        k=parse_numeric(row["k"]),
        vol_water_in_storage=parse_numeric(row["vol_water_in_storage"]),
        tau_min=parse_numeric(row["tau_min"]),
        tau_max=parse_numeric(row["tau_max"]),
        tau_rxn=0.0 if tau_rxn is None else tau_rxn,
    )


def _parse_table(
    table: object,
    name: str,
    required: List[str],
    optional: List[str],
    factory: Callable[[dict], T],
    problems: List[str],
    domain_errors: List[NumericDomainError],
) -> List[T]:
    entities: List[T] = []
    for position, row in enumerate(rows_from_table(table)):
        label = f"{name} row {position} (index {row.get('index', '?')})"
        missing = missing_required(row, required)
        if missing:
            problems.append(f"{label}: missing required fields {missing}")
            continue
        extra = unknown_columns(row, required, optional)
        if extra:
            problems.append(f"{label}: unknown fields {extra}")
            continue
        try:
            entities.append(factory(row))
        except NumericDomainError as exc:
            domain_errors.append(exc)
        except ConfigurationError as exc:
            problems.extend(exc.problems)
        except ValueError as exc:
            problems.append(f"{label}: {exc}")
    return entities


def parse_tables(cells: object, transports: object = None, reactions: object = None) -> Tuple[list, list, list]:
    """Parse all three tables, collecting every problem before failing."""
    problems: List[str] = []
    domain_errors: List[NumericDomainError] = []
    cell_list = _parse_table(cells, "cells", CELL_REQUIRED, CELL_OPTIONAL, _cell_from_row, problems, domain_errors)
    transport_list = _parse_table(
        transports, "transports", TRANSPORT_REQUIRED, TRANSPORT_OPTIONAL, _transport_from_row, problems, domain_errors
    )
    reaction_list = _parse_table(
        reactions, "reactions", REACTION_REQUIRED, REACTION_OPTIONAL, _reaction_from_row, problems, domain_errors
    )
    problems.extend(network_problems(cell_list, transport_list, reaction_list))
    if problems:
        problems.extend(str(exc) for exc in domain_errors)
        raise ConfigurationError(problems)
    if len(domain_errors) == 1:
        raise domain_errors[0]
    if domain_errors:
        raise NumericDomainError.collected(domain_errors)
    return cell_list, transport_list, reaction_list


def build_model(
    cells: object,
    transports: object = None,
    reactions: object = None,
    time_step: Optional[float] = None,
    config: Optional[EngineConfig] = None,
) -> Model:
    """Construct a ready Model from declarative tables.

    Parameters
    ----------
    cells, transports, reactions : DataFrame or sequence of mappings
        One row per entity; see ``reachflux.data.schema`` for the field names.
        Blank optional fields (None, "", NaN) mean "absent".
    time_step : float, optional
        Overrides ``config.time_step``.
    config : EngineConfig, optional

    Raises
    ------
    ConfigurationError
        Listing every malformed row and unresolved reference.
    NumericDomainError
        When the tables are well-formed but a reaction parameter is outside
        the closed-form domain.
    """
    config = config or EngineConfig()
    config.validate()
    cell_list, transport_list, reaction_list = parse_tables(cells, transports, reactions)
    logger.debug(
        "Parsed %d cells, %d transports, %d reactions", len(cell_list), len(transport_list), len(reaction_list)
    )
    return Model(cell_list, transport_list, reaction_list, time_step=time_step, config=config)
