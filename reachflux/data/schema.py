"""Input schema helpers for the declarative cell and boundary tables."""

import math
from typing import Iterable, List, Mapping, Optional, Sequence

CELL_REQUIRED = ["index", "currency", "amount"]
CELL_OPTIONAL = ["process_domain", "linked_cell", "length", "area"]

TRANSPORT_REQUIRED = ["index", "currency"]
TRANSPORT_OPTIONAL = ["upstream", "downstream", "discharge", "load", "concentration", "water_boundary"]

REACTION_REQUIRED = ["index", "cell", "alpha", "k", "vol_water_in_storage", "tau_min", "tau_max"]
REACTION_OPTIONAL = ["tau_rxn"]


def rows_from_table(table: object) -> List[dict]:
    """Accept a pandas DataFrame or a sequence of mappings; return plain dicts."""
    if table is None:
        return []
    if hasattr(table, "to_dict") and hasattr(table, "columns"):
        return [dict(row) for row in table.to_dict("records")]
    if isinstance(table, Sequence):
        rows = []
        for row in table:
            if not isinstance(row, Mapping):
                raise TypeError("Table rows must be mappings of field name to value.")
            rows.append(dict(row))
        return rows
    raise TypeError("Unsupported table input type.")


def is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float):
        return math.isnan(value)
    return False


def missing_required(row: Mapping[str, object], required: Iterable[str]) -> List[str]:
    return [col for col in required if col not in row or is_blank(row[col])]


def unknown_columns(row: Mapping[str, object], required: Iterable[str], optional: Iterable[str]) -> List[str]:
    known = set(required) | set(optional)
    return sorted(str(key) for key in row if key not in known)


def parse_numeric(value: object) -> Optional[float]:
    """float or None for blank input; raises ValueError for text that is not a number."""
    if is_blank(value):
        return None
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().lower()
    if text in {"inf", "+inf", "infinity"}:
        return math.inf
    return float(text)


def parse_index(value: object) -> Optional[int]:
    number = parse_numeric(value)
    if number is None:
        return None
    if not math.isfinite(number) or number != int(number):
        raise ValueError(f"expected an integer index, got {value!r}")
    return int(number)


def parse_text(value: object) -> Optional[str]:
    if is_blank(value):
        return None
    return str(value).strip()
