"""Export helpers."""

import json
import math
from pathlib import Path
from typing import List, Mapping, Union

import pandas as pd

from .tables import sweep_results_table


def _prepare(path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _json_safe(value):
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    return value


def export_frame_csv(frame: pd.DataFrame, path: Union[str, Path]) -> Path:
    path = _prepare(path)
    frame.to_csv(path, index=False)
    return path


def export_summary_json(summary: Union[Mapping, List[Mapping]], path: Union[str, Path]) -> Path:
    path = _prepare(path)
    if isinstance(summary, Mapping):
        payload = {key: _json_safe(value) for key, value in summary.items()}
    else:
        payload = [{key: _json_safe(value) for key, value in row.items()} for row in summary]
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)
    return path


def export_sweep_results_csv(results: list, path: Union[str, Path]) -> Path:
    rows = sweep_results_table(results)
    return export_frame_csv(pd.DataFrame(rows), path)


def export_sweep_results_json(results: list, path: Union[str, Path]) -> Path:
    return export_summary_json(sweep_results_table(results), path)
