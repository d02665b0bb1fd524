"""Recorder: polls named attributes of model entities at a fixed interval."""

from typing import Iterable, List, Sequence, Tuple

import pandas as pd

from ..engine.model import Model

Target = Tuple[str, int, Sequence[str]]


class Recorder:
    """Collects one row of attribute values every ``interval`` iterations."""

    def __init__(self, model: Model, targets: Iterable[Target], interval: int = 1):
        if interval <= 0:
            raise ValueError("interval must be positive.")
        self.model = model
        self.interval = int(interval)
        self.targets: List[Target] = []
        for kind, index, names in targets:
            entity = model.entity(kind, index)
            for name in names:
                if name not in entity.ATTRIBUTES:
                    raise KeyError(f"{kind} {index} has no attribute '{name}'; valid: {list(entity.ATTRIBUTES)}")
            self.targets.append((kind, int(index), list(names)))
        self.rows: List[dict] = []

    @staticmethod
    def column_name(kind: str, index: int, name: str) -> str:
        return f"{kind}{index}_{name}"

    def columns(self) -> List[str]:
        names = ["time", "iteration"]
        for kind, index, attrs in self.targets:
            names.extend(self.column_name(kind, index, attr) for attr in attrs)
        return names

    def record(self) -> dict:
        row = {"time": self.model.time, "iteration": self.model.iteration}
        for kind, index, attrs in self.targets:
            for attr in attrs:
                row[self.column_name(kind, index, attr)] = self.model.get_attribute(kind, index, attr)
        self.rows.append(row)
        return row

    def poll(self) -> bool:
        """Record if the model's iteration count falls on the interval."""
        if self.model.iteration % self.interval != 0:
            return False
        if self.rows and self.rows[-1]["iteration"] == self.model.iteration:
            return False
        self.record()
        return True

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.columns())
