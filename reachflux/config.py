"""Configuration defaults for reachflux."""

import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, get_args

import yaml

from .errors import ConfigurationError

SECONDS_PER_DAY = 86400.0

# The reference study treats a year of storage as "effectively infinite".
DEFAULT_TAU_MAX = 365.0 * SECONDS_PER_DAY


def _unwrap_optional(annotation):
    args = get_args(annotation)
    if args and type(None) in args:
        return next(a for a in args if a is not type(None)), True
    return annotation, False


def type_problems(instance) -> List[str]:
    """Fields of a config dataclass whose values do not match their scalar annotation."""
    problems: List[str] = []
    for f in fields(instance):
        value = getattr(instance, f.name)
        expected, optional = _unwrap_optional(f.type)
        if value is None and optional:
            continue
        if expected is float:
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif expected is int:
            ok = isinstance(value, int) and not isinstance(value, bool)
        elif expected in (str, bool):
            ok = isinstance(value, expected)
        else:
            continue
        if not ok:
            problems.append(f"{f.name} must be {expected.__name__}, got {value!r}.")
    return problems


@dataclass
class EngineConfig:
    time_step: float = 60.0
    negative_mass_tolerance: float = 0.0
    steady_state_tolerance: float = 1e-9
    max_iterations: int = 100000
    max_seconds: Optional[float] = None
    output_interval: int = 1
    check_interval: int = 1

    def validate(self) -> None:
        problems = type_problems(self)
        if problems:
            raise ConfigurationError(problems)
        if not self.time_step > 0 or not math.isfinite(self.time_step):
            problems.append("time_step must be a positive finite number.")
        if self.negative_mass_tolerance < 0:
            problems.append("negative_mass_tolerance must be non-negative.")
        if self.steady_state_tolerance < 0:
            problems.append("steady_state_tolerance must be non-negative.")
        if self.max_iterations <= 0:
            problems.append("max_iterations must be positive.")
        if self.max_seconds is not None and self.max_seconds <= 0:
            problems.append("max_seconds must be positive when set.")
        if self.output_interval <= 0:
            problems.append("output_interval must be positive.")
        if self.check_interval <= 0:
            problems.append("check_interval must be positive.")
        if problems:
            raise ConfigurationError(problems)


@dataclass
class ReachParameters:
    """Hydrologic and kinetic parameters of a single stream reach."""

    discharge: float = 0.069  # m3/s
    reach_length: float = 250.0  # m
    reach_width: float = 0.7  # m
    reach_depth: float = 0.3  # m
    concentration: float = 19.3  # g/m3 at the inflow
    alpha: float = 1.6
    k: float = 1e-5  # 1/s
    vol_water_in_storage: float = 50.0  # m3
    tau_min: float = 60.0  # s
    tau_max: float = DEFAULT_TAU_MAX  # s
    tau_rxn: float = 0.0  # s
    currency: str = "NO3"

    @property
    def channel_volume(self) -> float:
        return self.reach_length * self.reach_width * self.reach_depth

    @property
    def load(self) -> float:
        return self.discharge * self.concentration

    def validate(self) -> None:
        problems = type_problems(self)
        if problems:
            raise ConfigurationError(problems)
        if self.discharge < 0:
            problems.append("discharge must be non-negative.")
        for name in ("reach_length", "reach_width", "reach_depth"):
            if getattr(self, name) <= 0:
                problems.append(f"{name} must be positive.")
        if self.concentration < 0:
            problems.append("concentration must be non-negative.")
        if not self.currency:
            problems.append("currency must be a non-empty string.")
        if problems:
            raise ConfigurationError(problems)


@dataclass
class RunConfig:
    """Everything a single simulation unit needs; no shared state between runs."""

    run_id: str = "run"
    output_dir: Optional[str] = None
    engine: EngineConfig = field(default_factory=EngineConfig)
    reach: ReachParameters = field(default_factory=ReachParameters)
    write_csv: bool = True
    write_checkpoint: bool = False

    def validate(self) -> None:
        self.engine.validate()
        self.reach.validate()
        if (self.write_csv or self.write_checkpoint) and not self.output_dir:
            raise ConfigurationError(["output_dir is required when writing outputs."])


def load_config(path: Path) -> dict:
    path = Path(path)
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _from_mapping(cls, mapping: Mapping[str, Any], section: str):
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(mapping) - known)
    if unknown:
        raise ConfigurationError([f"unknown {section} keys: {unknown}"])
    instance = cls(**dict(mapping))
    problems = type_problems(instance)
    if problems:
        raise ConfigurationError([f"{section}: {p}" for p in problems])
    return instance


def engine_config_from_mapping(mapping: Mapping[str, Any]) -> EngineConfig:
    return _from_mapping(EngineConfig, mapping, "engine")


def reach_parameters_from_mapping(mapping: Mapping[str, Any]) -> ReachParameters:
    values: Dict[str, Any] = dict(mapping)
    # YAML has no literal for infinity beyond ".inf"; accept the string too.
    if isinstance(values.get("tau_max"), str) and values["tau_max"].strip().lower() in {"inf", "infinity"}:
        values["tau_max"] = math.inf
    return _from_mapping(ReachParameters, values, "reach")


def run_config_from_mapping(mapping: Mapping[str, Any]) -> RunConfig:
    values = dict(mapping)
    engine = engine_config_from_mapping(values.pop("engine", None) or {})
    reach = reach_parameters_from_mapping(values.pop("reach", None) or {})
    values.pop("sweep", None)
    config = _from_mapping(RunConfig, values, "run")
    config.engine = engine
    config.reach = reach
    return config


def default_config() -> EngineConfig:
    return EngineConfig()
