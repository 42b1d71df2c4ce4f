from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

import yaml


class ConfigError(ValueError):
    """Raised when a configuration cannot drive a simulation."""


_POSITIVE_FIELDS = (
    "neighborhood_radius",
    "jump_speed",
    "width",
    "height",
    "time_step",
)

# Fields that must hold whole numbers; everything else numeric accepts int or float.
_INTEGER_FIELDS = {"population_size": (int,), "seed": (int,)}


@dataclass(frozen=True)
class BoidsConfig:
    randomness_weight: float = 1.0
    neighborhood_radius: float = 60.0
    momentum_weight: float = 1.0
    avoidance_weight: float = 1.0
    cohesion_weight: float = 1.0
    consistency_weight: float = 1.0
    jump_speed: float = 4.0
    dead_proportion: float = 0.05
    width: float = 800.0
    height: float = 600.0
    population_size: int = 60
    seed: int = 42
    time_step: float = 1.0 / 30.0
    config_version: str = "v1"

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if item.name == "config_version":
                if not isinstance(value, str):
                    raise ConfigError(f"config_version must be a string, got {value!r}")
                continue
            if isinstance(value, bool) or not isinstance(value, _INTEGER_FIELDS.get(item.name, (int, float))):
                raise ConfigError(f"{item.name} must be a number, got {value!r}")
            if isinstance(value, float) and not math.isfinite(value):
                raise ConfigError(f"{item.name} must be finite, got {value!r}")
        for name in _POSITIVE_FIELDS:
            value = getattr(self, name)
            if value <= 0:
                raise ConfigError(f"{name} must be positive, got {value!r}")
        if self.population_size <= 0:
            raise ConfigError(f"population_size must be positive, got {self.population_size!r}")
        if not 0.0 <= self.dead_proportion <= 1.0:
            raise ConfigError(f"dead_proportion must lie in [0, 1], got {self.dead_proportion!r}")

    @staticmethod
    def from_yaml(path: Path) -> "BoidsConfig":
        # Files may carry host keys such as `broadcast_interval`.
        return AppConfig.from_yaml(path).simulation


@dataclass(frozen=True)
class AppConfig:
    simulation: BoidsConfig = field(default_factory=BoidsConfig)
    broadcast_interval: int = 1

    @staticmethod
    def from_yaml(path: Path) -> "AppConfig":
        data = yaml.safe_load(Path(path).read_text())
        return load_app_config(data or {})


def load_config(raw: Dict[str, Any]) -> BoidsConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"configuration must be a mapping, got {type(raw).__name__}")
    # Older files nest everything under a `simulation` key.
    values = raw.get("simulation", raw)
    known = {item.name for item in fields(BoidsConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")
    return BoidsConfig(**values)


def load_app_config(raw: Dict[str, Any]) -> AppConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"configuration must be a mapping, got {type(raw).__name__}")
    values = dict(raw)
    broadcast_interval = values.pop("broadcast_interval", 1)
    if isinstance(broadcast_interval, bool) or not isinstance(broadcast_interval, int) or broadcast_interval < 1:
        raise ConfigError(f"broadcast_interval must be a positive integer, got {broadcast_interval!r}")
    return AppConfig(simulation=load_config(values), broadcast_interval=broadcast_interval)
