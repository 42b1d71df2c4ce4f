from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    alive: int
    dead: int
    neighbor_count: int
    average_neighbors: float
    average_speed: float
    tick_duration_ms: float = 0.0
