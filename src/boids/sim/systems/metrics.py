from __future__ import annotations

from typing import Sequence

from ..core.agent import Agent
from ..types.metrics import TickMetrics


def create_metrics(
    tick: int,
    agents: Sequence[Agent],
    neighbor_count: int,
    duration_ms: float,
) -> TickMetrics:
    alive = 0
    speed_sum = 0.0
    for agent in agents:
        if agent.alive:
            alive += 1
            speed_sum += agent.velocity.length()
    population = len(agents)
    return TickMetrics(
        tick=tick,
        population=population,
        alive=alive,
        dead=population - alive,
        neighbor_count=neighbor_count,
        average_neighbors=0.0 if alive == 0 else neighbor_count / alive,
        average_speed=0.0 if alive == 0 else speed_sum / alive,
        tick_duration_ms=duration_ms,
    )
