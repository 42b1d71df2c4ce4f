from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, NamedTuple, Sequence, Tuple

from ..core.agent import Agent
from ..utils.math2d import _facing_degrees
from .metrics import TickMetrics


@dataclass(frozen=True, slots=True)
class Generation:
    tick: int
    agents: Tuple[Agent, ...]


class RenderedAgent(NamedTuple):
    id: int
    position: Tuple[float, float]
    facing_degrees: float
    alive: bool


RenderSink = Callable[[Sequence[RenderedAgent]], None]


def render_frame(generation: Generation) -> List[RenderedAgent]:
    return [
        RenderedAgent(
            id=agent.id,
            position=(agent.position.x, agent.position.y),
            facing_degrees=_facing_degrees(agent.velocity),
            alive=agent.alive,
        )
        for agent in generation.agents
    ]


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    agents: List[Dict[str, Any]]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotWorld:
    width: float
    height: float


@dataclass(slots=True)
class SnapshotMetadata:
    sim_dt: float
    tick_rate: float
    seed: int
    config_version: str
    jump_speed: float
    neighborhood_radius: float
