from __future__ import annotations

from typing import List, Sequence

from pygame.math import Vector2

from ..core.agent import Agent
from ..core.rng import RandomSource
from ..utils.math2d import _safe_normalize_xy

RANDOM_JITTER = 0.05
AVOIDANCE_SCALE = 9000.0
COHESION_SCALE = -1.0 / 100.0


def live_neighbors(neighbors: Sequence[Agent]) -> List[Agent]:
    return [other for other in neighbors if other.alive]


def momentum(agent: Agent) -> Vector2:
    return Vector2(agent.velocity)


def randomness(rng: RandomSource) -> Vector2:
    x = rng.next_range(-1.0, 1.0)
    y = rng.next_range(-1.0, 1.0)
    return _safe_normalize_xy(x, y) * RANDOM_JITTER


def avoidance(agent: Agent, neighbors: Sequence[Agent]) -> Vector2:
    """Push away from every neighbour, dead ones included.

    Each neighbour contributes ``offset / (|offset|^2 + 1)`` where ``offset``
    points from the neighbour to ``agent``.
    """
    sum_x = 0.0
    sum_y = 0.0
    pos = agent.position
    for other in neighbors:
        offset_x = pos.x - other.position.x
        offset_y = pos.y - other.position.y
        denom = offset_x * offset_x + offset_y * offset_y + 1.0
        sum_x += offset_x / denom
        sum_y += offset_y / denom
    scale = AVOIDANCE_SCALE / max(1, len(neighbors))
    return Vector2(sum_x * scale, sum_y * scale)


def cohesion(agent: Agent, neighbors: Sequence[Agent]) -> Vector2:
    """Pull toward the centre of the live neighbours.

    The mean offset is divided by the live count a second time, so the pull
    weakens as the local flock grows.
    """
    live = live_neighbors(neighbors)
    if not live:
        return Vector2()
    count = max(1, len(live))
    sum_x = 0.0
    sum_y = 0.0
    pos = agent.position
    for other in live:
        sum_x += pos.x - other.position.x
        sum_y += pos.y - other.position.y
    scale = COHESION_SCALE / count / count
    return Vector2(sum_x * scale, sum_y * scale)


def consistency(agent: Agent, neighbors: Sequence[Agent]) -> Vector2:
    live = live_neighbors(neighbors)
    sum_x = 0.0
    sum_y = 0.0
    for other in live:
        sum_x += other.velocity.x
        sum_y += other.velocity.y
    count = max(1, len(live))
    return Vector2(sum_x / count, sum_y / count)
