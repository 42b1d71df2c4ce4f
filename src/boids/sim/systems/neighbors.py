from __future__ import annotations

import math
from typing import List, Sequence

from ..core.agent import Agent


def find_neighbors(agent: Agent, radius: float, agents: Sequence[Agent]) -> List[Agent]:
    """Return the other agents near ``agent``.

    A candidate must have a Manhattan offset of at most ``radius`` and a
    Euclidean distance strictly below it. The Manhattan test runs first and
    also drops diagonal candidates the circle alone would keep. Agents sharing
    the exact same position are never neighbours.
    """
    neighbors: List[Agent] = []
    pos_x = agent.position.x
    pos_y = agent.position.y
    for other in agents:
        if other.id == agent.id:
            continue
        offset_x = other.position.x - pos_x
        offset_y = other.position.y - pos_y
        manhattan = abs(offset_x) + abs(offset_y)
        if manhattan > radius or manhattan == 0.0:
            continue
        if math.hypot(offset_x, offset_y) < radius:
            neighbors.append(other)
    return neighbors
