from __future__ import annotations

import math
from typing import Sequence

from pygame.math import Vector2

from ..core.agent import Agent
from ..core.config import BoidsConfig
from ..core.rng import RandomSource
from ..utils.math2d import _wrap_value
from . import rules

MOMENTUM_BLEND = 0.7
DIRECTION_BLEND = 0.3


def steer_direction(raw: Vector2, jump_speed: float) -> Vector2:
    magnitude = math.hypot(raw.x, raw.y)
    if magnitude > 0.0:
        scale = jump_speed / magnitude
        return Vector2(raw.x * scale, raw.y * scale)
    return Vector2()


def wrap_position(position: Vector2, width: float, height: float) -> Vector2:
    return Vector2(_wrap_value(position.x, width), _wrap_value(position.y, height))


def raw_velocity(
    agent: Agent,
    neighbors: Sequence[Agent],
    config: BoidsConfig,
    rng: RandomSource,
) -> Vector2:
    return (
        rules.randomness(rng) * config.randomness_weight
        + rules.momentum(agent) * config.momentum_weight
        + rules.avoidance(agent, neighbors) * config.avoidance_weight
        + rules.cohesion(agent, neighbors) * config.cohesion_weight
        + rules.consistency(agent, neighbors) * config.consistency_weight
    )


def integrate_agent(
    agent: Agent,
    neighbors: Sequence[Agent],
    config: BoidsConfig,
    rng: RandomSource,
) -> Agent:
    """Advance one agent by a tick, returning a new record.

    The steering direction is rescaled to the fixed jump speed and blended
    with the previous velocity. The result is both this tick's displacement
    and the velocity stored for the next tick. Dead agents come back as is.
    """
    if not agent.alive:
        return agent
    direction = steer_direction(raw_velocity(agent, neighbors, config, rng), config.jump_speed)
    previous = agent.velocity
    velocity = Vector2(
        MOMENTUM_BLEND * previous.x + DIRECTION_BLEND * direction.x,
        MOMENTUM_BLEND * previous.y + DIRECTION_BLEND * direction.y,
    )
    position = wrap_position(agent.position + velocity, config.width, config.height)
    return agent.advanced(position, velocity)
