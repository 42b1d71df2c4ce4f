from __future__ import annotations

import logging
from operator import attrgetter
from time import perf_counter
from typing import Any, Dict, List, Optional, Tuple

from pygame.math import Vector2

from .agent import Agent
from .config import BoidsConfig
from .rng import DeterministicRng, RandomSource, agent_stream
from ..systems import metrics as metrics_system
from ..systems.integrator import integrate_agent
from ..systems.neighbors import find_neighbors
from ..types.metrics import TickMetrics
from ..types.snapshot import (
    Generation,
    RenderSink,
    Snapshot,
    SnapshotMetadata,
    SnapshotWorld,
    render_frame,
)
from ..utils.math2d import _clamp_length_xy, _facing_degrees, _wrap_value

logger = logging.getLogger(__name__)

_TICK_SEED_RANGE = 1 << 63
_INITIAL_VELOCITY_RANGE = 1.0


def bootstrap_generation(config: BoidsConfig, rng: RandomSource) -> Generation:
    agents = []
    for agent_id in range(config.population_size):
        position = Vector2(
            _wrap_value(rng.next_range(0.0, config.width), config.width),
            _wrap_value(rng.next_range(0.0, config.height), config.height),
        )
        velocity = _clamp_length_xy(
            rng.next_range(-_INITIAL_VELOCITY_RANGE, _INITIAL_VELOCITY_RANGE),
            rng.next_range(-_INITIAL_VELOCITY_RANGE, _INITIAL_VELOCITY_RANGE),
            config.jump_speed,
        )
        alive = rng.next_float() >= config.dead_proportion
        agents.append(Agent(id=agent_id, position=position, velocity=velocity, alive=alive))
    return Generation(tick=0, agents=tuple(agents))


def _advance(generation: Generation, config: BoidsConfig, rng: RandomSource) -> Tuple[Generation, int]:
    # One draw per tick; every agent then gets its own stream keyed by id,
    # which keeps the result independent of iteration order.
    tick_seed = rng.next_int(_TICK_SEED_RANGE)
    current = generation.agents
    # Neighbour sums accumulate in id order so float results do not depend
    # on how the generation happens to be stored.
    candidates = sorted(current, key=attrgetter("id"))
    radius = config.neighborhood_radius
    neighbor_count = 0
    next_agents: List[Agent] = []
    for agent in current:
        if not agent.alive:
            next_agents.append(agent)
            continue
        neighbors = find_neighbors(agent, radius, candidates)
        neighbor_count += len(neighbors)
        next_agents.append(integrate_agent(agent, neighbors, config, agent_stream(tick_seed, agent.id)))
    return Generation(tick=generation.tick + 1, agents=tuple(next_agents)), neighbor_count


def next_generation(generation: Generation, config: BoidsConfig, rng: RandomSource) -> Generation:
    """Compute the generation that follows ``generation``.

    Pure apart from consuming ``rng``: every agent reads only the previous
    generation, and the input is left untouched.
    """
    advanced, _ = _advance(generation, config, rng)
    return advanced


class World:
    def __init__(self, config: BoidsConfig, rng: Optional[RandomSource] = None):
        self._config = config
        self._rng: RandomSource = rng if rng is not None else DeterministicRng(config.seed)
        self._sinks: List[RenderSink] = []
        self._metrics: TickMetrics | None = None
        self._generation = bootstrap_generation(config, self._rng)
        self._log_bootstrap()

    @property
    def config(self) -> BoidsConfig:
        return self._config

    @property
    def generation(self) -> Generation:
        return self._generation

    @property
    def agents(self) -> Tuple[Agent, ...]:
        return self._generation.agents

    @property
    def tick(self) -> int:
        return self._generation.tick

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def add_sink(self, sink: RenderSink) -> None:
        self._sinks.append(sink)

    def remove_sink(self, sink: RenderSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def reset(self) -> None:
        if isinstance(self._rng, DeterministicRng):
            self._rng.reset()
        self._metrics = None
        self._generation = bootstrap_generation(self._config, self._rng)
        self._log_bootstrap()
        self._publish(self._generation)

    def step(self) -> TickMetrics:
        start = perf_counter()
        advanced, neighbor_count = _advance(self._generation, self._config, self._rng)
        elapsed_ms = (perf_counter() - start) * 1000.0
        self._generation = advanced
        metrics = metrics_system.create_metrics(advanced.tick, advanced.agents, neighbor_count, elapsed_ms)
        self._metrics = metrics
        logger.debug(
            "tick=%d alive=%d neighbor_count=%d avg_speed=%.4f tick_ms=%.3f",
            metrics.tick,
            metrics.alive,
            metrics.neighbor_count,
            metrics.average_speed,
            metrics.tick_duration_ms,
        )
        self._publish(advanced)
        return metrics

    def snapshot(self) -> Snapshot:
        generation = self._generation
        metrics = self._metrics
        if metrics is None or metrics.tick != generation.tick:
            metrics = metrics_system.create_metrics(generation.tick, generation.agents, 0, 0.0)
        config = self._config
        metadata = SnapshotMetadata(
            sim_dt=config.time_step,
            tick_rate=1.0 / config.time_step,
            seed=config.seed,
            config_version=config.config_version,
            jump_speed=config.jump_speed,
            neighborhood_radius=config.neighborhood_radius,
        )
        return Snapshot(
            tick=generation.tick,
            metrics=metrics,
            agents=[self._agent_snapshot(agent) for agent in generation.agents],
            world=SnapshotWorld(width=config.width, height=config.height),
            metadata=metadata,
        )

    def _publish(self, generation: Generation) -> None:
        if not self._sinks:
            return
        frame = render_frame(generation)
        for sink in list(self._sinks):
            sink(frame)

    def _log_bootstrap(self) -> None:
        alive = sum(1 for agent in self._generation.agents if agent.alive)
        logger.info(
            "bootstrapped population=%d alive=%d dead=%d seed=%d",
            len(self._generation.agents),
            alive,
            len(self._generation.agents) - alive,
            self._config.seed,
        )

    @staticmethod
    def _agent_snapshot(agent: Agent) -> Dict[str, Any]:
        return {
            "id": agent.id,
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": agent.velocity.x,
            "vy": agent.velocity.y,
            "heading": _facing_degrees(agent.velocity),
            "speed": agent.velocity.length(),
            "is_alive": agent.alive,
        }
