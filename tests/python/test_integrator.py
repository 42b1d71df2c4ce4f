from __future__ import annotations

from pygame.math import Vector2
from pytest import approx

from boids.sim.core.agent import Agent
from boids.sim.core.config import BoidsConfig
from boids.sim.core.rng import DeterministicRng
from boids.sim.systems import rules
from boids.sim.systems.integrator import integrate_agent, steer_direction, wrap_position

_STILL = dict(
    randomness_weight=0.0,
    momentum_weight=0.0,
    avoidance_weight=0.0,
    cohesion_weight=0.0,
    consistency_weight=0.0,
)


def _agent(agent_id: int, x: float, y: float, vx: float = 0.0, vy: float = 0.0, alive: bool = True) -> Agent:
    return Agent(id=agent_id, position=Vector2(x, y), velocity=Vector2(vx, vy), alive=alive)


def test_steer_direction_rescales_to_jump_speed():
    small = steer_direction(Vector2(0.03, 0.04), 5.0)
    large = steer_direction(Vector2(300.0, 400.0), 5.0)
    assert (small.x, small.y) == (approx(3.0), approx(4.0))
    assert (large.x, large.y) == (approx(3.0), approx(4.0))
    assert large.length() == approx(5.0)


def test_steer_direction_keeps_zero_vector():
    result = steer_direction(Vector2(), 5.0)
    assert (result.x, result.y) == (0.0, 0.0)


def test_wrap_position_is_modulo_in_both_directions():
    wrapped = wrap_position(Vector2(-1.5, 105.0), 100.0, 50.0)
    assert (wrapped.x, wrapped.y) == (approx(98.5), approx(5.0))

    far = wrap_position(Vector2(250.0, -120.0), 100.0, 50.0)
    assert (far.x, far.y) == (approx(50.0), approx(30.0))


def test_wrap_position_stays_half_open():
    wrapped = wrap_position(Vector2(-1e-18, 50.0), 100.0, 50.0)
    assert (wrapped.x, wrapped.y) == (0.0, 0.0)


def test_dead_agent_is_returned_unchanged():
    corpse = _agent(0, 1.0, 2.0, 0.5, 0.5, alive=False)
    config = BoidsConfig()
    assert integrate_agent(corpse, [_agent(1, 2.0, 2.0)], config, DeterministicRng(1)) is corpse


def test_zero_steering_only_keeps_smoothed_momentum():
    config = BoidsConfig(width=100.0, height=100.0, **_STILL)
    moving = integrate_agent(_agent(0, 10.0, 10.0, 2.0, 0.0), [], config, DeterministicRng(1))
    assert (moving.velocity.x, moving.velocity.y) == (approx(1.4), 0.0)
    assert (moving.position.x, moving.position.y) == (approx(11.4), approx(10.0))

    still = integrate_agent(_agent(1, 10.0, 10.0), [], config, DeterministicRng(1))
    assert (still.velocity.x, still.velocity.y) == (0.0, 0.0)
    assert (still.position.x, still.position.y) == (10.0, 10.0)
    assert still.alive


def test_lone_agent_blends_momentum_and_randomness():
    config = BoidsConfig(randomness_weight=2.0, momentum_weight=1.0, jump_speed=3.0, width=100.0, height=100.0)
    agent = _agent(0, 50.0, 50.0, 1.0, -0.5)

    moved = integrate_agent(agent, [], config, DeterministicRng(3))

    jitter = rules.randomness(DeterministicRng(3))
    raw = jitter * 2.0 + Vector2(1.0, -0.5)
    direction = raw * (3.0 / raw.length())
    expected = Vector2(1.0, -0.5) * 0.7 + direction * 0.3
    assert moved.velocity.x == approx(expected.x)
    assert moved.velocity.y == approx(expected.y)
    assert moved.position.x == approx(50.0 + expected.x)
    assert moved.position.y == approx(50.0 + expected.y)
    assert moved.velocity.length() <= config.jump_speed + 1e-9


def test_velocity_never_exceeds_jump_speed():
    config = BoidsConfig(avoidance_weight=50.0, jump_speed=2.0, width=100.0, height=100.0)
    agent = _agent(0, 10.0, 10.0, 2.0, 0.0)
    crowd = [_agent(idx, 10.0 + idx * 0.1, 10.0 - idx * 0.05, 0.0, 2.0) for idx in range(1, 8)]
    moved = integrate_agent(agent, crowd, config, DeterministicRng(11))
    assert moved.velocity.length() <= config.jump_speed + 1e-9
