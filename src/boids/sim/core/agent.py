from __future__ import annotations

from dataclasses import dataclass

from pygame.math import Vector2


@dataclass(frozen=True, slots=True)
class Agent:
    """One boid in a single generation.

    ``velocity`` is the last displacement applied to the agent. It doubles as
    next tick's momentum and as the facing direction when rendering. Vectors
    held by an Agent are never mutated after construction.
    """

    id: int
    position: Vector2
    velocity: Vector2
    alive: bool = True

    def advanced(self, position: Vector2, velocity: Vector2) -> "Agent":
        return Agent(id=self.id, position=position, velocity=velocity, alive=self.alive)
