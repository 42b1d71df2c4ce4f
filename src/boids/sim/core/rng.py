from __future__ import annotations

import random
from typing import Protocol

_STREAM_MASK = 0xFFFFFFFFFFFFFFFF
_AGENT_RNG_SALT = 0x9E3779B97F4A7C15


class RandomSource(Protocol):
    """Randomness capability consumed by the simulation core."""

    def next_float(self) -> float: ...

    def next_range(self, low: float, high: float) -> float: ...

    def next_int(self, max_value: int) -> int: ...


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_int(self, max_value: int) -> int:
        return self._random.randrange(max_value)


def derive_stream_seed(seed: int, stream_id: int) -> int:
    return (int(seed) ^ ((int(stream_id) + 1) * _AGENT_RNG_SALT)) & _STREAM_MASK


def agent_stream(tick_seed: int, agent_id: int) -> DeterministicRng:
    return DeterministicRng(derive_stream_seed(tick_seed, agent_id))
