from __future__ import annotations

import math

from pygame.math import Vector2


def _safe_normalize_xy(x: float, y: float) -> Vector2:
    magnitude_sq = x * x + y * y
    if magnitude_sq == 0.0:
        return Vector2()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _clamp_length_xy(x: float, y: float, max_length: float) -> Vector2:
    if max_length <= 0:
        return Vector2()
    magnitude_sq = x * x + y * y
    if magnitude_sq <= max_length * max_length:
        return Vector2(x, y)
    inv = max_length / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _facing_degrees(vector: Vector2) -> float:
    # atan2(0, 0) is defined in Python but the zero vector has no facing.
    if vector.x == 0.0 and vector.y == 0.0:
        return 0.0
    return math.degrees(math.atan2(vector.y, vector.x))


def _wrap_value(value: float, size: float) -> float:
    wrapped = value % size
    # Tiny negative values round up to exactly `size` under float modulo.
    if wrapped >= size:
        return 0.0
    return wrapped
