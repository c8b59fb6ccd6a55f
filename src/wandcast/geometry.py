"""2-D point type and path measurement helpers."""

from __future__ import annotations

import math
from typing import NamedTuple, Sequence

import numpy as np


class Point(NamedTuple):
    """A point in screen / canonical coordinates."""
    x: float
    y: float


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(b.x - a.x, b.y - a.y)


def path_length(path: Sequence[Point]) -> float:
    """Total length of a polyline (0 for fewer than 2 points)."""
    total = 0.0
    for i in range(1, len(path)):
        total += distance(path[i - 1], path[i])
    return total


def bounding_box(path: Sequence[Point]) -> tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y). Path must be non-empty."""
    xs = [p.x for p in path]
    ys = [p.y for p in path]
    return min(xs), min(ys), max(xs), max(ys)


def lerp(a: Point, b: Point, t: float) -> Point:
    return Point(a.x + t * (b.x - a.x), a.y + t * (b.y - a.y))


def as_array(path: Sequence[Point]) -> np.ndarray:
    """Path as an (N, 2) float64 array."""
    if not path:
        return np.zeros((0, 2), dtype=np.float64)
    return np.asarray(path, dtype=np.float64).reshape(-1, 2)


def from_array(arr: np.ndarray) -> list[Point]:
    return [Point(float(x), float(y)) for x, y in arr]
