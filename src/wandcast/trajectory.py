"""Template matching for 2-D wand strokes.

Both the captured stroke and the reference shape go through the same steps:

1. normalize_path: uniform scale into a target square, centered
2. resample_path:  N points equally spaced along the arc
3. path_distance:  mean distance between points at the same index

The comparison is deliberately order-sensitive: a stroke drawn backwards or
rotated does not match, since spells encode where the stroke starts and ends.

Usage:
    result = match_paths(captured_points, reference_points)
    if result.passed:
        print(f"Cast! distance={result.distance:.1f}")
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from wandcast.geometry import (
    Point,
    as_array,
    bounding_box,
    distance,
    from_array,
    lerp,
    path_length,
)

DEFAULT_SAMPLE_COUNT = 64
DEFAULT_TARGET_SIZE = 100.0
DEFAULT_THRESHOLD = 20.0


@dataclass(frozen=True)
class MatchResult:
    """Outcome of comparing a stroke with a reference gesture."""
    distance: float  # mean point distance in canonical units, inf if degenerate
    passed: bool

    @classmethod
    def from_distance(cls, distance: float, threshold: float = DEFAULT_THRESHOLD) -> MatchResult:
        return cls(distance=distance, passed=distance < threshold)


def normalize_path(path: Sequence[Point], target_size: float = DEFAULT_TARGET_SIZE) -> list[Point]:
    """Scale and center a path into a ``target_size`` square, keeping aspect.

    A path whose bounding box is a single point is returned unchanged.
    """
    if not path:
        return list(path)

    min_x, min_y, max_x, max_y = bounding_box(path)
    width = max_x - min_x
    height = max_y - min_y
    if width == 0 and height == 0:
        return list(path)

    # Floor of 1 keeps tiny wobbles from being blown up to full size
    scale = target_size / max(width, height, 1.0)
    center = np.array([(min_x + max_x) / 2.0, (min_y + max_y) / 2.0])
    half = target_size / 2.0

    pts = (as_array(path) - center) * scale + half
    return from_array(pts)


def resample_path(path: Sequence[Point], n: int = DEFAULT_SAMPLE_COUNT) -> list[Point]:
    """Resample a path to exactly ``n`` points evenly spaced by arc length.

    Paths with fewer than 2 points cannot be resampled and are returned as-is.
    """
    if n < 2:
        raise ValueError(f"n must be >= 2, got {n}")
    if len(path) < 2:
        return list(path)

    total = path_length(path)
    if total == 0:
        return [path[0]] * n

    interval = total / (n - 1)
    pts = list(path)  # working copy, interpolated points are spliced in
    resampled = [pts[0]]
    accumulated = 0.0

    i = 1
    while i < len(pts) and len(resampled) < n:
        seg = distance(pts[i - 1], pts[i])
        if seg > 0 and accumulated + seg >= interval:
            q = lerp(pts[i - 1], pts[i], (interval - accumulated) / seg)
            resampled.append(q)
            pts.insert(i, q)
            accumulated = 0.0
        else:
            accumulated += seg
        i += 1

    # Float accumulation can leave the last mark just past the end
    while len(resampled) < n:
        resampled.append(path[-1])

    return resampled


def path_distance(a: Sequence[Point], b: Sequence[Point]) -> float:
    """Mean Euclidean distance between points at matching indices.

    Returns inf if either path has fewer than 2 points.
    """
    if len(a) < 2 or len(b) < 2:
        return math.inf
    if len(a) != len(b):
        raise ValueError(f"paths must have equal length, got {len(a)} and {len(b)}")

    diffs = as_array(a) - as_array(b)
    return float(np.linalg.norm(diffs, axis=1).mean())


def canonicalize(
    path: Sequence[Point],
    n: int = DEFAULT_SAMPLE_COUNT,
    target_size: float = DEFAULT_TARGET_SIZE,
) -> list[Point]:
    """Normalize then resample."""
    return resample_path(normalize_path(path, target_size), n)


def match_paths(
    captured: Sequence[Point],
    reference: Sequence[Point],
    n: int = DEFAULT_SAMPLE_COUNT,
    target_size: float = DEFAULT_TARGET_SIZE,
    threshold: float = DEFAULT_THRESHOLD,
) -> MatchResult:
    """Score a captured stroke against a reference shape."""
    if len(captured) < 2 or len(reference) < 2:
        return MatchResult(distance=math.inf, passed=False)

    dist = path_distance(
        canonicalize(captured, n, target_size),
        canonicalize(reference, n, target_size),
    )
    return MatchResult.from_distance(dist, threshold)
