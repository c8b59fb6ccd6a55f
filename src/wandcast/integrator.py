"""Angular-rate integration: turns wand gyroscope samples into screen points.

The wand's gyroscope reports angular rate around three axes. For 2-D drawing
only pitch and yaw matter:

    x += gyro.y * dt * sensitivity   (yaw sweeps left/right)
    y -= gyro.x * dt * sensitivity   (pitch sweeps up/down, screen y grows down)

Each raw step is passed through a single-pole exponential filter and clamped
to the 0 to 100 drawing square. Roll (gyro.z) is ignored.

Usage:
    state = IntegratorState()
    points, state = integrate(batch, state, dt=0.01, sensitivity=0.6, smoothing=0.5)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Sequence

from wandcast.geometry import Point

CANVAS_MIN = 0.0
CANVAS_MAX = 100.0
CENTER = Point(50.0, 50.0)


class Vector3(NamedTuple):
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class SensorSample:
    """One IMU reading. Acceleration in g, gyroscope in deg/s."""
    sequence_index: int
    acceleration: Vector3
    gyroscope: Vector3

    @classmethod
    def from_dict(cls, data: dict) -> SensorSample:
        return cls(
            sequence_index=int(data.get("sequence_index", 0)),
            acceleration=Vector3(*data["acceleration"]),
            gyroscope=Vector3(*data["gyroscope"]),
        )

    def to_dict(self) -> dict:
        return {
            "sequence_index": self.sequence_index,
            "acceleration": list(self.acceleration),
            "gyroscope": list(self.gyroscope),
        }


@dataclass(frozen=True)
class IntegratorState:
    """Last emitted position, carried from one batch to the next."""
    position: Point = field(default=CENTER)


def _clamp(value: float) -> float:
    return max(CANVAS_MIN, min(CANVAS_MAX, value))


def integrate(
    samples: Sequence[SensorSample],
    state: IntegratorState,
    dt: float,
    sensitivity: float,
    smoothing: float,
) -> tuple[list[Point], IntegratorState]:
    """Integrate a batch of samples starting from ``state``.

    Returns one point per sample and the state to feed into the next call.
    ``dt`` is the nominal sensor period, not a measured timestamp delta.
    """
    alpha = 1.0 - smoothing
    x, y = state.position
    points: list[Point] = []

    for sample in samples:
        gyro = sample.gyroscope
        raw_x = x + gyro.y * dt * sensitivity
        raw_y = y - gyro.x * dt * sensitivity
        x = _clamp(alpha * raw_x + (1.0 - alpha) * x)
        y = _clamp(alpha * raw_y + (1.0 - alpha) * y)
        points.append(Point(x, y))

    return points, IntegratorState(position=Point(x, y))


def check_tuning(sensitivity: float, smoothing: float) -> list[str]:
    """Describe tuning values that will give degenerate or unstable drawing.

    These are not errors: values at the edges are useful while tuning.
    """
    warnings = []
    if sensitivity <= 0:
        warnings.append(
            f"sensitivity={sensitivity} <= 0: the trace will barely move"
        )
    if not 0.0 <= smoothing < 1.0:
        warnings.append(
            f"smoothing={smoothing} outside [0, 1): filter will freeze or oscillate"
        )
    return warnings
