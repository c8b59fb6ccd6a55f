"""Acceleration-magnitude motion trigger.

Flags "the wand was flicked" as soon as any sample's acceleration magnitude
exceeds a threshold in g. Fires once, then stays latched until reset, so a
single flick produces a single event.
"""

from __future__ import annotations

import math
from typing import Sequence

from wandcast.integrator import SensorSample


def acceleration_magnitude(sample: SensorSample) -> float:
    a = sample.acceleration
    return math.sqrt(a.x * a.x + a.y * a.y + a.z * a.z)


class MotionDetector:
    """Latching threshold detector over acceleration magnitude."""

    def __init__(self, threshold_g: float = 2.0):
        self.threshold_g = threshold_g
        self._triggered = False
        self.peak: float = 0.0

    @property
    def triggered(self) -> bool:
        return self._triggered

    def feed(self, samples: Sequence[SensorSample]) -> bool:
        """Returns True only for the batch that first crosses the threshold."""
        if self._triggered:
            return False

        for sample in samples:
            magnitude = acceleration_magnitude(sample)
            self.peak = max(self.peak, magnitude)
            if magnitude > self.threshold_g:
                self._triggered = True
                return True
        return False

    def reset(self):
        self._triggered = False
        self.peak = 0.0
