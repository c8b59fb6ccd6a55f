"""Prometheus-style metrics for casting attempts.

Renders the text exposition format directly, no client library needed.

Tracked metrics:
- wandcast_attempts_total (counter, by gesture and result)
- wandcast_match_distance (histogram of finite match distances)
- wandcast_degenerate_attempts_total (counter, strokes too short to score)
- wandcast_samples_total (counter)
- wandcast_uptime_seconds (gauge)
"""

from __future__ import annotations

import math
import threading
import time
from collections import Counter
from typing import Optional


class _Histogram:
    """Simple histogram with configurable buckets.

    Each observation lands in the first bucket whose bound it fits under, so
    ``bucket_counts`` are per bucket. render() sums them into the cumulative
    ``le`` series Prometheus expects.
    """

    def __init__(self, buckets: list[float]):
        self.buckets = sorted(buckets)
        self.bucket_counts = [0] * len(self.buckets)
        self.count = 0
        self.sum = 0.0
        self._lock = threading.Lock()

    def observe(self, value: float):
        with self._lock:
            self.count += 1
            self.sum += value
            for i, b in enumerate(self.buckets):
                if value <= b:
                    self.bucket_counts[i] += 1
                    break

    def render(self, name: str, help_text: str) -> str:
        lines = [
            f"# HELP {name} {help_text}",
            f"# TYPE {name} histogram",
        ]
        with self._lock:
            cumulative = 0
            for i, b in enumerate(self.buckets):
                cumulative += self.bucket_counts[i]
                lines.append(f'{name}_bucket{{le="{b}"}} {cumulative}')
            lines.append(f'{name}_bucket{{le="+Inf"}} {self.count}')
            lines.append(f"{name}_sum {self.sum:.6f}")
            lines.append(f"{name}_count {self.count}")
        return "\n".join(lines)


class MetricsCollector:
    """Collects casting statistics across sessions."""

    def __init__(self):
        self._attempts: Counter = Counter()  # (gesture, "passed"|"failed") -> count
        self._degenerate = 0
        self._samples_total = 0
        self._lock = threading.Lock()

        # Distance buckets straddle the default pass threshold of 20
        self._distance = _Histogram([5.0, 10.0, 15.0, 20.0, 25.0, 30.0, 40.0, 60.0])

        self._start_time = time.time()

    def record_attempt(self, gesture_id: str, distance: float, passed: bool):
        result = "passed" if passed else "failed"
        with self._lock:
            self._attempts[(gesture_id, result)] += 1
            if not math.isfinite(distance):
                self._degenerate += 1
        if math.isfinite(distance):
            self._distance.observe(distance)

    def record_samples(self, count: int):
        with self._lock:
            self._samples_total += count

    @property
    def attempt_counts(self) -> dict[tuple[str, str], int]:
        with self._lock:
            return dict(self._attempts)

    def pass_rate(self, gesture_id: Optional[str] = None) -> float:
        """Fraction of passed attempts, overall or for one gesture."""
        with self._lock:
            items = [
                (key, count) for key, count in self._attempts.items()
                if gesture_id is None or key[0] == gesture_id
            ]
        total = sum(count for _, count in items)
        if total == 0:
            return 0.0
        passed = sum(count for key, count in items if key[1] == "passed")
        return passed / total

    def render(self) -> str:
        """Render all metrics in Prometheus text exposition format."""
        lines: list[str] = []

        uptime = time.time() - self._start_time
        lines.append("# HELP wandcast_uptime_seconds Time since collector creation")
        lines.append("# TYPE wandcast_uptime_seconds gauge")
        lines.append(f"wandcast_uptime_seconds {uptime:.1f}")
        lines.append("")

        lines.append("# HELP wandcast_attempts_total Casting attempts by gesture and result")
        lines.append("# TYPE wandcast_attempts_total counter")
        with self._lock:
            for (gesture, result), count in sorted(self._attempts.items()):
                lines.append(
                    f'wandcast_attempts_total{{gesture="{gesture}",result="{result}"}} {count}'
                )
        lines.append("")

        lines.append(self._distance.render(
            "wandcast_match_distance",
            "Mean point distance between stroke and reference",
        ))
        lines.append("")

        lines.append("# HELP wandcast_degenerate_attempts_total Strokes with too few points to score")
        lines.append("# TYPE wandcast_degenerate_attempts_total counter")
        lines.append(f"wandcast_degenerate_attempts_total {self._degenerate}")
        lines.append("")

        lines.append("# HELP wandcast_samples_total Sensor samples integrated")
        lines.append("# TYPE wandcast_samples_total counter")
        lines.append(f"wandcast_samples_total {self._samples_total}")
        lines.append("")

        return "\n".join(lines) + "\n"
