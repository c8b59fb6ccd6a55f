"""Recording session: one attempt at casting a spell.

Lifecycle:
    IDLE --start()--> RECORDING --stop()--> SCORING --> PASSED | FAILED
    PASSED | FAILED --reset()--> IDLE
    RECORDING --cancel()--> IDLE
    SCORING --error--> IDLE

While recording, each sensor batch is integrated into points that wait in a
pending queue. A UI drains the queue a few points per animation tick so a long
backlog does not snap onto the screen at once; stop() flushes whatever is
left before scoring.

Usage:
    session = RecordingSession(GestureStore.with_defaults(), stream=wand_stream)
    session.start("Lumos")
    # from the notification handler:
    session.push(samples)
    # from the render loop:
    session.drain()
    # when the user releases the button:
    result = session.stop()
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from wandcast.config import WandConfig
from wandcast.geometry import Point
from wandcast.integrator import CENTER, IntegratorState, SensorSample, check_tuning, integrate
from wandcast.metrics import MetricsCollector
from wandcast.templates import GestureStore, ReferenceGesture
from wandcast.trajectory import MatchResult, match_paths

logger = logging.getLogger("wandcast.session")


class SessionState(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    SCORING = "scoring"
    PASSED = "passed"
    FAILED = "failed"


class SessionStateError(RuntimeError):
    """Operation not allowed in the session's current state."""


@dataclass
class SessionResult:
    """Reported to listeners when an attempt has been scored."""
    gesture_id: str
    distance: float
    passed: bool
    point_count: int
    duration: float


class SensorStream:
    """Seam to the device layer's IMU streaming switch.

    The default implementation only tracks the flag. Subclass it to send the
    real start/stop commands to the wand.
    """

    def __init__(self, streaming: bool = False):
        self._streaming = streaming

    @property
    def is_streaming(self) -> bool:
        return self._streaming

    def set_streaming(self, enabled: bool):
        self._streaming = enabled


class RecordingSession:
    """Owns the raw trajectory and integrator state for one attempt at a time."""

    def __init__(
        self,
        store: GestureStore,
        config: Optional[WandConfig] = None,
        stream: Optional[SensorStream] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.store = store
        self.config = config or WandConfig()
        self.config.validate()
        self.stream = stream or SensorStream()
        self.metrics = metrics

        self._state = SessionState.IDLE
        self._gesture: Optional[ReferenceGesture] = None
        self._sensitivity = self.config.sensitivity
        self._smoothing = self.config.smoothing
        self._integrator = IntegratorState()
        self._trajectory: list[Point] = []
        self._pending: deque[Point] = deque()
        self._stream_was_on = False
        self._started_at = 0.0
        self._result: Optional[MatchResult] = None
        self._last_attempt: Optional[SessionResult] = None
        self._listeners: list[Callable[[SessionResult], None]] = []

    # --- State ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def gesture(self) -> Optional[ReferenceGesture]:
        return self._gesture

    @property
    def trajectory(self) -> tuple[Point, ...]:
        """Snapshot of the points drawn so far."""
        return tuple(self._trajectory)

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def result(self) -> Optional[MatchResult]:
        return self._result

    @property
    def last_attempt(self) -> Optional[SessionResult]:
        """Summary of the most recently scored attempt."""
        return self._last_attempt

    def add_listener(self, callback: Callable[[SessionResult], None]):
        """Register a callback for scored attempts (e.g. to fire feedback macros)."""
        self._listeners.append(callback)

    # --- Transitions ---

    def start(
        self,
        gesture_id: str,
        sensitivity: Optional[float] = None,
        smoothing: Optional[float] = None,
    ):
        """Begin recording an attempt at ``gesture_id``."""
        if self._state != SessionState.IDLE:
            raise SessionStateError(f"Cannot start while {self._state.value}")

        self.config.validate()
        gesture = self.store.get(gesture_id)

        self._sensitivity = self.config.sensitivity if sensitivity is None else sensitivity
        self._smoothing = self.config.smoothing if smoothing is None else smoothing
        for warning in check_tuning(self._sensitivity, self._smoothing):
            logger.warning("Tuning: %s", warning)

        self._gesture = gesture
        self._integrator = IntegratorState(position=CENTER)
        self._trajectory = [CENTER]
        self._pending.clear()
        self._result = None
        self._last_attempt = None
        self._started_at = time.monotonic()

        self._stream_was_on = self.stream.is_streaming
        if not self._stream_was_on:
            self.stream.set_streaming(True)

        self._state = SessionState.RECORDING
        logger.info(
            "Recording %s (sensitivity=%.2f, smoothing=%.2f)",
            gesture.id, self._sensitivity, self._smoothing,
        )

    def push(self, samples: Sequence[SensorSample]) -> list[Point]:
        """Integrate a batch of samples. Returns the newly queued points."""
        if self._state != SessionState.RECORDING:
            logger.debug("Ignoring %d samples while %s", len(samples), self._state.value)
            return []

        points, self._integrator = integrate(
            samples,
            self._integrator,
            dt=self.config.dt,
            sensitivity=self._sensitivity,
            smoothing=self._smoothing,
        )
        self._pending.extend(points)
        if self.metrics is not None:
            self.metrics.record_samples(len(samples))
        return points

    def drain(self, max_points: Optional[int] = None) -> list[Point]:
        """Move up to ``max_points`` queued points into the trajectory."""
        limit = self.config.drain_batch if max_points is None else max_points
        moved = []
        while self._pending and len(moved) < limit:
            moved.append(self._pending.popleft())
        self._trajectory.extend(moved)
        return moved

    def flush(self) -> list[Point]:
        """Move every queued point into the trajectory."""
        return self.drain(len(self._pending))

    def stop(self) -> MatchResult:
        """Stop recording and score the attempt.

        The raw trajectory is released once scored; ``last_attempt`` keeps
        its summary. If scoring raises, the attempt is discarded and the
        session returns to IDLE before the error propagates.
        """
        if self._state != SessionState.RECORDING:
            raise SessionStateError(f"Cannot stop while {self._state.value}")

        self._restore_stream()
        self.flush()
        self._state = SessionState.SCORING

        gesture = self._gesture
        try:
            reference = self.store.get_reference_points(gesture, self.config.sample_count)
            result = match_paths(
                self._trajectory,
                reference,
                n=self.config.sample_count,
                target_size=self.config.target_size,
                threshold=self.config.threshold,
            )
        except Exception:
            logger.exception("Scoring %s failed, discarding attempt", gesture.id)
            self._clear()
            raise

        point_count = len(self._trajectory)
        self._trajectory = []
        self._result = result
        self._state = SessionState.PASSED if result.passed else SessionState.FAILED
        logger.info(
            "%s %s: distance=%.2f over %d points",
            gesture.id, self._state.value, result.distance, point_count,
        )

        if self.metrics is not None:
            self.metrics.record_attempt(gesture.id, result.distance, result.passed)

        self._last_attempt = SessionResult(
            gesture_id=gesture.id,
            distance=result.distance,
            passed=result.passed,
            point_count=point_count,
            duration=time.monotonic() - self._started_at,
        )
        self._notify(self._last_attempt)
        return result

    async def stop_async(self) -> MatchResult:
        """Stop the stream, give in-flight batches time to land, then score.

        If the attempt is stopped elsewhere during the settle delay, that
        result is returned. A cancel during the delay raises SessionStateError.
        """
        if self._state != SessionState.RECORDING:
            raise SessionStateError(f"Cannot stop while {self._state.value}")

        self._restore_stream()
        if self.config.settle_seconds > 0:
            await asyncio.sleep(self.config.settle_seconds)

        if self._state in (SessionState.PASSED, SessionState.FAILED):
            return self._result
        if self._state != SessionState.RECORDING:
            raise SessionStateError(f"Attempt ended while settling ({self._state.value})")
        return self.stop()

    def cancel(self):
        """Abandon the current recording without scoring it."""
        if self._state != SessionState.RECORDING:
            raise SessionStateError(f"Cannot cancel while {self._state.value}")

        self._restore_stream()
        logger.info("Cancelled %s after %d points", self._gesture.id, len(self._trajectory))
        self._clear()

    def reset(self):
        """Return to IDLE after a scored attempt."""
        if self._state in (SessionState.RECORDING, SessionState.SCORING):
            raise SessionStateError(f"Cannot reset while {self._state.value}")
        self._clear()

    # --- Internals ---

    def _restore_stream(self):
        # Leave streaming on if someone else had it on before we started
        if not self._stream_was_on and self.stream.is_streaming:
            self.stream.set_streaming(False)

    def _clear(self):
        self._state = SessionState.IDLE
        self._gesture = None
        self._trajectory = []
        self._pending.clear()
        self._integrator = IntegratorState()
        self._result = None
        self._last_attempt = None

    def _notify(self, event: SessionResult):
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error("Session listener error: %s", e)
