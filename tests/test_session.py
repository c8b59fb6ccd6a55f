"""Tests for the recording session state machine."""

import asyncio
import logging
import math

import pytest

from wandcast.config import WandConfig
from wandcast.integrator import CENTER, SensorSample, Vector3
from wandcast.metrics import MetricsCollector
from wandcast.session import (
    RecordingSession,
    SensorStream,
    SessionResult,
    SessionState,
    SessionStateError,
)
from wandcast.templates import GestureStore, UnknownGestureError


def sample(i=0, gx=0.0, gy=0.0):
    return SensorSample(
        sequence_index=i,
        acceleration=Vector3(0.0, 0.0, 1.0),
        gyroscope=Vector3(gx, gy, 0.0),
    )


def downward_stroke(n=100):
    """Pitch the wand down: y grows 0.3 per sample with default tuning."""
    return [sample(i, gx=-100.0) for i in range(n)]


def small_circle(n=100):
    samples = []
    for i in range(n):
        angle = 2 * math.pi * i / n
        samples.append(sample(i, gx=-100.0 * math.sin(angle), gy=100.0 * math.cos(angle)))
    return samples


class RecordingStream(SensorStream):
    def __init__(self, streaming=False):
        super().__init__(streaming)
        self.calls = []

    def set_streaming(self, enabled):
        self.calls.append(enabled)
        super().set_streaming(enabled)


@pytest.fixture
def store():
    return GestureStore.with_defaults()


@pytest.fixture
def session(store):
    return RecordingSession(store)


class TestTransitions:
    def test_starts_idle(self, session):
        assert session.state == SessionState.IDLE
        assert session.trajectory == ()
        assert session.result is None

    def test_start_seeds_center(self, session):
        session.start("Descendo")
        assert session.state == SessionState.RECORDING
        assert session.trajectory == (CENTER,)
        assert session.gesture.id == "Descendo"

    def test_start_twice_rejected(self, session):
        session.start("Descendo")
        with pytest.raises(SessionStateError):
            session.start("Lumos")

    def test_unknown_gesture_leaves_idle(self, session):
        with pytest.raises(UnknownGestureError):
            session.start("Avada_Kedavra")
        assert session.state == SessionState.IDLE

    def test_stop_when_idle_rejected(self, session):
        with pytest.raises(SessionStateError):
            session.stop()

    def test_reset_after_result(self, session):
        session.start("Descendo")
        session.push(downward_stroke())
        session.stop()
        session.reset()
        assert session.state == SessionState.IDLE
        assert session.trajectory == ()
        assert session.result is None

    def test_reset_while_recording_rejected(self, session):
        session.start("Descendo")
        with pytest.raises(SessionStateError):
            session.reset()

    def test_start_after_result_requires_reset(self, session):
        session.start("Descendo")
        session.stop()
        with pytest.raises(SessionStateError):
            session.start("Descendo")
        session.reset()
        session.start("Descendo")
        assert session.state == SessionState.RECORDING

    def test_cancel_discards(self, session):
        session.start("Descendo")
        session.push(downward_stroke(10))
        session.cancel()
        assert session.state == SessionState.IDLE
        assert session.trajectory == ()
        assert session.pending == 0

    def test_cancel_when_idle_rejected(self, session):
        with pytest.raises(SessionStateError):
            session.cancel()


class TestRecording:
    def test_push_queues_points(self, session):
        session.start("Descendo")
        points = session.push(downward_stroke(10))
        assert len(points) == 10
        assert session.pending == 10
        assert session.trajectory == (CENTER,)

    def test_push_ignored_when_not_recording(self, session):
        assert session.push(downward_stroke(5)) == []
        assert session.pending == 0

    def test_drain_moves_at_most_batch(self, session):
        session.start("Descendo")
        session.push(downward_stroke(10))
        moved = session.drain()
        assert len(moved) == 3
        assert session.pending == 7
        assert len(session.trajectory) == 4

    def test_drain_custom_limit(self, session):
        session.start("Descendo")
        session.push(downward_stroke(4))
        assert len(session.drain(10)) == 4
        assert session.drain() == []

    def test_integration_continues_across_batches(self, session):
        session.start("Descendo")
        session.push(downward_stroke(10))
        second = session.push(downward_stroke(10))
        # Default tuning moves 0.3 per sample
        assert second[-1].y == pytest.approx(56.0)
        assert second[-1].x == pytest.approx(50.0)

    def test_trajectory_is_snapshot(self, session):
        session.start("Descendo")
        snapshot = session.trajectory
        session.push(downward_stroke(6))
        session.drain()
        assert snapshot == (CENTER,)

    def test_per_session_tuning(self, session):
        session.start("Descendo", sensitivity=1.0, smoothing=0.0)
        points = session.push([sample(gx=-100.0)])
        assert points[0] == pytest.approx((50.0, 51.0))

    def test_tuning_warning_logged(self, session, caplog):
        with caplog.at_level(logging.WARNING, logger="wandcast.session"):
            session.start("Descendo", sensitivity=0.0)
        assert any("sensitivity" in r.getMessage() for r in caplog.records)
        assert session.state == SessionState.RECORDING


class TestScoring:
    def test_downward_stroke_passes(self, session):
        session.start("Descendo")
        session.push(downward_stroke())
        result = session.stop()
        assert result.passed
        assert result.distance < 1.0
        assert session.state == SessionState.PASSED
        assert session.result == result

    def test_stop_flushes_pending(self, session):
        session.start("Descendo")
        session.push(downward_stroke(50))
        session.drain()
        session.stop()
        assert session.last_attempt.point_count == 51
        assert session.trajectory == ()
        assert session.pending == 0

    def test_circle_fails_line(self, session):
        session.start("Descendo")
        session.push(small_circle())
        result = session.stop()
        assert not result.passed
        assert session.state == SessionState.FAILED

    def test_upward_stroke_fails_downward_reference(self, session):
        session.start("Descendo")
        session.push([sample(i, gx=100.0) for i in range(100)])
        assert not session.stop().passed

    def test_no_movement_is_degenerate(self, session):
        session.start("Descendo")
        result = session.stop()
        assert result.distance == math.inf
        assert not result.passed
        assert session.state == SessionState.FAILED

    def test_custom_threshold(self, store):
        session = RecordingSession(store, WandConfig(threshold=0.0))
        session.start("Descendo")
        session.push(downward_stroke())
        assert not session.stop().passed

    def test_scoring_error_returns_to_idle(self, store):
        stream = RecordingStream(streaming=False)
        session = RecordingSession(store, stream=stream)
        session.start("Lumos")
        session.push(downward_stroke(20))
        session.config.sample_count = 1

        with pytest.raises(ValueError):
            session.stop()
        assert session.state == SessionState.IDLE
        assert session.result is None
        assert not stream.is_streaming

        session.config.sample_count = 64
        session.start("Descendo")
        session.push(downward_stroke())
        assert session.stop().passed

    def test_start_revalidates_config(self, session):
        session.config.drain_batch = 0
        with pytest.raises(ValueError):
            session.start("Descendo")
        assert session.state == SessionState.IDLE


class TestStream:
    def test_stream_enabled_then_disabled(self, store):
        stream = RecordingStream(streaming=False)
        session = RecordingSession(store, stream=stream)
        session.start("Descendo")
        assert stream.is_streaming
        session.stop()
        assert not stream.is_streaming
        assert stream.calls == [True, False]

    def test_stream_left_on_if_already_on(self, store):
        stream = RecordingStream(streaming=True)
        session = RecordingSession(store, stream=stream)
        session.start("Descendo")
        session.stop()
        assert stream.is_streaming
        assert stream.calls == []

    def test_cancel_restores_stream(self, store):
        stream = RecordingStream(streaming=False)
        session = RecordingSession(store, stream=stream)
        session.start("Descendo")
        session.cancel()
        assert not stream.is_streaming


class TestListeners:
    def test_listener_receives_result(self, session):
        results = []
        session.add_listener(results.append)
        session.start("descendo")
        session.push(downward_stroke())
        session.stop()
        assert len(results) == 1
        event = results[0]
        assert isinstance(event, SessionResult)
        assert event.gesture_id == "Descendo"
        assert event.passed
        assert event.point_count == 101
        assert event.duration >= 0

    def test_listener_error_doesnt_crash(self, session):
        called = []

        def bad_listener(event):
            raise RuntimeError("boom")

        session.add_listener(bad_listener)
        session.add_listener(called.append)
        session.start("Descendo")
        result = session.stop()
        assert session.result == result
        assert len(called) == 1

    def test_metrics_recorded(self, store):
        metrics = MetricsCollector()
        session = RecordingSession(store, metrics=metrics)
        session.start("Descendo")
        session.push(downward_stroke())
        session.stop()
        assert metrics.attempt_counts == {("Descendo", "passed"): 1}


class TestStopAsync:
    def test_settle_then_score(self, store):
        stream = RecordingStream(streaming=False)
        session = RecordingSession(store, WandConfig(settle_seconds=0.01), stream=stream)
        session.start("Descendo")
        session.push(downward_stroke())

        result = asyncio.run(session.stop_async())
        assert result.passed
        assert session.state == SessionState.PASSED
        assert not stream.is_streaming

    def test_late_batches_land_during_settle(self, store):
        session = RecordingSession(store, WandConfig(settle_seconds=0.05))
        session.start("Descendo")
        session.push(downward_stroke(50))

        async def run():
            stopping = asyncio.ensure_future(session.stop_async())
            await asyncio.sleep(0)
            session.push(downward_stroke(50))
            return await stopping

        result = asyncio.run(run())
        assert result.passed
        assert session.last_attempt.point_count == 101

    def test_stop_during_settle_returns_that_result(self, store):
        session = RecordingSession(store, WandConfig(settle_seconds=0.05))
        session.start("Descendo")
        session.push(downward_stroke())

        async def run():
            stopping = asyncio.ensure_future(session.stop_async())
            await asyncio.sleep(0)
            direct = session.stop()
            return direct, await stopping

        direct, settled = asyncio.run(run())
        assert settled is direct
        assert session.state == SessionState.PASSED

    def test_cancel_during_settle(self, store):
        session = RecordingSession(store, WandConfig(settle_seconds=0.05))
        session.start("Descendo")

        async def run():
            stopping = asyncio.ensure_future(session.stop_async())
            await asyncio.sleep(0)
            session.cancel()
            return await stopping

        with pytest.raises(SessionStateError):
            asyncio.run(run())
        assert session.state == SessionState.IDLE

    def test_rejected_when_idle(self, session):
        with pytest.raises(SessionStateError):
            asyncio.run(session.stop_async())


class TestConfigValidation:
    def test_bad_config_rejected(self, store):
        with pytest.raises(ValueError):
            RecordingSession(store, WandConfig(sample_count=1))
