"""Sensor sample recording and replay.

Capture real wand sessions for:
- Reproducible tests without a wand
- Tuning sensitivity/smoothing offline against the same motion
- Demo recordings that replay deterministically
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Optional, Sequence

from wandcast.integrator import SensorSample

if TYPE_CHECKING:
    from wandcast.session import RecordingSession
    from wandcast.trajectory import MatchResult

FORMAT_VERSION = 1


@dataclass
class RecordedBatch:
    """One notification's worth of samples."""
    timestamp: float  # seconds from recording start
    samples: list[SensorSample]


class SampleRecorder:
    """Records sensor sample batches to a JSON file.

    Usage:
        recorder = SampleRecorder()
        recorder.start()
        # In the notification handler:
        recorder.add_batch(samples)
        # When done:
        recorder.stop()
        recorder.save("lumos_attempt.json")
    """

    def __init__(self):
        self._batches: list[RecordedBatch] = []
        self._start_time: Optional[float] = None
        self._recording = False

    def start(self):
        self._batches = []
        self._start_time = time.monotonic()
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of batches captured."""
        self._recording = False
        return len(self._batches)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def batch_count(self) -> int:
        return len(self._batches)

    @property
    def sample_count(self) -> int:
        return sum(len(b.samples) for b in self._batches)

    @property
    def duration(self) -> float:
        if not self._batches:
            return 0.0
        return self._batches[-1].timestamp

    def add_batch(self, samples: Sequence[SensorSample]):
        if not self._recording:
            return
        self._batches.append(RecordedBatch(
            timestamp=time.monotonic() - self._start_time,
            samples=list(samples),
        ))

    def save(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": FORMAT_VERSION,
            "batch_count": len(self._batches),
            "duration": self.duration,
            "batches": [
                {
                    "timestamp": b.timestamp,
                    "samples": [s.to_dict() for s in b.samples],
                }
                for b in self._batches
            ],
        }
        with open(path, "w") as f:
            json.dump(data, f)


class SamplePlayer:
    """Replays a recorded sample session.

    Usage:
        player = SamplePlayer.load("lumos_attempt.json")
        session.start("Lumos")
        result = player.replay_into(session)
    """

    def __init__(self, batches: list[RecordedBatch]):
        self._batches = batches

    @classmethod
    def load(cls, path: str | Path) -> SamplePlayer:
        with open(path) as f:
            data = json.load(f)

        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported recording version: {version}")

        batches = [
            RecordedBatch(
                timestamp=b["timestamp"],
                samples=[SensorSample.from_dict(s) for s in b["samples"]],
            )
            for b in data["batches"]
        ]
        return cls(batches)

    @property
    def batch_count(self) -> int:
        return len(self._batches)

    @property
    def duration(self) -> float:
        if not self._batches:
            return 0.0
        return self._batches[-1].timestamp

    def play(self) -> Iterator[RecordedBatch]:
        """Iterate through all batches instantly (no timing)."""
        yield from self._batches

    def replay_into(self, session: RecordingSession) -> MatchResult:
        """Push every batch into a recording session, then stop and score it."""
        for batch in self.play():
            session.push(batch.samples)
            session.drain()
        return session.stop()
