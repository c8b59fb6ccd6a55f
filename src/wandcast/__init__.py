"""wandcast - Motion-gesture recognition for IMU magic wands."""

__version__ = "0.1.0"

from wandcast.geometry import Point, distance, path_length
from wandcast.integrator import IntegratorState, SensorSample, Vector3, integrate
from wandcast.trajectory import MatchResult, match_paths, normalize_path, path_distance, resample_path
from wandcast.templates import (
    GestureDefinitionError,
    GestureStore,
    ReferenceGesture,
    UnknownGestureError,
    reference_points,
)
from wandcast.session import RecordingSession, SensorStream, SessionResult, SessionState, SessionStateError
from wandcast.config import WandConfig, load_config
from wandcast.motion import MotionDetector
from wandcast.recorder import SamplePlayer, SampleRecorder
from wandcast.metrics import MetricsCollector
