"""Reference gesture catalog: named spell shapes stored as SVG path data.

Each gesture's curve is written in a 0 to 100 coordinate square (y grows down)
using ordinary SVG path syntax: M, L, H, V, C, S, Q, T, A, Z. Curves are
evaluated with svg.path and turned into points equally spaced along the arc,
so a cubic drawn with bunched-up control points still yields even samples.

Load from YAML:
    store = GestureStore.from_yaml("gestures.yml")

    # gestures.yml
    gestures:
      - id: Lumos
        curve: "M 30 70 Q 50 10 70 70"
        description: Arch, left to right

Or use the built-in spell book:
    store = GestureStore.with_defaults()
    points = store.get_reference_points("lumos", 64)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Union

import yaml
from svg.path import Path as SvgPath
from svg.path import parse_path

from wandcast.geometry import Point
from wandcast.trajectory import resample_path

logger = logging.getLogger("wandcast.templates")

# Dense evaluation count per requested output point before arc-length resampling
_OVERSAMPLE = 16
_MIN_EVALUATIONS = 512

_SEPARATORS = re.compile(r"[\s_]+")


class GestureDefinitionError(ValueError):
    """A reference gesture's curve cannot be parsed or has no length."""


class UnknownGestureError(KeyError):
    """No gesture with the requested id is registered."""


def canonical_gesture_id(name: str) -> str:
    """Lookup key for a gesture id: lowercase, spaces and underscores removed."""
    return _SEPARATORS.sub("", name.strip().lower())


@lru_cache(maxsize=256)
def _parse_curve(curve: str) -> SvgPath:
    try:
        path = parse_path(curve)
    except Exception as e:
        raise GestureDefinitionError(f"Malformed curve {curve!r}: {e}") from e
    if len(path) == 0 or path.length() == 0:
        raise GestureDefinitionError(f"Curve {curve!r} has no drawable length")
    return path


@dataclass(frozen=True)
class ReferenceGesture:
    """A named spell shape."""
    id: str
    curve: str  # SVG path data in 0 to 100 space
    description: str = ""

    def __post_init__(self):
        if not self.id:
            raise GestureDefinitionError("Gesture id must be non-empty")
        try:
            _parse_curve(self.curve)
        except GestureDefinitionError as e:
            raise GestureDefinitionError(f"Gesture '{self.id}': {e}") from e

    @property
    def path(self) -> SvgPath:
        return _parse_curve(self.curve)

    def to_dict(self) -> dict:
        return {"id": self.id, "curve": self.curve, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict) -> ReferenceGesture:
        return cls(
            id=str(data["id"]),
            curve=str(data["curve"]),
            description=data.get("description", ""),
        )


@lru_cache(maxsize=512)
def reference_points(gesture: ReferenceGesture, n: int) -> tuple[Point, ...]:
    """Return ``n`` points equally spaced along the gesture's curve.

    svg.path's ``Path.point`` is length-parameterized across segments but
    parametric within a segment, so the curve is evaluated densely first and
    then resampled by arc length.
    """
    path = gesture.path
    count = max(n * _OVERSAMPLE, _MIN_EVALUATIONS)
    dense = []
    for i in range(count):
        c = path.point(i / (count - 1))
        dense.append(Point(c.real, c.imag))

    logger.debug("Evaluated %s at %d points for n=%d", gesture.id, count, n)
    return tuple(resample_path(dense, n))


class GestureStore:
    """Registry of reference gestures, keyed by canonical id."""

    def __init__(self):
        self._gestures: dict[str, ReferenceGesture] = {}

    def register(self, gesture: ReferenceGesture):
        key = canonical_gesture_id(gesture.id)
        if key in self._gestures:
            logger.warning("Gesture '%s' already registered, replacing", gesture.id)
        self._gestures[key] = gesture

    def get(self, gesture_id: str) -> ReferenceGesture:
        try:
            return self._gestures[canonical_gesture_id(gesture_id)]
        except KeyError:
            raise UnknownGestureError(gesture_id) from None

    def get_reference_points(
        self, gesture: Union[ReferenceGesture, str], n: int = 64
    ) -> tuple[Point, ...]:
        if isinstance(gesture, str):
            gesture = self.get(gesture)
        return reference_points(gesture, n)

    def __contains__(self, gesture_id: str) -> bool:
        return canonical_gesture_id(gesture_id) in self._gestures

    def __len__(self) -> int:
        return len(self._gestures)

    def __iter__(self) -> Iterator[ReferenceGesture]:
        return iter(self._gestures.values())

    @property
    def ids(self) -> list[str]:
        return [g.id for g in self._gestures.values()]

    @classmethod
    def from_yaml(cls, path: str | Path) -> GestureStore:
        """Load gestures from a YAML catalog."""
        with open(path) as f:
            config = yaml.safe_load(f) or {}

        store = cls()
        for entry in config.get("gestures", []):
            store.register(ReferenceGesture.from_dict(entry))
        logger.info("Loaded %d gestures from %s", len(store), path)
        return store

    def to_yaml(self, path: str | Path):
        entries = [g.to_dict() for g in self._gestures.values()]
        with open(path, "w") as f:
            yaml.dump({"gestures": entries}, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_config(cls, config) -> GestureStore:
        """Catalog named by ``config.gestures_file``, or the built-ins."""
        if config.gestures_file:
            return cls.from_yaml(config.gestures_file)
        return cls.with_defaults()

    @classmethod
    def with_defaults(cls) -> GestureStore:
        """Create a store holding the built-in spell book."""
        store = cls()
        for gesture in DEFAULT_GESTURES:
            store.register(gesture)
        return store


DEFAULT_GESTURES = (
    ReferenceGesture(
        id="Descendo",
        curve="M 50 25 L 50 75",
        description="Straight stroke downward",
    ),
    ReferenceGesture(
        id="Ascendio",
        curve="M 50 75 L 50 25",
        description="Straight stroke upward",
    ),
    ReferenceGesture(
        id="Lumos",
        curve="M 30 70 Q 50 10 70 70",
        description="Arch from lower left to lower right",
    ),
    ReferenceGesture(
        id="Nox",
        curve="M 70 30 Q 50 90 30 30",
        description="Bowl from upper right to upper left",
    ),
    ReferenceGesture(
        id="Incendio",
        curve="M 20 80 L 50 20 L 80 80",
        description="Peak: up to the apex and back down",
    ),
    ReferenceGesture(
        id="Aguamenti",
        curve="M 10 50 C 30 20 40 20 50 50 S 70 80 90 50",
        description="Single wave, left to right",
    ),
    ReferenceGesture(
        id="Wingardium_Leviosa",
        curve="M 20 40 C 35 70 60 70 70 40 L 75 80",
        description="Swish then flick",
    ),
    ReferenceGesture(
        id="Alohomora",
        curve=(
            "M 50 25 C 63.8 25 75 36.2 75 50 C 75 63.8 63.8 75 50 75 "
            "C 36.2 75 25 63.8 25 50 C 25 36.2 36.2 25 50 25"
        ),
        description="Full clockwise circle from the top",
    ),
    ReferenceGesture(
        id="Stupefy",
        curve="M 20 30 L 80 30 L 50 80",
        description="Bar across the top, then down to the point",
    ),
    ReferenceGesture(
        id="Accio",
        curve="M 80 20 L 20 50 L 80 80",
        description="Chevron pointing left",
    ),
    ReferenceGesture(
        id="Revelio",
        curve="M 50 50 A 12 12 0 0 1 62 50 A 24 24 0 0 1 26 50 A 36 36 0 0 1 86 50",
        description="Outward spiral",
    ),
)
