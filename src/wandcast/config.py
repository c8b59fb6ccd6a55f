"""wandcast configuration management."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from wandcast.integrator import check_tuning

CONFIG_ENV_VAR = "WANDCAST_CONFIG"


@dataclass
class WandConfig:
    # Matching
    sample_count: int = 64
    target_size: float = 100.0
    threshold: float = 20.0
    # Integration
    dt: float = 0.01  # nominal IMU sample period, seconds
    sensitivity: float = 0.6
    smoothing: float = 0.5
    # Session
    drain_batch: int = 3  # max queued points moved per drain tick
    settle_seconds: float = 0.15
    motion_threshold_g: float = 2.0
    gestures_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> WandConfig:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict:
        return asdict(self)

    def validate(self) -> list[str]:
        """Raise on unusable values; return warnings for odd tuning values."""
        if self.sample_count < 2:
            raise ValueError(f"sample_count must be >= 2, got {self.sample_count}")
        if self.target_size <= 0:
            raise ValueError(f"target_size must be > 0, got {self.target_size}")
        if self.drain_batch < 1:
            raise ValueError(f"drain_batch must be >= 1, got {self.drain_batch}")
        return check_tuning(self.sensitivity, self.smoothing)


def default_config_path() -> Optional[Path]:
    value = os.environ.get(CONFIG_ENV_VAR)
    return Path(value) if value else None


def load_config(path: str | Path | None = None) -> WandConfig:
    """Load config from YAML. A missing file gives the defaults."""
    path = Path(path) if path is not None else default_config_path()
    if path is None or not path.exists():
        return WandConfig()

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return WandConfig.from_dict(data)


def save_config(config: WandConfig, path: str | Path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
