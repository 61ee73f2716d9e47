"""Viewer configuration structures."""
from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping

from .naming import CameraId

DEFAULT_SEGMENT_FALLBACK_S = 60.0
DEFAULT_DRIFT_TOLERANCE_S = 0.4


@dataclass(slots=True)
class ViewerSettings:
    """Tunable constants for archive parsing and playback."""

    segment_fallback_s: float = DEFAULT_SEGMENT_FALLBACK_S
    event_lead_in_s: float = 20.0
    event_seek_lead_s: float = 5.0
    jump_step_s: float = 5.0
    tick_interval_s: float = 1.0 / 30.0
    min_rate: float = 0.25
    max_rate: float = 5.0
    drift_tolerance_s: float = DEFAULT_DRIFT_TOLERANCE_S
    auto_play: bool = True
    default_camera: CameraId = CameraId.FRONT

    def __post_init__(self) -> None:
        for field_name in (
            "segment_fallback_s",
            "event_lead_in_s",
            "event_seek_lead_s",
            "jump_step_s",
            "tick_interval_s",
            "min_rate",
            "max_rate",
            "drift_tolerance_s",
        ):
            value = getattr(self, field_name)
            try:
                value_f = float(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{field_name} must be numeric") from exc
            if not math.isfinite(value_f):
                raise ValueError(f"{field_name} must be finite")
            setattr(self, field_name, value_f)
        if self.segment_fallback_s <= 0:
            raise ValueError("Segment fallback length must be positive")
        if self.event_lead_in_s < 0 or self.event_seek_lead_s < 0:
            raise ValueError("Event lead times must not be negative")
        if self.jump_step_s <= 0:
            raise ValueError("Jump step must be positive")
        if self.tick_interval_s <= 0 or self.tick_interval_s > 1.0:
            raise ValueError("Tick interval must be between 0 and 1 second")
        if self.min_rate <= 0:
            raise ValueError("Minimum playback rate must be positive")
        if self.max_rate < self.min_rate:
            raise ValueError("Maximum playback rate must not be below the minimum")
        if self.drift_tolerance_s < 0:
            raise ValueError("Drift tolerance must not be negative")
        if not isinstance(self.default_camera, CameraId):
            self.default_camera = CameraId(self.default_camera)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["default_camera"] = self.default_camera.value
        return data

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ViewerSettings":
        data: dict[str, Any] = dict(payload)
        camera = data.get("default_camera", CameraId.FRONT)
        if isinstance(camera, str):
            try:
                data["default_camera"] = CameraId(camera)
            except ValueError as exc:
                raise ValueError(f"Unknown camera {camera!r}") from exc
        elif not isinstance(camera, CameraId):
            raise ValueError("Invalid default camera value")
        return cls(**data)


class ViewerSettingsStore:
    """Simple JSON backed persistence for :class:`ViewerSettings`."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ViewerSettings:
        if not self._path.exists():
            return ViewerSettings()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError("Invalid viewer settings JSON") from exc
        if not isinstance(raw, dict):
            raise ValueError("Viewer settings must be a JSON object")
        return ViewerSettings.from_dict(raw)

    def save(self, settings: ViewerSettings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = settings.to_dict()
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


__all__ = [
    "DEFAULT_DRIFT_TOLERANCE_S",
    "DEFAULT_SEGMENT_FALLBACK_S",
    "ViewerSettings",
    "ViewerSettingsStore",
]
