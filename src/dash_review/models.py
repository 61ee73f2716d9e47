"""Records produced by the archive parser."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict

from .entries import ArchiveEntry
from .naming import REQUIRED_CAMERAS, ArchiveKind, CameraId, Classification


class EventMetadata(BaseModel):
    """Contents of a clip's ``event.json``.

    Fields the vehicle writes but which are not listed here are kept as extra
    attributes and returned untouched by :meth:`to_dict`. Only ``reason`` is
    type checked; the display fields accept whatever the vehicle wrote.
    """

    model_config = ConfigDict(extra="allow")

    reason: str | None = None
    city: Any = None
    street: Any = None
    timestamp: Any = None
    est_lat: str | float | None = None
    est_lon: str | float | None = None
    camera: str | int | None = None
    display_reason: str | None = None

    @property
    def location(self) -> str:
        return ", ".join(str(part) for part in (self.city, self.street) if part not in (None, ""))

    def to_dict(self) -> dict[str, Any]:
        payload = self.model_dump(exclude_unset=True)
        if self.display_reason is not None:
            payload["display_reason"] = self.display_reason
        return payload


@dataclass(frozen=True, slots=True)
class SegmentFile:
    """One camera's video fragment for a segment."""

    camera: CameraId
    start: datetime
    entry: ArchiveEntry

    @property
    def key(self) -> str:
        return self.entry.path

    def to_dict(self) -> dict[str, object]:
        return {
            "camera": self.camera.value,
            "start": self.start.isoformat(),
            "path": self.entry.path,
        }


@dataclass(frozen=True, slots=True)
class Segment:
    """Time-aligned fragments, one per camera, sharing a start timestamp."""

    timestamp: datetime
    cameras: Mapping[CameraId, SegmentFile]

    def missing_cameras(self) -> list[CameraId]:
        return [camera for camera in REQUIRED_CAMERAS if camera not in self.cameras]

    def representative(self) -> SegmentFile | None:
        for camera in REQUIRED_CAMERAS:
            fragment = self.cameras.get(camera)
            if fragment is not None:
                return fragment
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "cameras": {
                camera.value: fragment.to_dict()
                for camera, fragment in self.cameras.items()
            },
        }


@dataclass(slots=True)
class Clip:
    """A recording event assembled from one archive folder.

    Only ``duration_s`` and ``duration_measured`` change after construction;
    they are refined by :class:`dash_review.duration.DurationEstimator`.
    """

    id: str
    name: str
    kind: ArchiveKind
    classification: Classification
    timestamp: datetime
    thumbnail: ArchiveEntry
    metadata: EventMetadata
    segments: tuple[Segment, ...]
    duration_s: float
    duration_measured: bool = field(default=False)

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("A clip requires at least one segment")

    @property
    def start(self) -> datetime:
        return self.segments[0].timestamp

    @property
    def segment_offsets(self) -> list[float]:
        """Seconds from the first segment to the start of each segment."""

        origin = self.start
        return [(segment.timestamp - origin).total_seconds() for segment in self.segments]

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "classification": self.classification.value,
            "timestamp": self.timestamp.isoformat(),
            "thumbnail": self.thumbnail.path,
            "metadata": self.metadata.to_dict(),
            "segments": [segment.to_dict() for segment in self.segments],
            "duration_s": self.duration_s,
            "duration_measured": self.duration_measured,
        }


__all__ = ["Clip", "EventMetadata", "Segment", "SegmentFile"]
