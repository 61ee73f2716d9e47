"""Decode timestamps, camera names and clip folders from archive paths."""
from __future__ import annotations

import re
from datetime import datetime
from enum import Enum


class CameraId(str, Enum):
    """Camera positions recorded by the vehicle."""

    FRONT = "front"
    BACK = "back"
    LEFT_PILLAR = "left_pillar"
    RIGHT_PILLAR = "right_pillar"
    LEFT_REPEATER = "left_repeater"
    RIGHT_REPEATER = "right_repeater"


REQUIRED_CAMERAS: tuple[CameraId, ...] = tuple(CameraId)

# Display order used by multi-camera grids.
CAMERA_GRID: tuple[tuple[CameraId, ...], ...] = (
    (CameraId.LEFT_PILLAR, CameraId.FRONT, CameraId.RIGHT_PILLAR),
    (CameraId.RIGHT_REPEATER, CameraId.BACK, CameraId.LEFT_REPEATER),
)


class Classification(str, Enum):
    """How a clip ended up in the archive."""

    SAVED = "saved"
    SENTRY = "sentry"


class ArchiveKind(str, Enum):
    """Top level archive folders holding clip folders."""

    SAVED_CLIPS = "SavedClips"
    SENTRY_CLIPS = "SentryClips"

    @property
    def default_classification(self) -> Classification:
        if self is ArchiveKind.SENTRY_CLIPS:
            return Classification.SENTRY
        return Classification.SAVED


_TIMESTAMP_PATTERN = re.compile(r"(\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2})")
_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
_CAMERA_PATTERN = re.compile(
    r"-(" + "|".join(camera.value for camera in CameraId) + r")\.mp4$",
    re.IGNORECASE,
)
_GROUP_PATTERN = re.compile(r"(?:^|/)(SavedClips|SentryClips)/([^/]+)/[^/]+$")


def decode_timestamp(name: str) -> datetime | None:
    """Return the ``YYYY-MM-DD_HH-MM-SS`` instant embedded in *name*."""

    match = _TIMESTAMP_PATTERN.search(name)
    if match is None:
        return None
    try:
        return datetime.strptime(match.group(1), _TIMESTAMP_FORMAT)
    except ValueError:
        return None


def decode_camera(name: str) -> CameraId | None:
    """Return the camera encoded in a ``-<camera>.mp4`` suffix."""

    match = _CAMERA_PATTERN.search(name)
    if match is None:
        return None
    token = match.group(1)
    try:
        return CameraId(token)
    except ValueError:
        # Camera tokens are matched exactly; only the extension is case-insensitive.
        return None


def decode_group_folder(path: str) -> tuple[ArchiveKind, str] | None:
    """Return the archive kind and clip folder a file path belongs to."""

    normalised = path.replace("\\", "/")
    match = _GROUP_PATTERN.search(normalised)
    if match is None:
        return None
    return ArchiveKind(match.group(1)), match.group(2)


def decode_event_time(value: object) -> datetime | None:
    """Parse the ISO-8601 ``timestamp`` field written to ``event.json``."""

    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    # Fragment names carry no zone, so compare everything as naive local time.
    return parsed.replace(tzinfo=None)


def file_name(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", 1)[-1]


def is_thumbnail(name: str) -> bool:
    return name.lower().endswith("thumb.png")


def is_event_metadata(name: str) -> bool:
    return name.lower().endswith("event.json")


def is_video_fragment(name: str) -> bool:
    return name.lower().endswith(".mp4")


__all__ = [
    "ArchiveKind",
    "CAMERA_GRID",
    "CameraId",
    "Classification",
    "REQUIRED_CAMERAS",
    "decode_camera",
    "decode_event_time",
    "decode_group_folder",
    "decode_timestamp",
    "file_name",
    "is_event_metadata",
    "is_thumbnail",
    "is_video_fragment",
]
