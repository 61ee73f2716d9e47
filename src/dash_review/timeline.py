"""Map a virtual playback position onto per-camera fragments."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from .config import DEFAULT_DRIFT_TOLERANCE_S
from .entries import ArchiveEntry
from .models import Clip
from .naming import REQUIRED_CAMERAS, CameraId, decode_event_time

EMPTY_SOURCE_KEY = "empty"


@dataclass(frozen=True, slots=True)
class SourceRef:
    """What a renderer needs to show one camera at one instant.

    ``key`` only changes when the underlying fragment changes, so a renderer
    can keep its decoder open while the offset moves within a fragment.
    """

    camera: CameraId
    content: ArchiveEntry | None
    offset: float
    key: str
    segment_index: int

    @property
    def available(self) -> bool:
        return self.content is not None

    def needs_seek(
        self, current_offset: float, tolerance: float = DEFAULT_DRIFT_TOLERANCE_S
    ) -> bool:
        """Return ``True`` when a player at *current_offset* has drifted too far."""

        return abs(float(current_offset) - self.offset) > tolerance


def _segment_index(offsets: np.ndarray, position: float) -> int:
    # side="right" hands a boundary instant to the segment starting there.
    index = int(np.searchsorted(offsets, position, side="right")) - 1
    return min(max(index, 0), len(offsets) - 1)


def resolve(clip: Clip, virtual_time: float, camera: CameraId) -> SourceRef:
    """Return the fragment and intra-fragment offset for *camera* at *virtual_time*.

    ``virtual_time`` is measured in seconds from the clip's first segment.
    Positions before the first segment resolve to its start; positions past
    the last segment start stay within the last segment.
    """

    offsets = np.asarray(clip.segment_offsets, dtype=np.float64)
    position = max(0.0, float(virtual_time))
    index = _segment_index(offsets, position)
    offset = position - float(offsets[index])
    fragment = clip.segments[index].cameras.get(camera)
    if fragment is None:
        return SourceRef(
            camera=camera,
            content=None,
            offset=offset,
            key=EMPTY_SOURCE_KEY,
            segment_index=index,
        )
    return SourceRef(
        camera=camera,
        content=fragment.entry,
        offset=offset,
        key=fragment.key,
        segment_index=index,
    )


def resolve_all(
    clip: Clip,
    virtual_time: float,
    cameras: Iterable[CameraId] = REQUIRED_CAMERAS,
) -> dict[CameraId, SourceRef]:
    return {camera: resolve(clip, virtual_time, camera) for camera in cameras}


def event_offset(clip: Clip) -> float | None:
    """Seconds from the first segment to the event recorded in ``event.json``."""

    event_time = decode_event_time(clip.metadata.timestamp)
    if event_time is None:
        return None
    return (event_time - clip.start).total_seconds()


def initial_position(clip: Clip, lead_in_s: float = 20.0) -> float:
    """Where playback starts: shortly before the event, else at the beginning."""

    offset = event_offset(clip)
    if offset is None:
        return 0.0
    return max(0.0, offset - lead_in_s)


def event_seek_position(clip: Clip, lead_s: float = 5.0) -> float | None:
    offset = event_offset(clip)
    if offset is None:
        return None
    return max(0.0, offset - lead_s)


__all__ = [
    "EMPTY_SOURCE_KEY",
    "SourceRef",
    "event_offset",
    "event_seek_position",
    "initial_position",
    "resolve",
    "resolve_all",
]
