from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import Callable, Iterable, Sequence

import pytest

from dash_review.entries import MemoryArchiveEntry
from dash_review.models import Clip, EventMetadata, Segment, SegmentFile
from dash_review.naming import REQUIRED_CAMERAS, ArchiveKind, CameraId, Classification


def _stamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d_%H-%M-%S")


def build_clip_entries(
    *,
    kind: str = "SavedClips",
    folder: str = "2023-01-01_10-00-00",
    starts: Sequence[str] = ("2023-01-01_10-00-00",),
    event: dict | str | None = None,
    cameras: Iterable[CameraId] = REQUIRED_CAMERAS,
    thumbnail: bool = True,
    root: str = "TeslaCam",
) -> list[MemoryArchiveEntry]:
    """Return in-memory entries shaped like one clip folder of the archive."""

    base = f"{root}/{kind}/{folder}"
    entries: list[MemoryArchiveEntry] = []
    if thumbnail:
        entries.append(MemoryArchiveEntry(f"{base}/thumb.png", b"\x89PNG"))
    if event is not None:
        payload = event if isinstance(event, str) else json.dumps(event)
        entries.append(MemoryArchiveEntry(f"{base}/event.json", payload.encode("utf-8")))
    camera_list = list(cameras)
    for start in starts:
        for camera in camera_list:
            entries.append(
                MemoryArchiveEntry(f"{base}/{start}-{camera.value}.mp4", f"{start}-{camera.value}".encode())
            )
    return entries


def make_clip(
    offsets: Sequence[float] = (0.0, 60.0),
    *,
    event_timestamp: str | None = None,
    cameras: Iterable[CameraId] = REQUIRED_CAMERAS,
    clip_id: str = "2023-01-01_10-00-00",
    duration_s: float | None = None,
) -> Clip:
    """Build a clip directly, bypassing the parser."""

    origin = datetime(2023, 1, 1, 10, 0, 0)
    camera_list = list(cameras)
    segments = []
    for offset in offsets:
        start = origin + timedelta(seconds=offset)
        fragments = {
            camera: SegmentFile(
                camera=camera,
                start=start,
                entry=MemoryArchiveEntry(f"SavedClips/{clip_id}/{_stamp(start)}-{camera.value}.mp4"),
            )
            for camera in camera_list
        }
        segments.append(Segment(timestamp=start, cameras=fragments))
    if duration_s is None:
        duration_s = offsets[-1] + 60.0
    return Clip(
        id=clip_id,
        name=clip_id,
        kind=ArchiveKind.SAVED_CLIPS,
        classification=Classification.SAVED,
        timestamp=segments[-1].timestamp,
        thumbnail=MemoryArchiveEntry(f"SavedClips/{clip_id}/thumb.png"),
        metadata=EventMetadata(timestamp=event_timestamp),
        segments=tuple(segments),
        duration_s=duration_s,
    )


@pytest.fixture
def clip_entries() -> Callable[..., list[MemoryArchiveEntry]]:
    return build_clip_entries


@pytest.fixture
def clip_factory() -> Callable[..., Clip]:
    return make_clip


class FakeTime:
    """Manually advanced replacement for ``time.monotonic``."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()
